"""Define dataclasses to represent plans output by PDDL planners, and a parser for them.

Plans list one step per action, each optionally prefixed by a timestamp and followed by a
bracketed duration, as output by temporal planners:

    0.000: (grasp-folded-garment left g1 pile1) [2.000]
    2.001: (place-garment-on-pile left g1 pile2) [1.000]

Steps without a timestamp are numbered by their position in the plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from pddl_syntax.config import ParserConfig
from pddl_syntax.pddl_parser import PDDLParser
from pddl_syntax.pddl_scanner import PDDLTokenType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanStep:
    """A ground action scheduled at a point in time within a plan."""

    timestamp: float
    """Time at which the step starts (its index in the plan, for untimed plans)."""

    action_name: str
    arguments: tuple[str, ...] = ()

    duration: float | None = None
    """Duration of the step, if the plan specifies one."""

    def __str__(self) -> str:
        """Return the step in the plan format output by temporal planners."""
        step = f"{self.timestamp:.3f}: ({' '.join([self.action_name, *self.arguments])})"
        return step if self.duration is None else f"{step} [{self.duration:.3f}]"

    @property
    def end_time(self) -> float:
        """Retrieve the time at which the step ends (its start time, if it has no duration)."""
        return self.timestamp + (self.duration or 0.0)


@dataclass(frozen=True)
class PDDLPlan:
    """A sequence of ground actions solving a PDDL problem."""

    steps: tuple[PlanStep, ...] = ()

    def __iter__(self) -> Iterator[PlanStep]:
        """Iterate over the steps of the plan, in the order they were listed."""
        return iter(self.steps)

    def __len__(self) -> int:
        """Count the steps of the plan."""
        return len(self.steps)

    @property
    def makespan(self) -> float:
        """Retrieve the time at which the last step of the plan ends (zero for empty plans)."""
        return max((step.end_time for step in self.steps), default=0.0)

    @classmethod
    def parse(cls, string: str, config: ParserConfig | None = None) -> PDDLPlan:
        """Parse a plan from the given string.

        :param string: Text of a plan, one step per action
        :param config: Options controlling parser strictness (optional)
        :return: Parsed plan
        :raises PDDLError: If the text cannot be scanned or parsed
        """
        return PlanParser(string, config).plan()


class PlanParser(PDDLParser):
    """A parser for the sequential and temporal plans output by PDDL planners."""

    def plan(self) -> PDDLPlan:
        """Parse a plan from the stream of input tokens."""
        steps: list[PlanStep] = []
        while not self.at_end:
            steps.append(self.plan_step(index=len(steps)))

        logger.debug("Parsed a plan with %d step(s).", len(steps))
        return PDDLPlan(tuple(steps))

    def plan_step(self, index: int) -> PlanStep:
        """Parse a single plan step, e.g. `1.5: (move robot a b) [2]`.

        :param index: Position of the step in the plan, used as the default timestamp
        :return: Parsed plan step
        """
        timestamp = float(index)
        if self.input_token.type_ == PDDLTokenType.NUMBER:
            timestamp = float(self.number())
            self.match(PDDLTokenType.COLON, expected="':' following the step's timestamp")

        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening a plan step")
            action = self.atomic_formula(ground=True)

        duration = None
        if self.input_token.type_ == PDDLTokenType.OPEN_BRACKET:
            self.advance()
            duration = float(self.number())
            self.match(PDDLTokenType.CLOSE_BRACKET)

        return PlanStep(timestamp, action.name, action.arguments, duration)
