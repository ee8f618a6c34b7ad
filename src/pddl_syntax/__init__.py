"""Import the classes and functions used to parse PDDL domains, problems, and plans."""

from __future__ import annotations

from .config import ParserConfig as ParserConfig
from .config import load_parser_config as load_parser_config
from .errors import LexError as LexError
from .errors import ParseError as ParseError
from .errors import PDDLError as PDDLError
from .errors import ValidationError as ValidationError
from .pddl_domain import Action as Action
from .pddl_domain import FunctionDeclaration as FunctionDeclaration
from .pddl_domain import PDDLDomain as PDDLDomain
from .pddl_domain import PredicateDeclaration as PredicateDeclaration
from .pddl_parser import PDDLParser as PDDLParser
from .pddl_plan import PDDLPlan as PDDLPlan
from .pddl_plan import PlanStep as PlanStep
from .pddl_problem import Metric as Metric
from .pddl_problem import PDDLProblem as PDDLProblem
from .pddl_scanner import PDDLScanner as PDDLScanner
from .pddl_scanner import PDDLToken as PDDLToken
from .pddl_scanner import PDDLTokenType as PDDLTokenType
from .type_hierarchy import TypeHierarchy as TypeHierarchy


def parse_domain(string: str, config: ParserConfig | None = None) -> PDDLDomain:
    """Parse and validate a PDDL domain from the given string."""
    return PDDLDomain.parse(string, config)


def parse_problem(string: str, config: ParserConfig | None = None) -> PDDLProblem:
    """Parse a PDDL problem from the given string."""
    return PDDLProblem.parse(string, config)


def parse_plan(string: str, config: ParserConfig | None = None) -> PDDLPlan:
    """Parse a sequential or temporal plan from the given string."""
    return PDDLPlan.parse(string, config)
