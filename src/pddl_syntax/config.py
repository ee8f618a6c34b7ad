"""Define the options that callers may use to make PDDL parsing stricter.

Every option defaults to the lenient behavior, so `ParserConfig()` parses documents exactly as
the parser always has. Options can also be loaded from a YAML file, for example:

    strict_requirements: true
    require_end_of_input: true
    max_nesting_depth: 64
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from pddl_syntax.io.yaml_utils import load_yaml_data


class ParserConfig(BaseModel):
    """Schema for the options controlling how strictly PDDL documents are parsed."""

    strict_requirements: bool = Field(
        default=False,
        description="Reject unknown requirement flags and features used without their flag",
    )
    require_end_of_input: bool = Field(
        default=False,
        description="Reject any tokens following the document's closing parenthesis",
    )
    max_nesting_depth: int | None = Field(
        default=None,
        gt=0,
        description="Maximum nesting depth of parenthesized expressions (None = unbounded)",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


DEFAULT_CONFIG = ParserConfig()
"""Lenient parser options used when the caller provides none."""


def load_parser_config(yaml_path: Path) -> ParserConfig:
    """Load and validate parser options from a YAML file.

    :param yaml_path: Path to a YAML file mapping option names to values
    :return: Validated parser options (an empty file yields the defaults)
    :raises pydantic.ValidationError: If the file contains unknown or invalid options
    """
    yaml_data = load_yaml_data(yaml_path)
    return ParserConfig.model_validate(yaml_data or {})
