"""Unit tests for the options controlling how strictly PDDL is parsed."""

from pathlib import Path

import pydantic
import pytest

from pddl_syntax import ParserConfig, load_parser_config


def test_parser_config_defaults() -> None:
    """Verify that every parser option defaults to lenient parsing."""
    # Act - Create the default configuration
    config = ParserConfig()

    # Assert - Verify the default values
    assert not config.strict_requirements
    assert not config.require_end_of_input
    assert config.max_nesting_depth is None


def test_load_parser_config(tmp_path: Path) -> None:
    """Verify that parser options are loaded from a YAML file."""
    # Arrange - Write a YAML file enabling strict parsing
    yaml_path = tmp_path / "parser.yaml"
    yaml_path.write_text("strict_requirements: true\nrequire_end_of_input: true\nmax_nesting_depth: 32\n")

    # Act - Load the configuration
    config = load_parser_config(yaml_path)

    # Assert - Verify the loaded values
    assert config == ParserConfig(strict_requirements=True, require_end_of_input=True, max_nesting_depth=32)


def test_load_empty_parser_config(tmp_path: Path) -> None:
    """Verify that an empty YAML file yields the default options."""
    # Arrange - Write an empty YAML file
    yaml_path = tmp_path / "empty.yaml"
    yaml_path.write_text("")

    # Act/Assert - Verify that the defaults are loaded
    assert load_parser_config(yaml_path) == ParserConfig()


@pytest.mark.parametrize("contents", ["strict: true\n", "max_nesting_depth: 0\n"])
def test_load_invalid_parser_config(tmp_path: Path, contents: str) -> None:
    """Verify that unknown or out-of-range options are rejected."""
    # Arrange - Write a YAML file with an invalid option
    yaml_path = tmp_path / "invalid.yaml"
    yaml_path.write_text(contents)

    # Act/Assert - Expect pydantic to reject the options
    with pytest.raises(pydantic.ValidationError):
        load_parser_config(yaml_path)
