"""Summarize PDDL domains, problems, and plans loaded from files."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from pddl_syntax import PDDLDomain, PDDLError, PDDLPlan, PDDLProblem, ParserConfig, load_parser_config
from pddl_syntax.io import configure_logging, console
from pddl_syntax.validation import check_domain_arities, check_problem_against_domain


def _render_domain_table(domain: PDDLDomain) -> Table:
    """Render a table listing the actions of a PDDL domain."""
    table = Table(title=f"Domain: {domain.name}", show_lines=False)
    table.add_column("Action", style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Parameters", style="magenta")

    for action in domain.actions:
        params = ", ".join(str(p) for p in action.parameters)
        table.add_row(action.name, "durative" if action.is_durative else "instant", params or "-")
    return table


def _render_plan_table(plan: PDDLPlan) -> Table:
    """Render a table listing the steps of a plan."""
    table = Table(title=f"Plan ({len(plan)} steps, makespan {plan.makespan:.3f})")
    table.add_column("Time", justify="right", style="cyan", no_wrap=True)
    table.add_column("Action", style="bold")
    table.add_column("Duration", justify="right")

    for step in plan:
        action = " ".join([step.action_name, *step.arguments])
        duration = "-" if step.duration is None else f"{step.duration:.3f}"
        table.add_row(f"{step.timestamp:.3f}", action, duration)
    return table


@click.command()
@click.option("--domain", "domain_path", type=click.Path(exists=True, path_type=Path), help="PDDL domain file.")
@click.option("--problem", "problem_path", type=click.Path(exists=True, path_type=Path), help="PDDL problem file.")
@click.option("--plan", "plan_path", type=click.Path(exists=True, path_type=Path), help="Plan file.")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="Parser options (YAML).")
@click.option("--verbose", is_flag=True, help="Log each parsed section.")
def summarize(
    domain_path: Path | None,
    problem_path: Path | None,
    plan_path: Path | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Parse the given PDDL files and print a summary of their contents."""
    configure_logging(verbose)
    output = Console()
    config = ParserConfig() if config_path is None else load_parser_config(config_path)

    try:
        domain = None
        if domain_path is not None:
            domain = PDDLDomain.parse(domain_path.read_text(), config)
            check_domain_arities(domain)
            output.print(_render_domain_table(domain))
            output.print(
                f"[green]{len(domain.types)} types, {len(domain.predicates)} predicates, "
                f"{len(domain.functions)} functions.[/green]",
            )

        if problem_path is not None:
            problem = PDDLProblem.parse(problem_path.read_text(), config)
            if domain is not None:
                check_problem_against_domain(problem, domain)
            output.print(
                f"[green]Problem {problem.name} (domain {problem.domain_name}): "
                f"{len(problem.objects)} objects, {len(problem.init)} initial facts.[/green]",
            )

        if plan_path is not None:
            output.print(_render_plan_table(PDDLPlan.parse(plan_path.read_text(), config)))

    except PDDLError as error:
        console.print(f"{type(error).__name__}: {error}", style="red", markup=False)
        sys.exit(1)


if __name__ == "__main__":
    summarize()
