__all__ = ["app", "Language"]

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from returns.result import Failure, Success

from .differential import differential
from .exceptions import AlgebraError
from .parser import parse_expression
from .source_code import render_source
from .tex_code import render_tex
from .variables import variable_names

app = typer.Typer()


class Language(str, Enum):
    tex = "tex"
    source = "source"


@app.command()
def tensorsym(
    formula: Annotated[
        str,
        typer.Argument(
            show_default=False,
            help="The formula to differentiate, e.g. exp(-x^2 / 2) * sin(y).",
        ),
    ],
    variables: Annotated[
        list[str],
        typer.Option(
            "--wrt",
            "-w",
            help=(
                "A variable with respect to which to differentiate. Can be mentioned multiple "
                "times. If not given, the formula itself is rendered."
            ),
        ),
    ] = [],  # noqa: B006; Typer does not support Sequence or tuple
    language: Annotated[
        Language,
        typer.Option(
            "--language",
            "-l",
            help="The language in which to render each result.",
        ),
    ] = Language.tex,
    output_path: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            writable=True,
            dir_okay=False,
            help=(
                "The file to which the results will be written. If not specified, prints to "
                "standard out."
            ),
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log each rewriting step to standard error."),
    ] = False,
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    # Parse formula
    match parse_expression(formula):
        case Failure(AlgebraError() as error):
            typer.echo(str(error), err=True)
            raise typer.Exit(1)
        case Failure(error):
            typer.echo(f"Failed to parse formula:\n{error}", err=True)
            raise typer.Exit(1)
        case Success(expression):
            pass
        case _:
            raise NotImplementedError()

    # Differentiate and render
    try:
        if len(variables) == 0:
            results = [expression]
        else:
            unknown = [name for name in variables if name not in variable_names(expression)]
            for name in unknown:
                typer.echo(f"Warning: {name} does not appear in the formula", err=True)
            results = differential(expression, variables)

        match language:
            case Language.tex:
                lines = [render_tex(result) for result in results]
            case Language.source:
                lines = [render_source(result) for result in results]
    except AlgebraError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(1) from None

    code = "\n".join(lines)
    if output_path is None:
        typer.echo(code)
    else:
        output_path.write_text(code + "\n")
