"""Command-line interface for docx-compose.

Provides commands for merging Word documents and inspecting or splitting
their paragraphs from the terminal.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from . import Document, __version__, apply_merge_plan
from .errors import DocxComposeError

app = typer.Typer(
    name="docx-compose",
    help="Merge and edit Word documents from the command line.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docx-compose version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Log merge and edit details to stderr.")
    ] = False,
) -> None:
    """Merge and edit Word documents from the command line."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _fail(error: Exception) -> None:
    typer.echo(f"Error: {error}", err=True)
    for detail in getattr(error, "errors", []):
        typer.echo(f"  {detail}", err=True)
    raise typer.Exit(1)


@app.command()
def merge(
    host: Annotated[Path, typer.Argument(help="Document receiving the content")],
    others: Annotated[list[Path], typer.Argument(help="Documents to insert, in order")],
    prepend: Annotated[
        bool, typer.Option("--prepend", help="Insert at the start instead of the end")
    ] = False,
    author: Annotated[
        str | None, typer.Option("--author", help="Author name for the result")
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Insert one or more documents into HOST."""
    try:
        doc = Document(str(host), author=author or "CLI User")
        for other in others:
            result = doc.insert_document(str(other), append=not prepend)
            typer.echo(f"{other}: {result}")
        output_path = output or host
        doc.save(str(output_path))
        typer.echo(f"Merged {len(others)} documents and saved to {output_path}")
    except (DocxComposeError, OSError) as e:
        _fail(e)


@app.command()
def plan(
    plan_file: Annotated[Path, typer.Argument(help="Path to YAML/JSON merge plan")],
) -> None:
    """Run a merge plan from a YAML or JSON file."""
    try:
        outcome = apply_merge_plan(plan_file)
        with outcome.document:
            for result in outcome.results:
                typer.echo(str(result))
        if outcome.output is None:
            typer.echo(f"Merged {len(outcome.results)} documents (plan has no output, not saved)")
        else:
            typer.echo(f"Merged {len(outcome.results)} documents and saved to {outcome.output}")
    except (DocxComposeError, OSError) as e:
        _fail(e)


@app.command()
def runs(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    paragraph: Annotated[
        int | None, typer.Option("--paragraph", "-p", help="Paragraph index (default: all)")
    ] = None,
) -> None:
    """Show the formatted text spans of the body or of one paragraph."""
    try:
        with Document(str(file)) as doc:
            for span in doc.get_formatted_text(paragraph):
                fmt = span.formatting
                flags = [
                    name
                    for name in ("bold", "italic", "strike", "caps", "small_caps", "hidden")
                    if getattr(fmt, name)
                ]
                if fmt.underline:
                    flags.append(f"underline={fmt.underline}")
                if fmt.style:
                    flags.append(f"style={fmt.style}")
                if fmt.font:
                    flags.append(f"font={fmt.font}")
                if fmt.size is not None:
                    flags.append(f"size={fmt.size:g}")
                typer.echo(f"{span.index:>6}  {span.text!r}  {' '.join(flags)}".rstrip())
    except (DocxComposeError, OSError) as e:
        _fail(e)


@app.command()
def split(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    paragraph: Annotated[int, typer.Option("--paragraph", "-p", help="Paragraph index")],
    offset: Annotated[int, typer.Option("--offset", "-k", help="Character offset")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Split a paragraph in two at a character offset."""
    try:
        doc = Document(str(file))
        before, after = doc.split_paragraph(paragraph, offset)
        if before is None or after is None:
            typer.echo("Offset is at a paragraph boundary; nothing to split")
            return
        output_path = output or file
        doc.save(str(output_path))
        typer.echo(f"Split paragraph {paragraph} at {offset} and saved to {output_path}")
    except (DocxComposeError, OSError) as e:
        _fail(e)


@app.command()
def info(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
) -> None:
    """Show document information."""
    try:
        with Document(str(file)) as doc:
            typer.echo(f"File: {file}")
            typer.echo(f"Paragraphs: {len(doc.paragraphs)}")
            typer.echo(f"Styles: {len(doc.styles)}")
            typer.echo(f"Lists: {len(doc.numbering.instances())}")
            typer.echo(f"Images: {len(doc.image_parts)}")
    except (DocxComposeError, OSError) as e:
        _fail(e)


if __name__ == "__main__":
    app()
