"""
Command-line interface for PDF History.
"""

import logging
import os
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pdf_history import __version__
from pdf_history.document import PDFHistory
from pdf_history.exceptions import PDFHistoryException
from pdf_history.scrub import scrub_document
from pdf_history.summary import summary_lines
from pdf_history.writer import write_versions

console = Console()
error_console = Console(stderr=True)


def _configure_logging(verbose):
    logger = logging.getLogger("pdf_history")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=error_console, show_path=False))
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(error):
    console.print(f"[bold red]✗ Error:[/bold red] {error}", soft_wrap=True)
    sys.exit(1)


def _print_plain(line):
    console.print(line, markup=False, highlight=False, soft_wrap=True)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging on stderr')
def cli(verbose):
    """
    PDF History - Recover the incremental revisions saved inside a PDF.
    """
    _configure_logging(verbose)


@cli.command(name="summary")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option('--quiet', '-q', is_flag=True, help='Display only the number of versions')
@click.option('--write', '-w', is_flag=True, help='Write the versions and summary to disk')
@click.option(
    '--output-dir', '-o',
    default='.',
    help='Directory in which the <name>-versions directory is created',
    type=click.Path(file_okay=False)
)
def summary(input_pdf, quiet, write, output_dir):
    """
    Show how every object changed across the versions of a PDF.

    Examples:

        pdf-history summary input.pdf

        pdf-history summary input.pdf -q

        pdf-history summary input.pdf -w -o history
    """
    try:
        with PDFHistory.load(input_pdf) as history:
            if history.valid_revision_count() < 2:
                if not quiet:
                    _print_plain(f"{history.name}: There is only one version of this PDF")
                if write:
                    return

            if write:
                written = write_versions(history, output_dir, quiet=quiet)
                console.print(f"\n[bold green]✓ Wrote {len(written)} version(s)[/bold green]")
                for version_file in written:
                    console.print(f"  • {os.path.basename(version_file.path)}")
                console.print()
                return

            for line in summary_lines(history, quiet=quiet):
                _print_plain(line)

    except PDFHistoryException as e:
        _fail(e)
    except OSError as e:
        _fail(e)


@cli.command(name="info")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
def show_info(input_pdf):
    """
    Display the creator information recorded by each version.

    Example:

        pdf-history info input.pdf
    """
    try:
        with PDFHistory.load(input_pdf) as history:
            major, minor = history.pdf_version
            console.print(f"PDF Version: {major}.{minor}")

            shown = set()
            for revision in history.revisions:
                if not revision.is_valid or revision.version in shown:
                    continue
                info = revision.info
                if info is None or info.is_empty:
                    continue
                shown.add(revision.version)

                table = Table(title=f"{history.name} -- Version {revision.version}", show_header=False)
                table.add_column("Key", style="cyan", no_wrap=True)
                table.add_column("Value", style="green")
                for key, value in info.items():
                    if value:
                        table.add_row(key, value)
                console.print(table)

            if history.has_xml_metadata:
                console.print("[yellow]⚠ Some versions store XML metadata, which is not displayed[/yellow]")

    except PDFHistoryException as e:
        _fail(e)
    except OSError as e:
        _fail(e)


@cli.command(name="extract")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output-dir', '-o',
    default='.',
    help='Directory in which the <name>-versions directory is created',
    type=click.Path(file_okay=False)
)
@click.option('--no-verify', is_flag=True, help='Do not re-open written versions with pypdf')
def extract(input_pdf, output_dir, no_verify):
    """
    Write every version of a PDF as a standalone file.

    Example:

        pdf-history extract input.pdf -o history
    """
    try:
        with PDFHistory.load(input_pdf) as history:
            written = write_versions(history, output_dir, verify=not no_verify)

        table = Table(title="Written Versions")
        table.add_column("Version", style="cyan", no_wrap=True)
        table.add_column("File", style="green")
        table.add_column("Pages", style="magenta")
        for version_file in written:
            pages = "?" if version_file.page_count is None else str(version_file.page_count)
            table.add_row(str(version_file.version), os.path.basename(version_file.path), pages)

        console.print()
        console.print(table)
        console.print()

    except PDFHistoryException as e:
        _fail(e)
    except OSError as e:
        _fail(e)


@cli.command(name="scrub")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output-dir', '-o',
    default=None,
    help='Directory for the scrubbed copy (defaults to the input directory)',
    type=click.Path(file_okay=False)
)
def scrub(input_pdf, output_dir):
    """
    Zero out superseded object data in a copy of the PDF (experimental).
    """
    console.print(
        "[bold yellow]⚠ The scrub feature is experimental and likely not to work as expected.[/bold yellow]"
    )
    try:
        with PDFHistory.load(input_pdf) as history:
            destination = scrub_document(history, output_dir)
        console.print(f"[bold green]✓ Scrubbed copy written:[/bold green] {destination}")

    except PDFHistoryException as e:
        _fail(e)
    except OSError as e:
        _fail(e)


if __name__ == '__main__':
    cli()
