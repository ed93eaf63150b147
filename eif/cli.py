"""
EIF CLI -- Enclave Image File Inspector
=========================================

Click-based command-line interface: parse one EIF image and print its
header, sections, findings and metadata.

Usage::

    # Console report
    eiftool image.eif

    # Machine-readable output
    eiftool image.eif --json

    # Write a JSON report and reject files without the .eif magic
    eiftool image.eif --output report.json --strict-magic

Exit status is 0 when the image parsed cleanly and 1 when a fatal
decoding error occurred or the file could not be read.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys

import click

from shared.config import EifToolConfig
from shared.console import EifToolConsole
from shared.logger import EifToolLogger

from eif import __version__
from eif.core.engine import EifEngine
from eif.output.console import EifConsoleOutput
from eif.output.report import EifReportGenerator


@click.command("eiftool")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print the result as JSON to stdout instead of the console report.",
)
@click.option(
    "--strict-magic",
    is_flag=True,
    default=False,
    help="Treat a magic other than '.eif' as a fatal error.",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(__version__, prog_name="eiftool")
def eif_cli(
    path: str,
    output_path: str | None,
    json_output: bool,
    strict_magic: bool,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Inspect an Enclave Image File (EIF).

    PATH is the EIF image to parse.  The header and every declared
    section header are decoded; the first metadata section is printed.
    """
    console = EifToolConsole()

    try:
        config = EifToolConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot load configuration: {exc}")
        sys.exit(1)

    if strict_magic:
        config.eif.strict_magic = True

    settings = config.global_settings
    logger = EifToolLogger(
        "eif",
        log_level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
    )

    engine = EifEngine(config=config, logger=logger)
    try:
        result = engine.parse(path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot read {path}: {exc}")
        sys.exit(1)

    report = EifReportGenerator()
    if json_output:
        click.echo(report.to_json(result))
    else:
        EifConsoleOutput(console=console).display(result)

    if output_path:
        written = report.generate_json(result, output_path)
        if not json_output:
            console.success(f"JSON report saved: {written}")

    if not result.ok:
        sys.exit(1)


def main() -> None:
    """Entry point for the ``eiftool`` script and ``python -m eif``."""
    eif_cli()


if __name__ == "__main__":
    main()
