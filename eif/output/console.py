"""
EIF Console Output
===================

Rich-powered terminal display for an :class:`EifParseResult`: the file
header panel, the section table, size warnings, findings, and the
metadata document.

The metadata payload is shown as pretty-printed JSON when it parses as
JSON and as plain text otherwise; the parser itself never interprets it.
"""

from __future__ import annotations

import json

from rich.json import JSON
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shared.console import EifToolConsole

from eif import __version__
from eif.core.models import (
    EifParseResult,
    FileHeader,
    SectionDescriptor,
    SectionType,
    SizeMismatch,
)

_TYPE_COLOURS: dict[str, str] = {
    SectionType.INVALID.name.lower(): "bright_red",
    SectionType.KERNEL.name.lower(): "bright_green",
    SectionType.CMDLINE.name.lower(): "bright_cyan",
    SectionType.RAMDISK.name.lower(): "bright_blue",
    SectionType.SIGNATURE.name.lower(): "bright_magenta",
    SectionType.METADATA.name.lower(): "bright_yellow",
    "unknown": "dim",
}


def _magic_text(magic: bytes) -> str:
    printable = magic.decode("ascii", errors="replace")
    return f"{printable!r} ({magic.hex()})"


class EifConsoleOutput:
    """Rich terminal display for EIF parse results.

    Usage::

        output = EifConsoleOutput()
        output.display(result)
    """

    def __init__(self, console: EifToolConsole | None = None) -> None:
        self._console: EifToolConsole = console or EifToolConsole()

    def display(self, result: EifParseResult) -> None:
        """Display the complete parse result."""
        self._console.banner(__version__)

        if result.header is not None:
            self.display_header(result.header, result)

        self.display_sections(result.sections)

        if result.warnings:
            self.display_warnings(result.warnings)

        if result.findings:
            self._console.section("Findings")
            self._console.findings_table(result.findings)

        text = result.metadata_text()
        if text is not None:
            self.display_metadata(text)

        if result.error:
            self._console.error(f"{result.error_kind}: {result.error}")

        self._console.divider()

    def display_header(self, header: FileHeader, result: EifParseResult) -> None:
        """Display the file header panel."""
        magic_style = "bold" if header.has_valid_magic else "bold bright_red"
        lines: list[str] = [
            f"[bold]File:[/bold]            {escape(result.path)}",
            f"[bold]Size:[/bold]            {result.file_size:,} bytes",
            f"[bold]Magic:[/bold]           [{magic_style}]{_magic_text(header.magic)}[/{magic_style}]",
            f"[bold]Version:[/bold]         {header.version}",
            f"[bold]Flags:[/bold]           0x{header.flags:04x}",
            f"[bold]Default memory:[/bold]  {header.default_memory:,}",
            f"[bold]Default CPUs:[/bold]    {header.default_cpus}",
            f"[bold]Section count:[/bold]   {header.section_count}",
            f"[bold]CRC32:[/bold]           0x{header.crc32:08x} (not verified)",
        ]
        if result.sha256:
            lines.append(f"[bold]SHA-256:[/bold]         {result.sha256}")

        panel = Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold bright_cyan]EIF Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_sections(self, sections: list[SectionDescriptor]) -> None:
        """Display one row per visited section."""
        self._console.section("Section Headers")

        if not sections:
            self._console.info("No sections decoded.")
            self._console.blank()
            return

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Type", min_width=10)
        tbl.add_column("Offset", justify="right")
        tbl.add_column("Flags", justify="right")
        tbl.add_column("Declared Size", justify="right")
        tbl.add_column("Section Size", justify="right")
        tbl.add_column("Notes")

        for desc in sections:
            label = desc.type_label
            colour = _TYPE_COLOURS.get(label, "dim")
            notes: list[str] = []
            if desc.size_mismatch:
                notes.append("[bold yellow]size mismatch[/bold yellow]")
            if desc.payload_captured:
                notes.append("[bright_green]payload captured[/bright_green]")
            if label == "unknown":
                notes.append(f"type={desc.section_type}")
            tbl.add_row(
                str(desc.index),
                f"[{colour}]{label}[/{colour}]",
                f"0x{desc.offset:x}",
                f"0x{desc.flags:04x}",
                f"{desc.declared_size:,}",
                f"{desc.header_size:,}",
                ", ".join(notes),
            )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_warnings(self, warnings: list[SizeMismatch]) -> None:
        for w in warnings:
            self._console.warning(
                f"section {w.index} size mismatch between header and section header: "
                f"header {w.declared_size}, section header {w.header_size}"
            )
        self._console.blank()

    def display_metadata(self, text: str) -> None:
        """Display the metadata document, pretty-printed when it is JSON."""
        self._console.section("Metadata")
        try:
            json.loads(text)
        except ValueError:
            self._console.print(Text(text))
        else:
            self._console.print(JSON(text))
        self._console.blank()
