"""
eiftool Console Interface
==========================

Rich-powered console abstraction giving the CLI and the report renderer a
single, consistently themed presentation layer.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

_EIF_THEME = Theme(
    {
        "eif.banner": "bold bright_cyan",
        "eif.section": "bold bright_magenta",
        "eif.success": "bold green",
        "eif.warning": "bold yellow",
        "eif.error": "bold red",
        "eif.info": "bold bright_blue",
        "eif.dim": "dim white",
        "eif.critical": "bold white on red",
        "eif.high": "bold red",
        "eif.medium": "bold yellow",
        "eif.low": "bold bright_cyan",
        "eif.informational": "bold bright_blue",
    }
)

_TAGLINE = "Enclave Image File inspector"


class EifToolConsole:
    """Unified console interface for eiftool output.

    Usage::

        con = EifToolConsole()
        con.banner()
        con.section("Section Headers")
        con.success("Parse complete")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        file: Any = None,
        width: int | None = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording so output can be exported as text.
            file:   Optional file object to write to instead of stdout.
            width:  Fixed terminal width, mainly for tests.
        """
        self._console = Console(
            theme=_EIF_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            file=file,
            width=width,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / section header
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        """Display a compact title panel."""
        title = Text.from_markup(
            f"[eif.banner]eiftool[/eif.banner]  [eif.dim]{_TAGLINE}  |  v{version}[/eif.dim]"
        )
        self._console.print(Panel(title, border_style="bright_cyan", padding=(0, 2)))

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(f"  {title}  ", style="eif.section", characters="─")
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[eif.success][✔] SUCCESS:[/eif.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[eif.warning][⚠] WARNING:[/eif.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[eif.error][✘] ERROR:[/eif.error] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[eif.info][ℹ] INFO:[/eif.info] {message}")

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def findings_table(self, findings: Sequence[Any]) -> None:
        """Render a findings table with automatic severity colouring.

        Expects objects with ``severity``, ``title``, and ``description``
        attributes (e.g. :class:`shared.models.Finding`).
        """
        severity_style_map: dict[str, str] = {
            "CRITICAL": "eif.critical",
            "HIGH": "eif.high",
            "MEDIUM": "eif.medium",
            "LOW": "eif.low",
            "INFO": "eif.informational",
        }

        tbl = Table(
            title="Findings",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Severity", width=10)
        tbl.add_column("Title")
        tbl.add_column("Description", ratio=2)

        for idx, finding in enumerate(findings, start=1):
            sev = getattr(finding, "severity", "INFO")
            sev_name = sev.value if hasattr(sev, "value") else str(sev).upper()
            sev_style = severity_style_map.get(sev_name, "")
            sev_cell = f"[{sev_style}]{sev_name}[/{sev_style}]" if sev_style else sev_name
            tbl.add_row(
                str(idx),
                sev_cell,
                Text(str(getattr(finding, "title", ""))),
                Text(str(getattr(finding, "description", ""))),
            )

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        self._console.rule(style=style)

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
