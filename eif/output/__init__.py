"""EIF output: Rich console rendering and JSON reports."""

from eif.output.console import EifConsoleOutput
from eif.output.report import EifReportGenerator

__all__ = ["EifConsoleOutput", "EifReportGenerator"]
