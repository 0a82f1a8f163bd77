"""Reading uploaded spreadsheets and exporting import diagnostics."""

from .exporters import export_leads, export_rejections
from .loaders import ParsedSheet, load_sheet

__all__ = ["ParsedSheet", "export_leads", "export_rejections", "load_sheet"]
