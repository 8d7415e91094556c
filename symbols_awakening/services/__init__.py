# symbols_awakening\services\__init__.py
"""
Application services built on top of the data-access port.
"""

from .csv_transfer import CsvTransferService, ExportOptions, ExportReport, ImportOptions, ImportReport

__all__ = [
    "CsvTransferService",
    "ExportOptions",
    "ExportReport",
    "ImportOptions",
    "ImportReport",
]
