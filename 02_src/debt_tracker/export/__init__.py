"""Export module."""

from .csv_export import EXPORT_HEADER, export_csv

__all__ = ["EXPORT_HEADER", "export_csv"]
