"""Excel export of plans."""

from .excel_export import export_plan_workbook

__all__ = ['export_plan_workbook']
