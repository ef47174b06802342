"""
Excel export of lot-sizing plans.

Creates a workbook with three sheets:
1. Plan - one row per item and period
2. Capacity - capacity use per period, overloaded periods highlighted
3. Summary - instance, solver outcome and recomputed cost components
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..analysis.plan_report import capacity_frame, production_plan_frame
from ..models.instance import CLSPInstance
from ..optimization.result_schema import LotSizingSolution
from ..validation.solution_verifier import VerificationReport

logger = logging.getLogger(__name__)

HEADER_COLOR = "1E88E5"
ALT_ROW_COLOR = "F5F5F5"
OVERLOAD_COLOR = "FFCDD2"  # Red
SETUP_COLOR = "C8E6C9"  # Green

_THIN = Side(style='thin')


def create_header_style() -> Dict[str, Any]:
    """Create header row style (blue background, white text, bold)."""
    return {
        'font': Font(name='Calibri', size=11, bold=True, color='FFFFFF'),
        'fill': PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type='solid'),
        'alignment': Alignment(horizontal='center', vertical='center', wrap_text=True),
        'border': Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN),
    }


def _fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type='solid')


def write_frame(worksheet, frame: pd.DataFrame, number_formats: Optional[Dict[str, str]] = None) -> None:
    """Write a DataFrame with a styled header and alternating rows."""
    number_formats = number_formats or {}
    style = create_header_style()
    for col_idx, header in enumerate(frame.columns, 1):
        cell = worksheet.cell(row=1, column=col_idx)
        cell.value = header
        cell.font = style['font']
        cell.fill = style['fill']
        cell.alignment = style['alignment']
        cell.border = style['border']

    for row_idx, row_data in enumerate(frame.itertuples(index=False), 2):
        for col_idx, (header, value) in enumerate(zip(frame.columns, row_data), 1):
            cell = worksheet.cell(row=row_idx, column=col_idx)
            if pd.isna(value):
                value = None
            cell.value = value.item() if hasattr(value, 'item') else value
            if header in number_formats:
                cell.number_format = number_formats[header]
            if (row_idx - 2) % 2 == 1:
                cell.fill = _fill(ALT_ROW_COLOR)

    if len(frame.columns):
        end_col_letter = get_column_letter(len(frame.columns))
        worksheet.auto_filter.ref = f"A1:{end_col_letter}1"
    worksheet.freeze_panes = 'A2'


def auto_fit_columns(worksheet, max_width: int = 50):
    """Auto-fit column widths based on content."""
    for column in worksheet.columns:
        column_letter = get_column_letter(column[0].column)
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, max_width)


def export_plan_workbook(
    instance: CLSPInstance,
    solution: LotSizingSolution,
    report: VerificationReport,
    output_path: Path | str,
    status: Optional[str] = None,
    elapsed_seconds: Optional[float] = None,
) -> str:
    """
    Export a verified plan to a formatted Excel file.

    Args:
        instance: Instance the plan was computed for
        solution: Extracted solution
        report: Verification report of the solution
        output_path: Path to save Excel file
        status: Solve status label
        elapsed_seconds: Wall-clock time of the run

    Returns:
        Path to created file
    """
    wb = Workbook()
    wb.remove(wb.active)

    # Sheet 1: Plan
    ws_plan = wb.create_sheet("Plan")
    plan = production_plan_frame(instance, solution)
    plan['item'] += 1
    plan['period'] += 1
    write_frame(ws_plan, plan, {
        'demand': '#,##0.##',
        'produce': '#,##0.##',
        'starting_inventory': '#,##0.##',
        'ending_inventory': '#,##0.##',
    })
    setup_col = list(plan.columns).index('setup') + 1
    for row_idx, active in enumerate(plan['setup'], 2):
        if active:
            ws_plan.cell(row=row_idx, column=setup_col).fill = _fill(SETUP_COLOR)
    auto_fit_columns(ws_plan)

    # Sheet 2: Capacity
    ws_cap = wb.create_sheet("Capacity")
    capacity = capacity_frame(report.capacity_rows)
    capacity['period'] += 1
    write_frame(ws_cap, capacity, {
        'used': '#,##0.##',
        'capacity': '#,##0.##',
        'utilization': '0.0%',
        'slack': '#,##0.##',
    })
    for row_idx, violated in enumerate(capacity['violated'], 2):
        if violated:
            for col_idx in range(1, len(capacity.columns) + 1):
                ws_cap.cell(row=row_idx, column=col_idx).fill = _fill(OVERLOAD_COLOR)
    auto_fit_columns(ws_cap)

    # Sheet 3: Summary
    ws_summary = wb.create_sheet("Summary")
    costs = report.cost_breakdown
    summary = [
        ['Export Information', ''],
        ['Export Date & Time', datetime.now().strftime('%Y-%m-%d %H:%M:%S')],
        ['', ''],
        ['Instance', ''],
        ['Name', instance.name],
        ['Items', instance.item_count],
        ['Periods', instance.period_count],
        ['Hop Horizon', instance.hop_horizon],
        ['', ''],
        ['Solve', ''],
        ['Status', status or ''],
        ['Reported Objective', report.reported_objective],
        ['Elapsed Seconds', elapsed_seconds],
        ['', ''],
        ['Recomputed Cost', ''],
        ['Setup Cost', costs.setup_cost],
        ['Holding Cost', costs.holding_cost],
        ['Production Cost', costs.production_cost],
        ['Initial Inventory Penalty', costs.initial_inventory_penalty],
        ['Total Cost', costs.total_cost],
        ['Verified (Setup + Holding)', costs.verified_cost],
        ['', ''],
        ['Verification', ''],
        ['Result', 'PASSED' if report.is_valid else 'FAILED'],
        ['Issues', len(report.issues)],
    ]
    for row_idx, (label, value) in enumerate(summary, 1):
        ws_summary.cell(row=row_idx, column=1).value = label
        ws_summary.cell(row=row_idx, column=2).value = value
        if value == '' and label != '':
            ws_summary.cell(row=row_idx, column=1).font = Font(name='Calibri', size=12, bold=True)
        elif isinstance(value, float):
            ws_summary.cell(row=row_idx, column=2).number_format = '#,##0.00'

    ws_summary.column_dimensions['A'].width = 30
    ws_summary.column_dimensions['B'].width = 30

    output_path = str(output_path)
    wb.save(output_path)
    logger.info(f"Plan workbook written to {output_path}")
    return output_path
