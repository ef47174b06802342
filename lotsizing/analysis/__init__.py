"""Reports built from verified solutions."""

from .plan_report import (
    capacity_frame,
    format_capacity,
    format_plan,
    format_plan_summary,
    item_summary_frame,
    production_plan_frame,
)

__all__ = [
    'capacity_frame',
    'format_capacity',
    'format_plan',
    'format_plan_summary',
    'item_summary_frame',
    'production_plan_frame',
]
