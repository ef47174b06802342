"""Pre-flight checks for lot-sizing instances.

This module looks for data that will make the formulation fail, make items
impossible to produce in some periods, or force the model onto the
penalized initial-inventory slack. It only reports; the typed errors raised
by parameter derivation remain the authority on what is fatal.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

import pandas as pd

from ..models.instance import CLSPInstance

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationIssue:
    """Represents a single validation issue.

    Attributes:
        id: Unique identifier for the issue type
        category: Category of validation (e.g., "Capacity", "Horizon")
        severity: Severity level (INFO, WARNING, ERROR)
        title: Short title describing the issue
        description: Detailed description of the issue
        impact: Explanation of how this affects the model
        affected_data: Optional DataFrame listing the affected item/periods
        metadata: Additional metadata about the issue
    """
    id: str
    category: str
    severity: ValidationSeverity
    title: str
    description: str
    impact: str
    affected_data: Optional[pd.DataFrame] = None
    metadata: Optional[Dict[str, Any]] = None


class InstanceValidator:
    """Performs pre-flight validation of a CLSP instance.

    Validates:
    - Production times: zero unit time makes the big-M undefined
    - Setup feasibility: setup time that does not fit in the period
    - Cumulative capacity: demand that cannot be covered without initial stock
    - Hop horizon: range and boundary cases
    """

    def __init__(self, instance: CLSPInstance, hop_horizon: Optional[int] = None):
        """Initialize validator.

        Args:
            instance: Instance to validate
            hop_horizon: Hop limit to check (default: the instance's)
        """
        self.instance = instance
        self.hop_horizon = instance.hop_horizon if hop_horizon is None else hop_horizon
        self.issues: List[ValidationIssue] = []

    def validate_all(self) -> List[ValidationIssue]:
        """Run all validation checks and return list of issues."""
        self.issues = []

        self.check_production_times()
        self.check_setup_feasibility()
        self.check_cumulative_capacity()
        self.check_hop_horizon()

        return self.issues

    def check_production_times(self):
        """Unit production time must be positive everywhere."""
        rows = [
            {'item': j, 'period': t}
            for j in self.instance.items
            for t in self.instance.periods
            if self.instance.unit_production_time[j][t] == 0
        ]
        if not rows:
            return

        self.issues.append(ValidationIssue(
            id="TIME_001",
            category="Production Time",
            severity=ValidationSeverity.ERROR,
            title="Zero unit production time",
            description=f"{len(rows)} item-period pairs have a unit production time of zero",
            impact="Maximum production is undefined; the model cannot be formulated.",
            affected_data=pd.DataFrame(rows),
            metadata={'count': len(rows)},
        ))

    def check_setup_feasibility(self):
        """Flag item-periods whose setup alone uses the whole capacity."""
        rows = []
        for j in self.instance.items:
            for t in self.instance.periods:
                setup_time = self.instance.setup_time[j][t]
                capacity = self.instance.period_capacity[t]
                if setup_time >= capacity:
                    rows.append({'item': j, 'period': t, 'setup_time': setup_time, 'capacity': capacity})
        if not rows:
            return

        self.issues.append(ValidationIssue(
            id="SETUP_001",
            category="Capacity",
            severity=ValidationSeverity.WARNING,
            title="Setup time does not leave room for production",
            description=(
                f"{len(rows)} item-period pairs have setup time >= period capacity"
            ),
            impact="The item cannot be produced in these periods.",
            affected_data=pd.DataFrame(rows),
            metadata={'count': len(rows)},
        ))

    def check_cumulative_capacity(self):
        """Check that demand up to every period fits in the capacity so far.

        The requirement is a lower bound: every item with positive cumulative
        demand needs at least one setup, and each unit needs at least the
        smallest production time seen so far.
        """
        shortfalls = []
        available = 0.0
        for t in self.instance.periods:
            available += self.instance.period_capacity[t]
            required = 0.0
            for j in self.instance.items:
                cumulative = sum(self.instance.demand[j][:t + 1])
                if cumulative <= 0:
                    continue
                required += (
                    min(self.instance.unit_production_time[j][:t + 1]) * cumulative
                    + min(self.instance.setup_time[j][:t + 1])
                )
            if required > available:
                shortfalls.append({
                    'period': t,
                    'required': required,
                    'available': available,
                    'shortfall': required - available,
                })

        if not shortfalls:
            return

        first = shortfalls[0]
        self.issues.append(ValidationIssue(
            id="CAP_001",
            category="Capacity",
            severity=ValidationSeverity.WARNING,
            title="Cumulative demand exceeds cumulative capacity",
            description=(
                f"By period {first['period']}, at least {first['required']:,.1f} time units are "
                f"needed but only {first['available']:,.1f} are available"
            ),
            impact="The plan must use penalized initial inventory (or is infeasible without it).",
            affected_data=pd.DataFrame(shortfalls),
            metadata={'first_period': first['period'], 'periods': len(shortfalls)},
        ))

    def check_hop_horizon(self):
        """Hop horizon must lie in [1, T]; T itself is a boundary case."""
        hop = self.hop_horizon
        period_count = self.instance.period_count

        if not 1 <= hop <= period_count:
            self.issues.append(ValidationIssue(
                id="HOP_001",
                category="Horizon",
                severity=ValidationSeverity.ERROR,
                title="Hop horizon out of range",
                description=f"Hop horizon {hop} is outside [1, {period_count}]",
                impact="Formulation will be rejected.",
                metadata={'hop_horizon': hop, 'period_count': period_count},
            ))
        elif hop == period_count:
            self.issues.append(ValidationIssue(
                id="HOP_002",
                category="Horizon",
                severity=ValidationSeverity.INFO,
                title="Hop horizon equals the planning horizon",
                description=f"Hop horizon {hop} only constrains inventory carried out of period 0",
                impact="Inventory is effectively unrestricted by the hop rule.",
                metadata={'hop_horizon': hop, 'period_count': period_count},
            ))

    def get_summary_stats(self) -> Dict[str, Any]:
        """Counts by severity and category."""
        stats = {
            'total_issues': len(self.issues),
            'by_severity': {
                severity.value: len([i for i in self.issues if i.severity == severity])
                for severity in ValidationSeverity
            },
            'by_category': {},
        }
        for issue in self.issues:
            stats['by_category'][issue.category] = stats['by_category'].get(issue.category, 0) + 1
        return stats

    def has_errors(self) -> bool:
        """Check if any error issues exist."""
        return any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    def log_issues(self) -> None:
        """Log every issue at a level matching its severity."""
        levels = {
            ValidationSeverity.INFO: logging.INFO,
            ValidationSeverity.WARNING: logging.WARNING,
            ValidationSeverity.ERROR: logging.ERROR,
        }
        for issue in self.issues:
            logger.log(levels[issue.severity], f"[{issue.id}] {issue.title}: {issue.description}")
