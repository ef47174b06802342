"""Parser for benchmark instance files in the Trigeiro text format.

File layout (whitespace separated, line breaks are not significant):

    P T                      item and period counts
    cap                      capacity, applied to every period
    a h m f                  one row per item: production time, holding cost,
                             setup time, setup cost
    d[0][0] ... d[P-1][0]    demand, periods outer and items inner
    ...
    d[0][T-1] ... d[P-1][T-1]

The format carries no production cost. How the production time column and
the production cost are mapped onto the instance is decided by a
TrigeiroFormatPolicy.
"""

from pathlib import Path
from typing import Iterator, List, Optional
import logging

from ..constants import DEFAULT_HOP_HORIZON
from ..exceptions import DataError
from ..models.instance import CLSPInstance
from ..models.run_config import TrigeiroFormatPolicy

logger = logging.getLogger(__name__)


class _TokenStream:
    """Numeric tokens with positional error reporting."""

    def __init__(self, text: str, source: str):
        self._tokens: Iterator[str] = iter(text.split())
        self._source = source
        self.consumed = 0

    def _next(self, what: str) -> str:
        try:
            token = next(self._tokens)
        except StopIteration:
            raise DataError(
                f"Unexpected end of input while reading {what}",
                context={'source': self._source, 'values_read': self.consumed},
            ) from None
        self.consumed += 1
        return token

    def next_int(self, what: str) -> int:
        token = self._next(what)
        try:
            return int(token)
        except ValueError:
            raise DataError(
                f"Expected an integer for {what}, got '{token}'",
                context={'source': self._source, 'position': self.consumed},
            ) from None

    def next_float(self, what: str) -> float:
        token = self._next(what)
        try:
            return float(token)
        except ValueError:
            raise DataError(
                f"Expected a number for {what}, got '{token}'",
                context={'source': self._source, 'position': self.consumed},
            ) from None

    def remaining(self) -> int:
        return sum(1 for _ in self._tokens)


def parse_trigeiro_text(
    text: str,
    name: str = "instance",
    policy: Optional[TrigeiroFormatPolicy] = None,
    hop_horizon: int = DEFAULT_HOP_HORIZON,
) -> CLSPInstance:
    """
    Parse instance text in the Trigeiro format.

    Args:
        text: File contents
        name: Instance label
        policy: Format mapping policy (default: TrigeiroFormatPolicy())
        hop_horizon: Hop limit stored on the instance

    Returns:
        Validated CLSPInstance

    Raises:
        DataError: If the text is truncated, non-numeric or describes an
            invalid instance
    """
    policy = policy or TrigeiroFormatPolicy()
    stream = _TokenStream(text, name)

    item_count = stream.next_int("item count")
    period_count = stream.next_int("period count")
    if item_count <= 0 or period_count <= 0:
        raise DataError(
            f"Item and period counts must be positive, got {item_count} x {period_count}",
            context={'source': name},
        )

    capacity = stream.next_float("capacity")

    unit_time: List[float] = []
    holding: List[float] = []
    setup_time: List[float] = []
    setup_cost: List[float] = []
    for j in range(item_count):
        unit_time.append(stream.next_float(f"production time of item {j}"))
        holding.append(stream.next_float(f"holding cost of item {j}"))
        setup_time.append(stream.next_float(f"setup time of item {j}"))
        setup_cost.append(stream.next_float(f"setup cost of item {j}"))

    demand = [[0.0] * period_count for _ in range(item_count)]
    for t in range(period_count):
        for j in range(item_count):
            demand[j][t] = stream.next_float(f"demand of item {j} in period {t}")

    leftover = stream.remaining()
    if leftover:
        logger.debug(f"{name}: ignoring {leftover} trailing values")

    if policy.override_unit_production_time:
        changed = sum(1 for a in unit_time if a != policy.unit_production_time)
        if changed:
            logger.warning(
                f"{name}: production time of {changed} item(s) replaced by "
                f"{policy.unit_production_time} (use the file values to keep them)"
            )
        unit_time = [policy.unit_production_time] * item_count

    instance = CLSPInstance.from_item_parameters(
        period_capacity=capacity,
        unit_production_time=unit_time,
        holding_cost=holding,
        setup_time=setup_time,
        setup_cost=setup_cost,
        demand=demand,
        unit_production_cost=policy.unit_production_cost,
        hop_horizon=hop_horizon,
        name=name,
    )
    logger.info(f"Loaded {instance}")
    return instance


class TrigeiroParser:
    """
    Parser for Trigeiro-format instance files.

    Example:
        parser = TrigeiroParser("data/G30.dat")
        instance = parser.parse(hop_horizon=6)
    """

    def __init__(self, file_path: Path | str, policy: Optional[TrigeiroFormatPolicy] = None):
        """
        Initialize parser with file path.

        Args:
            file_path: Path to the instance file
            policy: Format mapping policy (default: TrigeiroFormatPolicy())
        """
        self.file_path = Path(file_path)
        self.policy = policy or TrigeiroFormatPolicy()

    def parse(self, hop_horizon: int = DEFAULT_HOP_HORIZON) -> CLSPInstance:
        """
        Read and parse the file.

        Raises:
            DataError: If the file cannot be read or its contents are invalid
        """
        try:
            text = self.file_path.read_text()
        except OSError as e:
            raise DataError(
                f"Cannot open instance file: {self.file_path}",
                context={'reason': e.strerror or str(e)},
            ) from e

        return parse_trigeiro_text(
            text,
            name=self.file_path.stem,
            policy=self.policy,
            hop_horizon=hop_horizon,
        )
