"""Tab-separated run log.

Each run appends one row to a results file so that batches of benchmark runs
can be aggregated later:

    instance  items  periods  hop_horizon  objective_value  verified_cost  elapsed_seconds  status  timestamp
    G30       6      15       6            7310.0           7310.0         0.83             optimal 2026-10-19T09:12:03

The header is written only when the file is created.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

import pandas as pd
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class RunRecord(BaseModel):
    """Summary of one load -> solve -> verify run."""
    instance: str = Field(..., description="Instance label")
    items: int = Field(..., gt=0)
    periods: int = Field(..., gt=0)
    hop_horizon: int = Field(...)
    objective_value: Optional[float] = Field(None, description="Objective reported by the solver")
    verified_cost: Optional[float] = Field(None, description="Recomputed setup plus holding cost")
    elapsed_seconds: float = Field(..., ge=0)
    status: str = Field(..., description="Solve status")
    timestamp: datetime = Field(default_factory=datetime.now)


class ResultsLog:
    """Appends RunRecords to a tab-separated file.

    Example Usage:
        ```python
        log = ResultsLog("result.csv")
        log.append(record)
        history = log.load()
        ```
    """

    COLUMNS = list(RunRecord.model_fields)

    def __init__(self, file_path: Path | str):
        """Initialize ResultsLog.

        Args:
            file_path: File the records are appended to
        """
        self.file_path = Path(file_path)

    def append(self, record: RunRecord) -> None:
        """Append one record, writing the header if the file is new.

        Raises:
            OSError: If the file cannot be written
        """
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not self.file_path.exists() or self.file_path.stat().st_size == 0

        row = record.model_dump()
        row['timestamp'] = record.timestamp.isoformat(timespec='seconds')
        frame = pd.DataFrame([row], columns=self.COLUMNS)
        frame.to_csv(self.file_path, sep='\t', mode='a', header=write_header, index=False)

        logger.info(f"Appended run record for {record.instance} to {self.file_path}")

    def load(self) -> pd.DataFrame:
        """All records written so far (empty frame if the file does not exist)."""
        if not self.file_path.exists():
            return pd.DataFrame(columns=self.COLUMNS)
        return pd.read_csv(self.file_path, sep='\t')
