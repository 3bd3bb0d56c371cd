"""
FILE: schemas/completeness.py
------------------------------
Output contract of the completeness aggregator.
CompletenessReport is read-only and rebuilt on every invocation.
"""

from enum import Enum

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from ccdq.constants.completeness_constants import (
    COMPLETENESS_COLUMN,
    NO_DATA_MARKER,
    REJECTION_COLUMN,
    THRESHOLD_COLUMN,
    THRESHOLD_NOT_SET,
)


# ─────────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────────

class CompletenessStatus(str, Enum):
    PASS           = "pass"             # observed % >= threshold
    FAIL           = "fail"             # observed % <  threshold
    NOT_APPLICABLE = "not_applicable"   # threshold is 0
    NO_DATA        = "no_data"          # zero rows, completeness undefined
    ERROR          = "error"            # field could not be computed


# ─────────────────────────────────────────────
# MODELS
# ─────────────────────────────────────────────

class SiteCompleteness(BaseModel):
    model_config = ConfigDict(frozen=True)

    site:         str
    completeness: float
    n_rows:       int


class FieldCompleteness(BaseModel):
    model_config = ConfigDict(frozen=True)

    field:          str
    display_name:   str
    completeness:   float | None = None         # None → no data / error
    threshold:      float | None = None
    status:         CompletenessStatus
    rejected_sites: list[SiteCompleteness] = Field(default_factory=list)
    rejection:      str = ""                    # "A:60; B:55.5"
    error:          str | None = None           # message of the per-field failure

    @property
    def completeness_display(self) -> str:
        if self.status == CompletenessStatus.ERROR:
            return "error"
        if self.completeness is None:
            return NO_DATA_MARKER
        return f"{self.completeness:3.2f}"

    @property
    def threshold_display(self) -> str:
        if self.threshold is None or self.threshold == THRESHOLD_NOT_SET:
            return ""
        return f"{self.threshold:g}"


class CompletenessReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    n_rows:      int
    site_column: str
    fields:      list[FieldCompleteness] = Field(default_factory=list)

    @property
    def failures(self) -> list[FieldCompleteness]:
        """Fields that could not be computed (config or type errors)."""
        return [f for f in self.fields if f.status == CompletenessStatus.ERROR]

    @property
    def below_threshold(self) -> list[FieldCompleteness]:
        return [f for f in self.fields if f.status == CompletenessStatus.FAIL]

    def get(self, field: str) -> FieldCompleteness | None:
        for row in self.fields:
            if row.field == field:
                return row
        return None

    def to_frame(self) -> pd.DataFrame:
        """Display table indexed by item display name."""
        frame = pd.DataFrame(
            {
                COMPLETENESS_COLUMN: [f.completeness_display for f in self.fields],
                THRESHOLD_COLUMN:    [f.threshold_display for f in self.fields],
                REJECTION_COLUMN:    [f.rejection for f in self.fields],
            },
            index=[f.display_name for f in self.fields],
        )
        frame.index.name = "Item"
        return frame
