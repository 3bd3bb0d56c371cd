"""
FILE: core/dataset.py
----------------------
In-memory clinical record tables.

ClinicalTable wraps a pandas DataFrame with its site column and the
FieldType of each known field. Missing-value sentinels are normalised to
NA here, once, so every engine can rely on `isna()` alone.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

import pandas as pd

from ccdq.constants.completeness_constants import MISSING_SENTINELS
from ccdq.constants.report_constants import (
    DEMOGRAPHIC_INDEX_COLUMN,
    INFO_SITE_COLUMN,
    LONGITUDINAL_SITE_COLUMN,
)
from ccdq.core.exceptions import DataLoadError
from ccdq.schemas.field_reference import FieldType, ItemReference


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def normalise_missing(frame: pd.DataFrame, sentinels: Iterable[str] = MISSING_SENTINELS) -> pd.DataFrame:
    """Return a copy of `frame` with sentinel strings in text columns replaced by NA."""
    out = frame.copy()
    sentinels = set(sentinels)
    for col in out.columns:
        series = out[col]
        if series.dtype == object or pd.api.types.is_string_dtype(series):
            mask = series.isin(sentinels)
            if mask.any():
                out[col] = series.mask(mask, pd.NA)
    return out


# ─────────────────────────────────────────────
# CLINICAL TABLE
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class ClinicalTable:
    frame: pd.DataFrame
    site_column: str
    field_types: Mapping[str, FieldType] = field(default_factory=dict)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        site_column: str,
        field_types: Mapping[str, FieldType] | None = None,
        reference: ItemReference | None = None,
        sentinels: Iterable[str] = MISSING_SENTINELS,
    ) -> "ClinicalTable":
        """
        Build a table from raw data.

        Field types come from `field_types` when given, otherwise from the item
        reference; columns known to neither stay untyped, which is enough for
        completeness but not for table one or distribution summaries.
        """
        if site_column not in frame.columns:
            raise DataLoadError(
                "Site column not found in table",
                context={"site_column": site_column, "columns": list(frame.columns)},
            )

        clean = normalise_missing(frame, sentinels)
        if DEMOGRAPHIC_INDEX_COLUMN in clean.columns:
            clean = clean.drop(columns=[DEMOGRAPHIC_INDEX_COLUMN])

        types: dict[str, FieldType] = {}
        if reference is not None:
            types.update({k: v for k, v in reference.field_types().items() if k in clean.columns})
        if field_types:
            types.update({k: FieldType(v) for k, v in field_types.items()})

        return cls(frame=clean.reset_index(drop=True), site_column=site_column, field_types=types)

    # ── Shape ──

    @property
    def n_rows(self) -> int:
        return len(self.frame)

    @property
    def fields(self) -> list[str]:
        return [str(c) for c in self.frame.columns]

    @property
    def sites(self) -> list[str]:
        return sorted(self.frame[self.site_column].dropna().astype(str).unique().tolist())

    def field_type(self, name: str) -> FieldType | None:
        return self.field_types.get(name)

    # ── Selection ──

    def select(self, names: Iterable[str]) -> "ClinicalTable":
        """Keep only `names` (plus the site column). Unknown names raise DataLoadError."""
        names = list(names)
        missing = [n for n in names if n not in self.frame.columns]
        if missing:
            raise DataLoadError("Fields not found in table", context={"fields": missing})
        keep = names if self.site_column in names else names + [self.site_column]
        return replace(self, frame=self.frame[keep])

    def filter_sites(self, sites: Iterable[str]) -> "ClinicalTable":
        wanted = {str(s) for s in sites}
        mask = self.frame[self.site_column].astype(str).isin(wanted)
        return replace(self, frame=self.frame[mask].reset_index(drop=True))


# ─────────────────────────────────────────────
# DATASET BUNDLE
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class DatasetBundle:
    """
    The three tables a report is built from. Any of them may be absent;
    sections depending on an absent table are skipped.
    """
    info: pd.DataFrame | None = None            # one row per episode (parse_file, site_id, ...)
    demographic: ClinicalTable | None = None    # one row per episode, one column per item
    longitudinal: pd.DataFrame | None = None    # time grid: site, time, episode_id, item codes

    def filter_sites(self, sites: Iterable[str]) -> "DatasetBundle":
        wanted = {str(s) for s in sites}
        info = self.info
        if info is not None and INFO_SITE_COLUMN in info.columns:
            info = info[info[INFO_SITE_COLUMN].astype(str).isin(wanted)].reset_index(drop=True)
        demographic = self.demographic.filter_sites(wanted) if self.demographic is not None else None
        longitudinal = self.longitudinal
        if longitudinal is not None and LONGITUDINAL_SITE_COLUMN in longitudinal.columns:
            longitudinal = longitudinal[
                longitudinal[LONGITUDINAL_SITE_COLUMN].astype(str).isin(wanted)
            ].reset_index(drop=True)
        return DatasetBundle(info=info, demographic=demographic, longitudinal=longitudinal)

    @property
    def n_episodes(self) -> int:
        if self.info is not None:
            return len(self.info)
        if self.demographic is not None:
            return self.demographic.n_rows
        return 0
