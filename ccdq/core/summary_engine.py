"""
FILE: core/summary_engine.py
-----------------------------
Pure engines for the descriptive report sections that are a single
grouped aggregation each:

  - file_summary     : episodes, upload time and sites per source file
  - site_coverage    : admission/discharge span per site
  - file_coverage    : admission/discharge span per source file
  - total_data_points: non-missing cells across the record
  - sample_rates     : average hours between observations per longitudinal item
"""

from typing import Mapping

import pandas as pd

from ccdq.constants.report_constants import (
    INFO_ADMISSION_COLUMN,
    INFO_DISCHARGE_COLUMN,
    INFO_FILE_COLUMN,
    INFO_REQUIRED_COLUMNS,
    INFO_SITE_COLUMN,
    INFO_TIME_COLUMN,
    LONGITUDINAL_META_MARKER,
    LONGITUDINAL_RESERVED_COLUMNS,
)
from ccdq.core.dataset import DatasetBundle
from ccdq.core.exceptions import DataLoadError, EmptyInputError
from ccdq.schemas.field_reference import ItemReference
from ccdq.schemas.summaries import CoverageRow, FileSummaryRow, SampleRateRow


# ─────────────────────────────────────────────
# PRIVATE HELPERS
# ─────────────────────────────────────────────

def _require_columns(frame: pd.DataFrame, columns, table: str) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise DataLoadError(f"{table} table is missing required columns", context={"columns": missing})


def _timestamp(value):
    return None if pd.isna(value) else pd.Timestamp(value).to_pydatetime()


def _coverage(info: pd.DataFrame, by: str) -> list[tuple[str, CoverageRow]]:
    _require_columns(info, (by, INFO_ADMISSION_COLUMN, INFO_DISCHARGE_COLUMN), "Episode information")
    if info.empty:
        raise EmptyInputError("No episodes to compute coverage from")

    frame = info.assign(
        **{
            INFO_ADMISSION_COLUMN: pd.to_datetime(info[INFO_ADMISSION_COLUMN], errors="coerce"),
            INFO_DISCHARGE_COLUMN: pd.to_datetime(info[INFO_DISCHARGE_COLUMN], errors="coerce"),
        }
    )
    out: list[tuple[str, CoverageRow]] = []
    for key, grp in frame.groupby(by, sort=True):
        adm = grp[INFO_ADMISSION_COLUMN]
        dis = grp[INFO_DISCHARGE_COLUMN]
        out.append((str(key), CoverageRow(
            label=str(key),
            min_admission=_timestamp(adm.min()),
            max_admission=_timestamp(adm.max()),
            min_discharge=_timestamp(dis.min()),
            max_discharge=_timestamp(dis.max()),
        )))
    return out


# ─────────────────────────────────────────────
# PUBLIC
# ─────────────────────────────────────────────

def file_summary(info: pd.DataFrame) -> list[FileSummaryRow]:
    """One row per parsed source file, in first-seen order."""
    _require_columns(info, INFO_REQUIRED_COLUMNS, "Episode information")
    if info.empty:
        raise EmptyInputError("No episodes to summarise")

    frame = info.assign(**{INFO_TIME_COLUMN: pd.to_datetime(info[INFO_TIME_COLUMN], errors="coerce")})
    rows: list[FileSummaryRow] = []
    for file, grp in frame.groupby(INFO_FILE_COLUMN, sort=False):
        sites = pd.unique(grp[INFO_SITE_COLUMN].dropna().astype(str))
        rows.append(FileSummaryRow(
            file=str(file),
            n_episodes=len(grp),
            upload_time=_timestamp(grp[INFO_TIME_COLUMN].max()),
            sites=", ".join(sites),
        ))
    return rows


def site_coverage(info: pd.DataFrame, site_names: Mapping[str, str] | None = None) -> list[CoverageRow]:
    """Admission/discharge span per site, labelled "<site id>-<site name>"."""
    site_names = site_names or {}
    rows = []
    for site, row in _coverage(info, INFO_SITE_COLUMN):
        name = site_names.get(site)
        rows.append(row.model_copy(update={"label": f"{site}-{name}" if name else site}))
    return rows


def file_coverage(info: pd.DataFrame) -> list[CoverageRow]:
    return [row for _, row in _coverage(info, INFO_FILE_COLUMN)]


def total_data_points(bundle: DatasetBundle) -> int:
    """
    Non-missing cells over the longitudinal items plus the demographic
    items. Bookkeeping columns (site, time, episode id) are not counted.
    """
    total = 0
    if bundle.longitudinal is not None:
        items = longitudinal_items(bundle.longitudinal)
        total += int(bundle.longitudinal[items].notna().sum().sum())
    if bundle.demographic is not None:
        table = bundle.demographic
        items = [c for c in table.frame.columns if c != table.site_column]
        total += int(table.frame[items].notna().sum().sum())
    return total


def longitudinal_items(longitudinal: pd.DataFrame) -> list[str]:
    """Item columns of a longitudinal table: everything but bookkeeping and meta columns."""
    return [
        str(c) for c in longitudinal.columns
        if c not in LONGITUDINAL_RESERVED_COLUMNS and LONGITUDINAL_META_MARKER not in str(c)
    ]


def sample_rates(longitudinal: pd.DataFrame, reference: ItemReference | None = None) -> list[SampleRateRow]:
    """
    Sample period (hours) per longitudinal item: rows of the hourly grid
    divided by the number of observations. Items never observed get None.
    """
    reference = reference or ItemReference()
    n_rows = len(longitudinal)
    rows: list[SampleRateRow] = []
    for item in longitudinal_items(longitudinal):
        observed = int(longitudinal[item].notna().sum())
        period = round(n_rows / observed, 2) if observed else None
        rows.append(SampleRateRow(item=reference.display_name(item), sample_period=period))
    return rows
