"""
FILE: core/completeness_engine.py
----------------------------------
Pure engine for the data completeness table.
No I/O; just pandas over an already-normalised ClinicalTable.

For each selected field:
  1. completeness % = present rows / all rows × 100, 2 dp
  2. acceptance threshold looked up in the ThresholdTable (missing → ConfigError)
  3. unless the threshold is 0 or the field is the site column itself,
     every site whose own completeness is strictly below the threshold
     is listed as "site:pct"

Field failures are recorded on the field row; the other fields are still
computed.
"""

from typing import Iterable

import pandas as pd
from loguru import logger

from ccdq.constants.completeness_constants import (
    COMPLETENESS_DECIMALS,
    REJECTION_LIST_SEPARATOR,
    REJECTION_PAIR_SEPARATOR,
    THRESHOLD_NOT_SET,
)
from ccdq.core.config import ThresholdTable
from ccdq.core.dataset import ClinicalTable
from ccdq.core.exceptions import DataLoadError, DataQualityError, EmptyInputError
from ccdq.schemas.completeness import (
    CompletenessReport,
    CompletenessStatus,
    FieldCompleteness,
    SiteCompleteness,
)
from ccdq.schemas.field_reference import ItemReference


# ─────────────────────────────────────────────
# PRIVATE HELPERS
# ─────────────────────────────────────────────

def _completeness_pct(series: pd.Series) -> float:
    n = len(series)
    if n == 0:
        raise EmptyInputError("Completeness is undefined for zero rows", context={"field": series.name})
    present = int(series.notna().sum())
    return round(present / n * 100, COMPLETENESS_DECIMALS)


def _format_pct(pct: float) -> str:
    # 60.0 → "60", 66.67 → "66.67"
    return f"{pct:g}"


# ─────────────────────────────────────────────
# PUBLIC: PURE FUNCTIONS
# ─────────────────────────────────────────────

def field_completeness(table: ClinicalTable, field: str) -> float:
    """Completeness % of one field over the whole table. Zero rows → EmptyInputError."""
    if field not in table.frame.columns:
        raise DataLoadError("Field not found in table", context={"field": field})
    return _completeness_pct(table.frame[field])


def site_completeness(table: ClinicalTable, field: str) -> list[SiteCompleteness]:
    """Completeness % of one field within each site. Rows without a site are ignored."""
    if field not in table.frame.columns:
        raise DataLoadError("Field not found in table", context={"field": field})

    out: list[SiteCompleteness] = []
    grouped = table.frame.groupby(table.site_column, sort=True, observed=True)[field]
    for site, series in grouped:
        if len(series) == 0:
            continue
        out.append(SiteCompleteness(
            site=str(site),
            completeness=_completeness_pct(series),
            n_rows=len(series),
        ))
    return out


def site_rejections(table: ClinicalTable, field: str, threshold: float) -> list[SiteCompleteness]:
    """Sites whose completeness for `field` is strictly below `threshold`."""
    if threshold == THRESHOLD_NOT_SET or field == table.site_column:
        return []
    return [s for s in site_completeness(table, field) if s.completeness < threshold]


def format_rejections(rejected: Iterable[SiteCompleteness]) -> str:
    return REJECTION_LIST_SEPARATOR.join(
        f"{s.site}{REJECTION_PAIR_SEPARATOR}{_format_pct(s.completeness)}" for s in rejected
    )


def completeness_status(completeness: float | None, threshold: float | None) -> CompletenessStatus:
    """Presentation tag: pass/fail against an enforced threshold."""
    if completeness is None:
        return CompletenessStatus.NO_DATA
    if threshold is None or threshold == THRESHOLD_NOT_SET:
        return CompletenessStatus.NOT_APPLICABLE
    if completeness >= threshold:
        return CompletenessStatus.PASS
    return CompletenessStatus.FAIL


# ─────────────────────────────────────────────
# PUBLIC: AGGREGATOR
# ─────────────────────────────────────────────

class CompletenessAggregator:
    """
    Builds CompletenessReport objects from a ClinicalTable.

    The threshold table (and optional item reference for display names)
    are fixed at construction; `report()` is a pure function of the table.
    """

    def __init__(self, thresholds: ThresholdTable, reference: ItemReference | None = None):
        self.thresholds = thresholds
        self.reference = reference or ItemReference()

    def field_report(self, table: ClinicalTable, field: str) -> FieldCompleteness:
        """
        One completeness row. Raises ConfigError when the field has no
        threshold entry and DataLoadError when the field is not in the table.
        Zero rows yield a NO_DATA row instead of an error.
        """
        threshold = self.thresholds.require(field)
        display_name = self.reference.display_name(field)

        try:
            completeness = field_completeness(table, field)
        except EmptyInputError:
            logger.warning(f"No rows available for '{field}'; completeness reported as no data")
            return FieldCompleteness(
                field=field,
                display_name=display_name,
                threshold=threshold,
                status=CompletenessStatus.NO_DATA,
            )

        rejected = site_rejections(table, field, threshold)
        row = FieldCompleteness(
            field=field,
            display_name=display_name,
            completeness=completeness,
            threshold=threshold,
            status=completeness_status(completeness, threshold),
            rejected_sites=rejected,
            rejection=format_rejections(rejected),
        )
        logger.debug(
            f"Completeness {field}: {completeness}% (threshold {threshold}, "
            f"{len(rejected)} site(s) rejected)"
        )
        return row

    def report(self, table: ClinicalTable, fields: Iterable[str] | None = None) -> CompletenessReport:
        """Completeness rows for `fields` (default: every column of the table)."""
        names = list(fields) if fields is not None else table.fields
        rows: list[FieldCompleteness] = []

        for name in names:
            try:
                rows.append(self.field_report(table, name))
            except DataQualityError as e:
                logger.warning(f"Completeness for '{name}' failed: {e}")
                rows.append(FieldCompleteness(
                    field=name,
                    display_name=self.reference.display_name(name),
                    threshold=self.thresholds.thresholds.get(name),
                    status=CompletenessStatus.ERROR,
                    error=str(e),
                ))

        report = CompletenessReport(n_rows=table.n_rows, site_column=table.site_column, fields=rows)
        logger.info(
            f"Completeness computed for {len(rows)} field(s): "
            f"{len(report.below_threshold)} below threshold, {len(report.failures)} failed"
        )
        return report
