"""
FILE: core/distribution_engine.py
----------------------------------
Per-site descriptive statistics for numeric items, demographic
(grouped by the table's site column) and longitudinal (grouped by `site`).
Just pandas, numpy and scipy; figures are drawn in tools/plotting.py.
"""

from typing import Iterable

import numpy as np
import pandas as pd
from loguru import logger
from scipy import stats

from ccdq.constants.report_constants import LONGITUDINAL_SITE_COLUMN
from ccdq.core.dataset import ClinicalTable
from ccdq.core.exceptions import ConfigError, DataLoadError, DataQualityError, UnsupportedTypeError
from ccdq.schemas.field_reference import FieldReference, FieldType, ItemReference
from ccdq.schemas.summaries import DistributionSummary, SiteDistribution


# ─────────────────────────────────────────────
# PRIVATE HELPERS
# ─────────────────────────────────────────────

def _finite(value) -> float | None:
    if value is None:
        return None
    value = float(value)
    return round(value, 4) if np.isfinite(value) else None


def _site_distribution(site: str, values: pd.Series) -> SiteDistribution:
    clean = values.dropna()
    n = len(clean)
    if n == 0:
        return SiteDistribution(site=site, n=0)
    skew = stats.skew(clean.to_numpy(), bias=False) if n > 2 and clean.nunique() > 1 else None
    return SiteDistribution(
        site=site,
        n=n,
        mean=_finite(clean.mean()),
        std=_finite(clean.std()) if n > 1 else None,
        median=_finite(clean.median()),
        min=_finite(clean.min()),
        max=_finite(clean.max()),
        skewness=_finite(skew),
    )


def _resolve(name: str, reference: ItemReference) -> FieldReference:
    ref = reference.get(name) or reference.by_code(name)
    if ref is None:
        raise ConfigError("The short name cannot be found in the item reference", context={"short_name": name})
    return ref


# ─────────────────────────────────────────────
# PUBLIC
# ─────────────────────────────────────────────

def numeric_values(frame: pd.DataFrame, column: str) -> pd.Series:
    """Numeric view of a column; unparseable entries become NaN."""
    if column not in frame.columns:
        raise DataLoadError("Field not found in table", context={"field": column})
    return pd.to_numeric(frame[column], errors="coerce").astype("float64")


def distribution_summary(
    frame: pd.DataFrame,
    column: str,
    group_column: str,
    ref: FieldReference,
    field_type: FieldType | None = None,
) -> DistributionSummary:
    field_type = field_type or ref.field_type
    if field_type != FieldType.NUMERIC:
        raise UnsupportedTypeError(ref.short_name, field_type.value, "numeric")
    if group_column not in frame.columns:
        raise DataLoadError("Group column not found in table", context={"group_column": group_column})

    values = numeric_values(frame, column)
    sites = [
        _site_distribution(str(site), grp)
        for site, grp in values.groupby(frame[group_column], sort=True, observed=True)
    ]
    return DistributionSummary(
        short_name=ref.short_name,
        display_name=ref.display_name,
        unit=ref.unit,
        sites=sites,
    )


def demographic_distributions(
    table: ClinicalTable,
    short_names: Iterable[str],
    reference: ItemReference,
) -> list[DistributionSummary]:
    out: list[DistributionSummary] = []
    for name in short_names:
        try:
            ref = _resolve(name, reference)
            out.append(distribution_summary(
                table.frame, name, table.site_column, ref, table.field_type(name),
            ))
        except DataQualityError as e:
            logger.warning(f"Distribution for '{name}' failed: {e}")
            out.append(DistributionSummary(short_name=name, display_name=reference.display_name(name), error=str(e)))
    return out


def longitudinal_distributions(
    longitudinal: pd.DataFrame,
    short_names: Iterable[str],
    reference: ItemReference,
) -> list[DistributionSummary]:
    """Longitudinal columns are keyed by item code; short names are resolved through the reference."""
    out: list[DistributionSummary] = []
    for name in short_names:
        try:
            ref = _resolve(name, reference)
            column = ref.code if ref.code in longitudinal.columns else ref.short_name
            out.append(distribution_summary(longitudinal, column, LONGITUDINAL_SITE_COLUMN, ref))
        except DataQualityError as e:
            logger.warning(f"Longitudinal distribution for '{name}' failed: {e}")
            out.append(DistributionSummary(short_name=name, display_name=reference.display_name(name), error=str(e)))
    return out
