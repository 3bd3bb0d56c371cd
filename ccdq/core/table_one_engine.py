"""
FILE: core/table_one_engine.py
-------------------------------
Categorical "table one": episode counts and percentages per category
for coded demographic items. Only categorical and logical fields are
accepted; anything else raises UnsupportedTypeError for that item.
"""

from typing import Iterable

import pandas as pd
from loguru import logger

from ccdq.constants.completeness_constants import MISSING_CATEGORY_LABEL, TABLE_ONE_DECIMALS
from ccdq.core.dataset import ClinicalTable
from ccdq.core.exceptions import ConfigError, DataLoadError, DataQualityError, EmptyInputError, UnsupportedTypeError
from ccdq.schemas.field_reference import ItemReference
from ccdq.schemas.summaries import CategoryCount, TableOneItem


def table_one_item(table: ClinicalTable, short_name: str, reference: ItemReference) -> TableOneItem:
    ref = reference.get(short_name)
    if ref is None:
        raise ConfigError("The short name cannot be found in the item reference", context={"short_name": short_name})
    if short_name not in table.frame.columns:
        raise DataLoadError("Field not found in table", context={"field": short_name})

    field_type = table.field_type(short_name) or ref.field_type
    if not field_type.is_categorical:
        raise UnsupportedTypeError(short_name, field_type.value, "categorical")

    n = table.n_rows
    if n == 0:
        raise EmptyInputError("No episodes to summarise", context={"field": short_name})

    rows: list[CategoryCount] = []
    for value, count in table.frame[short_name].value_counts(dropna=False).items():
        label = MISSING_CATEGORY_LABEL if pd.isna(value) else ref.category_label(value)
        pct = round(count / n * 100, TABLE_ONE_DECIMALS)
        rows.append(CategoryCount(category=label, episode_count=int(count), percentage=f"{pct:g} %"))

    rows.sort(key=lambda r: r.episode_count)
    return TableOneItem(short_name=short_name, display_name=ref.display_name, rows=rows)


def table_one(table: ClinicalTable, short_names: Iterable[str], reference: ItemReference) -> list[TableOneItem]:
    """Table one for each short name; a failing item carries its error and no rows, an empty table gives no_data items."""
    items: list[TableOneItem] = []
    for name in short_names:
        try:
            items.append(table_one_item(table, name, reference))
        except EmptyInputError:
            logger.warning(f"No episodes available for '{name}'; table one reported as no data")
            items.append(TableOneItem(
                short_name=name,
                display_name=reference.display_name(name),
                no_data=True,
            ))
        except DataQualityError as e:
            logger.warning(f"Table one for '{name}' failed: {e}")
            items.append(TableOneItem(
                short_name=name,
                display_name=reference.display_name(name),
                error=str(e),
            ))
    return items
