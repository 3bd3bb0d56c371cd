"""
FILE: tools/data_loader.py
---------------------------
Loads the record tables from CSV into a DatasetBundle.
Read errors are raised as DataLoadError with the offending path attached.
"""

from pathlib import Path

import pandas as pd
from loguru import logger

from ccdq.core.dataset import ClinicalTable, DatasetBundle, normalise_missing
from ccdq.core.exceptions import DataLoadError
from ccdq.schemas.field_reference import ItemReference


def load_csv(filepath: str | Path) -> pd.DataFrame:
    """
    Load a CSV file into a DataFrame. Sentinel strings are kept as text here;
    ClinicalTable.from_frame normalises them.
    """
    filepath = Path(filepath)
    try:
        df = pd.read_csv(filepath, keep_default_na=True)
    except FileNotFoundError as e:
        raise DataLoadError("File not found", context={"path": str(filepath)}) from e
    except pd.errors.EmptyDataError as e:
        raise DataLoadError("The CSV file has no data", context={"path": str(filepath)}) from e
    except pd.errors.ParserError as e:
        raise DataLoadError(f"Could not parse CSV: {e}", context={"path": str(filepath)}) from e

    logger.info(f"Loaded {filepath.name}: {df.shape[0]} rows × {df.shape[1]} columns")
    return df


def load_bundle(
    info_path: str | Path | None = None,
    demographic_path: str | Path | None = None,
    longitudinal_path: str | Path | None = None,
    site_column: str = "ICNNO",
    reference: ItemReference | None = None,
) -> DatasetBundle:
    """Build a DatasetBundle from whichever of the three CSV files are given."""
    if not any((info_path, demographic_path, longitudinal_path)):
        raise DataLoadError("At least one input table is required")

    info = load_csv(info_path) if info_path else None

    demographic = None
    if demographic_path:
        demographic = ClinicalTable.from_frame(
            load_csv(demographic_path),
            site_column=site_column,
            reference=reference,
        )

    longitudinal = None
    if longitudinal_path:
        longitudinal = normalise_missing(load_csv(longitudinal_path))

    return DatasetBundle(info=info, demographic=demographic, longitudinal=longitudinal)
