"""
Pytest fixtures for the data quality report tests.
"""
import pandas as pd
import pytest

from ccdq.core.config import (
    BUNDLED_CONF_DIR,
    ReportSections,
    ReportSettings,
    ThresholdTable,
    load_item_reference,
)
from ccdq.core.dataset import ClinicalTable, DatasetBundle
from ccdq.schemas.field_reference import FieldType


@pytest.fixture(scope="session")
def reference():
    """Bundled item reference."""
    return load_item_reference(BUNDLED_CONF_DIR / "item_reference.yaml")


@pytest.fixture
def thresholds():
    return ThresholdTable(thresholds={"ICNNO": 0, "HCM": 70, "WKG": 0, "SEX": 95})


@pytest.fixture
def ten_row_table():
    """Sites A and B with five rows each; HCM present 3/5 at A and 5/5 at B."""
    frame = pd.DataFrame({
        "ICNNO": ["A"] * 5 + ["B"] * 5,
        "HCM": [170, None, 165, None, 180, 175, 160, 158, 190, 172],
        "WKG": [80, 70, None, None, None, 60, 65, 90, 85, 77],
        "SEX": ["M", "F", "M", "F", "M", "M", "F", "F", "M", "M"],
    })
    return ClinicalTable.from_frame(frame, site_column="ICNNO")


@pytest.fixture
def demographic_frame():
    return pd.DataFrame({
        "index": range(6),
        "ICNNO": ["Q70", "Q70", "Q70", "C90", "C90", "C90"],
        "AGE": [65, 72, 58, 81, 44, "NULL"],
        "HCM": [170, 165, "NULL", 180, 175, 160],
        "WKG": [80, 70, 60, "NULL", "NULL", 77],
        "SEX": ["M", "F", "M", "NULL", "M", "F"],
        "ETHNIC": ["A", "A", "H", "Z", "X", "NULL"],
        "CPR": ["N", "N", "Y", "N", "NULL", "N"],
        "DIS": ["A", "A", "D", "A", "E", "A"],
    })


@pytest.fixture
def demographic(demographic_frame, reference):
    return ClinicalTable.from_frame(demographic_frame, site_column="ICNNO", reference=reference)


@pytest.fixture
def info_frame():
    return pd.DataFrame({
        "parse_file": ["q70_2015.xml", "q70_2015.xml", "q70_2015.xml", "c90_2016.xml", "c90_2016.xml", "c90_2016.xml"],
        "parse_time": [
            "2016-01-10 09:00", "2016-01-10 09:05", "2016-01-10 09:10",
            "2016-06-01 12:00", "2016-06-01 12:30", "2016-06-01 12:15",
        ],
        "site_id": ["Q70", "Q70", "Q70", "C90", "C90", "C90"],
        "t_admission": [
            "2015-01-03 10:00", "2015-02-11 08:00", "2015-03-20 22:00",
            "2016-01-05 07:00", "2016-02-14 16:00", None,
        ],
        "t_discharge": [
            "2015-01-09 12:00", "2015-02-20 08:00", "2015-04-02 10:00",
            "2016-01-15 07:00", None, "2016-03-30 09:00",
        ],
    })


@pytest.fixture
def longitudinal_frame():
    return pd.DataFrame({
        "site": ["Q70"] * 4 + ["C90"] * 4,
        "time": [0, 1, 2, 3, 0, 1, 2, 3],
        "episode_id": [1, 1, 1, 1, 4, 4, 4, 4],
        "NIHR_HIC_ICU_0108": [80, 82, 85, 90, 70, None, 75, 72],
        "NIHR_HIC_ICU_0112": [120, None, None, 118, None, None, None, 110],
        "NIHR_HIC_ICU_0129": [None] * 8,
        "NIHR_HIC_ICU_0108.meta": [None] * 8,
    })


@pytest.fixture
def bundle(info_frame, demographic, longitudinal_frame):
    return DatasetBundle(info=info_frame, demographic=demographic, longitudinal=longitudinal_frame)


@pytest.fixture
def sections():
    return ReportSections(
        completeness=("ICNNO", "AGE", "HCM", "WKG", "SEX", "ETHNIC", "CPR", "DIS"),
        table_one=("SEX", "ETHNIC", "CPR", "DIS"),
        demographic_distributions=("AGE", "HCM", "WKG"),
        longitudinal_distributions=("h_rate", "bp_sys_a"),
    )


@pytest.fixture
def settings(tmp_path):
    return ReportSettings(work_dir=tmp_path, draw_figures=False)


@pytest.fixture
def numeric_types():
    return {"HCM": FieldType.NUMERIC, "WKG": FieldType.NUMERIC}
