"""
Tests for table construction, missing value normalisation and site filtering.
"""
import pandas as pd
import pytest

from ccdq.core.dataset import ClinicalTable, DatasetBundle, normalise_missing
from ccdq.core.exceptions import DataLoadError
from ccdq.schemas.field_reference import FieldType


class TestNormaliseMissing:

    def test_sentinel_replaced(self):
        frame = pd.DataFrame({"A": ["x", "NULL", "y"], "B": [1, 2, 3]})
        out = normalise_missing(frame)
        assert out["A"].isna().tolist() == [False, True, False]
        assert out["B"].tolist() == [1, 2, 3]

    def test_input_not_modified(self):
        frame = pd.DataFrame({"A": ["NULL"]})
        normalise_missing(frame)
        assert frame.loc[0, "A"] == "NULL"


class TestClinicalTable:

    def test_missing_site_column(self):
        with pytest.raises(DataLoadError):
            ClinicalTable.from_frame(pd.DataFrame({"X": [1]}), site_column="ICNNO")

    def test_index_column_dropped(self, demographic):
        assert "index" not in demographic.fields
        assert demographic.n_rows == 6

    def test_types_from_reference(self, demographic):
        assert demographic.field_type("HCM") == FieldType.NUMERIC
        assert demographic.field_type("SEX") == FieldType.CATEGORICAL
        assert demographic.field_type("CPR") == FieldType.LOGICAL

    def test_declared_types_win(self, demographic_frame, reference):
        table = ClinicalTable.from_frame(
            demographic_frame, site_column="ICNNO", reference=reference, field_types={"AGE": "categorical"},
        )
        assert table.field_type("AGE") == FieldType.CATEGORICAL

    def test_untyped_column(self, ten_row_table):
        assert ten_row_table.field_type("HCM") is None

    def test_sites(self, demographic):
        assert demographic.sites == ["C90", "Q70"]

    def test_select_keeps_site_column(self, demographic):
        assert demographic.select(["HCM"]).fields == ["HCM", "ICNNO"]

    def test_select_unknown_field(self, demographic):
        with pytest.raises(DataLoadError):
            demographic.select(["NOPE"])

    def test_filter_sites(self, demographic):
        subset = demographic.filter_sites(["C90"])
        assert subset.n_rows == 3
        assert subset.sites == ["C90"]


class TestDatasetBundle:

    def test_filter_sites(self, bundle):
        subset = bundle.filter_sites(["Q70"])
        assert len(subset.info) == 3
        assert subset.demographic.n_rows == 3
        assert set(subset.longitudinal["site"]) == {"Q70"}

    def test_n_episodes(self, bundle, demographic):
        assert bundle.n_episodes == 6
        assert DatasetBundle(demographic=demographic).n_episodes == 6
        assert DatasetBundle().n_episodes == 0
