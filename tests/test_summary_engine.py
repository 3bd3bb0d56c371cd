"""
Tests for file summary, coverage, total data points and sample rates.
"""
from datetime import datetime

import pytest

from ccdq.core.exceptions import DataLoadError, EmptyInputError
from ccdq.core.summary_engine import (
    file_coverage,
    file_summary,
    longitudinal_items,
    sample_rates,
    site_coverage,
    total_data_points,
)


class TestFileSummary:

    def test_one_row_per_file(self, info_frame):
        rows = file_summary(info_frame)
        assert [r.file for r in rows] == ["q70_2015.xml", "c90_2016.xml"]
        assert rows[0].n_episodes == 3
        assert rows[0].sites == "Q70"
        assert rows[0].upload_time == datetime(2016, 1, 10, 9, 10)
        assert rows[1].upload_time == datetime(2016, 6, 1, 12, 30)

    def test_missing_columns(self, info_frame):
        with pytest.raises(DataLoadError):
            file_summary(info_frame.drop(columns=["parse_time"]))

    def test_empty_info(self, info_frame):
        with pytest.raises(EmptyInputError):
            file_summary(info_frame.iloc[0:0])


class TestCoverage:

    def test_site_coverage_ignores_missing_times(self, info_frame):
        rows = site_coverage(info_frame, {"C90": "Cambridge University Hospitals"})
        c90, q70 = rows
        assert c90.label == "C90-Cambridge University Hospitals"
        assert c90.min_admission == datetime(2016, 1, 5, 7, 0)
        assert c90.max_admission == datetime(2016, 2, 14, 16, 0)
        assert c90.min_discharge == datetime(2016, 1, 15, 7, 0)
        assert c90.max_discharge == datetime(2016, 3, 30, 9, 0)
        assert q70.label == "Q70"

    def test_file_coverage(self, info_frame):
        rows = file_coverage(info_frame)
        assert [r.label for r in rows] == ["c90_2016.xml", "q70_2015.xml"]
        assert rows[1].min_admission == datetime(2015, 1, 3, 10, 0)
        assert rows[1].max_discharge == datetime(2015, 4, 2, 10, 0)


class TestTotalDataPoints:

    def test_counts_each_source_once(self, bundle):
        """10 longitudinal observations plus 35 demographic values."""
        assert total_data_points(bundle) == 45


class TestSampleRates:

    def test_items_exclude_bookkeeping_and_meta(self, longitudinal_frame):
        assert longitudinal_items(longitudinal_frame) == [
            "NIHR_HIC_ICU_0108", "NIHR_HIC_ICU_0112", "NIHR_HIC_ICU_0129",
        ]

    def test_sample_period(self, longitudinal_frame, reference):
        rows = {r.item: r.sample_period for r in sample_rates(longitudinal_frame, reference)}
        assert rows["Heart rate"] == 1.14
        assert rows["Systolic arterial blood pressure"] == 2.67

    def test_never_observed_item_has_no_period(self, longitudinal_frame, reference):
        rows = {r.item: r.sample_period for r in sample_rates(longitudinal_frame, reference)}
        assert rows["Oxygen saturation"] is None

    def test_unreferenced_items_keep_column_name(self, longitudinal_frame):
        rows = sample_rates(longitudinal_frame)
        assert rows[0].item == "NIHR_HIC_ICU_0108"
