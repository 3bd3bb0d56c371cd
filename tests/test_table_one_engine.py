"""
Tests for the categorical table one.
"""
import pytest

from ccdq.core.exceptions import ConfigError, UnsupportedTypeError
from ccdq.core.table_one_engine import table_one, table_one_item


class TestTableOneItem:

    def test_counts_and_labels(self, demographic, reference):
        item = table_one_item(demographic, "SEX", reference)
        assert item.display_name == "Sex"
        rows = [(r.category, r.episode_count, r.percentage) for r in item.rows]
        assert rows[-1] == ("Male", 3, "50 %")
        assert ("Female", 2, "33.3 %") in rows
        assert ("Missing", 1, "16.7 %") in rows

    def test_sorted_by_episode_count_ascending(self, demographic, reference):
        counts = [r.episode_count for r in table_one_item(demographic, "DIS", reference).rows]
        assert counts == sorted(counts)

    def test_unmapped_code_keeps_raw_value(self, demographic, reference):
        categories = [r.category for r in table_one_item(demographic, "ETHNIC", reference).rows]
        assert "X" in categories
        assert "White British" in categories

    def test_logical_field_accepted(self, demographic, reference):
        rows = {r.category: r.episode_count for r in table_one_item(demographic, "CPR", reference).rows}
        assert rows == {"No": 4, "Yes": 1, "Missing": 1}

    def test_numeric_field_rejected(self, demographic, reference):
        with pytest.raises(UnsupportedTypeError) as exc:
            table_one_item(demographic, "HCM", reference)
        assert "'HCM' is not a categorical variable" in str(exc.value)

    def test_unknown_short_name(self, demographic, reference):
        with pytest.raises(ConfigError):
            table_one_item(demographic, "NOPE", reference)


class TestTableOne:

    def test_failing_item_does_not_stop_others(self, demographic, reference):
        items = table_one(demographic, ["SEX", "HCM", "DIS"], reference)
        assert [i.short_name for i in items] == ["SEX", "HCM", "DIS"]
        assert items[1].error is not None
        assert items[1].rows == []
        assert items[0].error is None and items[2].error is None

    def test_empty_table_is_no_data(self, demographic, reference):
        empty = demographic.filter_sites(["NONE"])
        items = table_one(empty, ["SEX", "CPR"], reference)
        assert [i.no_data for i in items] == [True, True]
        assert all(i.error is None and i.rows == [] for i in items)
