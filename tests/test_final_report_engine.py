"""
Tests for report assembly and markdown rendering.
"""
import pytest

from ccdq.core.completeness_engine import CompletenessAggregator
from ccdq.core.config import BUNDLED_TEMPLATE_DIR, ThresholdTable
from ccdq.core.exceptions import ReportRenderError
from ccdq.core.final_report_engine import (
    assemble_report,
    completeness_cell,
    markdown_table,
    render_markdown,
)
from ccdq.core.summary_engine import file_summary, sample_rates
from ccdq.schemas.completeness import CompletenessStatus, FieldCompleteness
from ccdq.schemas.summaries import TableOneItem


def _row(status, completeness=80.0):
    return FieldCompleteness(field="HCM", display_name="Height", completeness=completeness, threshold=70, status=status)


class TestMarkdownTable:

    def test_pipe_table(self):
        table = markdown_table(["Item", "Value"], [["a", 1], ["b|c", None]], align=["left", "right"])
        assert table.splitlines() == [
            "| Item | Value |",
            "| :--- | ---: |",
            "| a | 1 |",
            "| b\\|c |  |",
        ]


class TestCompletenessCell:

    def test_pass_colour_box(self):
        assert completeness_cell(_row(CompletenessStatus.PASS), latex=True) == "\\colorbox{ccdgreen}{80.00}"

    def test_fail_colour_box(self):
        cell = completeness_cell(_row(CompletenessStatus.FAIL, 60.0), latex=True)
        assert cell == "\\colorbox{ccdred}{60.00}"

    def test_plain_markdown(self):
        assert completeness_cell(_row(CompletenessStatus.PASS)) == "80.00"
        assert completeness_cell(_row(CompletenessStatus.FAIL, 60.0)) == "**60.00**"

    def test_untagged_status(self):
        row = _row(CompletenessStatus.NOT_APPLICABLE)
        assert completeness_cell(row, latex=True) == "80.00"


class TestAssembleReport:

    def test_full_database_title(self):
        report = assemble_report(full_database=True, total_episodes=6)
        assert report.title == "Data Quality Report: Full database"
        assert report.total_episodes == 6

    def test_site_subset_title(self):
        report = assemble_report(full_database=False, sites=["Q70", "C90"])
        assert report.title == "Data Quality Report: Sites Q70, C90"
        assert report.sites == ["Q70", "C90"]

    def test_sections_and_errors_carried(self, info_frame):
        report = assemble_report(
            full_database=True,
            sections={"file_summary": file_summary(info_frame), "total_data_points": 45},
            section_errors={"coverage": "boom"},
        )
        assert len(report.file_summary) == 2
        assert report.total_data_points == 45
        assert report.section_errors == {"coverage": "boom"}


class TestRenderMarkdown:

    @pytest.fixture
    def report(self, ten_row_table, info_frame, longitudinal_frame, reference):
        completeness = CompletenessAggregator(ThresholdTable(thresholds={"HCM": 90, "WKG": 0}), reference)
        return assemble_report(
            full_database=True,
            total_episodes=10,
            sections={
                "file_summary": file_summary(info_frame),
                "completeness": completeness.report(ten_row_table, ["HCM", "WKG"]),
                "sample_rates": sample_rates(longitudinal_frame, reference),
            },
            section_errors={"coverage": "Episode information table is missing required columns"},
        )

    def test_sections_rendered(self, report):
        markdown = render_markdown(report, BUNDLED_TEMPLATE_DIR)
        assert 'title: "Data Quality Report: Full database"' in markdown
        assert "This report covers the full database." in markdown
        assert "# Data Completeness" in markdown
        assert "| Height | **80.00** | 90 | A:60 |" in markdown
        assert "| Weight | 70.00 |  |  |" in markdown
        assert "| Oxygen saturation | no data |" in markdown
        assert "q70_2015.xml" in markdown
        assert "- coverage: Episode information table is missing required columns" in markdown

    def test_latex_colour_boxes(self, report):
        markdown = render_markdown(report, BUNDLED_TEMPLATE_DIR, latex=True)
        assert "\\colorbox{ccdred}{80.00}" in markdown

    def test_absent_sections(self):
        markdown = render_markdown(assemble_report(full_database=False, sites=["Q70"]), BUNDLED_TEMPLATE_DIR)
        assert "restricted to the following sites: Q70" in markdown
        assert "No demographic data available." in markdown
        assert "# Table One" not in markdown

    def test_table_one_without_episodes(self):
        item = TableOneItem(short_name="SEX", display_name="Sex", no_data=True)
        markdown = render_markdown(
            assemble_report(full_database=True, sections={"table_one": [item]}), BUNDLED_TEMPLATE_DIR,
        )
        assert "## Sex\n\nNo data." in markdown

    def test_missing_template(self, report, tmp_path):
        with pytest.raises(ReportRenderError):
            render_markdown(report, tmp_path)
