"""
FILE: core/final_report_engine.py
----------------------------------
Pure logic for assembling the data quality report from the section outputs.
No file or process I/O: the markdown string is returned and written by
tools/report_renderer.py.

Responsibilities:
  1. Collects every section output into a DataQualityReportOutput
  2. Converts sections into markdown table rows
  3. Tags completeness values pass/fail (LaTeX colour boxes for PDF output,
     bold for plain markdown)
  4. Renders the Jinja2 report template
"""

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ccdq.constants.completeness_constants import (
    COMPLETENESS_COLUMN,
    NO_DATA_MARKER,
    REJECTION_COLUMN,
    THRESHOLD_COLUMN,
)
from ccdq.constants.report_constants import FAIL_COLOUR, PASS_COLOUR, REPORT_TEMPLATE
from ccdq.core.exceptions import ReportRenderError
from ccdq.schemas.completeness import CompletenessStatus, FieldCompleteness
from ccdq.schemas.final_report import DataQualityReportOutput
from ccdq.schemas.summaries import CoverageRow, DistributionSummary


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _escape_cell(value) -> str:
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\n", " ")


def markdown_table(headers: list[str], rows: list[list], align: list[str] | None = None) -> str:
    """Pipe table understood by pandoc. `align` holds "left" | "center" | "right" per column."""
    marks = {"left": ":---", "center": ":---:", "right": "---:"}
    align = align or ["left"] * len(headers)
    lines = [
        "| " + " | ".join(_escape_cell(h) for h in headers) + " |",
        "| " + " | ".join(marks.get(a, "---") for a in align) + " |",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_escape_cell(c) for c in row) + " |")
    return "\n".join(lines)


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def completeness_cell(row: FieldCompleteness, latex: bool = False) -> str:
    """Completeness value tagged by status; the number itself is never altered."""
    text = row.completeness_display
    if row.status == CompletenessStatus.PASS:
        return f"\\colorbox{{{PASS_COLOUR}}}{{{text}}}" if latex else text
    if row.status == CompletenessStatus.FAIL:
        return f"\\colorbox{{{FAIL_COLOUR}}}{{{text}}}" if latex else f"**{text}**"
    return text


# ─────────────────────────────────────────────
# TABLE BUILDERS
# ─────────────────────────────────────────────

def _file_summary_table(report: DataQualityReportOutput) -> str:
    rows = [
        [r.n_episodes, _format_time(r.upload_time), r.sites, r.file]
        for r in report.file_summary
    ]
    return markdown_table(["Number of Episode", "Upload time", "Sites", "File"], rows)


def _coverage_table(rows: list[CoverageRow], label: str) -> str:
    body = [
        [r.label, _format_time(r.min_admission), _format_time(r.max_admission),
         _format_time(r.min_discharge), _format_time(r.max_discharge)]
        for r in rows
    ]
    return markdown_table(
        [label, "First admission", "Last admission", "First discharge", "Last discharge"], body,
    )


def _completeness_table(report: DataQualityReportOutput, latex: bool) -> str:
    rows = [
        [f.display_name, completeness_cell(f, latex), f.threshold_display, f.rejection]
        for f in report.completeness.fields
    ]
    return markdown_table(
        ["Item", COMPLETENESS_COLUMN, THRESHOLD_COLUMN, REJECTION_COLUMN],
        rows,
        align=["left", "center", "center", "center"],
    )


def _distribution_table(summary: DistributionSummary) -> str:
    def fmt(v):
        return "" if v is None else f"{v:g}"

    rows = [
        [s.site, s.n, fmt(s.mean), fmt(s.std), fmt(s.median), fmt(s.min), fmt(s.max), fmt(s.skewness)]
        for s in summary.sites
    ]
    return markdown_table(["Site", "N", "Mean", "SD", "Median", "Min", "Max", "Skewness"], rows)


def _sample_rate_table(report: DataQualityReportOutput) -> str:
    rows = [
        [r.item, NO_DATA_MARKER if r.sample_period is None else f"{r.sample_period:g}"]
        for r in report.sample_rates
    ]
    return markdown_table(["Item", "Sample Period (hour)"], rows)


# ─────────────────────────────────────────────
# MAIN: ASSEMBLE & RENDER
# ─────────────────────────────────────────────

def assemble_report(
    full_database: bool,
    sites: list[str] | None = None,
    total_episodes: int = 0,
    sections: dict | None = None,
    section_errors: dict[str, str] | None = None,
    figures: dict[str, str] | None = None,
) -> DataQualityReportOutput:
    """
    Collects section outputs into a DataQualityReportOutput.
    `sections` keys match the output field names (file_summary, completeness, ...).
    markdown_report and the file paths are filled in later.
    """
    sections = sections or {}
    scope = "Full database" if full_database else f"Sites {', '.join(sites or [])}"
    return DataQualityReportOutput(
        title=f"Data Quality Report: {scope}",
        full_database=full_database,
        sites=list(sites or []),
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
        total_episodes=total_episodes,
        section_errors=dict(section_errors or {}),
        figures=dict(figures or {}),
        **sections,
    )


def render_markdown(report: DataQualityReportOutput, template_dir: Path, latex: bool = False) -> str:
    """Render the report template. `latex` switches completeness tags to colour boxes."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    context = {
        "report": report,
        "latex": latex,
        "file_summary_table": _file_summary_table(report) if report.file_summary else "",
        "site_coverage_table": _coverage_table(report.site_coverage, "Site") if report.site_coverage else "",
        "file_coverage_table": _coverage_table(report.file_coverage, "File") if report.file_coverage else "",
        "completeness_table": _completeness_table(report, latex) if report.completeness else "",
        "table_one": [
            (item, markdown_table(
                ["Category", "Episode Count", "Percentage"],
                [[r.category, r.episode_count, r.percentage] for r in item.rows],
            ))
            for item in report.table_one
        ],
        "distributions": [(d, _distribution_table(d)) for d in report.distributions],
        "physio_distributions": [(d, _distribution_table(d)) for d in report.physio_distributions],
        "sample_rate_table": _sample_rate_table(report) if report.sample_rates else "",
    }
    try:
        return env.get_template(REPORT_TEMPLATE).render(**context)
    except TemplateError as e:
        raise ReportRenderError(f"Report template failed: {e}", context={"template_dir": str(template_dir)}) from e
