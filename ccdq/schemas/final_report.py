"""
FILE: schemas/final_report.py
------------------------------
Pydantic output schema for the assembled data quality report.
Carries every computed section, the rendered markdown and the paths
of the files written to the report directory.
"""

from pydantic import BaseModel, Field

from ccdq.schemas.completeness import CompletenessReport
from ccdq.schemas.summaries import (
    CoverageRow,
    DistributionSummary,
    FileSummaryRow,
    SampleRateRow,
    TableOneItem,
)


class DataQualityReportOutput(BaseModel):
    # ── Header ──
    title:          str = "Data Quality Report"
    full_database:  bool = True
    sites:          list[str] = Field(default_factory=list)   # selected sites when not full
    generated_at:   str = ""
    total_episodes: int = 0
    total_data_points: int | None = None

    # ── Sections ──
    file_summary:   list[FileSummaryRow] = Field(default_factory=list)
    site_coverage:  list[CoverageRow] = Field(default_factory=list)
    file_coverage:  list[CoverageRow] = Field(default_factory=list)
    completeness:   CompletenessReport | None = None
    table_one:      list[TableOneItem] = Field(default_factory=list)
    distributions:  list[DistributionSummary] = Field(default_factory=list)
    physio_distributions: list[DistributionSummary] = Field(default_factory=list)
    sample_rates:   list[SampleRateRow] = Field(default_factory=list)
    figures:        dict[str, str] = Field(default_factory=dict)   # name → relative path

    # ── Section failures (section → message); the report is still produced ──
    section_errors: dict[str, str] = Field(default_factory=dict)

    # ── Output ──
    markdown_report: str = ""
    markdown_path:   str = ""
    pdf_path:        str = ""
    pdf_generated:   bool = False
