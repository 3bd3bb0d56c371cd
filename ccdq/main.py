"""
FILE: main.py
--------------
LangGraph orchestrator for the data quality report.
Wires every report section into a StateGraph; each node computes one
section and records its failure instead of stopping the report.

Pipeline flow:
  prepare             (site subset, fresh report directory, template assets)
      ↓ [fatal_error → END]
  file_summary
      ↓
  coverage            (site / file admission-discharge spans, figures)
      ↓
  completeness        (completeness aggregator)
      ↓
  table_one
      ↓
  distributions       (demographic and longitudinal, figures)
      ↓
  sample_rate
      ↓
  render              (markdown, then PDF through pandoc when requested)
      ↓ [END]

State:
  ReportState TypedDict: inputs, configuration objects, one field per
  section and the section_errors mapping.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Mapping, TypedDict

from langgraph.graph import END, StateGraph
from loguru import logger

from ccdq.constants.report_constants import FIGURE_DIR_NAME, LONGITUDINAL_SITE_COLUMN, REPORT_LOG
from ccdq.core.completeness_engine import CompletenessAggregator
from ccdq.core.config import (
    ReportSections,
    ReportSettings,
    ThresholdTable,
    load_item_reference,
    load_report_sections,
    load_site_info,
    load_thresholds,
)
from ccdq.core.dataset import DatasetBundle
from ccdq.core.distribution_engine import (
    demographic_distributions,
    longitudinal_distributions,
    numeric_values,
)
from ccdq.core.exceptions import DataQualityError, ReportRenderError
from ccdq.core.final_report_engine import assemble_report, render_markdown
from ccdq.core.log_config import configure_logging
from ccdq.core.summary_engine import (
    file_coverage,
    file_summary,
    sample_rates,
    site_coverage,
    total_data_points,
)
from ccdq.core.table_one_engine import table_one
from ccdq.schemas.field_reference import ItemReference
from ccdq.schemas.final_report import DataQualityReportOutput
from ccdq.tools import plotting
from ccdq.tools.data_loader import load_bundle
from ccdq.tools.report_renderer import prepare_report_dir, render_pdf, write_markdown


# ─────────────────────────────────────────────
# STATE SCHEMA
# ─────────────────────────────────────────────

class ReportState(TypedDict, total=False):
    # ── Inputs ──
    bundle:         Any                 # DatasetBundle
    sites:          list[str] | None
    pdf:            bool

    # ── Configuration (loaded once, immutable) ──
    settings:       Any                 # ReportSettings
    thresholds:     Any                 # ThresholdTable
    reference:      Any                 # ItemReference
    site_names:     Mapping[str, str]
    sections_conf:  Any                 # ReportSections

    # ── Section outputs ──
    sections:       dict
    figures:        dict[str, str]
    section_errors: dict[str, str]

    # ── Result ──
    report_output:  Any                 # DataQualityReportOutput
    fatal_error:    str | None


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _with_section(state: ReportState, **values) -> ReportState:
    return {**state, "sections": {**state.get("sections", {}), **values}}


def _with_error(state: ReportState, name: str, error: Exception) -> ReportState:
    logger.warning(f"Section '{name}' skipped: {error}")
    return {**state, "section_errors": {**state.get("section_errors", {}), name: str(error)}}


def _figure_path(state: ReportState, name: str) -> Path:
    return state["settings"].report_dir / FIGURE_DIR_NAME / f"{name}.png"


def _relative(state: ReportState, path: Path) -> str:
    return path.relative_to(state["settings"].report_dir).as_posix()


def _draw(state: ReportState) -> bool:
    return state["settings"].draw_figures


# ─────────────────────────────────────────────
# NODE FUNCTIONS
# ─────────────────────────────────────────────

def node_prepare(state: ReportState) -> ReportState:
    """Restricts the record to the requested sites and recreates the report directory."""
    settings: ReportSettings = state["settings"]
    bundle: DatasetBundle = state["bundle"]

    sites = state.get("sites")
    if sites:
        bundle = bundle.filter_sites(sites)
        logger.info(f"Report restricted to sites: {', '.join(sites)}")

    try:
        prepare_report_dir(settings.report_dir, settings.template_dir)
    except (DataQualityError, OSError) as e:
        return {**state, "fatal_error": f"Could not prepare report directory: {e}"}

    return {
        **state,
        "bundle":         bundle,
        "sections":       {"total_episodes": bundle.n_episodes},
        "figures":        {},
        "section_errors": {},
        "fatal_error":    None,
    }


def node_file_summary(state: ReportState) -> ReportState:
    bundle: DatasetBundle = state["bundle"]
    state = _with_section(state, total_data_points=total_data_points(bundle))
    if bundle.info is None:
        return state
    try:
        return _with_section(state, file_summary=file_summary(bundle.info))
    except DataQualityError as e:
        return _with_error(state, "file_summary", e)


def node_coverage(state: ReportState) -> ReportState:
    bundle: DatasetBundle = state["bundle"]
    if bundle.info is None:
        return state
    try:
        by_site = site_coverage(bundle.info, state.get("site_names"))
        by_file = file_coverage(bundle.info)
    except DataQualityError as e:
        return _with_error(state, "coverage", e)

    figures = dict(state.get("figures", {}))
    if _draw(state):
        path = plotting.coverage_figure(by_site, "Site", _figure_path(state, "site_coverage"))
        figures["site_coverage"] = _relative(state, path)
        path = plotting.coverage_figure(by_file, "The Duration of XML Files", _figure_path(state, "file_coverage"))
        figures["file_coverage"] = _relative(state, path)

    state = _with_section(state, site_coverage=by_site, file_coverage=by_file)
    return {**state, "figures": figures}


def node_completeness(state: ReportState) -> ReportState:
    """Runs the completeness aggregator on the demographic table."""
    bundle: DatasetBundle = state["bundle"]
    if bundle.demographic is None:
        return state
    conf: ReportSections = state["sections_conf"]
    aggregator = CompletenessAggregator(state["thresholds"], state["reference"])
    try:
        report = aggregator.report(bundle.demographic, conf.completeness)
    except DataQualityError as e:
        return _with_error(state, "completeness", e)
    return _with_section(state, completeness=report)


def node_table_one(state: ReportState) -> ReportState:
    bundle: DatasetBundle = state["bundle"]
    conf: ReportSections = state["sections_conf"]
    if bundle.demographic is None or not conf.table_one:
        return state
    items = table_one(bundle.demographic, conf.table_one, state["reference"])
    return _with_section(state, table_one=items)


def _with_density_figures(state: ReportState, summaries, frame, columns, groups, prefix: str):
    """Attach a per-site density figure to every summary that was computed."""
    drawn = []
    for s in summaries:
        if not s.error:
            path = plotting.density_figure(
                numeric_values(frame, columns[s.short_name]),
                groups,
                s.display_name,
                _figure_path(state, f"{prefix}_{s.short_name}"),
            )
            s = s.model_copy(update={"figure_path": _relative(state, path)})
        drawn.append(s)
    return drawn


def node_distributions(state: ReportState) -> ReportState:
    bundle: DatasetBundle = state["bundle"]
    conf: ReportSections = state["sections_conf"]
    reference: ItemReference = state["reference"]
    updates: dict = {}

    if bundle.demographic is not None and conf.demographic_distributions:
        table = bundle.demographic
        summaries = demographic_distributions(table, conf.demographic_distributions, reference)
        if _draw(state):
            columns = {s.short_name: s.short_name for s in summaries}
            summaries = _with_density_figures(
                state, summaries, table.frame, columns, table.frame[table.site_column], "demographic",
            )
        updates["distributions"] = summaries

    if bundle.longitudinal is not None and conf.longitudinal_distributions:
        frame = bundle.longitudinal
        summaries = longitudinal_distributions(frame, conf.longitudinal_distributions, reference)
        if _draw(state) and LONGITUDINAL_SITE_COLUMN in frame.columns:
            columns = {}
            for s in summaries:
                ref = reference.get(s.short_name) or reference.by_code(s.short_name)
                if ref is not None:
                    columns[s.short_name] = ref.code if ref.code in frame.columns else ref.short_name
            summaries = _with_density_figures(
                state, summaries, frame, columns, frame[LONGITUDINAL_SITE_COLUMN], "longitudinal",
            )
        updates["physio_distributions"] = summaries

    return _with_section(state, **updates)


def node_sample_rate(state: ReportState) -> ReportState:
    bundle: DatasetBundle = state["bundle"]
    if bundle.longitudinal is None:
        return state
    return _with_section(state, sample_rates=sample_rates(bundle.longitudinal, state["reference"]))


def node_render(state: ReportState) -> ReportState:
    """Assembles the report, writes the markdown and, when requested, the PDF."""
    settings: ReportSettings = state["settings"]
    sites = state.get("sites") or []
    sections = dict(state.get("sections", {}))
    total_episodes = sections.pop("total_episodes", 0)
    section_errors = dict(state.get("section_errors", {}))

    report = assemble_report(
        full_database=not sites,
        sites=sites,
        total_episodes=total_episodes,
        sections=sections,
        section_errors=section_errors,
        figures=state.get("figures", {}),
    )

    pdf = state.get("pdf", True)
    try:
        markdown = render_markdown(report, settings.template_dir, latex=pdf)
    except DataQualityError as e:
        return {**state, "fatal_error": str(e), "report_output": report}

    md_path = write_markdown(settings.report_dir, markdown)
    report = report.model_copy(update={"markdown_report": markdown, "markdown_path": str(md_path)})

    if pdf:
        try:
            pdf_path = render_pdf(settings.report_dir, settings.pandoc_executable, settings.pandoc_timeout)
            report = report.model_copy(update={"pdf_path": str(pdf_path), "pdf_generated": True})
        except DataQualityError as e:
            logger.error(f"PDF rendering failed, markdown kept at {md_path}: {e}")
            section_errors["pdf"] = str(e)
            report = report.model_copy(update={"section_errors": section_errors})

    return {**state, "report_output": report, "section_errors": section_errors}


# ─────────────────────────────────────────────
# CONDITIONAL EDGE FUNCTIONS
# ─────────────────────────────────────────────

def route_after_prepare(state: ReportState) -> str:
    if state.get("fatal_error"):
        return END
    return "file_summary"


# ─────────────────────────────────────────────
# GRAPH CONSTRUCTION
# ─────────────────────────────────────────────

def build_graph():
    """Builds and compiles the report pipeline."""
    builder = StateGraph(ReportState)

    # ── Register nodes ──
    builder.add_node("prepare",       node_prepare)
    builder.add_node("file_summary",  node_file_summary)
    builder.add_node("coverage",      node_coverage)
    builder.add_node("completeness",  node_completeness)
    builder.add_node("table_one",     node_table_one)
    builder.add_node("distributions", node_distributions)
    builder.add_node("sample_rate",   node_sample_rate)
    builder.add_node("render",        node_render)

    # ── Entry point ──
    builder.set_entry_point("prepare")

    # ── Edges ──
    builder.add_conditional_edges("prepare", route_after_prepare)
    builder.add_edge("file_summary",  "coverage")
    builder.add_edge("coverage",      "completeness")
    builder.add_edge("completeness",  "table_one")
    builder.add_edge("table_one",     "distributions")
    builder.add_edge("distributions", "sample_rate")
    builder.add_edge("sample_rate",   "render")
    builder.add_edge("render",        END)

    return builder.compile()


# Module-level compiled graph, reused across invocations
graph = build_graph()


# ─────────────────────────────────────────────
# PUBLIC ENTRY POINT
# ─────────────────────────────────────────────

def data_quality_report(
    bundle: DatasetBundle,
    sites: list[str] | None = None,
    pdf: bool = True,
    settings: ReportSettings | None = None,
    thresholds: ThresholdTable | None = None,
    reference: ItemReference | None = None,
    site_names: Mapping[str, str] | None = None,
    sections: ReportSections | None = None,
) -> DataQualityReportOutput:
    """
    Create the data quality report under `<work_dir>/report/`.

    Args:
        bundle:     Record tables (episode info, demographic, longitudinal).
        sites:      Site ids for a site-specific report; None for the full database.
        pdf:        Also produce data_quality_report.pdf through pandoc.
        settings:   Runtime settings; defaults are read from CCDQ_* variables.
        thresholds, reference, site_names, sections:
                    Preloaded configuration; loaded from the settings paths when omitted.

    Returns:
        DataQualityReportOutput with every section, the markdown text and the
        output paths. Failed sections are listed in `section_errors`.

    Raises:
        ConfigError: a configuration file is missing or invalid.
        ReportRenderError: the report directory or markdown could not be produced.
    """
    settings = settings or ReportSettings()
    state: ReportState = {
        "bundle":        bundle,
        "sites":         list(sites) if sites else None,
        "pdf":           pdf,
        "settings":      settings,
        "thresholds":    thresholds if thresholds is not None else load_thresholds(settings.thresholds_path),
        "reference":     reference if reference is not None else load_item_reference(settings.item_reference_path),
        "site_names":    site_names if site_names is not None else load_site_info(settings.site_info_path),
        "sections_conf": sections if sections is not None else load_report_sections(settings.sections_path),
    }

    logger.info(f"Creating data quality report in {settings.report_dir}")
    final = graph.invoke(state)

    if final.get("fatal_error"):
        raise ReportRenderError(final["fatal_error"])
    return final["report_output"]


# ─────────────────────────────────────────────
# CLI RUNNER
# Usage: ccdq-report --info info.csv --demographic demg.csv --site Q70 --no-pdf
# ─────────────────────────────────────────────

def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ccdq-report",
        description="Create the data quality report for a critical care record.",
    )
    parser.add_argument("--info", type=Path, help="Episode information CSV (parse_file, parse_time, site_id, ...)")
    parser.add_argument("--demographic", type=Path, help="Demographic table CSV, one row per episode")
    parser.add_argument("--longitudinal", type=Path, help="Longitudinal table CSV (site, time, episode_id, items)")
    parser.add_argument("--site", action="append", dest="sites", help="Restrict the report to a site (repeatable)")
    parser.add_argument("--no-pdf", action="store_true", help="Stop after writing the markdown report")
    parser.add_argument("--work-dir", type=Path, help="Directory the report folder is created in")
    parser.add_argument("--site-column", help="Site column of the demographic table")
    parser.add_argument("--no-figures", action="store_true", help="Skip matplotlib figures")
    parser.add_argument("--log-level", help="Console log level (default INFO)")
    return parser.parse_args(argv)


def cli(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    overrides = {
        k: v for k, v in {
            "work_dir":    args.work_dir,
            "site_column": args.site_column,
            "log_level":   args.log_level,
        }.items() if v is not None
    }
    if args.no_figures:
        overrides["draw_figures"] = False
    settings = ReportSettings(**overrides)
    configure_logging(settings.log_level, settings.work_dir / REPORT_LOG)

    try:
        reference = load_item_reference(settings.item_reference_path)
        bundle = load_bundle(
            info_path=args.info,
            demographic_path=args.demographic,
            longitudinal_path=args.longitudinal,
            site_column=settings.site_column,
            reference=reference,
        )
        report = data_quality_report(
            bundle,
            sites=args.sites,
            pdf=not args.no_pdf,
            settings=settings,
            reference=reference,
        )
    except DataQualityError as e:
        logger.error(str(e))
        return 1

    print(f"\nMarkdown report: {report.markdown_path}")
    if report.pdf_generated:
        print(f"PDF report:      {report.pdf_path}")
    for section, message in report.section_errors.items():
        print(f"  ! {section}: {message}")
    return 0


if __name__ == "__main__":
    sys.exit(cli())
