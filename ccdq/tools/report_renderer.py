"""
FILE: tools/report_renderer.py
-------------------------------
File-system and process side of report generation:
  - recreate the report directory and copy the LaTeX assets into it
  - write the rendered markdown
  - convert markdown to PDF with pandoc

pandoc runs with `cwd` set to the report directory, so relative figure
and asset paths resolve without changing the process working directory.
"""

import shutil
import subprocess
from pathlib import Path

from loguru import logger

from ccdq.constants.report_constants import (
    LATEX_HEADER,
    LATEX_TEMPLATE,
    PANDOC_TIMEOUT_SECONDS,
    PANDOC_VARIABLES,
    REPORT_MARKDOWN,
    REPORT_PDF,
    TEMPLATE_ASSETS,
)
from ccdq.core.exceptions import ReportRenderError


def prepare_report_dir(report_dir: Path, template_dir: Path) -> Path:
    """Remove any previous report directory and copy the template assets into a fresh one."""
    report_dir = Path(report_dir)
    if report_dir.exists():
        logger.debug(f"Removing previous report directory {report_dir}")
        shutil.rmtree(report_dir)
    report_dir.mkdir(parents=True)

    for asset in TEMPLATE_ASSETS:
        source = Path(template_dir) / asset
        if not source.exists():
            raise ReportRenderError("Template asset not found", context={"asset": str(source)})
        shutil.copy(source, report_dir / asset)
    return report_dir


def write_markdown(report_dir: Path, markdown: str) -> Path:
    path = Path(report_dir) / REPORT_MARKDOWN
    path.write_text(markdown, encoding="utf-8")
    logger.info(f"Markdown report written to {path}")
    return path


def build_pandoc_command(pandoc: str = "pandoc") -> list[str]:
    cmd = [
        pandoc, "-s", "-N", "--toc", "--listings",
        "-H", LATEX_HEADER,
        f"--template={LATEX_TEMPLATE}",
    ]
    for variable in PANDOC_VARIABLES:
        cmd += ["-V", variable]
    cmd += [REPORT_MARKDOWN, "-o", REPORT_PDF]
    return cmd


def render_pdf(report_dir: Path, pandoc: str = "pandoc", timeout: int = PANDOC_TIMEOUT_SECONDS) -> Path:
    """Run pandoc inside `report_dir`. Any failure raises ReportRenderError."""
    report_dir = Path(report_dir)
    if shutil.which(pandoc) is None:
        raise ReportRenderError("pandoc executable not found", context={"pandoc": pandoc})

    cmd = build_pandoc_command(pandoc)
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd, cwd=report_dir, capture_output=True, text=True, timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ReportRenderError("pandoc timed out", context={"timeout": timeout}) from e
    except OSError as e:
        raise ReportRenderError(f"pandoc could not be started: {e}") from e

    if result.returncode != 0:
        raise ReportRenderError(
            f"pandoc failed: {result.stderr.strip()}",
            context={"returncode": result.returncode},
        )

    pdf_path = report_dir / REPORT_PDF
    logger.info(f"PDF report written to {pdf_path}")
    return pdf_path
