# ─────────────────────────────────────────────
# REPORT FILES
# ─────────────────────────────────────────────

REPORT_DIR_NAME = "report"
REPORT_TEMPLATE = "data_quality_report.md.j2"
REPORT_MARKDOWN = "data_quality_report.md"
REPORT_PDF = "data_quality_report.pdf"
# Written next to the report directory, which is recreated on every run
REPORT_LOG = "data_quality_report.log"
LATEX_HEADER = "listings-setup.tex"
LATEX_TEMPLATE = "report.latex"
FIGURE_DIR_NAME = "figures"

# Static assets copied next to the rendered markdown before pandoc runs
TEMPLATE_ASSETS = (LATEX_HEADER, LATEX_TEMPLATE)

# ─────────────────────────────────────────────
# PANDOC
# ─────────────────────────────────────────────

PANDOC_TIMEOUT_SECONDS = 120
PANDOC_VARIABLES = (
    "papersize:a4paper",
    "geometry:margin=1.3in",
)

# LaTeX colours defined in listings-setup.tex
PASS_COLOUR = "ccdgreen"
FAIL_COLOUR = "ccdred"

# ─────────────────────────────────────────────
# INPUT TABLE COLUMNS
# ─────────────────────────────────────────────

# Episode information table
INFO_FILE_COLUMN = "parse_file"
INFO_TIME_COLUMN = "parse_time"
INFO_SITE_COLUMN = "site_id"
INFO_ADMISSION_COLUMN = "t_admission"
INFO_DISCHARGE_COLUMN = "t_discharge"
INFO_REQUIRED_COLUMNS = (INFO_FILE_COLUMN, INFO_TIME_COLUMN, INFO_SITE_COLUMN)

# Longitudinal table bookkeeping columns (never treated as items)
LONGITUDINAL_SITE_COLUMN = "site"
LONGITUDINAL_TIME_COLUMN = "time"
LONGITUDINAL_EPISODE_COLUMN = "episode_id"
LONGITUDINAL_RESERVED_COLUMNS = (
    LONGITUDINAL_SITE_COLUMN,
    LONGITUDINAL_TIME_COLUMN,
    LONGITUDINAL_EPISODE_COLUMN,
)
LONGITUDINAL_META_MARKER = "meta"

# Demographic table row index column dropped before completeness
DEMOGRAPHIC_INDEX_COLUMN = "index"
