"""
FILE: core/config.py
---------------------
Settings and reference configuration for the data quality report.

  - ReportSettings : environment-overridable settings (prefix CCDQ_)
  - ThresholdTable : acceptance completeness % per field (0 = not set)
  - ItemReference  : field metadata, see schemas/field_reference.py
  - site names     : site id → human-readable name

Each YAML file is read once per invocation; the resulting objects are
immutable and passed explicitly to the engines that need them.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ccdq.constants.completeness_constants import THRESHOLD_NOT_SET
from ccdq.constants.report_constants import PANDOC_TIMEOUT_SECONDS, REPORT_DIR_NAME
from ccdq.core.exceptions import ConfigError
from ccdq.schemas.field_reference import (
    DATATYPE_ALIASES,
    FieldReference,
    ItemReference,
)


PACKAGE_DIR = Path(__file__).resolve().parent.parent
BUNDLED_CONF_DIR = PACKAGE_DIR / "conf"
BUNDLED_TEMPLATE_DIR = PACKAGE_DIR / "templates"


# ─────────────────────────────────────────────
# SETTINGS
# ─────────────────────────────────────────────

class ReportSettings(BaseSettings):
    """
    Runtime settings. Every field can be overridden with an environment
    variable prefixed CCDQ_, e.g. CCDQ_WORK_DIR=/tmp/dq.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CCDQ_",
        case_sensitive=False,
        extra="ignore",
    )

    work_dir: Path = Field(default=Path("."), description="Directory the report folder is created in")
    report_dir_name: str = REPORT_DIR_NAME
    site_column: str = Field(default="ICNNO", description="Site column of the demographic table")

    thresholds_path: Path = BUNDLED_CONF_DIR / "accept_completeness.yaml"
    item_reference_path: Path = BUNDLED_CONF_DIR / "item_reference.yaml"
    site_info_path: Path = BUNDLED_CONF_DIR / "site_info.yaml"
    sections_path: Path = BUNDLED_CONF_DIR / "report_sections.yaml"
    template_dir: Path = BUNDLED_TEMPLATE_DIR

    pandoc_executable: str = "pandoc"
    pandoc_timeout: int = PANDOC_TIMEOUT_SECONDS
    draw_figures: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @property
    def report_dir(self) -> Path:
        return self.work_dir / self.report_dir_name


# ─────────────────────────────────────────────
# THRESHOLD TABLE
# ─────────────────────────────────────────────

class ThresholdTable(BaseModel):
    """Field short name → minimum acceptable completeness %."""

    model_config = ConfigDict(frozen=True)

    thresholds: Mapping[str, float] = Field(default_factory=dict)

    @field_validator("thresholds")
    @classmethod
    def _check_range(cls, v: Mapping[str, float]) -> Mapping[str, float]:
        for name, value in v.items():
            if not 0 <= value <= 100:
                raise ValueError(f"threshold for '{name}' must lie in [0, 100], got {value}")
        return MappingProxyType(dict(v))

    def require(self, field: str) -> float:
        """Threshold for a field; a field without an entry is a configuration error."""
        if field not in self.thresholds:
            raise ConfigError(
                "No acceptance threshold configured for field",
                context={"field": field},
            )
        return self.thresholds[field]

    def is_enforced(self, field: str) -> bool:
        return self.thresholds.get(field, THRESHOLD_NOT_SET) != THRESHOLD_NOT_SET

    def __contains__(self, field: str) -> bool:
        return field in self.thresholds


# ─────────────────────────────────────────────
# YAML LOADERS
# ─────────────────────────────────────────────

def _read_yaml(path: Path) -> object:
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError("Configuration file not found", context={"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", context={"path": str(path)}) from e


def load_thresholds(path: Path) -> ThresholdTable:
    """
    Load the acceptance completeness table. The file is a flat mapping,
    e.g. `HCM: 70`. A value of 0 means no threshold is enforced.
    """
    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Threshold file must be a mapping", context={"path": str(path)})

    thresholds: dict[str, float] = {}
    for name, value in raw.items():
        try:
            thresholds[str(name)] = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                "Threshold must be numeric",
                context={"field": name, "value": value, "path": str(path)},
            ) from e

    try:
        table = ThresholdTable(thresholds=thresholds)
    except ValueError as e:
        raise ConfigError(str(e), context={"path": str(path)}) from e
    logger.debug(f"Loaded {len(thresholds)} acceptance thresholds from {path}")
    return table


def load_item_reference(path: Path) -> ItemReference:
    """Load field metadata from an `items:` list of YAML records."""
    raw = _read_yaml(path) or {}
    items = raw.get("items") if isinstance(raw, dict) else None
    if not isinstance(items, list):
        raise ConfigError("Item reference must contain an 'items' list", context={"path": str(path)})

    fields: list[FieldReference] = []
    for entry in items:
        if not isinstance(entry, dict):
            raise ConfigError("Item reference entries must be mappings", context={"path": str(path)})
        short_name = entry.get("short_name")
        datatype = str(entry.get("datatype", "")).strip().lower()
        if datatype not in DATATYPE_ALIASES:
            raise ConfigError(
                "Unknown datatype in item reference",
                context={"short_name": short_name, "datatype": datatype},
            )
        try:
            fields.append(FieldReference(
                short_name=short_name,
                code=entry.get("code", short_name),
                display_name=entry.get("display_name", short_name),
                field_type=DATATYPE_ALIASES[datatype],
                unit=entry.get("unit"),
                categories={str(k): str(v) for k, v in (entry.get("categories") or {}).items()},
            ))
        except ValueError as e:
            raise ConfigError(f"Invalid item reference entry: {e}", context={"path": str(path)}) from e

    logger.debug(f"Loaded {len(fields)} item references from {path}")
    return ItemReference(fields=tuple(fields))


def load_site_info(path: Path) -> Mapping[str, str]:
    """Site id → site name. A missing file is not an error: ids are shown alone."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Site information file not found at {path}; site names omitted")
        return MappingProxyType({})
    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Site information must be a mapping", context={"path": str(path)})
    return MappingProxyType({str(k): str(v) for k, v in raw.items()})


# ─────────────────────────────────────────────
# REPORT SECTIONS
# ─────────────────────────────────────────────

class ReportSections(BaseModel):
    """Items shown in each report section. `completeness: None` means every column."""

    model_config = ConfigDict(frozen=True)

    completeness:  tuple[str, ...] | None = None
    table_one:     tuple[str, ...] = ()
    demographic_distributions: tuple[str, ...] = ()
    longitudinal_distributions: tuple[str, ...] = ()


def load_report_sections(path: Path) -> ReportSections:
    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Report sections must be a mapping", context={"path": str(path)})
    try:
        return ReportSections(**raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid report sections: {e}", context={"path": str(path)}) from e
