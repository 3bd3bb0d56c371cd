"""
FILE: schemas/field_reference.py
---------------------------------
Pydantic models describing the data items of a clinical record.
FieldType is resolved once, when the reference is loaded; engines dispatch
on it instead of inspecting column dtypes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────────

class FieldType(str, Enum):
    NUMERIC     = "numeric"       # measurements, counts, durations
    CATEGORICAL = "categorical"   # coded text / list items
    LOGICAL     = "logical"       # yes/no items, summarised like categoricals

    @property
    def is_categorical(self) -> bool:
        return self in (FieldType.CATEGORICAL, FieldType.LOGICAL)


# Datatype labels used by the upstream item dictionary
DATATYPE_ALIASES: dict[str, FieldType] = {
    "numeric":        FieldType.NUMERIC,
    "integer":        FieldType.NUMERIC,
    "date":           FieldType.NUMERIC,
    "time":           FieldType.NUMERIC,
    "date/time":      FieldType.NUMERIC,
    "text":           FieldType.CATEGORICAL,
    "list":           FieldType.CATEGORICAL,
    "categorical":    FieldType.CATEGORICAL,
    "logical":        FieldType.LOGICAL,
    "list / logical": FieldType.LOGICAL,
}


# ─────────────────────────────────────────────
# MODELS
# ─────────────────────────────────────────────

class FieldReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    short_name:   str                          # e.g. "HCM"
    code:         str                          # e.g. "NIHR_HIC_ICU_0017"
    display_name: str                          # e.g. "Height"
    field_type:   FieldType
    unit:         str | None = None
    categories:   dict[str, str] = Field(default_factory=dict)   # code → label

    def category_label(self, value) -> str:
        """Label for a raw category code; unmapped codes keep their raw text."""
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        key = str(value)
        return self.categories.get(key, key)


class ItemReference(BaseModel):
    """
    Immutable lookup of FieldReference by short name and by item code.
    Loaded once per invocation (see core/config.py) and passed explicitly.
    """
    model_config = ConfigDict(frozen=True)

    fields: tuple[FieldReference, ...] = ()

    def get(self, short_name: str) -> FieldReference | None:
        for ref in self.fields:
            if ref.short_name == short_name:
                return ref
        return None

    def by_code(self, code: str) -> FieldReference | None:
        for ref in self.fields:
            if ref.code == code:
                return ref
        return None

    def display_name(self, name: str) -> str:
        """Display name for a short name or item code, falling back to the name itself."""
        ref = self.get(name) or self.by_code(name)
        return ref.display_name if ref else name

    def field_types(self) -> dict[str, FieldType]:
        return {ref.short_name: ref.field_type for ref in self.fields}

    def __contains__(self, short_name: str) -> bool:
        return self.get(short_name) is not None

    def __len__(self) -> int:
        return len(self.fields)
