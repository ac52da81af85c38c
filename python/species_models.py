# -*- coding: utf-8 -*-

"""
Species catalog rows and the edit-form schema.

  SpeciesRecord   one row of the `species` table (extra columns ignored)
  AuthorProfile   one row of the `profiles` table
  SpeciesEdit     validated + normalized edit-form input
  validate_species_edit(raw) -> EditValidation (value or per-field errors)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# ---------------- Constants ----------------
KINGDOMS = ("Animalia", "Plantae", "Fungi", "Protista", "Archaea", "Bacteria")
Kingdom = Literal["Animalia", "Plantae", "Fungi", "Protista", "Archaea", "Bacteria"]

PREVIEW_LENGTH = 150

# columns the edit form owns; author is always set from the caller's identity
EDIT_FIELDS = (
    "common_name",
    "description",
    "kingdom",
    "scientific_name",
    "total_population",
    "image",
)


# ---------------- Rows ----------------
class SpeciesRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scientific_name: str
    common_name: Optional[str] = None
    description: Optional[str] = None
    kingdom: Optional[Kingdom] = None
    total_population: Optional[int] = None
    image: Optional[str] = None
    author: Optional[str] = None

    def form_defaults(self) -> Dict[str, Any]:
        """Values used to pre-fill the edit form."""
        return self.model_dump(include=set(EDIT_FIELDS))


class AuthorProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: str
    email: str


def description_preview(description: Optional[str]) -> str:
    # long descriptions are clipped and marked; short ones pass through trimmed
    if not description:
        return ""
    if len(description) >= PREVIEW_LENGTH:
        return description[:PREVIEW_LENGTH].strip() + "..."
    return description.strip()


# ---------------- Edit form ----------------
def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class SpeciesEdit(BaseModel):
    common_name: Optional[str] = None
    description: Optional[str] = None
    kingdom: Kingdom
    scientific_name: str = Field(min_length=1)
    total_population: Optional[int] = Field(default=None, gt=0)
    image: Optional[str] = None

    @field_validator("common_name", "description", "image", mode="before")
    @classmethod
    def _normalize_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("total_population", mode="before")
    @classmethod
    def _population_number(cls, v: Any) -> Any:
        # bool is an int subclass; never read a checkbox as a head count
        if isinstance(v, bool):
            raise ValueError("Input should be a valid integer")
        return _blank_to_none(v)

    @field_validator("scientific_name", mode="before")
    @classmethod
    def _trim_scientific_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("image")
    @classmethod
    def _well_formed_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Invalid url")
        return v

    def update_values(self, author_id: str) -> Dict[str, Any]:
        """Row patch for the `species` table, stamped with the editing author."""
        values = self.model_dump()
        values["author"] = author_id
        return values


@dataclass
class EditValidation:
    value: Optional[SpeciesEdit] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors


def validate_species_edit(raw: Mapping[str, Any]) -> EditValidation:
    """
    Validate and normalize raw form input without touching the backend.

    Blank text becomes None, scientific_name is trimmed and must stay
    non-empty. On failure only the first message per field is kept.
    """
    try:
        return EditValidation(value=SpeciesEdit.model_validate(dict(raw)))
    except ValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
            errors.setdefault(loc, err["msg"])
        return EditValidation(errors=errors)
