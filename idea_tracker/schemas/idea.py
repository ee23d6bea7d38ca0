"""Idea Pydantic schemas — the add/edit form and the listing filters.

Both records normalise raw HTML form input before it reaches the services:
blank strings become ``None``, numbers are parsed (never NaN, never a silent
zero) and marketing strategy becomes a de-duplicated list of tags.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from idea_tracker.errors import ValidationError

# Checkbox options offered by the idea form; free-form tags are accepted too.
MARKETING_CHANNELS = [
    "Social Media",
    "Email",
    "SEO",
    "Content Marketing",
    "Paid Ads",
    "Word of Mouth",
    "Partnerships",
    "Events",
]

# Bounds of the Numeric(12, 2) cost column and the 32-bit potential column.
COST_MAX_DIGITS = 12
COST_DECIMAL_PLACES = 2
POTENTIAL_MIN = -(2**31)
POTENTIAL_MAX = 2**31 - 1

FIELD_LABELS = {
    "name": "Idea name",
    "description": "Description",
    "marketing_strategy": "Marketing strategy",
    "target_customer": "Target customer",
    "estimated_cost": "Estimated cost",
    "timeline": "Timeline",
    "potential": "Potential",
    "min_cost": "Minimum cost",
    "max_cost": "Maximum cost",
    "min_potential": "Minimum potential",
}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _first_error_message(exc: PydanticValidationError) -> str:
    """Turn the first pydantic error into a sentence fit for a flash message."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else ""
    label = FIELD_LABELS.get(field, field.replace("_", " ").capitalize())
    msg = error["msg"]
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{label}: {msg}" if label else msg


class IdeaForm(BaseModel):
    """Fields submitted on the add / edit idea form."""

    name: str
    description: str
    marketing_strategy: List[str] = []
    target_customer: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(
        None, ge=0, max_digits=COST_MAX_DIGITS, decimal_places=COST_DECIMAL_PLACES
    )
    timeline: Optional[str] = None
    potential: Optional[int] = Field(None, ge=POTENTIAL_MIN, le=POTENTIAL_MAX)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> str:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", "description")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("is required")
        return value

    @field_validator("target_customer", "timeline", "estimated_cost", "potential", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("marketing_strategy", mode="before")
    @classmethod
    def _normalise_tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        tags: List[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @classmethod
    def parse(cls, **raw: Any) -> "IdeaForm":
        """Build the form record, raising the tracker's ``ValidationError``."""
        try:
            return cls(**raw)
        except PydanticValidationError as exc:
            raise ValidationError(_first_error_message(exc)) from exc


class IdeaFilters(BaseModel):
    """Optional, conjunctive filters for the idea listing."""

    name: Optional[str] = None
    marketing_strategy: Optional[str] = None
    target_customer: Optional[str] = None
    min_cost: Optional[Decimal] = Field(
        None, ge=0, max_digits=COST_MAX_DIGITS, decimal_places=COST_DECIMAL_PLACES
    )
    max_cost: Optional[Decimal] = Field(
        None, ge=0, max_digits=COST_MAX_DIGITS, decimal_places=COST_DECIMAL_PLACES
    )
    min_potential: Optional[int] = Field(None, ge=POTENTIAL_MIN, le=POTENTIAL_MAX)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @classmethod
    def parse(cls, **raw: Any) -> "IdeaFilters":
        try:
            return cls(**raw)
        except PydanticValidationError as exc:
            raise ValidationError(_first_error_message(exc)) from exc

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())

    def as_query(self) -> Dict[str, str]:
        """Active filters as strings, used to re-populate the filter form."""
        return {
            key: str(value)
            for key, value in self.model_dump().items()
            if value is not None
        }
