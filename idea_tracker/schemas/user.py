"""User Pydantic schemas — registration, login, public display."""

from typing import Any, Optional

from pydantic import BaseModel, EmailStr, ValidationError as PydanticValidationError, field_validator

from idea_tracker.errors import ValidationError


class UserCreate(BaseModel):
    """Fields submitted on the registration form."""
    username: str
    password: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("username", "password")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("is required")
        return value

    @classmethod
    def parse(cls, **raw: Any) -> "UserCreate":
        try:
            return cls(**raw)
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = str(error["loc"][0]).replace("_", " ").capitalize() if error["loc"] else ""
            msg = error["msg"].removeprefix("Value error, ")
            raise ValidationError(f"{field}: {msg}") from exc


class UserLogin(BaseModel):
    """Fields submitted on the login form."""
    username: str
    password: str


class UserOut(BaseModel):
    """Display fields for owners and collaborators."""
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"from_attributes": True}

    @property
    def display_name(self) -> str:
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.username
