"""
Form validation for everything a victim or rescuer types into the app.

The priority engine accepts any input; this module is the only layer that
rejects it.
"""
import re
from typing import Dict, Optional

from pydantic import BaseModel, ValidationError, field_validator

_PHONE_NOISE = re.compile(r"[\s\-\(\)]")
_PHONE = re.compile(r"^\d{10}$")
_EMAIL = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.I)

MAX_AGE = 120


def _required(value: str, message: str) -> str:
    if not value:
        raise ValueError(message)
    return value


class SOSForm(BaseModel):
    name: str
    age: int
    phone: str
    description: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    accuracy: Optional[float] = None  # GPS accuracy radius, metres

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        _required(v, "Name is required")
        if len(v) > 100:
            raise ValueError("Name must be less than 100 characters")
        return v

    @field_validator("age", mode="before")
    @classmethod
    def _age(cls, v):
        text = str(v).strip() if v is not None else ""
        _required(text, "Age is required")
        if not re.fullmatch(r"[+-]?\d+", text):
            raise ValueError("Age must be a whole number")
        age = int(text)
        if not 0 <= age <= MAX_AGE:
            raise ValueError(f"Age must be between 0 and {MAX_AGE}")
        return age

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        _required(v, "Phone number is required")
        digits = _PHONE_NOISE.sub("", v)
        if not _PHONE.match(digits):
            raise ValueError("Phone must be exactly 10 digits")
        return digits

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        _required(v, "Please describe your emergency")
        if len(v) > 2000:
            raise ValueError("Description must be less than 2000 characters")
        return v


class RumourForm(BaseModel):
    rumour_text: str
    source: Optional[str] = None

    @field_validator("rumour_text")
    @classmethod
    def _rumour_text(cls, v: str) -> str:
        _required(v, "Please enter a rumour to verify")
        if len(v) > 1000:
            raise ValueError("Rumour must be less than 1000 characters")
        return v

    @field_validator("source")
    @classmethod
    def _source(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 500:
            raise ValueError("Source must be less than 500 characters")
        return v or None


class RescuerLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if not _EMAIL.match(v.strip()):
            raise ValueError("Invalid email address")
        return v.strip()

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _required(v, "Password is required")


def first_error_messages(exc: ValidationError) -> Dict[str, str]:
    """Flatten a ValidationError into {field: first message}."""
    messages: Dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        msg = err["msg"]
        # pydantic prefixes messages raised from validators.
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.setdefault(field, msg)
    return messages
