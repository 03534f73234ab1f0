"""Form models for the login, sign-up, day-marking and daily-rate inputs."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator, model_validator

from calc import WorkdayEntry

MIN_PASSWORD_LENGTH = 6


class LoginForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class SignupForm(LoginForm):
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self


class WorkdayForm(BaseModel):
    """A date plus an optional rate overriding the default for that day."""

    day: date
    rate: Optional[float] = Field(default=None, ge=0)

    @field_validator("rate", mode="before")
    @classmethod
    def blank_rate_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_entry(self) -> WorkdayEntry:
        return WorkdayEntry(worked=True, rate=self.rate)


class DailyRateForm(BaseModel):
    rate: float = Field(ge=0)


FIELD_LABELS = {
    "email": "Email",
    "password": "Password",
    "confirm_password": "Confirm password",
    "day": "Date",
    "rate": "Rate",
}


def validation_messages(exc: ValidationError) -> List[str]:
    """Flatten a ValidationError into one readable line per problem."""
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        msg = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        msg = msg.removeprefix("Value error, ")
        if loc:
            label = FIELD_LABELS.get(loc[0], loc[0])
            messages.append(f"{label}: {msg}")
        else:
            messages.append(msg)
    return messages
