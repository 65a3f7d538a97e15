from typing import Any

from pydantic import EmailStr, Field, field_validator

from lbd_events.models.admin import AdminProfile
from lbd_events.models.event import CamelModel


class AdminOut(AdminProfile):
    pass


class AdminCreateRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class AdminCreateResponse(CamelModel):
    id: str
    email_sent: bool
    message: str


class AdminStatusRequest(CamelModel):
    is_active: bool
    confirm: bool = False


class CredentialsEmailRequest(CamelModel):
    email: EmailStr
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
