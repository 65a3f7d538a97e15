from datetime import datetime
from typing import Any, Literal

from pydantic import EmailStr, field_validator

from lbd_events.models.common import decode_timestamp
from lbd_events.models.event import CamelModel


class AdminProfile(CamelModel):
    """Mirror of a Firebase Auth identity, stored under ``users/{uid}``."""

    id: str
    username: str
    email: EmailStr
    role: Literal["admin"] = "admin"
    is_active: bool = False
    created_at: datetime | None = None

    @field_validator("created_at", mode="before")
    @classmethod
    def decode_created_at(cls, value: Any) -> Any:
        if value is None:
            return value
        return decode_timestamp(value)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "AdminProfile":
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
