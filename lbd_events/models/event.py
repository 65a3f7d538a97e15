from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from lbd_events.models.common import decode_timestamp, encode_timestamp
from lbd_events.services.uploads import ImageValidationError, is_http_url, validate_image_url

EventCategory = Literal["conference", "meetup", "hackathon", "workshop", "x-space"]
LocationType = Literal["physical", "virtual"]

EVENT_CATEGORIES: tuple[str, ...] = get_args(EventCategory)

# Fixed stats record used before stats became a free-form list.
LEGACY_STAT_KEYS = ("attendees", "engagement", "feedback")

class EventValidationError(ValueError):
    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(CamelModel):
    type: LocationType = "physical"
    details: str = ""


class StatItem(CamelModel):
    title: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


def adapt_legacy_stats(value: Any) -> Any:
    """Decode stats written as ``{attendees, engagement, feedback}`` into the list shape."""
    if value is None:
        return []
    if not isinstance(value, dict):
        return value
    ordered_keys = [key for key in LEGACY_STAT_KEYS if key in value]
    ordered_keys += [key for key in value if key not in LEGACY_STAT_KEYS]
    return [
        {"title": key, "value": str(value[key])}
        for key in ordered_keys
        if value[key] is not None and str(value[key]) != ""
    ]


def is_legacy_stats(value: Any) -> bool:
    return isinstance(value, dict)


def _normalize_datetime(value: Any) -> Any:
    if isinstance(value, datetime):
        return encode_timestamp(value)
    return value


def check_gallery_urls(value: list[str] | None) -> list[str] | None:
    if value is None:
        return value
    for url in value:
        try:
            validate_image_url(url)
        except ImageValidationError as exc:
            raise ValueError(f"{url}: {exc.message}") from exc
    return [url.strip() for url in value]


def check_album_url(value: str | None) -> str | None:
    # Blank means "no album"; the repository removes the field.
    if value is None or not value.strip():
        return value
    try:
        validate_image_url(value)
    except ImageValidationError as exc:
        raise ValueError(exc.message) from exc
    return value.strip()


def check_event_invariants(
    *,
    title: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    location_details: str | None,
    registration_link: str | None,
) -> list[str]:
    errors: list[str] = []
    if not title or not title.strip():
        errors.append("title is required")
    if start_date is None:
        errors.append("startDate is required")
    if end_date is None:
        errors.append("endDate is required")
    if start_date is not None and end_date is not None and end_date <= start_date:
        errors.append("endDate must be after startDate")
    if not location_details or not location_details.strip():
        errors.append("location.details is required")
    if not registration_link or not is_http_url(registration_link):
        errors.append("registrationLink must be a valid URL")
    return errors


class EventDraft(CamelModel):
    title: str
    banner_url: str = ""
    category: EventCategory = "conference"
    description: str = ""
    start_date: datetime
    end_date: datetime
    location: Location
    registration_link: str
    gallery: list[str] = Field(default_factory=list)
    album_url: str | None = None
    stats: list[StatItem] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        return _normalize_datetime(value)

    @field_validator("gallery")
    @classmethod
    def validate_gallery(cls, value):
        return check_gallery_urls(value)

    @field_validator("album_url")
    @classmethod
    def validate_album_url(cls, value):
        return check_album_url(value)

    @model_validator(mode="after")
    def validate_invariants(self):
        self.ensure_valid()
        return self

    def ensure_valid(self) -> None:
        errors = check_event_invariants(
            title=self.title,
            start_date=self.start_date,
            end_date=self.end_date,
            location_details=self.location.details,
            registration_link=self.registration_link,
        )
        if errors:
            raise EventValidationError(errors)

    def to_document(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["startDate"] = encode_timestamp(self.start_date)
        data["endDate"] = encode_timestamp(self.end_date)
        return data


class EventPatch(CamelModel):
    title: str | None = None
    banner_url: str | None = None
    category: EventCategory | None = None
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: Location | None = None
    registration_link: str | None = None
    gallery: list[str] | None = None
    album_url: str | None = None
    stats: list[StatItem] | None = None
    tags: list[str] | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        return _normalize_datetime(value)

    @field_validator("gallery")
    @classmethod
    def validate_gallery(cls, value):
        return check_gallery_urls(value)

    @field_validator("album_url")
    @classmethod
    def validate_album_url(cls, value):
        return check_album_url(value)

    @model_validator(mode="after")
    def validate_provided_fields(self):
        errors: list[str] = []
        for name in self.model_fields_set:
            if name != "album_url" and getattr(self, name) is None:
                errors.append(f"{to_camel(name)} cannot be null")
        if "title" in self.model_fields_set and self.title is not None and not self.title.strip():
            errors.append("title is required")
        if self.location is not None and not self.location.details.strip():
            errors.append("location.details is required")
        if self.registration_link is not None and not is_http_url(self.registration_link):
            errors.append("registrationLink must be a valid URL")
        if self.start_date is not None and self.end_date is not None and self.end_date <= self.start_date:
            errors.append("endDate must be after startDate")
        if errors:
            raise EventValidationError(errors)
        return self

    def check_against(self, event: "Event") -> None:
        """Check the date invariant once merged with the stored record."""
        start_date = self.start_date or event.start_date
        end_date = self.end_date or event.end_date
        if end_date <= start_date:
            raise EventValidationError(["endDate must be after startDate"])

    def to_document(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        for key in ("startDate", "endDate"):
            if data.get(key) is not None:
                data[key] = encode_timestamp(data[key])
        return data


class Event(CamelModel):
    id: str
    title: str
    banner_url: str = ""
    category: EventCategory
    description: str = ""
    start_date: datetime
    end_date: datetime
    location: Location
    registration_link: str = ""
    gallery: list[str] = Field(default_factory=list)
    album_url: str | None = None
    stats: list[StatItem] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("start_date", "end_date", "created_at", "updated_at", mode="before")
    @classmethod
    def decode_dates(cls, value: Any) -> Any:
        if value is None:
            return value
        return decode_timestamp(value)

    @field_validator("stats", mode="before")
    @classmethod
    def decode_stats(cls, value: Any) -> Any:
        return adapt_legacy_stats(value)

    @field_validator("gallery", "tags", mode="before")
    @classmethod
    def default_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def known_keys(cls) -> set[str]:
        return {field.alias or name for name, field in cls.model_fields.items()}

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Event":
        known = cls.known_keys()
        payload = {key: value for key, value in data.items() if key in known and key not in ("id", "extensions")}
        extensions = {key: value for key, value in data.items() if key not in known}
        return cls.model_validate({**payload, "id": doc_id, "extensions": extensions})
