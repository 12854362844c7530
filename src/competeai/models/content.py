"""Domain record models that feed the embedding index.

Each content type has its own dataclass; ``ContentRecord`` is the union of
all of them and is what the formatter and summarizer dispatch on.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Union


class ContentType(str, Enum):
    """Type of content held in the embedding index."""

    TRIAL = "trial"
    COMPANY = "company"
    NEWS = "news"
    INDICATION = "indication"


@dataclass
class Trial:
    """A clinical trial from the registry."""

    content_type: ClassVar[ContentType] = ContentType.TRIAL

    nct_id: str
    title: str | None = None
    phase: str | None = None
    status: str | None = None
    conditions: list[str] = field(default_factory=list)
    interventions: list[str] = field(default_factory=list)
    sponsor_name: str | None = None
    company_name: str | None = None
    brief_summary: str | None = None
    study_type: str | None = None
    enrollment_count: int | None = None

    @property
    def content_id(self) -> str:
        return self.nct_id

    @property
    def sponsor(self) -> str | None:
        """Sponsor as registered, falling back to the linked company."""
        return self.sponsor_name or self.company_name

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "status": self.status,
            "sponsor": self.sponsor,
            "conditions": self.conditions,
        }


@dataclass
class Company:
    """A pharmaceutical company."""

    content_type: ClassVar[ContentType] = ContentType.COMPANY

    slug: str
    name: str
    headquarters: str | None = None
    therapy_areas: list[str] = field(default_factory=list)
    website: str | None = None
    company_type: str | None = None
    trial_count: int = 0
    news_count: int = 0

    @property
    def content_id(self) -> str:
        return self.slug

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "headquarters": self.headquarters,
            "therapyAreas": self.therapy_areas,
        }


@dataclass
class NewsArticle:
    """An industry news article."""

    content_type: ClassVar[ContentType] = ContentType.NEWS

    id: int | str
    title: str
    source: str | None = None
    summary: str | None = None
    description: str | None = None
    category: str | None = None
    published_date: datetime | None = None
    source_url: str | None = None

    @property
    def content_id(self) -> str:
        return str(self.id)

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "source": self.source,
            "category": self.category,
            "publishedDate": self.published_date.isoformat() if self.published_date else None,
            "sourceUrl": self.source_url,
        }


@dataclass
class Indication:
    """A therapeutic indication with aggregate report and trial counts."""

    content_type: ClassVar[ContentType] = ContentType.INDICATION

    slug: str
    name: str
    category: str | None = None
    description: str | None = None
    total_reports: int = 0
    total_trials: int = 0

    @property
    def content_id(self) -> str:
        return self.slug

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "totalReports": self.total_reports,
            "totalTrials": self.total_trials,
        }


ContentRecord = Union[Trial, Company, NewsArticle, Indication]

RECORD_TYPES: dict[ContentType, type] = {
    ContentType.TRIAL: Trial,
    ContentType.COMPANY: Company,
    ContentType.NEWS: NewsArticle,
    ContentType.INDICATION: Indication,
}


def parse_content_type(value: ContentType | str) -> ContentType:
    """Normalize a content type name.

    Raises:
        ValueError: If the name is not a known content type
    """
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(value.strip().lower())
    except ValueError:
        valid = [t.value for t in ContentType]
        raise ValueError(f"Invalid content type '{value}'. Must be one of: {', '.join(valid)}")


def record_from_dict(content_type: ContentType | str, data: dict[str, Any]) -> ContentRecord:
    """Build a domain record from a plain dict, ignoring unknown keys.

    Raises:
        ValueError: If the content type is unknown or required fields are missing
    """
    record_cls = RECORD_TYPES[parse_content_type(content_type)]
    known = {f.name for f in fields(record_cls)}
    try:
        return record_cls(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ValueError(f"Invalid {record_cls.__name__} data: {e}") from e
