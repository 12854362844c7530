"""Content formatter for the embedding index.

Turns a domain record into the canonical text block that gets embedded.
Every labelled line is always present; missing values render as a
placeholder so records of one type share the same textual shape.
"""

from typing import Optional

from competeai.models.content import (
    Company,
    ContentRecord,
    ContentType,
    Indication,
    NewsArticle,
    Trial,
    parse_content_type,
)

NOT_SPECIFIED = "Not specified"
UNKNOWN = "Unknown"


def _value(value: Optional[object], placeholder: str = NOT_SPECIFIED) -> str:
    if value is None:
        return placeholder
    text = str(value).strip()
    return text or placeholder


def _joined(values: Optional[list[str]], placeholder: str = NOT_SPECIFIED) -> str:
    items = [str(v).strip() for v in values or [] if v and str(v).strip()]
    return ", ".join(items) if items else placeholder


def format_trial(trial: Trial) -> str:
    return "\n".join(
        [
            f"Clinical Trial: {_value(trial.title, 'Untitled')}",
            f"Phase: {_value(trial.phase)}",
            f"Status: {_value(trial.status, UNKNOWN)}",
            f"Condition: {_joined(trial.conditions)}",
            f"Intervention: {_joined(trial.interventions)}",
            f"Sponsor: {_value(trial.sponsor, UNKNOWN)}",
            f"Summary: {_value(trial.brief_summary)}",
        ]
    )


def format_company(company: Company) -> str:
    return "\n".join(
        [
            f"Pharmaceutical Company: {_value(company.name, UNKNOWN)}",
            f"Headquarters: {_value(company.headquarters, UNKNOWN)}",
            f"Therapy Areas: {_joined(company.therapy_areas)}",
            f"Website: {_value(company.website, 'N/A')}",
        ]
    )


def format_news(article: NewsArticle) -> str:
    return "\n".join(
        [
            f"News Article: {_value(article.title, 'Untitled')}",
            f"Source: {_value(article.source, UNKNOWN)}",
            f"Summary: {_value(article.summary)}",
            f"Description: {_value(article.description)}",
        ]
    )


def format_indication(indication: Indication) -> str:
    return "\n".join(
        [
            f"Indication: {_value(indication.name, UNKNOWN)}",
            f"Therapeutic Area: {_value(indication.category, UNKNOWN)}",
            f"Description: {_value(indication.description)}",
            f"Total Reports: {indication.total_reports or 0}",
            f"Total Trials: {indication.total_trials or 0}",
        ]
    )


def format_content(
    record: ContentRecord,
    content_type: Optional[ContentType | str] = None,
) -> str:
    """Format a domain record for embedding.

    Args:
        record: Trial, Company, NewsArticle or Indication
        content_type: Expected content type; checked against the record when given

    Returns:
        Canonical text block, one labelled line per attribute

    Raises:
        ValueError: If content_type does not match the record
        TypeError: If the record is not a known content type
    """
    if content_type is not None:
        expected = parse_content_type(content_type)
        actual = getattr(record, "content_type", None)
        if actual != expected:
            raise ValueError(
                f"Record of type {type(record).__name__} cannot be formatted as '{expected.value}'"
            )

    match record:
        case Trial():
            return format_trial(record)
        case Company():
            return format_company(record)
        case NewsArticle():
            return format_news(record)
        case Indication():
            return format_indication(record)
        case _:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")
