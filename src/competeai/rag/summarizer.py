"""Short AI summaries of individual trials, companies and news articles."""

import logging

from competeai.exceptions import InvalidQueryError
from competeai.models.content import Company, ContentRecord, ContentType, NewsArticle, Trial
from competeai.rag.completion import EMPTY_COMPLETION, CompletionClient
from competeai.rag.prompts import (
    COMPANY_SUMMARY_TEMPLATE,
    NEWS_SUMMARY_TEMPLATE,
    SUMMARY_MAX_TOKENS,
    SUMMARY_SYSTEM_PROMPTS,
    SUMMARY_TEMPERATURE,
    TRIAL_SUMMARY_TEMPLATE,
)

logger = logging.getLogger(__name__)

SUMMARY_FAILED = "Summary generation failed"
SUMMARIZABLE_TYPES = (ContentType.TRIAL, ContentType.COMPANY, ContentType.NEWS)


def build_summary_prompt(record: ContentRecord) -> str:
    match record:
        case Trial():
            return TRIAL_SUMMARY_TEMPLATE.format(
                title=record.title,
                phase=record.phase or "Not specified",
                status=record.status or "Unknown",
                sponsor=record.sponsor or "Unknown",
                conditions=", ".join(record.conditions) if record.conditions else "Not specified",
                study_type=record.study_type or "Not specified",
                enrollment=(
                    f"{record.enrollment_count} participants"
                    if record.enrollment_count
                    else "Not specified"
                ),
            )
        case Company():
            return COMPANY_SUMMARY_TEMPLATE.format(
                name=record.name,
                headquarters=record.headquarters or "Unknown",
                therapy_areas=", ".join(record.therapy_areas) if record.therapy_areas else "Not specified",
                company_type=record.company_type or "Not specified",
                trial_count=record.trial_count or 0,
                news_count=record.news_count or 0,
            )
        case NewsArticle():
            return NEWS_SUMMARY_TEMPLATE.format(
                title=record.title,
                source=record.source or "Unknown",
                description=record.description or "No description available",
            )
        case _:
            raise InvalidQueryError(
                'Invalid summary type. Must be "trial", "company", or "news"'
            )


class Summarizer:
    """Writes bullet-point summaries with the completion provider."""

    def __init__(self, completion: CompletionClient):
        self.completion = completion

    async def summarize(self, record: ContentRecord) -> str:
        """Summarize one record.

        Raises:
            InvalidQueryError: If the record type cannot be summarized
            ConfigurationMissingError: If the provider credential is absent
            ProviderCallError: If the completion call fails
        """
        prompt = build_summary_prompt(record)
        content_type = record.content_type

        self.completion.ensure_configured()
        result = await self.completion.complete(
            SUMMARY_SYSTEM_PROMPTS[content_type],
            prompt,
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS[content_type],
        )
        logger.debug(f"Summarized {content_type.value}/{record.content_id}")
        if result.text == EMPTY_COMPLETION:
            return SUMMARY_FAILED
        return result.text
