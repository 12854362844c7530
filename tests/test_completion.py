"""Tests for the completion client and summarizer."""

from unittest.mock import AsyncMock

import httpx
import pytest
from openai import APIConnectionError

from competeai.exceptions import (
    CompletionFailed,
    ConfigurationMissingError,
    InvalidQueryError,
)
from competeai.models.content import Company, Indication, NewsArticle, Trial
from competeai.rag.completion import EMPTY_COMPLETION, CompletionClient
from competeai.rag.summarizer import SUMMARY_FAILED, Summarizer, build_summary_prompt

from conftest import completion_response, make_settings, mock_openai_client


class TestCompletionClient:
    """Tests for CompletionClient."""

    @pytest.mark.asyncio
    async def test_complete_returns_text_usage_and_cost(self, settings):
        client = mock_openai_client(complete=completion_response("Answer", 1_000_000, 1_000_000))
        completion = CompletionClient(settings, client=client)

        result = await completion.complete("system", "user", temperature=0.2, max_tokens=500)

        assert result.text == "Answer"
        assert result.model == "gpt-4o-mini"
        assert result.usage.input == 1_000_000
        assert result.usage.output == 1_000_000
        assert result.estimated_cost == pytest.approx(0.75)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 500
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["messages"][1] == {"role": "user", "content": "user"}

    @pytest.mark.asyncio
    async def test_deepseek_provider(self):
        settings = make_settings(deepseek_api_key="ds-test")
        client = mock_openai_client(complete=completion_response("ok", 2_000_000, 0))
        completion = CompletionClient(settings, provider="deepseek", client=client)

        result = await completion.complete("s", "u")

        assert result.model == "deepseek-chat"
        assert completion.config.base_url == "https://api.deepseek.com"
        assert result.estimated_cost == pytest.approx(0.28)

    @pytest.mark.asyncio
    async def test_empty_content_uses_placeholder(self, settings):
        client = mock_openai_client(complete=completion_response(""))
        completion = CompletionClient(settings, client=client)

        result = await completion.complete("s", "u")
        assert result.text == EMPTY_COMPLETION

    def test_missing_key(self):
        completion = CompletionClient(make_settings(), provider="deepseek")
        assert completion.is_configured is False
        with pytest.raises(ConfigurationMissingError):
            completion.ensure_configured()

    def test_unknown_provider(self, settings):
        with pytest.raises(ValueError):
            CompletionClient(settings, provider="anthropic-ish")

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, settings):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client = mock_openai_client()
        client.chat.completions.create = AsyncMock(side_effect=APIConnectionError(request=request))
        completion = CompletionClient(settings, client=client)

        with pytest.raises(CompletionFailed) as exc_info:
            await completion.complete("s", "u")
        assert exc_info.value.provider == "OpenAI GPT-4o-mini"


class TestSummarizer:
    """Tests for record summaries."""

    def test_trial_prompt(self):
        prompt = build_summary_prompt(
            Trial(nct_id="NCT1", title="Study A", phase="Phase 2", enrollment_count=120)
        )
        assert prompt.startswith("Summarize this clinical trial in 3 concise bullet points:")
        assert "Phase: Phase 2" in prompt
        assert "Status: Unknown" in prompt
        assert "Enrollment: 120 participants" in prompt

    def test_company_prompt(self):
        prompt = build_summary_prompt(
            Company(slug="acme", name="Acme", therapy_areas=["Oncology"], trial_count=4)
        )
        assert "Company: Acme" in prompt
        assert "Therapy Areas: Oncology" in prompt
        assert "Active Trials: 4" in prompt

    def test_news_prompt(self):
        prompt = build_summary_prompt(NewsArticle(id=1, title="Deal signed"))
        assert "2 concise bullet points" in prompt
        assert "Description: No description available" in prompt

    def test_indication_not_summarizable(self):
        with pytest.raises(InvalidQueryError):
            build_summary_prompt(Indication(slug="x", name="X"))

    @pytest.mark.asyncio
    async def test_summarize_uses_type_budget(self, settings):
        client = mock_openai_client(complete=completion_response("- point one\n- point two"))
        summarizer = Summarizer(CompletionClient(settings, client=client))

        summary = await summarizer.summarize(NewsArticle(id=1, title="Deal signed"))

        assert summary == "- point one\n- point two"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 150
        assert kwargs["temperature"] == 0.3
        assert "news summaries" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_summarize_empty_output(self, settings):
        client = mock_openai_client(complete=completion_response(""))
        summarizer = Summarizer(CompletionClient(settings, client=client))

        summary = await summarizer.summarize(Trial(nct_id="NCT1", title="Study"))
        assert summary == SUMMARY_FAILED
