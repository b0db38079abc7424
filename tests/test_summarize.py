"""Tests for map-reduce summarization."""

import json
import threading
import time
from typing import Any

import pytest

from meeting_summary.config import Settings
from meeting_summary.summarize.map_reduce import (
    DEFAULT_TITLE,
    SummarizationError,
    SummarizeOptions,
    aggregate,
    aggregate_structured,
    count_tokens,
    generate_title,
    summarize_chunks,
    summarize_transcript,
)
from meeting_summary.summarize.provider import CompletionOptions, ProviderError
from meeting_summary.summarize.schema import SUMMARY_OUTPUT_SCHEMA


class FakeProvider:
    """Records calls and answers chunk, aggregate and title prompts."""

    def __init__(
        self,
        aggregate_response: str = "Key Points:\n- Budget approved\n\nNext Steps:\n- Ship it",
        fail_on: str | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.aggregate_response = aggregate_response
        self.fail_on = fail_on
        self.delays = delays or {}
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        options: CompletionOptions,
        json_schema: dict[str, Any] | None = None,
    ) -> str:
        with self._lock:
            self.calls.append(
                {
                    "system": system_prompt,
                    "user": user_prompt,
                    "options": options,
                    "json_schema": json_schema,
                }
            )

        if user_prompt.startswith("Summarize the following meeting transcript section"):
            chunk = user_prompt.split("\n\n", 1)[1]
            for marker, delay in self.delays.items():
                if marker in chunk:
                    time.sleep(delay)
            if self.fail_on is not None and self.fail_on in chunk:
                raise ProviderError("rate limited")
            return f"partial<{chunk[:3]}>"

        if user_prompt.startswith("Generate a title"):
            return ' "Quarterly Budget Review" '

        return self.aggregate_response

    def chunk_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if "transcript section" in c["user"]]

    def aggregate_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["user"].startswith("Summarize the following meeting transcript into")]


def _transcript(count: int = 60, length: int = 98) -> str:
    return ". ".join(chr(ord("a") + (i // 25)) * length for i in range(count))


class TestCountTokens:
    """Tests for token counting."""

    def test_counts_tokens(self) -> None:
        count = count_tokens("Hello, world!")
        assert 0 < count < 10

    def test_unknown_model_falls_back(self) -> None:
        assert count_tokens("Hello", model="not-a-real-model") > 0


class TestSummarizeOptions:
    """Tests for SummarizeOptions."""

    def test_defaults(self) -> None:
        opts = SummarizeOptions()
        assert opts.max_chars == 2500
        assert opts.split_mode == "simple"
        assert opts.chunk_model == "gpt-3.5-turbo"
        assert opts.aggregate_model == "gpt-4"
        assert opts.structured_output is False

    def test_from_settings_with_overrides(self) -> None:
        settings = Settings(_env_file=None, max_chars=1000, aggregate_model="gpt-4o")
        opts = SummarizeOptions.from_settings(settings, max_chars=None, chunk_model="gpt-4o-mini")
        assert opts.max_chars == 1000
        assert opts.aggregate_model == "gpt-4o"
        assert opts.chunk_model == "gpt-4o-mini"


class TestSummarizeChunks:
    """Tests for the concurrent map phase."""

    def test_order_matches_chunks(self) -> None:
        # First chunk finishes last
        provider = FakeProvider(delays={"aaa": 0.2})
        chunks = ["aaa chunk", "bbb chunk", "ccc chunk"]

        partials = summarize_chunks(provider, chunks, SummarizeOptions(max_workers=3))

        assert partials == ["partial<aaa>", "partial<bbb>", "partial<ccc>"]

    def test_empty_chunks(self) -> None:
        provider = FakeProvider()
        assert summarize_chunks(provider, [], SummarizeOptions()) == []
        assert provider.calls == []

    def test_uses_chunk_model_and_temperature(self) -> None:
        provider = FakeProvider()
        summarize_chunks(provider, ["xyz"], SummarizeOptions(chunk_model="m1", temperature=0.2))

        options = provider.calls[0]["options"]
        assert options.model == "m1"
        assert options.temperature == 0.2
        assert "xyz" in provider.calls[0]["user"]

    def test_failure_names_chunk(self) -> None:
        provider = FakeProvider(fail_on="bbb")
        with pytest.raises(SummarizationError, match="chunk 2/3"):
            summarize_chunks(provider, ["aaa", "bbb", "ccc"], SummarizeOptions())


class TestAggregate:
    """Tests for the reduce phase."""

    def test_empty_partials_skip_provider(self) -> None:
        provider = FakeProvider()
        assert aggregate(provider, [], SummarizeOptions()) == ""
        assert provider.calls == []

    def test_joins_with_blank_lines(self) -> None:
        provider = FakeProvider()
        raw = aggregate(provider, ["one", "two", "three"], SummarizeOptions())

        assert raw.startswith("Key Points:")
        assert len(provider.calls) == 1
        assert "one\n\ntwo\n\nthree" in provider.calls[0]["user"]
        assert provider.calls[0]["options"].model == "gpt-4"

    def test_structured_requests_schema(self) -> None:
        provider = FakeProvider(
            aggregate_response=json.dumps({"key_points": "- a", "next_steps": "- b"})
        )
        result = aggregate_structured(provider, ["one"], SummarizeOptions())

        assert result.key_points == "- a"
        assert result.next_steps == "- b"
        assert provider.calls[0]["json_schema"] == SUMMARY_OUTPUT_SCHEMA

    def test_structured_falls_back_to_markers(self) -> None:
        provider = FakeProvider(aggregate_response="Key Points:\n- a\n\nNext Steps:\n- b")
        result = aggregate_structured(provider, ["one"], SummarizeOptions())

        assert result.key_points == "- a"
        assert result.next_steps == "- b"

    def test_structured_empty_partials(self) -> None:
        provider = FakeProvider()
        assert aggregate_structured(provider, [], SummarizeOptions()).is_empty()
        assert provider.calls == []

    def test_structured_rejected_uses_plain_prompt(self) -> None:
        class NoSchemaProvider(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                if json_schema is not None:
                    super().complete(system_prompt, user_prompt, options, json_schema)
                    raise ProviderError("response_format json_schema not supported")
                return super().complete(system_prompt, user_prompt, options, json_schema)

        provider = NoSchemaProvider(aggregate_response="Key Points:\n- a\n\nNext Steps:\n- b")
        result = aggregate_structured(provider, ["one"], SummarizeOptions())

        assert result.key_points == "- a"
        assert result.next_steps == "- b"
        assert [c["json_schema"] is not None for c in provider.aggregate_calls()] == [True, False]


class TestSummarizeTranscript:
    """End-to-end tests with a fake provider."""

    def test_three_chunk_transcript(self) -> None:
        provider = FakeProvider()
        text = _transcript()

        result = summarize_transcript(text, provider, SummarizeOptions(max_chars=2500))

        assert len(provider.chunk_calls()) == 3
        aggregate_calls = provider.aggregate_calls()
        assert len(aggregate_calls) == 1
        assert "partial<aaa>\n\npartial<bbb>\n\npartial<ccc>" in aggregate_calls[0]["user"]
        assert result.key_points == "- Budget approved"
        assert result.next_steps == "- Ship it"

    def test_empty_transcript(self) -> None:
        provider = FakeProvider()
        result = summarize_transcript("", provider)

        assert result.key_points == ""
        assert result.next_steps == ""
        assert provider.calls == []

    def test_no_next_steps(self) -> None:
        provider = FakeProvider(aggregate_response="Key Points:\nOnly this")
        result = summarize_transcript("We talked. Nothing else", provider)

        assert result.key_points == "Only this"
        assert result.next_steps == ""

    def test_chunk_failure_skips_aggregate(self) -> None:
        provider = FakeProvider(fail_on="bbb")

        with pytest.raises(SummarizationError) as exc_info:
            summarize_transcript(_transcript(), provider, SummarizeOptions(max_chars=2500))

        assert isinstance(exc_info.value.__cause__, ProviderError)
        assert provider.aggregate_calls() == []

    def test_aggregate_failure_wrapped(self) -> None:
        class FailingAggregate(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                if "into two parts" in user_prompt:
                    raise ProviderError("quota exceeded")
                return super().complete(system_prompt, user_prompt, options, json_schema)

        with pytest.raises(SummarizationError, match="quota exceeded"):
            summarize_transcript("Some text. More text", FailingAggregate())

    def test_invalid_max_chars(self) -> None:
        provider = FakeProvider()
        with pytest.raises(SummarizationError, match="max_chars"):
            summarize_transcript("text", provider, SummarizeOptions(max_chars=0))
        assert provider.calls == []

    def test_structured_output(self) -> None:
        provider = FakeProvider(
            aggregate_response=json.dumps({"key_points": "- a", "next_steps": ""})
        )
        result = summarize_transcript(
            "Short meeting", provider, SummarizeOptions(structured_output=True)
        )

        assert result.key_points == "- a"
        assert result.next_steps == ""
        assert provider.aggregate_calls()[0]["json_schema"] is not None

    def test_unexpected_chunk_error_wrapped(self) -> None:
        class Broken(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                raise RuntimeError("boom")

        with pytest.raises(SummarizationError, match="chunk 1/1") as exc_info:
            summarize_transcript("a. b", Broken())

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_unexpected_aggregate_error_wrapped(self) -> None:
        class BrokenAggregate(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                if "into two parts" in user_prompt:
                    raise RuntimeError("connection reset")
                return super().complete(system_prompt, user_prompt, options, json_schema)

        with pytest.raises(SummarizationError, match="Failed to combine") as exc_info:
            summarize_transcript("Some text. More text", BrokenAggregate())

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_blank_chunks_skipped(self) -> None:
        provider = FakeProvider()
        summarize_transcript("aaaa. . bbbb", provider, SummarizeOptions(max_chars=5))

        chunks = [c["user"].split("\n\n", 1)[1] for c in provider.chunk_calls()]
        assert sorted(chunks) == ["aaaa", "bbbb"]
        assert "partial<aaa>\n\npartial<bbb>" in provider.aggregate_calls()[0]["user"]

    def test_structured_output_rejected_by_model(self) -> None:
        class NoSchemaProvider(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                if json_schema is not None:
                    raise ProviderError("API call rejected: invalid response_format")
                return super().complete(system_prompt, user_prompt, options, json_schema)

        result = summarize_transcript(
            "Short meeting", NoSchemaProvider(), SummarizeOptions(structured_output=True)
        )

        assert result.key_points == "- Budget approved"
        assert result.next_steps == "- Ship it"


class TestGenerateTitle:
    """Tests for title generation."""

    def test_generates_title(self) -> None:
        provider = FakeProvider()
        assert generate_title("We reviewed the budget.", provider) == "Quarterly Budget Review"

        options = provider.calls[0]["options"]
        assert options.max_tokens == 20
        assert options.model == "gpt-3.5-turbo"

    def test_uses_options_temperature(self) -> None:
        provider = FakeProvider()
        generate_title("We reviewed the budget.", provider, SummarizeOptions(temperature=0.2))

        assert provider.calls[0]["options"].temperature == 0.2

    def test_blank_transcript(self) -> None:
        provider = FakeProvider()
        assert generate_title("   ", provider) == DEFAULT_TITLE
        assert provider.calls == []

    def test_empty_response(self) -> None:
        class EmptyProvider(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                return "  "

        assert generate_title("Some text", EmptyProvider()) == "Untitled Meeting"

    def test_provider_error(self) -> None:
        class BrokenProvider(FakeProvider):
            def complete(self, system_prompt, user_prompt, options, json_schema=None):
                raise ProviderError("down")

        with pytest.raises(SummarizationError, match="Failed to generate title"):
            generate_title("Some text", BrokenProvider())
