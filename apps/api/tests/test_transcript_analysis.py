import json
from unittest.mock import MagicMock

import pytest

from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.llm import (
    MAX_TRANSCRIPT_CHARS,
    OpenAIReelIntelligence,
    analyze_transcript,
    clean_title,
    prepare_transcript,
)
from multimodal.models import TranscriptAnalysis


def _client_returning(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    client.chat.completions.create.return_value = MagicMock(choices=[choice])
    return client


def test_analyze_transcript_normalizes_title_and_topics():
    client = _client_returning(json.dumps({
        "title": "  Three Focus Habits!! ",
        "summary": " Three habits that make deep work easier. ",
        "topics": ["- time management", "ChatGPT.", "AI", "Mindset", "Sleep"],
    }))

    result = analyze_transcript("three habits for focus...", client)

    assert result.title == "Three Focus Habits"
    assert result.summary == "Three habits that make deep work easier."
    assert result.topics == ["Productivity", "AI tools", "Mindset"]


def test_analyze_transcript_requests_structured_output_with_trimmed_transcript():
    client = _client_returning(json.dumps({"title": "T", "summary": "S", "topics": ["Sales"]}))
    transcript = "word   \n\t " * 5000

    analyze_transcript(transcript, client, model="test-model")

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"]["type"] == "json_schema"
    schema = kwargs["response_format"]["json_schema"]["schema"]
    assert schema["required"] == ["title", "summary", "topics"]
    user_content = kwargs["messages"][1]["content"]
    sent = user_content.split("Transcript:\n", 1)[1]
    assert len(sent) == MAX_TRANSCRIPT_CHARS
    assert "  " not in sent
    assert "Productivity" in kwargs["messages"][0]["content"]


@pytest.mark.parametrize("content", [None, ""])
def test_empty_model_response_is_an_upstream_failure(content):
    client = _client_returning(content)
    with pytest.raises(ReelProcessingError) as exc_info:
        analyze_transcript("hello", client)
    assert exc_info.value.kind == ReelErrorKind.UPSTREAM_FAILED


def test_invalid_json_is_an_upstream_failure():
    client = _client_returning("not json")
    with pytest.raises(ReelProcessingError) as exc_info:
        analyze_transcript("hello", client)
    assert exc_info.value.kind == ReelErrorKind.UPSTREAM_FAILED


def test_response_without_usable_topics_is_an_upstream_failure():
    client = _client_returning(json.dumps({"title": "T", "summary": "S", "topics": ["", " - "]}))
    with pytest.raises(ReelProcessingError) as exc_info:
        analyze_transcript("hello", client)
    assert exc_info.value.kind == ReelErrorKind.UPSTREAM_FAILED


def test_prepare_transcript_collapses_whitespace():
    assert prepare_transcript("  a \n\n b\tc  ") == "a b c"
    assert prepare_transcript("") == ""


def test_clean_title_strips_trailing_sentence_punctuation():
    assert clean_title(" Why focus matters?!. ") == "Why focus matters"
    assert clean_title("v2.0 release") == "v2.0 release"


@pytest.mark.asyncio
async def test_openai_intelligence_delegates_to_translation_and_chat(tmp_path):
    audio_path = tmp_path / "clip.wav"
    audio_path.write_bytes(b"RIFF")
    client = _client_returning(json.dumps({"title": "T", "summary": "S", "topics": ["sales"]}))
    client.audio.translations.create.return_value = MagicMock(text=" hello world ")

    intelligence = OpenAIReelIntelligence(client)
    transcript = await intelligence.transcribe(str(audio_path))
    analysis = await intelligence.summarize(transcript)

    assert transcript == "hello world"
    assert analysis == TranscriptAnalysis(title="T", summary="S", topics=["Sales"])
    translation_kwargs = client.audio.translations.create.call_args.kwargs
    assert translation_kwargs["model"] == "whisper-1"
