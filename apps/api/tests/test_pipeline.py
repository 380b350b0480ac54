import pytest

from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.models import TranscriptAnalysis
from services.pipeline import analyze_media


class _FakeIntelligence:
    def __init__(self, transcript="three habits for focus...", fail_transcribe=None):
        self.transcript = transcript
        self.fail_transcribe = fail_transcribe
        self.calls = []

    async def transcribe(self, audio_path):
        self.calls.append(("transcribe", audio_path))
        if self.fail_transcribe:
            raise self.fail_transcribe
        return self.transcript

    async def summarize(self, transcript):
        self.calls.append(("summarize", transcript))
        return TranscriptAnalysis(title="Three Focus Habits", summary="Focus tips.", topics=["Productivity"])


@pytest.mark.asyncio
async def test_analyze_media_transcribes_then_summarizes():
    intelligence = _FakeIntelligence()
    result = await analyze_media("/tmp/x/abc123.wav", intelligence)

    assert intelligence.calls == [
        ("transcribe", "/tmp/x/abc123.wav"),
        ("summarize", "three habits for focus..."),
    ]
    assert result.title == "Three Focus Habits"
    assert result.transcript == "three habits for focus..."
    assert result.summary == "Focus tips."
    assert result.topics == ["Productivity"]


@pytest.mark.asyncio
@pytest.mark.parametrize("audio_path", [None, ""])
async def test_missing_audio_path_fails_before_any_remote_call(audio_path):
    intelligence = _FakeIntelligence()
    with pytest.raises(ReelProcessingError) as exc_info:
        await analyze_media(audio_path, intelligence)

    assert exc_info.value.kind == ReelErrorKind.MEDIA_NOT_AVAILABLE
    assert intelligence.calls == []


@pytest.mark.asyncio
async def test_transcription_errors_propagate_unchanged():
    error = RuntimeError("speech service down")
    intelligence = _FakeIntelligence(fail_transcribe=error)
    with pytest.raises(RuntimeError) as exc_info:
        await analyze_media("/tmp/x/abc123.wav", intelligence)

    assert exc_info.value is error
    assert [name for name, _ in intelligence.calls] == ["transcribe"]
