import pytest

from studyhub.errors import EmptyInput
from studyhub.models import SourceInput
from studyhub.writing import MAX_TEXT_LENGTH, WritingEngine

REPLY = {
	"score": 6.5,
	"vocabScore": 6,
	"grammarScore": 7,
	"coherenceScore": 6.5,
	"feedback": "Kha tot",
	"correctedText": "I went to school yesterday.",
	"mistakes": [{"original": "goed", "correction": "went", "explanation": "qua khu"}],
}


@pytest.fixture()
def engine(client, progress):
	return WritingEngine(client, progress.record)


async def test_text_is_scored(script, engine, progress):
	script.queue(REPLY)
	result = await engine.analyze(SourceInput(kind="text", text="I goed to school yesterday."))
	assert result.grammar_score == 7
	assert result.mistakes[0].correction == "went"
	assert engine.result == result
	assert progress.stats.xp == 20


async def test_short_text_is_rejected(script, engine):
	with pytest.raises(EmptyInput):
		await engine.analyze(SourceInput(kind="text", text="Hi."))
	assert script.calls == []


async def test_long_text_is_clamped(script, engine):
	script.queue(REPLY)
	await engine.analyze(SourceInput(kind="text", text="a" * (MAX_TEXT_LENGTH + 500)))
	assert script.calls[0]["parts"][0].text.count("a") <= MAX_TEXT_LENGTH + 100


async def test_handwriting_photo(script, engine):
	script.queue(REPLY)
	await engine.analyze(SourceInput(kind="image", image=b"jpeg"))
	image = script.calls[0]["parts"][0]
	assert image.data == b"jpeg"
	assert image.mime_type == "image/jpeg"
