import pytest

from conftest import feedback_reply
from studyhub.collaborators import BrowserAudioCapture
from studyhub.errors import EmptyInput, InvalidState, MalformedResponse, PermissionDenied
from studyhub.models import SpeakingMode
from studyhub.speaking import SpeakingSessionEngine

DIALOGUE = [
	{"speaker": "Student", "text": "Hi, how are you?"},
	{"speaker": "AI", "text": "Great, thanks!"},
	{"speaker": "Student", "text": "Where do you live?"},
	{"speaker": "AI", "text": "In Hanoi."},
	{"speaker": "Student", "text": "Nice city."},
	{"speaker": "AI", "text": "It is."},
]


@pytest.fixture()
def engine(client, progress):
	return SpeakingSessionEngine(client, progress.record)


async def test_free_submission(script, engine, progress):
	script.queue(feedback_reply(7.5))
	feedback = await engine.submit(b"RIFF")
	assert feedback.score == 7.5
	assert engine.free_feedback == feedback
	assert progress.stats.xp == 20
	audio = script.calls[0]["parts"][0]
	assert audio.data == b"RIFF"
	assert audio.mime_type == "audio/wav"


async def test_score_is_clamped(script, engine):
	script.queue(feedback_reply(14))
	feedback = await engine.submit(b"x")
	assert feedback.score == 10


async def test_empty_audio_is_rejected(script, engine):
	with pytest.raises(EmptyInput):
		await engine.submit(b"")
	assert script.calls == []


async def test_dialogue_lines_get_ids(script, engine):
	script.queue(DIALOGUE)
	lines = await engine.generate_dialogue("Meeting friends")
	assert [l.id for l in lines] == [f"dlg-{i}" for i in range(6)]
	assert engine.topic == "Meeting friends"


async def test_line_feedback_is_attached(script, engine, progress):
	script.queue(DIALOGUE, feedback_reply(9))
	await engine.generate_dialogue("Meeting friends")
	feedback = await engine.submit_for_line(b"x", "dlg-2")
	assert engine.dialogue[2].feedback == feedback
	assert engine.dialogue[0].feedback is None
	assert "Where do you live?" in script.calls[1]["parts"][1].text
	assert progress.stats.xp == 10


async def test_ai_lines_cannot_be_practised(script, engine):
	script.queue(DIALOGUE)
	await engine.generate_dialogue("Meeting friends")
	with pytest.raises(InvalidState):
		await engine.submit_for_line(b"x", "dlg-1")
	with pytest.raises(InvalidState):
		await engine.submit_for_line(b"x", "dlg-99")


async def test_failed_dialogue_keeps_previous_one(script, engine):
	script.queue(DIALOGUE, "not json")
	await engine.generate_dialogue("One")
	with pytest.raises(MalformedResponse):
		await engine.generate_dialogue("Two")
	assert engine.topic == "One"
	assert len(engine.dialogue) == 6


async def test_chat_history_grows_in_pairs(script, engine, progress):
	script.queue(
		{"userTranscript": "I goed to school", "reply": "Cool!", "correction": {"original": "goed", "fixed": "went", "explanation": "past tense"}},
		{"userTranscript": "Yes", "reply": "What next?", "correction": None},
	)
	user_msg, ai_msg = await engine.submit_turn(b"a")
	assert user_msg.sender == "user" and ai_msg.sender == "ai"
	assert user_msg.correction.fixed == "went"
	await engine.submit_turn(b"b")
	assert len(engine.chat_history) == 4
	assert [m.sender for m in engine.chat_history] == ["user", "ai", "user", "ai"]
	# Full history is replayed on the second turn
	assert "I goed to school" in script.calls[1]["parts"][1].text
	assert progress.stats.xp == 30


async def test_stop_recording_dispatches_to_mode(script, engine):
	engine.switch_mode(SpeakingMode.CHAT)
	engine.start_recording()
	engine.capture.deliver(b"voice")
	script.queue({"userTranscript": "hi", "reply": "hello"})
	user_msg, ai_msg = await engine.stop_recording()
	assert engine.recording is None
	assert ai_msg.text == "hello"


async def test_topic_recording_needs_a_student_line(script, engine):
	script.queue(DIALOGUE, feedback_reply())
	engine.switch_mode(SpeakingMode.TOPIC)
	await engine.generate_dialogue("Meeting friends")
	with pytest.raises(InvalidState):
		engine.start_recording()
	engine.start_recording("dlg-0")
	engine.capture.deliver(b"voice")
	await engine.stop_recording()
	assert engine.dialogue[0].feedback is not None


def test_switching_mode_cancels_recording(engine):
	engine.start_recording()
	engine.switch_mode(SpeakingMode.CHAT)
	assert engine.recording is None
	assert not engine.capture.recording
	engine.start_recording()
	with pytest.raises(InvalidState):
		engine.start_recording()


def test_permission_denied(client):
	capture = BrowserAudioCapture()
	capture.permission_granted = False
	engine = SpeakingSessionEngine(client, audio_capture=capture)
	with pytest.raises(PermissionDenied):
		engine.start_recording()
	assert engine.recording is None


async def test_stop_without_recording(engine):
	with pytest.raises(InvalidState):
		await engine.stop_recording()


async def test_empty_chat_correction_is_dropped(script, engine):
	script.queue(
		{"userTranscript": "I like music", "reply": "Me too!", "correction": {}},
		{"userTranscript": "Really", "reply": "Yes", "correction": {"original": "Really"}},
	)
	user_msg, _ = await engine.submit_turn(b"a")
	assert user_msg.text == "I like music"
	assert user_msg.correction is None
	user_msg, _ = await engine.submit_turn(b"b")
	assert user_msg.correction is None
	assert len(engine.chat_history) == 4
