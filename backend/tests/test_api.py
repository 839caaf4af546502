import base64

import pytest
from fastapi.testclient import TestClient

from conftest import card_batch, feedback_reply, quiz_items
from studyhub.dashboard import Dashboard
from studyhub.errors import TransportFailure
from studyhub.main import app
from studyhub.routers.deps import get_dashboard


@pytest.fixture()
def api(client, progress):
	dashboard = Dashboard(client, progress)
	app.dependency_overrides[get_dashboard] = lambda: dashboard
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


def _b64(data: bytes) -> str:
	return base64.b64encode(data).decode("ascii")


def test_info(api):
	r = api.get("/info")
	assert r.status_code == 200
	assert r.json()["status"] == "ok"


def test_flashcard_flow(script, api):
	script.queue(card_batch(), quiz_items())
	r = api.post("/flashcards/generate", json={"mode": "topic", "input": "Animals"})
	assert r.status_code == 200
	assert r.json()["state"] == "REVIEWING"
	assert len(r.json()["cards"]) == 5

	r = api.post("/flashcards/review", json={"mastered": True})
	assert r.json()["current_index"] == 1

	r = api.post("/flashcards/quiz/start")
	assert r.status_code == 200
	assert len(r.json()["questions"]) == 5

	r = api.post("/flashcards/quiz/answer", json={"option": "nghia 0"})
	assert r.json()["correct"] is True
	r = api.post("/flashcards/quiz/answer", json={"option": "a"})
	assert r.json()["correct"] is None

	assert api.get("/progress").json()["xp"] == 10


def test_quiz_answer_without_quiz_is_conflict(api):
	r = api.post("/flashcards/quiz/answer", json={"option": "x"})
	assert r.status_code == 409
	assert r.json()["detail"] == "Start a quiz first."


def test_empty_topic_is_bad_request(api):
	r = api.post("/flashcards/generate", json={"input": "  "})
	assert r.status_code == 400
	assert r.json()["error"] == "EmptyInput"


def test_generation_failure_is_bad_gateway(script, api):
	script.queue(TransportFailure("down"))
	r = api.post("/flashcards/generate", json={"input": "Food"})
	assert r.status_code == 502
	assert api.get("/flashcards").json()["state"] == "EMPTY"


def test_speaking_free(script, api):
	script.queue(feedback_reply(6))
	r = api.post("/speaking/free", json={"audio_base64": "data:audio/wav;base64," + _b64(b"RIFF")})
	assert r.status_code == 200
	assert r.json()["score"] == 6
	assert script.calls[0]["parts"][0].data == b"RIFF"


def test_speaking_recording_flow(script, api):
	script.queue(feedback_reply(5))
	r = api.post("/speaking/recording/start", json={})
	assert r.json()["recording"] is True
	r = api.post("/speaking/recording/stop", json={"audio_base64": _b64(b"voice")})
	assert r.status_code == 200
	assert r.json()["recording"] is False
	assert r.json()["free_feedback"]["score"] == 5


def test_microphone_refused(api):
	r = api.post("/speaking/recording/start", json={"microphone_allowed": False})
	assert r.status_code == 403


def test_bad_base64(api):
	r = api.post("/speaking/free", json={"audio_base64": "***"})
	assert r.status_code == 400


def test_mindmap_analyze_and_audio(script, api):
	script.queue({"summary": "Tom tat.", "keywords": ["a"], "rootNode": None})
	r = api.post("/mindmap/analyze", json={"kind": "text", "text": "Photosynthesis", "mode": "summary"})
	assert r.status_code == 200
	assert r.json()["root_node"] is None
	r = api.post("/mindmap/audio", json={})
	assert r.json()["state"] == "PLAYING"
	assert r.json()["utterance"]["text"] == "Tom tat."
	r = api.post("/mindmap/audio/finished")
	assert r.json()["state"] == "IDLE"


def test_write_image_upload(script, api):
	script.queue(
		{
			"score": 8,
			"vocabScore": 8,
			"grammarScore": 8,
			"coherenceScore": 8,
			"feedback": "Tot",
			"correctedText": "Fine.",
			"mistakes": [],
		}
	)
	r = api.post("/write/score/image", files={"file": ("page.png", b"png-bytes", "image/png")})
	assert r.status_code == 200
	assert r.json()["score"] == 8
	assert script.calls[0]["parts"][0].mime_type == "image/png"


def test_switch_module(api):
	r = api.post("/dashboard/module", json={"module": "SPEAKING"})
	assert r.json()["module"] == "SPEAKING"
	assert api.get("/dashboard").json()["module"] == "SPEAKING"
	r = api.post("/dashboard/module", json={"module": "NOPE"})
	assert r.status_code == 422


def test_reading_other_tools_keeps_the_open_session(script, api):
	script.queue(card_batch())
	api.post("/flashcards/generate", json={"input": "Animals"})
	for path in ("/write", "/speaking", "/mindmap"):
		assert api.get(path).status_code == 200
	assert api.get("/write").json()["result"] is None
	assert api.get("/speaking").json()["chat_history"] == []
	deck = api.get("/flashcards").json()
	assert deck["state"] == "REVIEWING"
	assert len(deck["cards"]) == 5
	assert api.get("/dashboard").json()["module"] == "FLASHCARD"


def test_quiz_next_without_quiz_is_conflict(api):
	r = api.post("/flashcards/quiz/next")
	assert r.status_code == 409
