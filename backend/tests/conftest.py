import json
from typing import Any, List

import pytest

from studyhub.generation import StructuredGenerationClient
from studyhub.progress import ProgressTracker


class Script:
	"""Canned generator replies, consumed in order; records every call."""

	def __init__(self) -> None:
		self.replies: List[Any] = []
		self.calls: List[dict] = []
		self.closed = 0

	def queue(self, *replies: Any) -> "Script":
		self.replies.extend(replies)
		return self

	def factory(self) -> "ScriptedGenerator":
		return ScriptedGenerator(self)


class ScriptedGenerator:
	def __init__(self, script: Script) -> None:
		self.script = script

	async def generate(self, parts, schema, system_instruction=None) -> str:
		self.script.calls.append({"parts": list(parts), "schema": schema, "system_instruction": system_instruction})
		if not self.script.replies:
			raise AssertionError("generator called more often than scripted")
		reply = self.script.replies.pop(0)
		if isinstance(reply, Exception):
			raise reply
		if isinstance(reply, str):
			return reply
		return json.dumps(reply)

	async def aclose(self) -> None:
		self.script.closed += 1


def card_batch(count: int = 5) -> List[dict]:
	return [
		{
			"word": f"word{i}",
			"pronunciation": f"/w{i}/",
			"meaning": f"nghia {i}",
			"example": f"This is word{i} in a sentence.",
			"imageKeyword": f"thing{i}",
		}
		for i in range(count)
	]


def quiz_items(count: int = 5) -> List[dict]:
	return [
		{
			"id": f"q{i}",
			"question": f"What does word{i} mean?",
			"options": [f"nghia {i}", "a", "b", "c"],
			"correctAnswer": f"nghia {i}",
			"explanation": "because",
			"type": "meaning",
			"difficulty": "easy",
		}
		for i in range(count)
	]


def feedback_reply(score: float = 8) -> dict:
	return {
		"transcript": "hello there",
		"score": score,
		"comment": "good",
		"mistakes": ["there"],
		"correction": "Hello there.",
		"encouragement": "Keep going!",
	}


@pytest.fixture()
def script() -> Script:
	return Script()


@pytest.fixture()
def client(script: Script) -> StructuredGenerationClient:
	return StructuredGenerationClient(script.factory)


@pytest.fixture()
def progress() -> ProgressTracker:
	return ProgressTracker(xp_per_level=100)
