from __future__ import annotations

import logging
from typing import List, Optional

from .errors import EmptyInput
from .generation import BinaryPart, Part, StructuredGenerationClient, TextPart
from .models import SourceInput, WritingAnalysis, parse_entity
from .progress import XPAwarded, XPSink, discard_xp
from .schema import ArraySchema, NumberSchema, ObjectSchema, StringSchema
from .settings import settings

logger = logging.getLogger(__name__)


XP_PER_CORRECTION = 20
MIN_TEXT_LENGTH = 10
# Optional safety clamp to avoid extremely long prompts
MAX_TEXT_LENGTH = 8000


WRITING_SCHEMA = ObjectSchema(
	properties={
		"score": NumberSchema(description="Overall score 0-10"),
		"vocabScore": NumberSchema(),
		"grammarScore": NumberSchema(),
		"coherenceScore": NumberSchema(),
		"feedback": StringSchema(description=f"Detailed feedback in {settings.native_language}, encouraging tone."),
		"correctedText": StringSchema(),
		"mistakes": ArraySchema(
			items=ObjectSchema(
				properties={
					"original": StringSchema(),
					"correction": StringSchema(),
					"explanation": StringSchema(description=f"Explanation in {settings.native_language}"),
				},
				required=("original", "correction", "explanation"),
			)
		),
	},
	required=("score", "vocabScore", "grammarScore", "coherenceScore", "feedback", "correctedText", "mistakes"),
)


def _system_instruction() -> str:
	return (
		f"You are a dedicated {settings.target_language} teacher. Score the writing, point out the mistakes "
		f"and rewrite sentences so they read better. Reply in {settings.native_language}."
	)


class WritingEngine:
	"""Scores a piece of writing typed in or photographed (handwriting is read by the model)."""

	def __init__(self, client: StructuredGenerationClient, on_xp: XPSink = discard_xp) -> None:
		self._client = client
		self._on_xp = on_xp
		self.result: Optional[WritingAnalysis] = None
		self.pending: bool = False

	async def analyze(self, source: SourceInput) -> WritingAnalysis:
		if source.is_empty():
			raise EmptyInput("nothing to score", notice="Please enter some content!")
		parts: List[Part]
		if source.kind == "image":
			parts = [
				BinaryPart(data=source.image, mime_type=source.mime_type),
				TextPart(
					"Look at this image and read the handwriting (or text) in it. "
					f"Then score that {settings.target_language} writing at high school / basic IELTS standard."
				),
			]
		else:
			text = source.text.strip()
			if len(text) < MIN_TEXT_LENGTH:
				raise EmptyInput("text is too short", notice="Please write a longer paragraph!")
			if len(text) > MAX_TEXT_LENGTH:
				logger.info("Clamping writing sample from %d to %d chars", len(text), MAX_TEXT_LENGTH)
				text = text[:MAX_TEXT_LENGTH]
			parts = [
				TextPart(
					f"Score the following {settings.target_language} paragraph at high school / basic IELTS standard:\n\n\"{text}\""
				)
			]
		self.pending = True
		try:
			data = await self._client.generate(parts, WRITING_SCHEMA, system_instruction=_system_instruction())
		finally:
			self.pending = False
		result = parse_entity(
			WritingAnalysis,
			{
				"score": data["score"],
				"vocab_score": data["vocabScore"],
				"grammar_score": data["grammarScore"],
				"coherence_score": data["coherenceScore"],
				"feedback": data["feedback"],
				"corrected_text": data["correctedText"],
				"mistakes": data["mistakes"],
			},
		)
		self.result = result
		self._on_xp(XPAwarded(XP_PER_CORRECTION, "writing_correction"))
		return result
