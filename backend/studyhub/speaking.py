"""
Speaking practice engine.

Three independent modes share one record -> submit -> assess cycle:

- FREE: the learner says anything and gets pronunciation feedback.
- TOPIC: a generated dialogue; each Student line can be practised and scored
  against its own text.
- CHAT: an open conversation with the whole history replayed on every turn.

Audio capture is delegated to an `AudioCapture`; switching modes cancels any
recording in flight but leaves every mode's results alone.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .collaborators import AudioCapture, BrowserAudioCapture
from .errors import EmptyInput, InvalidState, SchemaViolation
from .generation import BinaryPart, StructuredGenerationClient, TextPart
from .models import ChatMessage, DialogueLine, SpeakingFeedback, SpeakingMode, parse_entity
from .progress import XPAwarded, XPSink, discard_xp
from .schema import ArraySchema, EnumSchema, NumberSchema, ObjectSchema, StringSchema
from .settings import settings

logger = logging.getLogger(__name__)


XP_PER_FREE_SUBMISSION = 20
XP_PER_DIALOGUE_LINE = 10
XP_PER_CHAT_TURN = 15
DEFAULT_AUDIO_MIME_TYPE = "audio/wav"
DIALOGUE_MIN_LINES = 6
DIALOGUE_MAX_LINES = 8


FEEDBACK_SCHEMA = ObjectSchema(
	properties={
		"transcript": StringSchema(),
		"score": NumberSchema(description="Score 0-10"),
		"comment": StringSchema(description=f"Short, friendly comment in {settings.native_language}"),
		"mistakes": ArraySchema(items=StringSchema(), description="List of mispronounced words"),
		"correction": StringSchema(description="A better, more natural sentence"),
		"encouragement": StringSchema(description=f"Encouraging closing words in {settings.native_language}"),
	},
	required=("transcript", "score", "comment", "mistakes", "correction", "encouragement"),
)

DIALOGUE_SCHEMA = ArraySchema(
	items=ObjectSchema(
		properties={
			"speaker": EnumSchema(values=("Student", "AI")),
			"text": StringSchema(),
		},
		required=("speaker", "text"),
	)
)

CHAT_SCHEMA = ObjectSchema(
	properties={
		"userTranscript": StringSchema(),
		"reply": StringSchema(description="Friendly reply to the conversation"),
		"correction": ObjectSchema(
			properties={
				"original": StringSchema(),
				"fixed": StringSchema(),
				"explanation": StringSchema(),
			},
			nullable=True,
			description="Correction of the user's grammar/vocab if needed.",
		),
	},
	required=("userTranscript", "reply"),
)


def _free_speaking_prompt() -> str:
	target = settings.target_language
	native = settings.native_language
	return (
		"Listen to the student's voice and:\n"
		f"1. Write the {target} transcript.\n"
		"2. Score the pronunciation (scale of 10).\n"
		f"3. Give a short, easy-to-understand comment ({native}).\n"
		"4. List the mispronounced words.\n"
		"5. Rewrite what was said as a more correct, natural sentence.\n"
		"6. Cheer the student on with a few upbeat words."
	)


def _free_speaking_system_instruction() -> str:
	return "You are a friendly AI that encourages high school students. Keep it casual but polite."


def _line_assessment_prompt(target_text: str) -> str:
	return (
		f"The student has to say: \"{target_text}\".\n"
		"Listen and compare.\n"
		"Score the accuracy.\n"
		"Point out mistakes if there are any."
	)


def _dialogue_prompt(topic: str) -> str:
	return (
		f"Write a short dialogue ({DIALOGUE_MIN_LINES}-{DIALOGUE_MAX_LINES} lines) entirely in "
		f"{settings.target_language} about the topic: \"{topic}\".\n"
		"Roles: \"Student\" and \"AI\", alternating.\n"
		"Keep sentences short with vocabulary suitable for high school students."
	)


def _chat_prompt(history: List[ChatMessage]) -> str:
	history_text = "\n".join(f"{m.sender}: {m.text}" for m in history)
	return (
		"You are a friendly international pen pal. Listen to the user and write down the transcript.\n"
		f"Then continue the conversation naturally (in {settings.target_language}).\n"
		"If the user makes a serious grammar or vocabulary mistake, suggest a gentle fix "
		f"(in {settings.native_language}) in 'correction'.\n"
		"If there is no mistake, set 'correction' to null.\n\n"
		f"Chat history:\n{history_text}"
	)


@dataclass(frozen=True)
class Recording:
	mode: SpeakingMode
	line_id: Optional[str] = None


class SpeakingSessionEngine:
	def __init__(
		self,
		client: StructuredGenerationClient,
		on_xp: XPSink = discard_xp,
		*,
		audio_capture: Optional[AudioCapture] = None,
		audio_mime_type: str = DEFAULT_AUDIO_MIME_TYPE,
	) -> None:
		self._client = client
		self._on_xp = on_xp
		self.capture: AudioCapture = audio_capture or BrowserAudioCapture()
		self.audio_mime_type = audio_mime_type
		self.mode: SpeakingMode = SpeakingMode.FREE
		self.recording: Optional[Recording] = None
		self.pending: bool = False
		self.free_feedback: Optional[SpeakingFeedback] = None
		self.topic: str = ""
		self.dialogue: List[DialogueLine] = []
		self.chat_history: List[ChatMessage] = []

	# ------------------------------------------------------------------
	# Mode and recording lifecycle
	# ------------------------------------------------------------------

	def switch_mode(self, mode: SpeakingMode) -> None:
		self.cancel_recording()
		self.mode = SpeakingMode(mode)

	def start_recording(self, line_id: Optional[str] = None) -> Recording:
		if self.recording is not None:
			raise InvalidState("a recording is already in progress")
		if self.mode == SpeakingMode.TOPIC:
			if line_id is None:
				raise InvalidState("pick a dialogue line to practise")
			self._student_line(line_id)
		# May raise PermissionDenied; nothing is recorded in that case
		self.capture.start()
		self.recording = Recording(mode=self.mode, line_id=line_id if self.mode == SpeakingMode.TOPIC else None)
		return self.recording

	async def stop_recording(self) -> Union[SpeakingFeedback, Tuple[ChatMessage, ChatMessage]]:
		"""Stop the in-flight recording and submit it to the current mode."""
		recording = self.recording
		if recording is None:
			raise InvalidState("no recording in progress")
		audio = self.capture.stop()
		self.recording = None
		if recording.mode == SpeakingMode.TOPIC:
			return await self.submit_for_line(audio, recording.line_id or "")
		if recording.mode == SpeakingMode.CHAT:
			return await self.submit_turn(audio)
		return await self.submit(audio)

	def cancel_recording(self) -> None:
		if self.recording is None:
			return
		self.capture.cancel()
		logger.debug("Cancelled %s recording", self.recording.mode.value)
		self.recording = None

	# ------------------------------------------------------------------
	# Assessment round-trips
	# ------------------------------------------------------------------

	def _audio_part(self, audio: bytes) -> BinaryPart:
		if not audio:
			raise EmptyInput("empty audio payload", notice="No audio was recorded. Please try again.")
		return BinaryPart(data=audio, mime_type=self.audio_mime_type)

	async def _assess(self, parts: List[Any], system_instruction: Optional[str] = None) -> SpeakingFeedback:
		self.pending = True
		try:
			data = await self._client.generate(parts, FEEDBACK_SCHEMA, system_instruction=system_instruction)
		finally:
			self.pending = False
		return _feedback_from(data)

	async def submit(self, audio: bytes) -> SpeakingFeedback:
		"""Free mode: score whatever was said; replaces the previous feedback."""
		parts = [self._audio_part(audio), TextPart(_free_speaking_prompt())]
		feedback = await self._assess(parts, _free_speaking_system_instruction())
		self.free_feedback = feedback
		self._on_xp(XPAwarded(XP_PER_FREE_SUBMISSION, "speaking_free"))
		return feedback

	async def generate_dialogue(self, topic: str) -> List[DialogueLine]:
		topic = (topic or "").strip()
		if not topic:
			raise EmptyInput("topic is required", notice="Please enter a topic.")
		self.pending = True
		try:
			data = await self._client.generate([TextPart(_dialogue_prompt(topic))], DIALOGUE_SCHEMA)
		finally:
			self.pending = False
		lines = [
			parse_entity(DialogueLine, {"id": f"dlg-{idx}", "speaker": item["speaker"], "text": item["text"]}, path=f"$[{idx}]")
			for idx, item in enumerate(data)
		]
		if not lines:
			raise SchemaViolation("generator returned an empty dialogue")
		if not DIALOGUE_MIN_LINES <= len(lines) <= DIALOGUE_MAX_LINES:
			logger.info("Dialogue on %r has %d lines", topic, len(lines))
		self.cancel_recording()
		self.topic = topic
		self.dialogue = lines
		return list(lines)

	def _student_line(self, line_id: str) -> DialogueLine:
		for line in self.dialogue:
			if line.id == line_id:
				if line.speaker != "Student":
					raise InvalidState(f"line {line_id} belongs to the AI")
				return line
		raise InvalidState(f"unknown dialogue line {line_id!r}")

	async def submit_for_line(self, audio: bytes, line_id: str) -> SpeakingFeedback:
		"""Topic mode: assess a recording against one Student line's text."""
		line = self._student_line(line_id)
		parts = [self._audio_part(audio), TextPart(_line_assessment_prompt(line.text))]
		feedback = await self._assess(parts)
		# The dialogue may have been regenerated while the call was out
		self.dialogue = [
			l.model_copy(update={"feedback": feedback}) if l.id == line_id and l.text == line.text else l
			for l in self.dialogue
		]
		self._on_xp(XPAwarded(XP_PER_DIALOGUE_LINE, "speaking_dialogue_line"))
		return feedback

	async def submit_turn(self, audio: bytes) -> Tuple[ChatMessage, ChatMessage]:
		"""Chat mode: one voice turn; appends the user message then the AI reply."""
		parts = [self._audio_part(audio), TextPart(_chat_prompt(self.chat_history))]
		self.pending = True
		try:
			data = await self._client.generate(
				parts,
				CHAT_SCHEMA,
				system_instruction="Cheerful tone, like friends of the same age.",
			)
		finally:
			self.pending = False
		user_msg = parse_entity(
			ChatMessage,
			{
				"id": uuid.uuid4().hex,
				"sender": "user",
				"text": str(data["userTranscript"]).strip() or "...",
				"correction": _correction_from(data.get("correction")),
			},
		)
		ai_msg = parse_entity(ChatMessage, {"id": uuid.uuid4().hex, "sender": "ai", "text": data["reply"]})
		self.chat_history = [*self.chat_history, user_msg, ai_msg]
		self._on_xp(XPAwarded(XP_PER_CHAT_TURN, "speaking_chat_turn"))
		return user_msg, ai_msg


def _correction_from(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
	# The model often answers "no correction" with an empty or partial object
	if not data:
		return None
	missing = [k for k in ("original", "fixed", "explanation") if not data.get(k)]
	if missing:
		logger.warning("Ignoring chat correction without %s", ", ".join(missing))
		return None
	return data


def _feedback_from(data: Dict[str, Any]) -> SpeakingFeedback:
	# Clamp to the 0-10 scale the prompt asks for
	score = max(0.0, min(float(data["score"]), 10.0))
	return parse_entity(SpeakingFeedback, {**data, "score": score})
