"""
Flashcard deck session: generation, sequential review and the hand-off into
a vocabulary quiz.

State machine::

	EMPTY -> GENERATING -> REVIEWING -> QUIZZING
	                           ^            |
	                           +------------+  (return_to_review / restart)

Reviewing the last card never wraps around on its own; the caller chooses
between `restart()` and `begin_quiz()`.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .collaborators import ImageLookup, PollinationsImageLookup, random_seed, styled_image_prompt
from .errors import EmptyInput, InvalidState, SchemaViolation
from .generation import StructuredGenerationClient, TextPart
from .models import Flashcard, FlashcardLevel, FlashcardStyle, parse_entity
from .progress import XPAwarded, XPSink, discard_xp
from .quiz import QuizEngine
from .schema import ArraySchema, ObjectSchema, StringSchema
from .settings import settings

logger = logging.getLogger(__name__)


BATCH_SIZE = 5
XP_PER_MASTERED_CARD = 5
XP_PER_SAVED_CARD = 10


class DeckState(str, Enum):
	EMPTY = "EMPTY"
	GENERATING = "GENERATING"
	REVIEWING = "REVIEWING"
	QUIZZING = "QUIZZING"


BATCH_SCHEMA = ArraySchema(
	items=ObjectSchema(
		properties={
			"word": StringSchema(),
			"pronunciation": StringSchema(description="IPA transcription"),
			"meaning": StringSchema(description=f"Meaning in {settings.native_language}"),
			"example": StringSchema(description=f"Example sentence in {settings.target_language}"),
			"imageKeyword": StringSchema(
				description=(
					f"A SINGLE, concrete {settings.target_language} noun that visually represents this word "
					"for image search (e.g. 'cat', 'forest', 'running'). Do not use abstract concepts."
				)
			),
		},
		required=("word", "pronunciation", "meaning", "example", "imageKeyword"),
	)
)

SINGLE_CARD_SCHEMA = ObjectSchema(
	properties={
		"word": StringSchema(),
		"phonetic": StringSchema(),
		"meaning": StringSchema(),
		"example": StringSchema(),
		"imagePrompt": StringSchema(description="A simple English description of the image to illustrate the word."),
	},
	required=("word", "phonetic", "meaning", "example", "imagePrompt"),
)


def _batch_requirements() -> str:
	return (
		"IMPORTANT REQUIREMENTS:\n"
		f"1. 'meaning' must be in {settings.native_language}.\n"
		f"2. 'example' must be a sentence in {settings.target_language}.\n"
		f"3. 'imageKeyword' must be a concrete {settings.target_language} noun that illustrates the meaning as closely as possible."
	)


def _build_topic_prompt(topic: str) -> str:
	return (
		f"Create {BATCH_SIZE} {settings.target_language} vocabulary words related to the topic: \"{topic}\".\n"
		f"{_batch_requirements()}\n"
		"Respond in JSON."
	)


def _build_word_list_prompt(words: str) -> str:
	return (
		f"I have this list of vocabulary words: \"{words}\".\n"
		"Create detailed information for each word.\n"
		f"{_batch_requirements()}\n"
		"If a word is misspelled, correct it.\n"
		"Respond in JSON."
	)


def _build_single_card_prompt(word: str, topic: str, level: str) -> str:
	return (
		f"You are a {settings.target_language} teacher for {settings.native_language} high school students.\n"
		f"Create flashcard content for the word: \"{word}\"\n"
		f"Topic: {topic}\n"
		f"Level: {level}\n\n"
		"Requirements:\n"
		"- Give the IPA phonetic transcription.\n"
		f"- {settings.native_language} meaning (simple, easy to understand).\n"
		f"- One simple {settings.target_language} example sentence.\n"
		"- The example must match the image meaning.\n"
		f"- Language must suit {level} level students.\n\n"
		"Return in JSON."
	)


def _batch_system_instruction() -> str:
	return (
		"You are a study assistant. Make sure every example is in "
		f"{settings.target_language} and every meaning is in {settings.native_language}."
	)


class FlashcardSessionEngine:
	def __init__(
		self,
		client: StructuredGenerationClient,
		on_xp: XPSink = discard_xp,
		*,
		image_lookup: Optional[ImageLookup] = None,
	) -> None:
		self._client = client
		self._on_xp = on_xp
		self._images = image_lookup or PollinationsImageLookup()
		self.state: DeckState = DeckState.EMPTY
		self.deck: List[Flashcard] = []
		self.current_index: int = 0
		self.is_flipped: bool = False
		self.deck_finished: bool = False
		self.preview: Optional[Flashcard] = None
		self.quiz: Optional[QuizEngine] = None
		self.pending: bool = False

	@property
	def current_card(self) -> Optional[Flashcard]:
		if not self.deck:
			return None
		return self.deck[self.current_index]

	def _image_url(self, prompt: str, *, seed: Optional[int] = None) -> Optional[str]:
		try:
			return self._images.url_for(prompt, seed=seed)
		except Exception as exc:
			# Cards render without art when the lookup fails
			logger.warning("Image lookup failed for %r: %s", prompt, exc)
			return None

	def _card_from(self, item: Dict[str, Any], batch_id: str, index: int) -> Flashcard:
		return parse_entity(
			Flashcard,
			{
				"id": f"fc-{batch_id}-{index}",
				"word": item.get("word"),
				"pronunciation": item.get("pronunciation"),
				"meaning": item.get("meaning"),
				"example": item.get("example"),
				"image_url": self._image_url(str(item.get("imageKeyword") or "")),
			},
			path=f"$[{index}]",
		)

	async def generate_from_topic(self, topic: str) -> List[Flashcard]:
		topic = (topic or "").strip()
		if not topic:
			raise EmptyInput("topic is required", notice="Please enter a topic.")
		return await self._generate_batch(_build_topic_prompt(topic))

	async def generate_from_word_list(self, words: Union[str, Sequence[str]]) -> List[Flashcard]:
		if not isinstance(words, str):
			words = ", ".join(w.strip() for w in words if w and w.strip())
		words = words.strip()
		if not words:
			raise EmptyInput("word list is required", notice="Please enter some words.")
		return await self._generate_batch(_build_word_list_prompt(words))

	async def _generate_batch(self, prompt: str) -> List[Flashcard]:
		# A new batch replaces the deck; failure leaves it empty rather than half-filled
		self.deck = []
		self.quiz = None
		self.current_index = 0
		self.is_flipped = False
		self.deck_finished = False
		self.state = DeckState.GENERATING
		self.pending = True
		try:
			data = await self._client.generate(
				[TextPart(prompt)],
				BATCH_SCHEMA,
				system_instruction=_batch_system_instruction(),
			)
			batch_id = uuid.uuid4().hex[:8]
			cards = [self._card_from(item, batch_id, idx) for idx, item in enumerate(data)]
			if not cards:
				raise SchemaViolation("generator returned no flashcards")
		except Exception:
			self.state = DeckState.EMPTY
			raise
		finally:
			self.pending = False
		logger.info("Generated a deck of %d flashcards", len(cards))
		self.deck = cards
		self.state = DeckState.REVIEWING
		return list(cards)

	async def generate_single_card(
		self,
		word: str,
		topic: str = "Daily Life",
		level: FlashcardLevel = "medium",
		style: FlashcardStyle = "hand_drawn",
	) -> Flashcard:
		"""Generate one richer card into the preview slot; the deck is untouched."""
		word = (word or "").strip()
		if not word:
			raise EmptyInput("word is required", notice="Please enter a word.")
		self.pending = True
		try:
			data = await self._client.generate(
				[TextPart(_build_single_card_prompt(word, topic, level))],
				SINGLE_CARD_SCHEMA,
			)
		finally:
			self.pending = False
		image_prompt = styled_image_prompt(str(data["imagePrompt"]), style)
		card = parse_entity(
			Flashcard,
			{
				"id": f"fc-single-{uuid.uuid4().hex[:12]}",
				"word": data["word"],
				"pronunciation": data["phonetic"],
				"meaning": data["meaning"],
				"example": data["example"],
				"image_url": self._image_url(image_prompt, seed=random_seed()),
				"topic": topic,
				"level": level,
			},
		)
		self.preview = card
		return card

	def commit_preview(self) -> Flashcard:
		if self.preview is None:
			raise InvalidState("there is no preview card to save")
		card = self.preview.model_copy(update={"status": "new"})
		self.deck.append(card)
		self.preview = None
		if self.state in (DeckState.EMPTY, DeckState.GENERATING):
			self.state = DeckState.REVIEWING
			self.current_index = len(self.deck) - 1
		self._on_xp(XPAwarded(XP_PER_SAVED_CARD, "flashcard_saved"))
		return card

	def discard_preview(self) -> None:
		self.preview = None

	def flip(self) -> bool:
		if not self.deck:
			raise InvalidState("the deck is empty")
		self.is_flipped = not self.is_flipped
		return self.is_flipped

	def review_current(self, mastered: bool) -> Flashcard:
		if self.state != DeckState.REVIEWING or not self.deck:
			raise InvalidState("no deck is under review")
		card = self.deck[self.current_index]
		if mastered:
			self._on_xp(XPAwarded(XP_PER_MASTERED_CARD, "flashcard_mastered"))
		self.is_flipped = False
		if self.current_index < len(self.deck) - 1:
			self.current_index += 1
		else:
			self.deck_finished = True
		return card

	def restart(self) -> None:
		if not self.deck:
			raise InvalidState("the deck is empty")
		self.current_index = 0
		self.is_flipped = False
		self.deck_finished = False
		self.quiz = None
		self.state = DeckState.REVIEWING

	async def begin_quiz(self) -> QuizEngine:
		if not self.deck:
			raise EmptyInput("cannot quiz an empty deck", notice="Create some flashcards first.")
		quiz = QuizEngine(self._client, self._on_xp)
		self.pending = True
		try:
			await quiz.build(self.deck)
		finally:
			self.pending = False
		self.quiz = quiz
		self.deck_finished = False
		self.state = DeckState.QUIZZING
		return quiz

	def return_to_review(self) -> None:
		if not self.deck:
			raise InvalidState("the deck is empty")
		self.quiz = None
		self.state = DeckState.REVIEWING
