from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .errors import EmptyInput, InvalidState, SchemaViolation
from .generation import StructuredGenerationClient, TextPart
from .models import Flashcard, QuizQuestion, parse_entity
from .progress import XPAwarded, XPSink, discard_xp
from .schema import ArraySchema, EnumSchema, ObjectSchema, StringSchema
from .settings import settings

logger = logging.getLogger(__name__)


QUESTION_COUNT = 5
XP_PER_CORRECT_ANSWER = 5
# Completion bonus is awarded per correct answer on top of the per-answer XP
COMPLETION_XP_PER_POINT = 5


QUIZ_SCHEMA = ArraySchema(
	items=ObjectSchema(
		properties={
			"id": StringSchema(),
			"question": StringSchema(),
			"options": ArraySchema(items=StringSchema()),
			"correctAnswer": StringSchema(),
			"explanation": StringSchema(description=f"Short explanation of the correct answer in {settings.native_language}"),
			"type": EnumSchema(values=("meaning", "fill-blank", "synonym", "antonym")),
			"difficulty": EnumSchema(values=("easy", "medium", "hard")),
		},
		required=("id", "question", "options", "correctAnswer", "explanation", "type", "difficulty"),
	)
)


def _build_quiz_prompt(deck: Sequence[Flashcard]) -> str:
	target = settings.target_language
	native = settings.native_language
	word_list = ", ".join(f"{card.word} ({card.meaning})" for card in deck)
	return (
		f"Based on this vocabulary list: {word_list}.\n"
		f"Write {QUESTION_COUNT} multiple-choice questions to test a student.\n\n"
		"Difficulty distribution:\n"
		f"- 2 Easy: the meaning of a word ({target} -> {native} or the other way round).\n"
		f"- 2 Medium: fill in the blank in a {target} sentence.\n"
		"- 1 Hard: find a synonym or antonym, or an advanced question in context.\n\n"
		"Every question must have exactly 4 options and correctAnswer must be copied verbatim from the options."
	)


def _question_from(item: Dict[str, Any], index: int) -> QuizQuestion:
	question = parse_entity(
		QuizQuestion,
		{
			"id": str(item.get("id") or f"q-{index}"),
			"question": item.get("question"),
			"options": item.get("options"),
			"correct_answer": item.get("correctAnswer"),
			"explanation": item.get("explanation"),
			"type": item.get("type"),
			"difficulty": item.get("difficulty"),
		},
		path=f"$[{index}]",
	)
	if len(question.options) != 4:
		logger.warning("Question %s has %d options instead of 4", question.id, len(question.options))
	if question.correct_answer not in question.options:
		# Kept as is: no option will ever be scored as correct for this question
		logger.warning("Question %s: correct answer %r is not among its options", question.id, question.correct_answer)
	return question


class QuizEngine:
	"""Multiple-choice quiz over a flashcard deck.

	Each question is answered at most once: the first `answer()` locks the
	selection until `advance()` clears it. Completing the last question awards
	a bonus of `score * 5` XP.
	"""

	def __init__(self, client: StructuredGenerationClient, on_xp: XPSink = discard_xp) -> None:
		self._client = client
		self._on_xp = on_xp
		self.questions: List[QuizQuestion] = []
		self.current_index: int = 0
		self.score: int = 0
		self.selected_option: Optional[str] = None
		self.completed: bool = False
		self.pending: bool = False

	@property
	def current_question(self) -> Optional[QuizQuestion]:
		if not self.questions:
			return None
		return self.questions[self.current_index]

	@property
	def is_answered(self) -> bool:
		return self.selected_option is not None

	async def build(self, deck: Sequence[Flashcard]) -> List[QuizQuestion]:
		if not deck:
			raise EmptyInput("cannot build a quiz from an empty deck", notice="Create some flashcards first.")
		self.pending = True
		try:
			data = await self._client.generate([TextPart(_build_quiz_prompt(deck))], QUIZ_SCHEMA)
		finally:
			self.pending = False
		questions = [_question_from(item, idx) for idx, item in enumerate(data)]
		if not questions:
			raise SchemaViolation("generator returned no questions")
		if len(questions) != QUESTION_COUNT:
			logger.info("Quiz built with %d questions (asked for %d)", len(questions), QUESTION_COUNT)
		self.questions = questions
		self.current_index = 0
		self.score = 0
		self.selected_option = None
		self.completed = False
		return list(questions)

	def answer(self, option: str) -> Optional[bool]:
		"""Record the learner's choice; returns None when the choice is ignored."""
		question = self.current_question
		if question is None:
			raise InvalidState("no quiz has been built")
		if self.completed or self.is_answered:
			return None
		self.selected_option = option
		correct = option == question.correct_answer
		if correct:
			self.score += 1
			self._on_xp(XPAwarded(XP_PER_CORRECT_ANSWER, "quiz_answer"))
		return correct

	def advance(self) -> None:
		if not self.questions:
			raise InvalidState("no quiz has been built")
		if self.completed:
			return
		self.selected_option = None
		if self.current_index < len(self.questions) - 1:
			self.current_index += 1
			return
		self.completed = True
		bonus = self.score * COMPLETION_XP_PER_POINT
		logger.info("Quiz completed with %d/%d", self.score, len(self.questions))
		if bonus:
			self._on_xp(XPAwarded(bonus, "quiz_completed"))
