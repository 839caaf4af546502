from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dashboard import Dashboard
from ..errors import InvalidState
from ..flashcards import DeckState, FlashcardSessionEngine
from ..models import Flashcard, FlashcardLevel, FlashcardStyle, ModuleType, QuizQuestion
from ..quiz import QuizEngine
from .deps import get_dashboard, open_engine, peek_engine


router = APIRouter(prefix="/flashcards", tags=["flashcards"])


class GenerateRequest(BaseModel):
	mode: Literal["topic", "list"] = "topic"
	input: str


class SingleCardRequest(BaseModel):
	word: str
	topic: str = "Daily Life"
	level: FlashcardLevel = "medium"
	style: FlashcardStyle = "hand_drawn"


class ReviewRequest(BaseModel):
	mastered: bool


class AnswerRequest(BaseModel):
	option: str


class QuizView(BaseModel):
	questions: List[QuizQuestion]
	current_index: int
	score: int
	selected_option: Optional[str] = None
	completed: bool


class DeckView(BaseModel):
	state: DeckState
	cards: List[Flashcard]
	current_index: int
	is_flipped: bool
	deck_finished: bool
	preview: Optional[Flashcard] = None
	quiz: Optional[QuizView] = None


class AnswerResponse(BaseModel):
	correct: Optional[bool] = None
	quiz: QuizView


def _engine(dashboard: Dashboard) -> FlashcardSessionEngine:
	return open_engine(dashboard, ModuleType.FLASHCARD, FlashcardSessionEngine)


def _quiz_view(quiz: QuizEngine) -> QuizView:
	return QuizView(
		questions=quiz.questions,
		current_index=quiz.current_index,
		score=quiz.score,
		selected_option=quiz.selected_option,
		completed=quiz.completed,
	)


def _deck_view(engine: FlashcardSessionEngine) -> DeckView:
	return DeckView(
		state=engine.state,
		cards=engine.deck,
		current_index=engine.current_index,
		is_flipped=engine.is_flipped,
		deck_finished=engine.deck_finished,
		preview=engine.preview,
		quiz=_quiz_view(engine.quiz) if engine.quiz is not None else None,
	)


def _quiz(engine: FlashcardSessionEngine) -> QuizEngine:
	if engine.quiz is None:
		raise InvalidState("no quiz in progress", notice="Start a quiz first.")
	return engine.quiz


def _active_quiz(engine: FlashcardSessionEngine) -> QuizView:
	return _quiz_view(_quiz(engine))


@router.get("", response_model=DeckView)
async def get_deck(dashboard: Dashboard = Depends(get_dashboard)):
	return _deck_view(peek_engine(dashboard, ModuleType.FLASHCARD, FlashcardSessionEngine))


@router.post("/generate", response_model=DeckView)
async def generate(req: GenerateRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	if req.mode == "list":
		await engine.generate_from_word_list(req.input)
	else:
		await engine.generate_from_topic(req.input)
	return _deck_view(engine)


@router.post("/single", response_model=Flashcard)
async def generate_single(req: SingleCardRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	return await engine.generate_single_card(req.word, req.topic, req.level, req.style)


@router.post("/preview/commit", response_model=DeckView)
async def commit_preview(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.commit_preview()
	return _deck_view(engine)


@router.post("/preview/discard", response_model=DeckView)
async def discard_preview(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.discard_preview()
	return _deck_view(engine)


@router.post("/flip", response_model=DeckView)
async def flip(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.flip()
	return _deck_view(engine)


@router.post("/review", response_model=DeckView)
async def review(req: ReviewRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.review_current(req.mastered)
	return _deck_view(engine)


@router.post("/restart", response_model=DeckView)
async def restart(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.restart()
	return _deck_view(engine)


@router.post("/quiz/start", response_model=QuizView)
async def start_quiz(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	await engine.begin_quiz()
	return _active_quiz(engine)


@router.post("/quiz/answer", response_model=AnswerResponse)
async def answer(req: AnswerRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	correct = _quiz(engine).answer(req.option)
	return AnswerResponse(correct=correct, quiz=_active_quiz(engine))


@router.post("/quiz/next", response_model=QuizView)
async def next_question(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	_quiz(engine).advance()
	return _active_quiz(engine)


@router.post("/quiz/leave", response_model=DeckView)
async def leave_quiz(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.return_to_review()
	return _deck_view(engine)
