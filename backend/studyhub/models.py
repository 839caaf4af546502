"""Pydantic models for the entities held in a study session."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .errors import SchemaViolation


class ModuleType(str, Enum):
	DASHBOARD = "DASHBOARD"
	FLASHCARD = "FLASHCARD"
	WRITING = "WRITING"
	SPEAKING = "SPEAKING"
	MINDMAP = "MINDMAP"


class SpeakingMode(str, Enum):
	FREE = "FREE"
	TOPIC = "TOPIC"
	CHAT = "CHAT"


FlashcardStyle = Literal["hand_drawn", "cartoon", "realistic", "minimal"]
FlashcardLevel = Literal["easy", "medium", "hard"]
SummaryLength = Literal["short", "medium", "long"]
AnalysisMode = Literal["summary", "mindmap", "both"]
InputKind = Literal["text", "image"]


class Flashcard(BaseModel):
	id: str
	word: str
	pronunciation: str
	meaning: str
	example: str
	image_url: Optional[str] = None
	status: Literal["new", "learning", "mastered"] = "new"
	topic: Optional[str] = None
	level: Optional[FlashcardLevel] = None


class QuizQuestion(BaseModel):
	id: str
	question: str
	options: List[str]
	correct_answer: str
	explanation: str
	type: Literal["meaning", "fill-blank", "synonym", "antonym"]
	difficulty: Literal["easy", "medium", "hard"]


class SpeakingFeedback(BaseModel):
	transcript: str
	score: float = Field(ge=0, le=10)
	comment: str
	mistakes: List[str] = Field(default_factory=list)
	correction: str
	encouragement: str


class DialogueLine(BaseModel):
	id: str
	speaker: Literal["Student", "AI"]
	text: str
	feedback: Optional[SpeakingFeedback] = None


class Correction(BaseModel):
	original: str
	fixed: str
	explanation: str


class ChatMessage(BaseModel):
	id: str
	sender: Literal["user", "ai"]
	text: str
	correction: Optional[Correction] = None


class MindMapNode(BaseModel):
	id: str
	label: str
	color: str
	note: Optional[str] = None
	children: List["MindMapNode"] = Field(default_factory=list)

	def depth(self) -> int:
		return 1 + max((c.depth() for c in self.children), default=0)


class AnalysisOptions(BaseModel):
	summary_length: SummaryLength = "medium"
	mode: AnalysisMode = "both"


class ContentAnalysisResult(BaseModel):
	summary: str
	keywords: List[str] = Field(default_factory=list)
	root_node: Optional[MindMapNode] = None


class WritingMistake(BaseModel):
	original: str
	correction: str
	explanation: str


class WritingAnalysis(BaseModel):
	score: float
	vocab_score: float
	grammar_score: float
	coherence_score: float
	feedback: str
	corrected_text: str
	mistakes: List[WritingMistake] = Field(default_factory=list)


class SourceInput(BaseModel):
	"""Text typed by the learner or a photo of a page (raw image bytes)."""

	kind: InputKind
	text: str = ""
	image: bytes = b""
	mime_type: str = "image/jpeg"

	def is_empty(self) -> bool:
		if self.kind == "image":
			return not self.image
		return not self.text.strip()


class UserStats(BaseModel):
	xp: int = 0
	level: int = 1
	streak: int = 0
	badges: List[str] = Field(default_factory=list)


MindMapNode.model_rebuild()


M = TypeVar("M", bound=BaseModel)


def parse_entity(model: Type[M], data: Any, *, path: str = "$") -> M:
	"""Build an entity from generator data, reporting bad fields as SchemaViolation."""
	try:
		return model.model_validate(data)
	except ValidationError as err:
		raise SchemaViolation(str(err), path=path) from err
