"""
Content analysis: summary, keywords and a mindmap from pasted text or a
photo, plus toggle-style read-aloud of the summary.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .collaborators import DeferredSpeechSynthesizer, SpeechSynthesis
from .errors import EmptyInput, InvalidState
from .generation import BinaryPart, Part, StructuredGenerationClient, TextPart
from .models import AnalysisOptions, ContentAnalysisResult, MindMapNode, SourceInput, parse_entity
from .progress import XPAwarded, XPSink, discard_xp
from .schema import ArraySchema, ObjectSchema, SchemaNode, StringSchema, nullable
from .settings import settings

logger = logging.getLogger(__name__)


XP_PER_ANALYSIS = 30
MAX_MINDMAP_DEPTH = 3
SUMMARY_WORD_BANDS: Dict[str, Tuple[int, int]] = {
	"short": (30, 50),
	"medium": (80, 120),
	"long": (180, 250),
}
NODE_COLORS = ["#FDE68A", "#BFDBFE", "#FBCFE8", "#BBF7D0", "#DDD6FE", "#FED7AA"]


def _node_schema(levels: int) -> ObjectSchema:
	"""Mindmap node schema with exactly ``levels`` levels, the last one childless."""
	properties: Dict[str, SchemaNode] = {
		"id": StringSchema(),
		"label": StringSchema(),
		"note": StringSchema(description="Short description of this idea (5-10 words)"),
		"color": StringSchema(),
	}
	if levels > 1:
		properties["children"] = ArraySchema(items=_node_schema(levels - 1))
	return ObjectSchema(properties=properties, required=("id", "label"))


_ROOT_NODE_SCHEMA = _node_schema(MAX_MINDMAP_DEPTH)
ROOT_NODE_SCHEMA = ObjectSchema(
	properties=_ROOT_NODE_SCHEMA.properties,
	required=("id", "label", "children", "color"),
)

ANALYSIS_SCHEMA = ObjectSchema(
	properties={
		"summary": StringSchema(),
		"keywords": ArraySchema(items=StringSchema()),
		"rootNode": nullable(ROOT_NODE_SCHEMA),
	},
	required=("summary", "keywords"),
)


def _analysis_task(options: AnalysisOptions) -> str:
	low, high = SUMMARY_WORD_BANDS[options.summary_length]
	if options.mode == "summary":
		mindmap_task = "3. MINDMAP: set rootNode to null."
	else:
		mindmap_task = (
			"3. MINDMAP: build a tree (JSON) for a mindmap with exactly 1 main topic and 4-6 branches; "
			f"at most {MAX_MINDMAP_DEPTH} levels including the main topic."
		)
	return (
		"You are a study assistant. Analyse the input content.\n"
		f"1. SUMMARY: write a clear summary that high school students can follow, in {settings.native_language}. "
		f"Length: {low}-{high} words.\n"
		"2. KEYWORDS: extract the 3-5 most important keywords.\n"
		f"{mindmap_task}"
	)


def _node_from(data: Dict[str, Any], depth: int = 1, index: int = 0) -> MindMapNode:
	children_data = data.get("children") or []
	if depth >= MAX_MINDMAP_DEPTH and children_data:
		logger.warning("Dropping %d mindmap nodes nested below level %d", len(children_data), MAX_MINDMAP_DEPTH)
		children_data = []
	children = [_node_from(child, depth + 1, idx) for idx, child in enumerate(children_data)]
	return parse_entity(
		MindMapNode,
		{
			"id": str(data["id"]),
			"label": data["label"],
			"color": data.get("color") or NODE_COLORS[index % len(NODE_COLORS)],
			"note": data.get("note"),
			"children": children,
		},
	)


class PlaybackState(str, Enum):
	IDLE = "IDLE"
	PLAYING = "PLAYING"


class ContentAnalysisEngine:
	def __init__(
		self,
		client: StructuredGenerationClient,
		on_xp: XPSink = discard_xp,
		*,
		speech: Optional[SpeechSynthesis] = None,
	) -> None:
		self._client = client
		self._on_xp = on_xp
		self.speech: SpeechSynthesis = speech or DeferredSpeechSynthesizer()
		self.result: Optional[ContentAnalysisResult] = None
		self.playback: PlaybackState = PlaybackState.IDLE
		self.pending: bool = False

	async def analyze(self, source: SourceInput, options: Optional[AnalysisOptions] = None) -> ContentAnalysisResult:
		options = options or AnalysisOptions()
		if source.is_empty():
			raise EmptyInput("nothing to analyse", notice="Please enter some text or choose an image.")
		self.stop_playback()
		task = _analysis_task(options)
		parts: List[Part]
		if source.kind == "image":
			parts = [BinaryPart(data=source.image, mime_type=source.mime_type), TextPart(task)]
		else:
			parts = [TextPart(f"Content: \"{source.text}\".\n\n{task}")]
		self.pending = True
		try:
			data = await self._client.generate(parts, ANALYSIS_SCHEMA)
		finally:
			self.pending = False
		root_data = data.get("rootNode")
		root = _node_from(root_data) if root_data and options.mode != "summary" else None
		result = parse_entity(
			ContentAnalysisResult,
			{"summary": data["summary"], "keywords": data["keywords"], "root_node": root},
		)
		self.result = result
		self._on_xp(XPAwarded(XP_PER_ANALYSIS, "content_analysis"))
		return result

	def play_summary_audio(self, lang: Optional[str] = None) -> PlaybackState:
		"""Start reading the summary aloud, or stop if it is already playing."""
		if self.playback == PlaybackState.PLAYING:
			self.cancel_playback()
			return self.playback
		if self.result is None or not self.result.summary:
			raise InvalidState("there is no summary to read")
		lang = lang or settings.native_locale
		if lang not in (settings.target_locale, settings.native_locale):
			raise InvalidState(f"unsupported speech language {lang!r}")
		self.speech.speak(self.result.summary, lang)
		self.playback = PlaybackState.PLAYING
		return self.playback

	def cancel_playback(self) -> None:
		if self.playback != PlaybackState.PLAYING:
			raise InvalidState("nothing is playing")
		self.speech.cancel()
		self.playback = PlaybackState.IDLE

	def playback_finished(self) -> None:
		self.playback = PlaybackState.IDLE

	def stop_playback(self) -> None:
		if self.playback == PlaybackState.PLAYING:
			self.cancel_playback()
