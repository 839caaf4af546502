from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..collaborators import DeferredSpeechSynthesizer, Utterance
from ..content import ContentAnalysisEngine, PlaybackState
from ..dashboard import Dashboard
from ..models import AnalysisMode, AnalysisOptions, ContentAnalysisResult, InputKind, ModuleType, SourceInput, SummaryLength
from .deps import decode_base64, get_dashboard, open_engine, peek_engine


router = APIRouter(prefix="/mindmap", tags=["mindmap"])


class AnalyzeRequest(BaseModel):
	kind: InputKind = "text"
	text: Optional[str] = None
	image_base64: Optional[str] = None
	mime_type: str = "image/jpeg"
	summary_length: SummaryLength = "medium"
	mode: AnalysisMode = "both"


class PlayRequest(BaseModel):
	lang: Optional[str] = None


class PlaybackView(BaseModel):
	state: PlaybackState
	utterance: Optional[Utterance] = None


class MindmapView(BaseModel):
	result: Optional[ContentAnalysisResult] = None
	playback: PlaybackView


def _engine(dashboard: Dashboard) -> ContentAnalysisEngine:
	return open_engine(dashboard, ModuleType.MINDMAP, ContentAnalysisEngine)


def _playback(engine: ContentAnalysisEngine) -> PlaybackView:
	utterance = None
	if isinstance(engine.speech, DeferredSpeechSynthesizer):
		utterance = engine.speech.current
	return PlaybackView(state=engine.playback, utterance=utterance)


@router.get("", response_model=MindmapView)
async def get_state(dashboard: Dashboard = Depends(get_dashboard)):
	engine = peek_engine(dashboard, ModuleType.MINDMAP, ContentAnalysisEngine)
	return MindmapView(result=engine.result, playback=_playback(engine))


@router.post("/analyze", response_model=ContentAnalysisResult)
async def analyze(req: AnalyzeRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	if req.kind == "image":
		if not req.image_base64:
			raise HTTPException(status_code=400, detail="image_base64 is required")
		source = SourceInput(kind="image", image=decode_base64(req.image_base64, field="image_base64"), mime_type=req.mime_type)
	else:
		source = SourceInput(kind="text", text=req.text or "")
	options = AnalysisOptions(summary_length=req.summary_length, mode=req.mode)
	return await engine.analyze(source, options)


@router.post("/audio", response_model=PlaybackView)
async def toggle_audio(req: PlayRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.play_summary_audio(req.lang)
	return _playback(engine)


@router.post("/audio/finished", response_model=PlaybackView)
async def audio_finished(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.playback_finished()
	return _playback(engine)
