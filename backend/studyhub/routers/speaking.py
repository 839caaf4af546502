"""
Speaking practice endpoints.

The browser records audio and uploads it base64-encoded. Two flows are
supported: explicit recording control (`/recording/start`, `/recording/stop`,
`/recording/cancel`) and one-shot submissions per mode (`/free`,
`/dialogue/{line_id}`, `/chat`).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..collaborators import BrowserAudioCapture
from ..dashboard import Dashboard
from ..models import ChatMessage, DialogueLine, ModuleType, SpeakingFeedback, SpeakingMode
from ..speaking import SpeakingSessionEngine
from .deps import decode_base64, get_dashboard, open_engine, peek_engine


router = APIRouter(prefix="/speaking", tags=["speaking"])


class ModeRequest(BaseModel):
	mode: SpeakingMode


class StartRecordingRequest(BaseModel):
	line_id: Optional[str] = None
	# The browser reports whether getUserMedia was allowed
	microphone_allowed: bool = True


class AudioRequest(BaseModel):
	audio_base64: str


class DialogueRequest(BaseModel):
	topic: str


class SpeakingView(BaseModel):
	mode: SpeakingMode
	recording: bool
	recording_line_id: Optional[str] = None
	free_feedback: Optional[SpeakingFeedback] = None
	topic: str
	dialogue: List[DialogueLine]
	chat_history: List[ChatMessage]


class ChatTurnResponse(BaseModel):
	user: ChatMessage
	ai: ChatMessage
	history: List[ChatMessage]


def _engine(dashboard: Dashboard) -> SpeakingSessionEngine:
	return open_engine(dashboard, ModuleType.SPEAKING, SpeakingSessionEngine)


def _view(engine: SpeakingSessionEngine) -> SpeakingView:
	return SpeakingView(
		mode=engine.mode,
		recording=engine.recording is not None,
		recording_line_id=engine.recording.line_id if engine.recording else None,
		free_feedback=engine.free_feedback,
		topic=engine.topic,
		dialogue=engine.dialogue,
		chat_history=engine.chat_history,
	)


@router.get("", response_model=SpeakingView)
async def get_state(dashboard: Dashboard = Depends(get_dashboard)):
	return _view(peek_engine(dashboard, ModuleType.SPEAKING, SpeakingSessionEngine))


@router.post("/mode", response_model=SpeakingView)
async def switch_mode(req: ModeRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.switch_mode(req.mode)
	return _view(engine)


@router.post("/recording/start", response_model=SpeakingView)
async def start_recording(req: StartRecordingRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	if isinstance(engine.capture, BrowserAudioCapture):
		engine.capture.permission_granted = req.microphone_allowed
	engine.start_recording(req.line_id)
	return _view(engine)


@router.post("/recording/stop", response_model=SpeakingView)
async def stop_recording(req: AudioRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	audio = decode_base64(req.audio_base64)
	if isinstance(engine.capture, BrowserAudioCapture) and engine.recording is not None:
		engine.capture.deliver(audio)
	await engine.stop_recording()
	return _view(engine)


@router.post("/recording/cancel", response_model=SpeakingView)
async def cancel_recording(dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	engine.cancel_recording()
	return _view(engine)


@router.post("/free", response_model=SpeakingFeedback)
async def submit_free(req: AudioRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	return await engine.submit(decode_base64(req.audio_base64))


@router.post("/dialogue", response_model=List[DialogueLine])
async def generate_dialogue(req: DialogueRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	return await engine.generate_dialogue(req.topic)


@router.post("/dialogue/{line_id}", response_model=SpeakingFeedback)
async def submit_line(line_id: str, req: AudioRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	return await engine.submit_for_line(decode_base64(req.audio_base64), line_id)


@router.post("/chat", response_model=ChatTurnResponse)
async def submit_chat_turn(req: AudioRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	user_msg, ai_msg = await engine.submit_turn(decode_base64(req.audio_base64))
	return ChatTurnResponse(user=user_msg, ai=ai_msg, history=engine.chat_history)
