from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File
from pydantic import BaseModel
from ..dashboard import Dashboard
from ..models import ModuleType, SourceInput, WritingAnalysis
from ..writing import WritingEngine
from .deps import get_dashboard, open_engine, peek_engine


router = APIRouter(prefix="/write", tags=["writing"])


class ScoreTextRequest(BaseModel):
	text: str


class WritingView(BaseModel):
	result: Optional[WritingAnalysis] = None


def _engine(dashboard: Dashboard) -> WritingEngine:
	return open_engine(dashboard, ModuleType.WRITING, WritingEngine)


@router.get("", response_model=WritingView)
async def get_state(dashboard: Dashboard = Depends(get_dashboard)):
	engine = peek_engine(dashboard, ModuleType.WRITING, WritingEngine)
	return WritingView(result=engine.result)


@router.post("/score/text", response_model=WritingAnalysis)
async def score_text(req: ScoreTextRequest, dashboard: Dashboard = Depends(get_dashboard)):
	engine = _engine(dashboard)
	return await engine.analyze(SourceInput(kind="text", text=req.text))


@router.post("/score/image", response_model=WritingAnalysis)
async def score_image(
	file: UploadFile = File(...),
	dashboard: Dashboard = Depends(get_dashboard),
):
	engine = _engine(dashboard)
	content = await file.read()
	# The model reads the handwriting itself; no local OCR step
	source = SourceInput(kind="image", image=content, mime_type=file.content_type or "image/jpeg")
	return await engine.analyze(source)
