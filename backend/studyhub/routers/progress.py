from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from ..dashboard import Dashboard
from ..models import ModuleType, UserStats
from .deps import get_dashboard


router = APIRouter(tags=["progress"])


class SwitchModuleRequest(BaseModel):
	module: ModuleType


class DashboardView(BaseModel):
	module: ModuleType
	stats: UserStats


class XPEventView(BaseModel):
	amount: int
	source: str


@router.get("/progress", response_model=UserStats)
async def get_progress(dashboard: Dashboard = Depends(get_dashboard)):
	return dashboard.stats()


@router.get("/progress/history", response_model=List[XPEventView])
async def get_history(limit: Optional[int] = None, dashboard: Dashboard = Depends(get_dashboard)):
	events = list(dashboard.progress.history)
	if limit is not None:
		events = events[-limit:] if limit > 0 else []
	return [XPEventView(amount=e.amount, source=e.source) for e in events]


@router.get("/dashboard", response_model=DashboardView)
async def get_dashboard_state(dashboard: Dashboard = Depends(get_dashboard)):
	return DashboardView(module=dashboard.module, stats=dashboard.stats())


@router.post("/dashboard/module", response_model=DashboardView)
async def switch_module(req: SwitchModuleRequest, dashboard: Dashboard = Depends(get_dashboard)):
	dashboard.switch(req.module)
	return DashboardView(module=dashboard.module, stats=dashboard.stats())
