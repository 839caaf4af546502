from __future__ import annotations
import base64
import binascii
from typing import Type, TypeVar
from fastapi import HTTPException
from ..dashboard import Dashboard, Engine
from ..errors import InvalidState
from ..models import ModuleType

E = TypeVar("E")

# Single learner per process; sessions live only in memory
_dashboard = Dashboard()


def get_dashboard() -> Dashboard:
	return _dashboard


def _checked(engine: Engine, module: ModuleType, kind: Type[E]) -> E:
	if not isinstance(engine, kind):
		raise InvalidState(f"{module.value} is backed by {type(engine).__name__}, not {kind.__name__}")
	return engine


def open_engine(dashboard: Dashboard, module: ModuleType, kind: Type[E]) -> E:
	"""Engine for a tool action; switches the dashboard to that tool."""
	return _checked(dashboard.open(module), module, kind)


def peek_engine(dashboard: Dashboard, module: ModuleType, kind: Type[E]) -> E:
	"""Engine for a read; leaves whatever tool is open untouched."""
	engine = dashboard.current(module)
	if engine is None:
		engine = dashboard.blank(module)
	return _checked(engine, module, kind)


def decode_base64(data: str, *, field: str = "audio_base64") -> bytes:
	# Accept data URLs as produced by FileReader.readAsDataURL
	if data.startswith("data:") and "," in data:
		data = data.split(",", 1)[1]
	try:
		return base64.b64decode(data, validate=True)
	except (binascii.Error, ValueError):
		raise HTTPException(status_code=400, detail=f"{field} is not valid base64")
