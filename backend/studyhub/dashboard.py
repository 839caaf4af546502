from __future__ import annotations

import logging
from typing import Optional, Union

from .content import ContentAnalysisEngine
from .errors import InvalidState
from .flashcards import FlashcardSessionEngine
from .generation import StructuredGenerationClient
from .models import ModuleType, UserStats
from .progress import ProgressTracker
from .speaking import SpeakingSessionEngine
from .writing import WritingEngine

logger = logging.getLogger(__name__)


Engine = Union[FlashcardSessionEngine, WritingEngine, SpeakingSessionEngine, ContentAnalysisEngine]


class Dashboard:
	"""The tabbed study hub: one live tool at a time, one progress tracker.

	Opening a different tool throws the previous tool's session away, the way
	leaving a tab discards everything on it.
	"""

	def __init__(
		self,
		client: Optional[StructuredGenerationClient] = None,
		progress: Optional[ProgressTracker] = None,
	) -> None:
		self.client = client or StructuredGenerationClient()
		self.progress = progress or ProgressTracker()
		self.module: ModuleType = ModuleType.DASHBOARD
		self.engine: Optional[Engine] = None

	def _create(self, module: ModuleType) -> Engine:
		on_xp = self.progress.record
		if module == ModuleType.FLASHCARD:
			return FlashcardSessionEngine(self.client, on_xp)
		if module == ModuleType.WRITING:
			return WritingEngine(self.client, on_xp)
		if module == ModuleType.SPEAKING:
			return SpeakingSessionEngine(self.client, on_xp)
		return ContentAnalysisEngine(self.client, on_xp)

	def _close_current(self) -> None:
		engine = self.engine
		if isinstance(engine, SpeakingSessionEngine):
			engine.cancel_recording()
		elif isinstance(engine, ContentAnalysisEngine):
			engine.stop_playback()
		self.engine = None

	def switch(self, module: ModuleType) -> Optional[Engine]:
		module = ModuleType(module)
		if module == self.module:
			return self.engine
		self._close_current()
		logger.info("Switching tool %s -> %s", self.module.value, module.value)
		self.module = module
		if module != ModuleType.DASHBOARD:
			self.engine = self._create(module)
		return self.engine

	def open(self, module: ModuleType) -> Engine:
		module = ModuleType(module)
		if module == ModuleType.DASHBOARD:
			raise InvalidState("the dashboard has no study session")
		engine = self.switch(module)
		if engine is None:
			raise InvalidState(f"no session for {module.value}")
		return engine

	def current(self, module: ModuleType) -> Optional[Engine]:
		"""The live engine for ``module`` if that tool is open; never switches."""
		if ModuleType(module) != self.module:
			return None
		return self.engine

	def blank(self, module: ModuleType) -> Engine:
		"""A fresh, unattached engine, used to render an untouched tool."""
		module = ModuleType(module)
		if module == ModuleType.DASHBOARD:
			raise InvalidState("the dashboard has no study session")
		return self._create(module)

	def stats(self) -> UserStats:
		return self.progress.stats
