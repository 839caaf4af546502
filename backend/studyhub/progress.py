"""XP side channel: engines emit `XPAwarded`, one tracker aggregates it."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from .models import UserStats
from .settings import settings

logger = logging.getLogger(__name__)


# Only the most recent awards are kept for the history view
HISTORY_LIMIT = 200


@dataclass(frozen=True)
class XPAwarded:
	amount: int
	source: str


XPSink = Callable[[XPAwarded], object]


def level_for_xp(xp: int, xp_per_level: int = 100) -> int:
	return max(0, xp) // xp_per_level + 1


def discard_xp(event: XPAwarded) -> None:
	"""Sink for engines used without a tracker."""
	return None


class ProgressTracker:
	def __init__(
		self,
		stats: Optional[UserStats] = None,
		*,
		xp_per_level: Optional[int] = None,
		history_limit: int = HISTORY_LIMIT,
	) -> None:
		self.xp_per_level = xp_per_level or settings.xp_per_level
		self._stats = (stats or UserStats()).model_copy(deep=True)
		self._stats.level = level_for_xp(self._stats.xp, self.xp_per_level)
		self.history: Deque[XPAwarded] = deque(maxlen=history_limit)

	@property
	def stats(self) -> UserStats:
		return self._stats.model_copy(deep=True)

	def record(self, event: XPAwarded) -> Optional[int]:
		"""Apply an award; return the new level when it went up, else None."""
		if event.amount <= 0:
			return None
		self.history.append(event)
		previous = self._stats.level
		self._stats.xp += event.amount
		self._stats.level = level_for_xp(self._stats.xp, self.xp_per_level)
		logger.info("+%d XP from %s (total %d)", event.amount, event.source, self._stats.xp)
		if self._stats.level > previous:
			logger.info("Level up: %d -> %d", previous, self._stats.level)
			return self._stats.level
		return None
