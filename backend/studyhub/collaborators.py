"""
Collaborators the engines call but do not own: illustration lookup, audio
capture and speech synthesis.

The server cannot touch the learner's microphone or speakers, so the
implementations here hand those jobs to the browser: audio arrives as an
upload and utterances are handed back for client-side playback.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional, Protocol
from urllib.parse import quote

from .errors import InvalidState, PermissionDenied
from .settings import settings

logger = logging.getLogger(__name__)


STYLE_PROMPTS: Dict[str, str] = {
	"hand_drawn": "hand drawn sketch, pencil style, doodle, educational, white background",
	"cartoon": "cute cartoon, flat design, colorful, vector art, simple",
	"realistic": "realistic photography, high quality, 4k",
	"minimal": "minimalist icon, line art, simple, clean",
}
DEFAULT_STYLE_PROMPT = "educational illustration"


def styled_image_prompt(description: str, style: str) -> str:
	style_prompt = STYLE_PROMPTS.get(style, DEFAULT_STYLE_PROMPT)
	return f"{description}, {style_prompt}, no text, no letters"


class ImageLookup(Protocol):
	def url_for(self, prompt: str, *, seed: Optional[int] = None) -> Optional[str]: ...


class PollinationsImageLookup:
	def __init__(
		self,
		base_url: Optional[str] = None,
		*,
		width: Optional[int] = None,
		height: Optional[int] = None,
	) -> None:
		self.base_url = (base_url or settings.image_base_url).rstrip("/")
		self.width = width or settings.image_width
		self.height = height or settings.image_height

	def url_for(self, prompt: str, *, seed: Optional[int] = None) -> Optional[str]:
		prompt = (prompt or "").strip()
		if not prompt:
			return None
		url = f"{self.base_url}/{quote(prompt, safe='')}?width={self.width}&height={self.height}&nologo=true"
		if seed is not None:
			url += f"&seed={seed}"
		return url


def random_seed() -> int:
	return random.randint(0, 999)


class AudioCapture(Protocol):
	def start(self) -> None: ...

	def stop(self) -> bytes: ...

	def cancel(self) -> None: ...


class BrowserAudioCapture:
	"""Audio recorded in the browser and uploaded when the learner stops."""

	def __init__(self) -> None:
		self.permission_granted = True
		self._recording = False
		self._payload: Optional[bytes] = None

	@property
	def recording(self) -> bool:
		return self._recording

	def start(self) -> None:
		if not self.permission_granted:
			raise PermissionDenied("microphone access was refused")
		self._recording = True
		self._payload = None

	def deliver(self, data: bytes) -> None:
		if not self._recording:
			raise InvalidState("no recording in progress")
		self._payload = data

	def stop(self) -> bytes:
		if not self._recording:
			raise InvalidState("no recording in progress")
		data = self._payload or b""
		self._recording = False
		self._payload = None
		return data

	def cancel(self) -> None:
		self._recording = False
		self._payload = None


@dataclass(frozen=True)
class Utterance:
	text: str
	lang: str


class SpeechSynthesis(Protocol):
	def speak(self, text: str, lang: str) -> None: ...

	def cancel(self) -> None: ...


class DeferredSpeechSynthesizer:
	"""Keeps the utterance the browser should currently be speaking."""

	def __init__(self) -> None:
		self.current: Optional[Utterance] = None

	def speak(self, text: str, lang: str) -> None:
		self.current = Utterance(text=text, lang=lang)
		logger.debug("Queued %d chars of speech in %s", len(text), lang)

	def cancel(self) -> None:
		self.current = None
