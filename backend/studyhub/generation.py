"""
Structured generation: prompt parts in, schema-checked JSON out.

`StructuredGenerationClient` is the only way engines talk to the model. It
opens one generator per call (a `GeminiClient` unless a factory is injected),
parses the reply as JSON and validates it against the requested schema.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence, Union

from .errors import EmptyInput, MalformedResponse, SchemaViolation
from .schema import SchemaNode, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextPart:
	text: str


@dataclass(frozen=True)
class BinaryPart:
	data: bytes
	mime_type: str


Part = Union[TextPart, BinaryPart]


class ContentGenerator(Protocol):
	async def generate(
		self,
		parts: Sequence[Part],
		schema: SchemaNode,
		system_instruction: Optional[str] = None,
	) -> str: ...

	async def aclose(self) -> None: ...


GeneratorFactory = Callable[[], ContentGenerator]


def _default_generator() -> ContentGenerator:
	from .gemini_client import GeminiClient

	return GeminiClient()


_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json(text: str) -> Any:
	"""Parse model output as JSON.

	Tries the whole text first, then a fenced block, then the outermost
	object or array found in the text.

	Raises:
		MalformedResponse: if none of the candidates parse.
	"""
	candidates = [text]
	fenced = _FENCE_RE.search(text or "")
	if fenced:
		candidates.append(fenced.group(1))
	for pattern in (r"\{[\s\S]*\}", r"\[[\s\S]*\]"):
		match = re.search(pattern, text or "")
		if match:
			candidates.append(match.group(0))
	for candidate in candidates:
		try:
			return json.loads(candidate)
		except (TypeError, ValueError):
			continue
	raise MalformedResponse(f"Failed to parse JSON from generator output: {(text or '')[:200]!r}")


class StructuredGenerationClient:
	def __init__(self, generator_factory: Optional[GeneratorFactory] = None) -> None:
		self._factory = generator_factory or _default_generator

	async def generate(
		self,
		parts: Sequence[Part],
		schema: SchemaNode,
		system_instruction: Optional[str] = None,
	) -> Any:
		if not parts:
			raise EmptyInput("at least one prompt part is required")
		# Raises MissingCredential before any network attempt
		generator = self._factory()
		try:
			raw = await generator.generate(parts, schema, system_instruction)
		finally:
			await generator.aclose()
		data = extract_json(raw)
		try:
			return validate(schema, data)
		except SchemaViolation:
			logger.warning("Generator output failed schema validation: %s", (raw or "")[:500])
			raise


__all__ = [
	"TextPart",
	"BinaryPart",
	"Part",
	"ContentGenerator",
	"GeneratorFactory",
	"StructuredGenerationClient",
	"extract_json",
]
