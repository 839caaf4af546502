from __future__ import annotations
import base64
import logging
import time
import httpx
from typing import Any, Dict, List, Optional, Sequence
from .errors import MalformedResponse, MissingCredential, TransportFailure
from .generation import BinaryPart, Part, TextPart
from .schema import ArraySchema, EnumSchema, NumberSchema, ObjectSchema, SchemaNode, StringSchema
from .settings import settings

logger = logging.getLogger(__name__)


def render_schema(node: SchemaNode) -> Dict[str, Any]:
	"""Render a schema tree into Gemini's ``responseSchema`` dialect."""
	out: Dict[str, Any]
	if isinstance(node, ObjectSchema):
		out = {
			"type": "OBJECT",
			"properties": {name: render_schema(child) for name, child in node.properties.items()},
		}
		if node.required:
			out["required"] = list(node.required)
	elif isinstance(node, ArraySchema):
		out = {"type": "ARRAY", "items": render_schema(node.items)}
	elif isinstance(node, EnumSchema):
		out = {"type": "STRING", "format": "enum", "enum": list(node.values)}
	elif isinstance(node, NumberSchema):
		out = {"type": "NUMBER"}
	elif isinstance(node, StringSchema):
		out = {"type": "STRING"}
	else:
		raise TypeError(f"unsupported schema node: {node!r}")
	if node.description:
		out["description"] = node.description
	if node.nullable:
		out["nullable"] = True
	return out


def _render_part(part: Part) -> Dict[str, Any]:
	if isinstance(part, TextPart):
		return {"text": part.text}
	if isinstance(part, BinaryPart):
		return {
			"inlineData": {
				"mimeType": part.mime_type,
				"data": base64.b64encode(part.data).decode("ascii"),
			}
		}
	raise TypeError(f"unsupported prompt part: {part!r}")


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise MissingCredential("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds, transport=transport)

	async def generate(
		self,
		parts: Sequence[Part],
		schema: SchemaNode,
		system_instruction: Optional[str] = None,
	) -> str:
		payload: Dict[str, Any] = {
			"contents": [{"role": "user", "parts": [_render_part(p) for p in parts]}],
			"generationConfig": {
				"responseMimeType": "application/json",
				"responseSchema": render_schema(schema),
			},
		}
		if system_instruction:
			payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
		return await self._post_payload(payload)

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		started = time.perf_counter()
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			raise TransportFailure(f"Gemini returned HTTP {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			raise TransportFailure(f"Gemini request failed: {net_err!r}") from net_err
		logger.debug("Gemini %s answered in %.0f ms", self.model, (time.perf_counter() - started) * 1000)
		try:
			data = r.json()
			texts: List[str] = [p.get("text", "") for p in data["candidates"][0]["content"]["parts"]]
		except (ValueError, KeyError, IndexError, TypeError, AttributeError) as err:
			raise MalformedResponse(f"Unexpected Gemini response: {r.text[:500]}") from err
		return "".join(texts)

	async def aclose(self) -> None:
		await self._client.aclose()
