from __future__ import annotations
import httpx
from typing import Any, Dict, Optional
from .settings import settings


# Markers Gemini uses in error bodies when the key itself is the problem
_AUTH_MARKERS = (
	"API key not valid",
	"API_KEY_INVALID",
	"Requested entity was not found",
	"PERMISSION_DENIED",
)


class GeminiError(RuntimeError):
	def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
		super().__init__(message)
		self.status_code = status_code


class GeminiAuthError(GeminiError):
	pass


def _is_auth_failure(status_code: int, body: str) -> bool:
	if status_code in (401, 403):
		return True
	return any(marker in body for marker in _AUTH_MARKERS)


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
			raise GeminiAuthError("GEMINI_API_KEY is not configured")
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

	async def generate_json(
		self,
		prompt: str,
		*,
		response_schema: Optional[Dict[str, Any]] = None,
		thinking_budget: Optional[int] = None,
	) -> str:
		"""Ask for a JSON body, optionally constrained by an OpenAPI-style schema.

		Returns the raw text of the first candidate; decoding is left to the caller.
		"""
		generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
		if response_schema is not None:
			generation_config["responseSchema"] = response_schema
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": generation_config,
		}
		return await self._post_payload(payload, thinking_budget=thinking_budget)

	async def _post_payload(
		self,
		payload: Dict[str, Any],
		*,
		thinking_budget: Optional[int] = None,
	) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		if thinking_budget is not None:
			try:
				budget_tokens = int(thinking_budget)
			except (TypeError, ValueError):
				budget_tokens = 0
			generation_config = {**payload.get("generationConfig", {}), "thinkingConfig": {"thinkingBudget": budget_tokens}}
			payload = {**payload, "generationConfig": generation_config}
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			if r.status_code == 400 and thinking_budget is not None and not _is_auth_failure(r.status_code, r.text):
				# Some models reject thinkingConfig; retry once without it
				fallback_config = dict(payload["generationConfig"])
				fallback_config.pop("thinkingConfig", None)
				fallback_payload = {**payload, "generationConfig": fallback_config}
				r = await self._client.post(self.base_url, params=params, headers=headers, json=fallback_payload)
		except httpx.RequestError as net_err:
			raise GeminiError(f"Gemini request failed: {net_err}") from net_err
		if r.status_code >= 400:
			if _is_auth_failure(r.status_code, r.text):
				raise GeminiAuthError(f"Gemini rejected the API key: {r.text}", status_code=r.status_code)
			raise GeminiError(f"Gemini returned HTTP {r.status_code}: {r.text}", status_code=r.status_code)
		try:
			data = r.json()
			text = data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise GeminiError(f"Unexpected Gemini response: {r.text}") from err
		if not text:
			raise GeminiError("No response from Gemini")
		return text

	async def aclose(self) -> None:
		await self._client.aclose()
