"""Analysis service HTTP client — executes one analysis function per call."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from agenticflows.config import settings

logger = logging.getLogger("agenticflows.connectors.analysis")


class AnalysisResponse(BaseModel):
    analysis_type: str = ""
    results: Any = None
    confidence: float | None = None
    # The service sends either a plain message or {"code": ..., "message": ...}
    error: str | dict[str, Any] | None = None

    @property
    def error_message(self) -> str | None:
        if not self.error:
            return None
        if isinstance(self.error, dict):
            code = self.error.get("code")
            message = self.error.get("message") or "Unknown analysis error"
            return f"{code}: {message}" if code else message
        return self.error


class AnalysisClient:
    """
    Talks to the remote analysis service.

    Protocol contract:
      POST {base_url}{ANALYSIS_PATH}
      Body: {
        "workflow_id": "...",          (optional)
        "analysis_type": "trends",
        "text": "...",                 (optional)
        "parameters": {...},
        "data": {...}                  (optional)
      }
      Response: {
        "analysis_type": "trends",
        "results": {...},
        "confidence": 0.9,             (optional)
        "error": "..."                 (optional; non-empty means failure)
      }
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ANALYSIS_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ANALYSIS_TIMEOUT_SECONDS
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=transport)

    async def analyze(
        self,
        analysis_type: str,
        *,
        parameters: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        text: str | None = None,
        workflow_id: str | None = None,
    ) -> AnalysisResponse:
        """Run a single analysis function and return its standard response."""
        payload: dict[str, Any] = {
            "analysis_type": analysis_type,
            "parameters": parameters or {},
        }
        if workflow_id:
            payload["workflow_id"] = workflow_id
        if text:
            payload["text"] = text
        if data is not None:
            payload["data"] = data

        headers = {"X-Workflow-ID": workflow_id} if workflow_id else None
        logger.info("Analysis call: %s type=%s workflow=%s", self.base_url, analysis_type, workflow_id)

        data_out = await self._request(analysis_type, "POST", settings.ANALYSIS_PATH, json=payload, headers=headers)

        if settings.ANALYSIS_STRICT_RESPONSE_SCHEMA:
            try:
                response = AnalysisResponse.model_validate(data_out)
            except ValidationError as exc:
                raise AnalysisServiceError(
                    analysis_type,
                    f"Invalid analysis response schema: {exc.errors()[0].get('msg', 'validation error')}",
                ) from exc
            if "results" not in data_out and not response.error:
                raise AnalysisServiceError(analysis_type, "Invalid analysis response schema: missing 'results'")
        elif "results" in data_out or "error" in data_out:
            try:
                response = AnalysisResponse.model_validate(data_out)
            except ValidationError as exc:
                raise AnalysisServiceError(analysis_type, "Analysis response could not be parsed") from exc
        else:
            logger.warning(
                "Bare analysis response (missing results envelope) accepted for type=%s",
                analysis_type,
            )
            response = AnalysisResponse(analysis_type=analysis_type, results=data_out)

        if response.error_message:
            raise AnalysisServiceError(analysis_type, response.error_message)
        if not response.analysis_type:
            response.analysis_type = analysis_type
        return response

    async def chain_analysis(
        self,
        workflow_id: str,
        input_data: dict[str, Any],
        config: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run the service-side multi-step chain in one call (bypasses graph execution)."""
        payload = {"workflow_id": workflow_id, "input_data": input_data, "config": config or {}}
        logger.info("Chain analysis call: %s workflow=%s", self.base_url, workflow_id)
        return await self._request("chain", "POST", settings.ANALYSIS_CHAIN_PATH, json=payload)

    async def get_function_metadata(self) -> dict[str, Any]:
        """Fetch declared inputs/outputs of the service's analysis functions."""
        return await self._request("metadata", "GET", settings.ANALYSIS_METADATA_PATH)

    async def health_check(self) -> bool:
        """Check if the analysis service is reachable."""
        try:
            resp = await self._client.get("/health")
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self):
        await self._client.aclose()

    async def _request(self, analysis_type: str, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise AnalysisServiceError(analysis_type, _status_error_message(exc.response)) from exc
        except httpx.RequestError as exc:
            raise AnalysisServiceError(analysis_type, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise AnalysisServiceError(analysis_type, "Response is not valid JSON") from exc

        if not isinstance(data, dict):
            raise AnalysisServiceError(analysis_type, "Analysis response must be a JSON object")
        return data


def _status_error_message(resp: httpx.Response) -> str:
    """``HTTP 500``, plus the service's own error message when the body carries one."""
    message = f"HTTP {resp.status_code}"
    try:
        body = resp.json()
    except ValueError:
        return message
    if isinstance(body, dict) and isinstance(body.get("error"), (str, dict)) and body["error"]:
        detail = AnalysisResponse(error=body["error"]).error_message
        if detail:
            message = f"{message}: {detail}"
    return message


class AnalysisServiceError(Exception):
    def __init__(self, analysis_type: str, message: str):
        self.analysis_type = analysis_type
        self.message = message
        super().__init__(f"Analysis '{analysis_type}' failed: {message}")
