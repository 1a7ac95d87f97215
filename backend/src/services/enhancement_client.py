"""Client for the remote answer enhancement service."""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

from src.core.config import Settings, get_settings
from src.core.structured_logging import log_json
from src.schemas.enhancement import (
    AnalyzeComplianceRequest,
    AnalyzeComplianceResponse,
    EnhanceAnswerRequest,
    EnhanceAnswerResponse,
    EnhancementHealth,
    GetSuggestionsRequest,
    GetSuggestionsResponse,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/risk-assessment-ai"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class EnhancementClient:
    """Thin async wrapper over the ``/risk-assessment-ai`` endpoints.

    Every failure (timeout, transport error, non-2xx, malformed body) is raised
    as an HTTPException so routes can surface it as a non-fatal error; the
    caller's answers are never modified here.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        auth_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.auth_token = auth_token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return httpx.AsyncClient(
            base_url=self.settings.enhancement_base_url,
            headers=headers,
            timeout=self.settings.enhancement_timeout_seconds,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        endpoint: str,
        response_model: type[ResponseT],
        body: BaseModel | None = None,
    ) -> ResponseT:
        url = f"{API_PREFIX}{endpoint}"
        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    url,
                    json=body.model_dump() if body is not None else None,
                )
        except httpx.TimeoutException as exc:
            log_json(logger, logging.WARNING, "enhancement_timeout", endpoint=endpoint)
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Enhancement service timed out",
            ) from exc
        except httpx.HTTPError as exc:
            log_json(
                logger,
                logging.WARNING,
                "enhancement_unreachable",
                endpoint=endpoint,
                error=str(exc),
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Enhancement service unavailable",
            ) from exc

        if response.is_error:
            detail = None
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
                detail = payload["detail"]
            log_json(
                logger,
                logging.WARNING,
                "enhancement_error_response",
                endpoint=endpoint,
                status_code=response.status_code,
                detail=detail,
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=detail or f"Enhancement service error (status {response.status_code})",
            )

        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            log_json(logger, logging.WARNING, "enhancement_bad_payload", endpoint=endpoint)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Enhancement service returned an invalid response",
            ) from exc

    async def enhance_answer(self, request: EnhanceAnswerRequest) -> EnhanceAnswerResponse:
        return await self._request("POST", "/enhance-answer", EnhanceAnswerResponse, request)

    async def get_suggestions(self, request: GetSuggestionsRequest) -> GetSuggestionsResponse:
        return await self._request("POST", "/get-suggestions", GetSuggestionsResponse, request)

    async def analyze_compliance(
        self, request: AnalyzeComplianceRequest
    ) -> AnalyzeComplianceResponse:
        return await self._request(
            "POST", "/analyze-compliance", AnalyzeComplianceResponse, request
        )

    async def health_check(self) -> EnhancementHealth:
        return await self._request("GET", "/health", EnhancementHealth)
