"""Clients that send a prompt to a text-generation service and return the reply."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from closet_app.config import DEFAULT_GEMINI_MODEL
from logic.validation import CompletionRequest, CompletionResponse
from models.outfit import FallbackReason
from tools.observability import instrument_tool

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


class CompletionError(RuntimeError):
    """Base class for failures of a completion call."""

    reason: FallbackReason = FallbackReason.SERVICE_ERROR


class CompletionNetworkError(CompletionError):
    """The service could not be reached."""

    reason = FallbackReason.NETWORK_ERROR


class CompletionTimeout(CompletionError):
    """The service did not answer within the configured timeout."""

    reason = FallbackReason.TIMEOUT


class CompletionServiceError(CompletionError):
    """The service answered with an error status or ``success: false``."""

    reason = FallbackReason.SERVICE_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompletionInvalidResponse(CompletionError):
    """The service answered, but not with the agreed response shape."""

    reason = FallbackReason.INVALID_RESPONSE


class CompletionClient:
    """Interface for anything that turns a prompt into completion text.

    Implementations make exactly one attempt and raise a
    :class:`CompletionError` subclass on failure.
    """

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError


class RelayCompletionClient(CompletionClient):
    """Posts prompts to the relay server that fronts the language model.

    The relay contract is ``POST {"prompt": ...}`` answered by
    ``{"success": true, "result": ...}`` or ``{"success": false, "error": ...}``.
    The blocking HTTP call runs in a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not endpoint:
            raise ValueError("A relay endpoint URL is required")
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session

    @instrument_tool("relay_completion")
    async def complete(self, prompt: str) -> str:
        payload = CompletionRequest(prompt=prompt).model_dump()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._post, payload), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise CompletionTimeout(
                f"Relay did not answer within {self.timeout:g}s"
            ) from exc

    def _post(self, payload: Dict[str, Any]) -> str:
        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            raise CompletionTimeout(f"Relay request timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise CompletionNetworkError(f"Network error calling relay: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Non-success status from completion relay",
                extra={"status_code": response.status_code},
            )
            raise CompletionServiceError(
                f"Server error: HTTP {response.status_code} {self._error_detail(response)}".strip(),
                status_code=response.status_code,
            )

        try:
            body = CompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise CompletionInvalidResponse(f"Relay returned an unexpected body: {exc}") from exc

        if not body.success:
            raise CompletionServiceError(body.error or "Unknown server error", response.status_code)
        if body.result is None:
            raise CompletionInvalidResponse("Relay reported success without a result")
        return body.result

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return ""


class GeminiCompletionClient(CompletionClient):
    """Calls Gemini directly; used by the relay server and for relay-less setups."""

    def __init__(
        self,
        model: str = DEFAULT_GEMINI_MODEL,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        system_instruction: Optional[str] = None,
        temperature: float = 0.3,
    ) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model
        self.timeout = timeout
        self.temperature = temperature
        self._model = genai.GenerativeModel(
            model_name=model, system_instruction=system_instruction
        )

    @instrument_tool("gemini_completion")
    async def complete(self, prompt: str) -> str:
        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(
                    prompt, generation_config={"temperature": self.temperature}
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise CompletionTimeout(f"Gemini did not answer within {self.timeout:g}s") from exc
        except google_exceptions.DeadlineExceeded as exc:
            raise CompletionTimeout(f"Gemini deadline exceeded: {exc.message}") from exc
        except google_exceptions.ServiceUnavailable as exc:
            raise CompletionNetworkError(f"Gemini unavailable: {exc.message}") from exc
        except google_exceptions.GoogleAPICallError as exc:
            raise CompletionServiceError(exc.message or str(exc), exc.code) from exc

        try:
            return response.text
        except ValueError as exc:
            raise CompletionInvalidResponse(f"Gemini returned no text: {exc}") from exc


__all__ = [
    "CompletionClient",
    "CompletionError",
    "CompletionInvalidResponse",
    "CompletionNetworkError",
    "CompletionServiceError",
    "CompletionTimeout",
    "GeminiCompletionClient",
    "RelayCompletionClient",
]
