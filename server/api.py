"""FastAPI relay server forwarding prompts to Gemini, plus the outfit endpoint."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from closet_app.app import VirtualClosetApp
from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event
from logic.validation import OutfitGenerationRequest, RelayPrompt
from tools.completion_client import CompletionClient, CompletionError, GeminiCompletionClient

LOGGER = get_logger(__name__)

EXTRACTION_SYSTEM_INSTRUCTION = (
    "You are a helpful assistant that extracts product information from e-commerce websites."
)
STYLIST_SYSTEM_INSTRUCTION = (
    "You are a professional fashion stylist. Answer with the requested JSON only."
)


def _relay_failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def build_relay_clients(config: ClosetConfig) -> Dict[str, CompletionClient]:
    """Create one Gemini client per relay route, or none without an API key."""

    if not config.api_key:
        return {}
    return {
        "extract-product": GeminiCompletionClient(
            model=config.model,
            api_key=config.api_key,
            timeout=config.request_timeout,
            system_instruction=EXTRACTION_SYSTEM_INSTRUCTION,
        ),
        "generate-outfit": GeminiCompletionClient(
            model=config.model,
            api_key=config.api_key,
            timeout=config.request_timeout,
            system_instruction=STYLIST_SYSTEM_INSTRUCTION,
        ),
    }


def create_app(
    config: Optional[ClosetConfig] = None,
    relay_clients: Optional[Dict[str, CompletionClient]] = None,
    closet_app: Optional[VirtualClosetApp] = None,
) -> FastAPI:
    """Build the ASGI app; collaborators can be injected for tests."""

    config = config or ClosetConfig.from_env()
    clients = build_relay_clients(config) if relay_clients is None else relay_clients
    if closet_app is None:
        closet_app = VirtualClosetApp(config=config, client=clients.get("generate-outfit"))

    api = FastAPI(title="Virtual Closet Relay", version="0.1.0")

    async def relay(route: str, body: RelayPrompt):
        if not body.prompt:
            return _relay_failure(400, "Prompt is required")
        client = clients.get(route)
        if client is None:
            return _relay_failure(500, "API key not configured on the server")
        try:
            result = await client.complete(body.prompt)
        except CompletionError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "relay_completion_failed",
                route=route,
                reason=exc.reason.value,
                details=str(exc),
            )
            return _relay_failure(500, str(exc) or "Unknown error")
        return {"success": True, "result": result or ""}

    @api.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Virtual Closet relay server is running"

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Readiness probe."""

        return {
            "status": "ok",
            "service": "virtual-closet-relay",
            "environment": config.environment or "local",
            "model": config.model,
            "relay_configured": bool(clients),
        }

    @api.post("/api/extract-product")
    async def extract_product(body: RelayPrompt):
        return await relay("extract-product", body)

    @api.post("/api/generate-outfit")
    async def generate_outfit_prompt(body: RelayPrompt):
        return await relay("generate-outfit", body)

    @api.post("/outfits")
    async def generate_outfit(request: OutfitGenerationRequest) -> dict:
        """Run the full outfit pipeline; always answers with an outfit."""

        result = await closet_app.generate_outfit(request.items, request.intent)
        return {"success": True, "outfit": result.to_dict(), "message": result.user_message}

    return api


def get_app() -> FastAPI:
    """Expose a configured FastAPI instance for ASGI servers."""

    configure_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=3000, reload=False)
