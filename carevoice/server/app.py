"""Translation proxy server.

Forwards ``POST /api/translate`` to the ChatGPT completions API with a
medical-aware translation prompt.

This is a prototype. Do not send real patient-identifiable data to any
third-party service without proper HIPAA compliance and safeguards.
"""

import logging
from typing import Optional

import aiohttp_cors
from aiohttp import web
from pydantic import ValidationError

from ..config import CareVoiceConfig
from ..errors import UpstreamError
from ..models.translation import TranslateRequest
from ..translation.chatgpt_translation_engine import ChatGPTTranslationEngine

logger = logging.getLogger(__name__)

MISSING_KEY_NOTICE = "(OPENAI_API_KEY not set on server) "
DEFAULT_OUTPUT_LANGUAGE = "en"


class TranslateHandler:
    """Handles POST /api/translate."""

    def __init__(self, engine: Optional[ChatGPTTranslationEngine]):
        self.engine = engine

    async def __call__(self, request: web.Request) -> web.Response:
        payload = await _read_payload(request)
        if not payload.text:
            return web.json_response({"error": "text required"}, status=400)

        output_language = payload.output_lang or DEFAULT_OUTPUT_LANGUAGE

        if self.engine is None:
            return web.json_response({"translated": MISSING_KEY_NOTICE + payload.text})

        try:
            translated = await self.engine.translate(payload.text, output_language)
        except UpstreamError as e:
            logger.error(f"Upstream returned no translation: {e}")
            return web.json_response({"error": "No translation result", "raw": e.raw}, status=500)
        except Exception as e:
            logger.exception(f"Translation request failed: {e}")
            return web.json_response({"error": "server error", "detail": str(e)}, status=500)

        logger.info(f"Translated {len(payload.text)} chars to '{output_language}'")
        return web.json_response({"translated": translated})


async def _read_payload(request: web.Request) -> TranslateRequest:
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Request body is not valid JSON")
        return TranslateRequest()
    try:
        return TranslateRequest.model_validate(body if body is not None else {})
    except ValidationError as e:
        logger.warning(f"Invalid translate request: {e}")
        return TranslateRequest()


def create_app(config: CareVoiceConfig, engine: Optional[ChatGPTTranslationEngine] = None) -> web.Application:
    """Build the aiohttp application.

    Args:
        config: Application configuration
        engine: Translation engine; built from the config when None and an
                OpenAI key is configured

    Returns:
        Configured application
    """
    if engine is None:
        api_key = config.get_openai_api_key()
        if api_key:
            engine = ChatGPTTranslationEngine(
                api_key=api_key,
                model=config.get('openai.model', 'gpt-4o-mini'),
                base_url=config.get('openai.base_url', 'https://api.openai.com/v1/chat/completions'),
                max_tokens=config.get('openai.max_tokens', 500),
                temperature=config.get('openai.temperature', 0.2),
            )
        else:
            logger.warning("OPENAI_API_KEY not set. /api/translate will echo input text until you set it.")

    app = web.Application()
    route = app.router.add_post("/api/translate", TranslateHandler(engine))

    cors = aiohttp_cors.setup(app, defaults={
        "*": aiohttp_cors.ResourceOptions(
            allow_credentials=False,
            expose_headers="*",
            allow_headers="*",
        )
    })
    cors.add(route)
    return app


def run_server(config: CareVoiceConfig) -> None:
    """Run the translation server until interrupted."""
    host = config.get('server.host', '0.0.0.0')
    port = int(config.get('server.port', 3000))
    app = create_app(config)
    logger.info(f"Server listening on {host}:{port}")
    web.run_app(app, host=host, port=port, print=None)
