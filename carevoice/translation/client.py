"""HTTP client for the CareVoice translation endpoint."""

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp
from pydantic import ValidationError

from ..errors import MalformedResponse, NetworkError
from ..models.translation import TranslateReply

logger = logging.getLogger(__name__)


class TranslationTransport(Protocol):
    """Anything that can turn text into translated text."""

    async def translate(self, text: str, output_language: str) -> str:
        """Return the translated text.

        Raises:
            TranslationError: If no translation could be obtained
        """
        ...


class TranslationClient:
    """Posts transcript text to ``{backend_url}/api/translate``."""

    def __init__(self, backend_url: str = "http://localhost:3000", timeout: Optional[aiohttp.ClientTimeout] = None):
        """Initialize translation client.

        Args:
            backend_url: Base URL of the translation server
            timeout: Request timeout, aiohttp's default when None
        """
        self.backend_url = backend_url.rstrip("/")
        self.url = f"{self.backend_url}/api/translate"
        self.timeout = timeout
        logger.info(f"TranslationClient initialized with endpoint: {self.url}")

    async def translate(self, text: str, output_language: str) -> str:
        """Translate text on the server.

        Args:
            text: Transcript text to correct and translate
            output_language: Target language code (e.g. 'es')

        Returns:
            Translated text

        Raises:
            MalformedResponse: If the reply carries no translated field
            NetworkError: If the request or the reply decoding fails
        """
        payload = {"text": text, "outputLang": output_language}
        kwargs = {"timeout": self.timeout} if self.timeout is not None else {}

        try:
            async with aiohttp.ClientSession(**kwargs) as session:
                async with session.post(self.url, json=payload) as response:
                    status = response.status
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Translation request failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Translation reply is not valid JSON: {e}") from e

        try:
            reply = TranslateReply.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected translation reply (HTTP {status})", raw=data) from e

        if not reply.translated:
            message = reply.error or "no translated field"
            if reply.detail:
                message = f"{message} ({reply.detail})"
            raise MalformedResponse(f"Translation failed (HTTP {status}): {message}", raw=reply.raw)

        logger.debug(f"Translated {len(text)} chars to '{output_language}' (HTTP {status})")
        return reply.translated
