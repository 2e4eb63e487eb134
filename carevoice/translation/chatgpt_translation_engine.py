"""ChatGPT translation engine for correcting and translating transcripts."""

import logging
import aiohttp
from typing import Any, Dict, List

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a medical-aware translation assistant. Correct transcription errors, "
    "normalize medical terminology, preserve meaning, and translate to the requested "
    "language. Keep translation concise and suitable for spoken playback."
)

INSTRUCTION_TEMPLATE = (
    "Translate the following text into {output_language}. If possible, correct "
    "medical/clinical term misspellings and deliver a short, clear translation suitable "
    "for a healthcare conversation. Respond only with the translated text."
)


class ChatGPTTranslationEngine:
    """Sends transcripts to the ChatGPT completions API and returns the translation."""

    def __init__(self,
                 api_key: str,
                 model: str = "gpt-4o-mini",
                 base_url: str = "https://api.openai.com/v1/chat/completions",
                 max_tokens: int = 500,
                 temperature: float = 0.2):
        """Initialize ChatGPT translation engine.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use for translation
            base_url: Chat completions endpoint
            max_tokens: Maximum tokens in response
            temperature: Temperature for response generation (0.0 to 1.0)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"ChatGPTTranslationEngine initialized with model: {model}")

    def build_messages(self, text: str, output_language: str) -> List[Dict[str, str]]:
        """Build the chat messages for one translation."""
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": INSTRUCTION_TEMPLATE.format(output_language=output_language)},
            {"role": "user", "content": text},
        ]

    async def translate(self, text: str, output_language: str) -> str:
        """Correct and translate text.

        Args:
            text: Transcript to translate
            output_language: Target language code

        Returns:
            Translated text from ChatGPT

        Raises:
            UpstreamError: If the reply contains no completion
            aiohttp.ClientError: If the API call fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": self.build_messages(text, output_language),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(self.base_url, headers=headers, json=data) as response:
                result: Any = await response.json(content_type=None)
                if response.status != 200:
                    logger.error(f"ChatGPT API error: {response.status}")

        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices:
            raise UpstreamError("No translation result", raw=result)

        return choices[0]["message"]["content"].strip()
