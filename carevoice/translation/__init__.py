"""Translation module for CareVoice."""

from .chatgpt_translation_engine import ChatGPTTranslationEngine
from .client import TranslationClient, TranslationTransport
from .dispatcher import DebouncedTranslationDispatcher

__all__ = [
    "ChatGPTTranslationEngine",
    "TranslationClient",
    "TranslationTransport",
    "DebouncedTranslationDispatcher",
]
