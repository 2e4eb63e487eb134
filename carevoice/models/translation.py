"""Translation-related data models."""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


TRANSLATION_FAILED_PLACEHOLDER = (
    "Translation failed, the server returned no translation. "
    "Check the API quota and billing details of the server key."
)
TRANSLATION_ERROR_PLACEHOLDER = "Translation error"


@dataclass
class TranslationResult:
    """Latest translated text and the output language it was produced for."""
    text: str
    output_language: str
    source_text: str
    failed: bool = False


@dataclass(frozen=True)
class PendingRequest:
    """Token identifying one dispatched translation request."""
    sequence: int
    generation: int
    text: str
    output_language: str


class TranslateRequest(BaseModel):
    """Body of POST /api/translate."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    output_lang: Optional[str] = Field(default=None, alias="outputLang")

    @field_validator("output_lang", mode="before")
    @classmethod
    def _drop_non_string_language(cls, value: Any) -> Optional[str]:
        # an unusable language falls back to the server default instead of rejecting the text
        return value if isinstance(value, str) else None


class TranslateReply(BaseModel):
    """Reply of POST /api/translate, success or failure."""
    translated: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    raw: Optional[Any] = None
