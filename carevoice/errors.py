"""Error taxonomy shared by capture, translation and synthesis code."""

from typing import Any, Optional


class CareVoiceError(Exception):
    """Base class for all CareVoice errors."""


class NoCapability(CareVoiceError):
    """The platform offers no speech capture facility."""


class AlreadyActive(CareVoiceError):
    """A capture was started while it is already running."""


class PermissionDenied(CareVoiceError):
    """The user declined microphone access."""


class GenericError(CareVoiceError):
    """Unexpected platform or transport failure."""


class TranslationError(CareVoiceError):
    """Base class for failures of a translation request."""


class NetworkError(TranslationError):
    """Capture or translation transport failure."""


class MalformedResponse(TranslationError):
    """Translation payload is missing the expected field."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(message)
        self.raw = raw


class UpstreamError(CareVoiceError):
    """The language model API returned no usable completion."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(message)
        self.raw = raw
