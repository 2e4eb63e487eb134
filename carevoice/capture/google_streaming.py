"""Google Speech-to-Text streaming capture backend."""

import asyncio
import logging
import threading
from typing import Iterable, List, Optional

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from .base import AbstractSpeechCapture
from .microphone import MicrophoneStream, has_input_device
from ..config import CareVoiceConfig
from ..errors import AlreadyActive
from ..models.events import RecognitionErrorKind, RecognitionEvent, RecognitionResult

logger = logging.getLogger(__name__)


class GoogleStreamingCapture(AbstractSpeechCapture):
    """Microphone capture recognized by Google streaming recognition.

    Audio is read and streamed on a worker thread. Every listener call is
    scheduled back onto the event loop that called start().
    """

    def __init__(self,
                 client: speech.SpeechClient,
                 language: str = "en-US",
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 enable_automatic_punctuation: bool = True):
        super().__init__(language)
        self.client = client
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                language_code=language,
                enable_automatic_punctuation=enable_automatic_punctuation,
                max_alternatives=1,
            ),
            interim_results=True,
        )

        self.microphone: Optional[MicrophoneStream] = None
        self.worker: Optional[threading.Thread] = None
        self.aborted = threading.Event()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._responses = None
        self._utterance_index = 0

    def start(self) -> None:
        if self.worker is not None and self.worker.is_alive():
            raise AlreadyActive(f"Capture for {self.language} is already running")

        self.loop = asyncio.get_running_loop()
        self.aborted.clear()
        self._utterance_index = 0
        self.microphone = MicrophoneStream(sample_rate=self.sample_rate, chunk_size=self.chunk_size)

        self.worker = threading.Thread(target=self._run, daemon=True)
        self.worker.name = f"GoogleStreamingCapture-{self.language}"
        self.worker.start()
        logger.info(f"Streaming capture started ({self.language})")

    def stop(self) -> None:
        """Stop the microphone; the stream delivers its last results and ends."""
        if self.microphone:
            logger.info("Stopping streaming capture")
            self.microphone.stop()

    def abort(self) -> None:
        if self.worker is None or not self.worker.is_alive():
            return
        logger.info("Aborting streaming capture")
        self.aborted.set()
        if self.microphone:
            self.microphone.stop()
        responses = self._responses
        if responses is not None and hasattr(responses, "cancel"):
            responses.cancel()

    def _run(self) -> None:
        """Worker thread: open the microphone, stream audio, translate responses into events."""
        microphone = self.microphone
        try:
            microphone.open()
        except OSError as e:
            logger.error(f"Could not open microphone: {e}")
            self._post(self._emit_error, RecognitionErrorKind.AUDIO_CAPTURE)
            self._post(self._emit_end)
            return

        self._post(self._emit_start)
        received_any = False
        try:
            requests = (speech.StreamingRecognizeRequest(audio_content=chunk)
                        for chunk in microphone.chunks())
            self._responses = self.client.streaming_recognize(
                config=self.streaming_config, requests=requests)
            for response in self._responses:
                if self.aborted.is_set():
                    break
                event = self._to_event(response.results)
                if event is not None:
                    received_any = True
                    self._post(self._emit_result, event)
            if not received_any and not self.aborted.is_set():
                self._post(self._emit_error, RecognitionErrorKind.NO_SPEECH)
        except gax_exceptions.GoogleAPICallError as e:
            if not self.aborted.is_set():
                kind = _error_kind(e)
                logger.error(f"Streaming recognition failed ({kind.value}): {e}")
                self._post(self._emit_error, kind)
        except Exception as e:
            if not self.aborted.is_set():
                logger.exception(f"Streaming recognition stopped unexpectedly: {e}")
                self._post(self._emit_error, RecognitionErrorKind.SERVICE_NOT_ALLOWED)
        finally:
            self._responses = None
            microphone.close()
            if self.aborted.is_set():
                self._post(self._emit_error, RecognitionErrorKind.ABORTED)
            self._post(self._emit_end)

    def _to_event(self, results: Iterable) -> Optional[RecognitionEvent]:
        """Convert one streaming response into an event.

        Final results each close an utterance. The interim results of a
        response are pieces of the next, still open utterance.
        """
        start_index = self._utterance_index
        converted: List[RecognitionResult] = []
        interim_parts: List[str] = []
        for result in results:
            if not result.alternatives:
                continue
            alternative = result.alternatives[0]
            if result.is_final:
                converted.append(RecognitionResult(
                    transcript=alternative.transcript,
                    is_final=True,
                    confidence=alternative.confidence,
                ))
                self._utterance_index += 1
            else:
                interim_parts.append(alternative.transcript.strip())
        if interim_parts:
            converted.append(RecognitionResult(transcript=" ".join(interim_parts), is_final=False))
        if not converted:
            return None
        return RecognitionEvent(result_index=start_index, results=converted)

    def _post(self, callback, *args) -> None:
        self.loop.call_soon_threadsafe(callback, *args)


def _error_kind(error: gax_exceptions.GoogleAPICallError) -> RecognitionErrorKind:
    if isinstance(error, gax_exceptions.Cancelled):
        return RecognitionErrorKind.ABORTED
    if isinstance(error, (gax_exceptions.ServiceUnavailable, gax_exceptions.DeadlineExceeded)):
        return RecognitionErrorKind.NETWORK
    if isinstance(error, (gax_exceptions.PermissionDenied, gax_exceptions.Unauthenticated)):
        return RecognitionErrorKind.NOT_ALLOWED
    return RecognitionErrorKind.SERVICE_NOT_ALLOWED


class GoogleSpeechCaptureProvider:
    """Creates Google streaming captures when credentials and a microphone exist."""

    def __init__(self, config: CareVoiceConfig):
        self.config = config
        self.credentials_path = config.get_google_credentials_path()
        self.sample_rate = config.get('google_cloud.sample_rate', 16000)
        self.chunk_size = config.get('google_cloud.chunk_size', 1024)
        self.client: Optional[speech.SpeechClient] = None

    def is_available(self) -> bool:
        if not self.credentials_path:
            logger.warning("Speech capture unavailable: no Google credentials configured")
            return False
        if not has_input_device():
            logger.warning("Speech capture unavailable: no microphone found")
            return False
        return True

    def create(self, language: str) -> GoogleStreamingCapture:
        if self.client is None:
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = speech.SpeechClient(credentials=credentials)
            logger.info(f"Using Google Cloud project: {credentials.project_id}")
        return GoogleStreamingCapture(
            client=self.client,
            language=language,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
        )
