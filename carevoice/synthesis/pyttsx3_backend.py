"""Text-to-speech backend powered by ``pyttsx3``."""

import asyncio
import logging
import queue
import threading
from typing import Any, List, Optional, Tuple

import pyttsx3

from .base import AbstractSpeechSynthesis
from ..errors import GenericError
from ..models.synthesis import Utterance, Voice

logger = logging.getLogger(__name__)


class Pyttsx3Synthesis(AbstractSpeechSynthesis):
    """Local speaker playback using a pyttsx3 engine owned by one worker thread."""

    def __init__(self,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 rate: Optional[int] = None,
                 volume: Optional[float] = None):
        super().__init__()
        self.loop = loop or asyncio.get_running_loop()
        self.rate = rate
        self.volume = volume

        self._queue: "queue.Queue[Optional[Tuple[int, Utterance]]]" = queue.Queue()
        self._ready = threading.Event()
        self._playing = threading.Event()
        self._lock = threading.Lock()
        self._sequence = 0
        self._cancelled_through = 0
        self._pending = 0
        self._engine = None
        self._default_voice_id: Optional[str] = None
        self._voices: List[Voice] = []
        self._init_error: Optional[BaseException] = None

        self.worker = threading.Thread(target=self._run, daemon=True)
        self.worker.name = "Pyttsx3Synthesis"
        self.worker.start()
        self._ready.wait(timeout=5.0)
        if self._init_error is not None:
            raise GenericError(f"pyttsx3 engine unavailable: {self._init_error}") from self._init_error

    @property
    def speaking(self) -> bool:
        # queued utterances count too, the worker may not have picked them up yet
        with self._lock:
            return self._pending > 0

    def voices(self) -> List[Voice]:
        return list(self._voices)

    def speak(self, utterance: Utterance) -> None:
        with self._lock:
            self._sequence += 1
            self._pending += 1
            sequence = self._sequence
        self._queue.put((sequence, utterance))

    def cancel(self) -> None:
        # queued utterances are skipped by the worker, the running one is stopped
        with self._lock:
            self._cancelled_through = self._sequence
        if self._engine is not None and self._playing.is_set():
            self._engine.stop()

    def close(self) -> None:
        self.cancel()
        self._queue.put(None)
        self.worker.join(timeout=2.0)

    def _run(self) -> None:
        try:
            self._engine = pyttsx3.init()
            if self.rate is not None:
                self._engine.setProperty("rate", self.rate)
            if self.volume is not None:
                self._engine.setProperty("volume", max(0.0, min(1.0, self.volume)))
            self._default_voice_id = self._engine.getProperty("voice")
            self._voices = [_to_voice(v) for v in self._engine.getProperty("voices")]
            logger.info(f"pyttsx3 engine ready with {len(self._voices)} voices")
        except Exception as e:
            self._init_error = e
            return
        finally:
            self._ready.set()

        while True:
            item = self._queue.get()
            if item is None:
                break
            sequence, utterance = item
            with self._lock:
                cancelled = sequence <= self._cancelled_through
            error = None
            if cancelled:
                logger.debug(f"Skipping cancelled utterance #{sequence}")
            else:
                error = self._play(utterance)
            with self._lock:
                self._pending -= 1
            if error is not None:
                if self.on_error:
                    self.loop.call_soon_threadsafe(self.on_error, error)
            elif self.on_done:
                self.loop.call_soon_threadsafe(self.on_done)

    def _play(self, utterance: Utterance) -> Optional[Exception]:
        """Speak one utterance on the worker thread, returning the playback error if any."""
        voice_id = utterance.voice.id if utterance.voice else self._default_voice_id
        self._playing.set()
        try:
            self._engine.setProperty("voice", voice_id)
            self._engine.say(utterance.text)
            self._engine.runAndWait()
        except Exception as e:
            return e
        finally:
            self._playing.clear()
        return None


def _to_voice(raw: Any) -> Voice:
    """Normalize a pyttsx3 voice; espeak reports languages as b'\\x05en-us'."""
    language = ""
    languages = getattr(raw, "languages", None) or []
    if languages:
        first = languages[0]
        if isinstance(first, bytes):
            first = first.decode("utf-8", errors="ignore")
        language = "".join(ch for ch in first if ch.isprintable()).strip()
    return Voice(id=raw.id, name=getattr(raw, "name", raw.id) or raw.id, language=language)
