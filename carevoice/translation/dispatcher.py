"""Debounced translation dispatcher.

Watches (transcript, output language) pairs and translates the pair that
has been stable for ``delay_seconds``. Every change of the pair bumps a
generation counter; every dispatch carries a ``PendingRequest`` token with
that generation and a dispatch sequence number. A response is applied
only when its generation is still the latest one and its sequence is newer
than the last applied response, so slow or out-of-order replies for an
older pair can never overwrite a newer result.

Overlapping requests are raced, not serialized or cancelled: a new dispatch
can be issued while an older one is still outstanding.
"""

import asyncio
import logging
from typing import Optional, Set, Tuple

from pubsub import pub

from .client import TranslationTransport
from ..errors import MalformedResponse, TranslationError
from ..models.events import DISPATCH_PHASE_TOPIC, TRANSLATION_RESULT_TOPIC
from ..models.status import DispatchPhase
from ..models.translation import (
    TRANSLATION_ERROR_PLACEHOLDER,
    TRANSLATION_FAILED_PLACEHOLDER,
    PendingRequest,
    TranslationResult,
)

logger = logging.getLogger(__name__)


class DebouncedTranslationDispatcher:
    """Issues at most one translation per settling period and reconciles results."""

    def __init__(self,
                 transport: TranslationTransport,
                 delay_seconds: float = 1.0,
                 result_topic: str = TRANSLATION_RESULT_TOPIC,
                 phase_topic: str = DISPATCH_PHASE_TOPIC):
        """Initialize dispatcher.

        Args:
            transport: Translation collaborator
            delay_seconds: Settle time before a pair is dispatched
            result_topic: Topic receiving every applied TranslationResult
            phase_topic: Topic receiving dispatch phase changes
        """
        self.transport = transport
        self.delay_seconds = delay_seconds
        self.result_topic = result_topic
        self.phase_topic = phase_topic

        self.result: Optional[TranslationResult] = None
        self.phase = DispatchPhase.NONE

        self._latest: Optional[Tuple[str, str]] = None
        self._generation = 0
        self._sequence = 0
        self._applied_sequence = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

        logger.info(f"DebouncedTranslationDispatcher initialized (delay={delay_seconds}s)")

    @property
    def pending(self) -> bool:
        """True while a settle timer is armed."""
        return self._timer is not None

    def observe(self, text: str, output_language: str) -> None:
        """Record the current pair and (re)arm the settle timer if it changed."""
        pair = (text, output_language)
        if pair == self._latest:
            return

        self._latest = pair
        self._generation += 1
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_seconds, self._fire, self._generation)

    def reset(self) -> None:
        """Forget the current pair and result; outstanding responses become stale."""
        self._cancel_timer()
        self._latest = None
        self._generation += 1
        self.result = None
        pub.sendMessage(self.result_topic, result=None)
        self._set_phase(DispatchPhase.NONE)
        logger.info("Translation dispatcher reset")

    async def drain(self) -> None:
        """Wait for all outstanding requests to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the timer and every outstanding request."""
        self._cancel_timer()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Translation dispatcher closed")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        self._timer = None
        if generation != self._generation or self._latest is None:
            return

        text, output_language = self._latest
        if not text.strip():
            logger.debug("Transcript is empty, nothing to translate")
            return

        self._sequence += 1
        request = PendingRequest(
            sequence=self._sequence,
            generation=generation,
            text=text,
            output_language=output_language,
        )
        logger.info(f"Dispatching translation #{request.sequence} ({len(text)} chars -> '{output_language}')")
        self._set_phase(DispatchPhase.TRANSLATING)

        task = asyncio.get_running_loop().create_task(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, request: PendingRequest) -> None:
        try:
            translated = await self.transport.translate(request.text, request.output_language)
        except MalformedResponse as e:
            logger.error(f"Translation #{request.sequence} returned no translation: {e}")
            self._apply(request, TRANSLATION_FAILED_PLACEHOLDER, failed=True)
        except TranslationError as e:
            logger.error(f"Translation #{request.sequence} failed: {e}")
            self._apply(request, TRANSLATION_ERROR_PLACEHOLDER, failed=True)
        except Exception as e:
            logger.exception(f"Unexpected error in translation #{request.sequence}: {e}")
            self._apply(request, TRANSLATION_ERROR_PLACEHOLDER, failed=True)
        else:
            self._apply(request, translated, failed=False)

    def _is_current(self, request: PendingRequest) -> bool:
        return request.generation == self._generation and request.sequence > self._applied_sequence

    def _apply(self, request: PendingRequest, text: str, failed: bool) -> None:
        if not self._is_current(request):
            logger.debug(f"Dropping stale response for translation #{request.sequence}")
            return

        self._applied_sequence = request.sequence
        self.result = TranslationResult(
            text=text,
            output_language=request.output_language,
            source_text=request.text,
            failed=failed,
        )
        pub.sendMessage(self.result_topic, result=self.result)
        self._set_phase(DispatchPhase.FAILED if failed else DispatchPhase.TRANSLATED)

    def _set_phase(self, phase: DispatchPhase) -> None:
        self.phase = phase
        pub.sendMessage(self.phase_topic, phase=phase)
