"""Microphone input via PyAudio."""

import logging
import queue
from typing import Iterator, Optional

import pyaudio

logger = logging.getLogger(__name__)


class MicrophoneStream:
    """PyAudio callback stream exposed as a blocking iterator of PCM chunks.

    The PyAudio callback only enqueues frames. ``chunks()`` drains the queue
    on the caller's thread and finishes once ``stop()`` has been called and
    everything recorded so far has been yielded.
    """

    def __init__(self, sample_rate: int = 16000, chunk_size: int = 1024, channels: int = 1):
        """Initialize microphone stream.

        Args:
            sample_rate: Sample rate requested from the device (16kHz for speech)
            chunk_size: Frames per buffer handed to the callback
            channels: Number of input channels
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.total_chunks = 0
        self.stopped = False

        self._buffer: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._audio: Optional[pyaudio.PyAudio] = None
        self._stream = None

    def open(self) -> None:
        """Open the default input device and start recording.

        Raises:
            OSError: If no input device can be opened
        """
        self._audio = pyaudio.PyAudio()
        try:
            self._stream = self._audio.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_audio,
            )
        except OSError:
            self._audio.terminate()
            self._audio = None
            raise
        self._stream.start_stream()
        logger.info(f"Microphone open: {self.sample_rate}Hz, {self.chunk_size} frames/buffer")

    def _on_audio(self, in_data, frame_count, time_info, status):
        if self.stopped:
            return (None, pyaudio.paComplete)
        self._buffer.put(in_data)
        return (None, pyaudio.paContinue)

    def chunks(self) -> Iterator[bytes]:
        """Yield recorded audio until stop() is called and the buffer is empty."""
        while True:
            chunk = self._buffer.get()
            if chunk is None:
                return
            # merge whatever else is already waiting into one request
            data = [chunk]
            while True:
                try:
                    extra = self._buffer.get_nowait()
                except queue.Empty:
                    break
                if extra is None:
                    self._buffer.put(None)
                    break
                data.append(extra)
            self.total_chunks += len(data)
            yield b"".join(data)

    def stop(self) -> None:
        if not self.stopped:
            self.stopped = True
            self._buffer.put(None)

    def close(self) -> None:
        """Release the audio device."""
        self.stop()
        if self._stream is not None:
            self._stream.stop_stream()
            self._stream.close()
            self._stream = None
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None
        logger.info(f"Microphone closed after {self.total_chunks} chunks")


def has_input_device() -> bool:
    """Return True if PyAudio reports a default input device."""
    audio = pyaudio.PyAudio()
    try:
        audio.get_default_input_device_info()
    except OSError:
        return False
    finally:
        audio.terminate()
    return True
