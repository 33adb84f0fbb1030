"""Speech playback — read a system turn aloud through a single audio output.

  - decode_pcm16: 16-bit little-endian PCM (raw or base64) -> float32 samples
  - SounddeviceOutput: AudioOutput over a callback-fed ``sounddevice`` stream
  - SpeechPlayer: per-session toggle logic (play / pause / resume / switch)

At most one playback is active at any time: switching turns stops the
current playback before the new one is synthesized.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import threading
from typing import Callable, Optional, Union

import numpy as np

from pathfinder.constants import SPEECH_CHANNELS, SPEECH_SAMPLE_RATE
from pathfinder.errors import GatewayError
from pathfinder.interfaces import AudioOutput, CompletionGateway
from pathfinder.models.session import AudioPlayback, SessionState

logger = logging.getLogger(__name__)


def decode_pcm16(data: Union[bytes, str]) -> np.ndarray:
    """Decode 16-bit little-endian PCM into float32 samples in [-1, 1).

    ``data`` may be raw bytes or base64 text, as returned inline by the TTS
    model.

    Raises:
        ValueError: if the payload has an odd number of bytes.
    """
    if isinstance(data, str):
        data = base64.b64decode(data)
    if len(data) % 2:
        raise ValueError(f"PCM16 payload has odd length {len(data)}")
    return np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0


class SounddeviceOutput(AudioOutput):
    """AudioOutput on the default (or given) PortAudio device.

    The stream is fed from an in-memory buffer by a callback; pausing stops
    the stream but keeps the read position, so resuming continues where it
    left off.
    """

    def __init__(self, device: Optional[Union[int, str]] = None) -> None:
        import sounddevice

        self._sd = sounddevice
        self._device = device
        self._lock = threading.Lock()
        self._stream = None
        self._samples: Optional[np.ndarray] = None
        self._pos = 0
        self._on_finished: Optional[Callable[[], None]] = None

    def play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        self.stop()
        with self._lock:
            self._samples = samples
            self._pos = 0
            self._on_finished = on_finished
        self._stream = self._sd.OutputStream(
            samplerate=sample_rate,
            channels=SPEECH_CHANNELS,
            dtype="float32",
            device=self._device,
            callback=self._fill,
            finished_callback=self._finished,
        )
        self._stream.start()

    def pause(self) -> None:
        if self._stream is not None and self._stream.active:
            self._stream.stop()

    def resume(self) -> None:
        if self._stream is not None and not self._stream.active:
            self._stream.start()

    def stop(self) -> None:
        with self._lock:
            # Cleared first so the finished callback cannot fire for an abort
            self._on_finished = None
            self._samples = None
        if self._stream is not None:
            self._stream.abort()
            self._stream.close()
            self._stream = None

    # --- Stream callbacks (audio thread) ---

    def _fill(self, outdata, frames, time_info, status) -> None:
        with self._lock:
            if self._samples is None:
                outdata.fill(0)
                raise self._sd.CallbackStop
            chunk = self._samples[self._pos:self._pos + frames]
            self._pos += len(chunk)
        outdata[:len(chunk), 0] = chunk
        if len(chunk) < frames:
            outdata[len(chunk):] = 0
            raise self._sd.CallbackStop

    def _finished(self) -> None:
        with self._lock:
            done = self._samples is not None and self._pos >= len(self._samples)
            callback = self._on_finished if done else None
            if done:
                self._on_finished = None
        if callback is not None:
            callback()


class SpeechPlayer:
    """Owns the single audio output used for one conversation.

    Args:
        gateway: synthesizes the speech for a turn
        output: where samples are played; ``None`` disables playback
            entirely (every toggle is a no-op)
    """

    def __init__(self, gateway: CompletionGateway, output: Optional[AudioOutput]) -> None:
        self._gateway = gateway
        self._output = output

    @property
    def available(self) -> bool:
        return self._output is not None

    async def toggle(self, session: SessionState, turn_id: int) -> AudioPlayback:
        """Play, pause or resume the speech for one system turn.

        Same turn playing -> pause; same turn paused -> resume; any other
        turn -> stop the current playback, then synthesize and play.

        Raises:
            KeyError: if the turn does not exist.
            ValueError: if the turn is not a system turn.
        """
        turn = session.find_turn(turn_id)
        if turn is None:
            raise KeyError(f"Turn {turn_id} not found")
        if turn.sender != "system":
            raise ValueError(f"Turn {turn_id} is not a system turn")
        if not session.sound_enabled or self._output is None:
            return session.playback

        playback = session.playback
        if playback.turn_id == turn_id:
            if playback.status == "playing":
                self._output.pause()
                session.playback = AudioPlayback(turn_id=turn_id, status="paused")
            else:
                self._output.resume()
                session.playback = AudioPlayback(turn_id=turn_id, status="playing")
            return session.playback

        self.stop(session)
        generation = session.generation
        try:
            pcm = await self._gateway.speak(turn.content)
            samples = decode_pcm16(pcm)
        except (GatewayError, ValueError):
            logger.warning("Speech for turn %d unavailable", turn_id, exc_info=True)
            return session.playback

        if session.generation != generation or not session.sound_enabled:
            logger.debug("Discarding speech for turn %d: session changed", turn_id)
            return session.playback

        loop = asyncio.get_running_loop()

        def on_finished() -> None:
            loop.call_soon_threadsafe(self._finished, session, turn_id)

        self._output.play(samples, SPEECH_SAMPLE_RATE, on_finished=on_finished)
        session.playback = AudioPlayback(turn_id=turn_id, status="playing")
        return session.playback

    def stop(self, session: SessionState) -> None:
        """Abort any playback and clear the session's playback record."""
        if self._output is not None:
            self._output.stop()
        session.playback = AudioPlayback()

    def _finished(self, session: SessionState, turn_id: int) -> None:
        if session.playback.turn_id == turn_id:
            session.playback = AudioPlayback()
