"""
Audio cue playback for person alerts.

play() is fire-and-forget: the clip is written to the output device on a
background thread and errors raised there are logged, never surfaced to
the caller. Errors raised by play() itself (e.g. the device vanished) are
caught by AlertThrottle.
"""

from __future__ import annotations

import logging
import threading
import wave
from typing import Optional, Protocol


class AudioNotifier(Protocol):
    def play(self) -> None:
        ...

    def close(self) -> None:
        ...


def resolve_output_device_index(audio: object, device_name: str) -> int:
    """Resolve an output device index by exact device name."""
    for i in range(audio.get_device_count()):
        info = audio.get_device_info_by_index(i)
        if info.get("maxOutputChannels", 0) <= 0:
            continue
        if info.get("name") == device_name:
            return int(info.get("index", i))
    raise RuntimeError(f"Audio output device named '{device_name}' not found")


class PyAudioNotifier:
    """
    Plays a WAV clip through PyAudio.

    A new play() while the clip is still sounding restarts it from the
    beginning.
    """

    CHUNK_FRAMES = 1024

    def __init__(self, wav_path: str, device_name: Optional[str] = None):
        try:
            import pyaudio  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "PyAudio is not installed. Install with `pip install pyaudio` "
                "or set alerts.audio_enabled to false."
            ) from e

        with wave.open(wav_path, "rb") as wf:
            self._sample_width = wf.getsampwidth()
            self._channels = wf.getnchannels()
            self._rate = wf.getframerate()
            self._pcm = wf.readframes(wf.getnframes())

        self._pa = pyaudio.PyAudio()
        self._format = self._pa.get_format_from_width(self._sample_width)
        try:
            self._device_index = (
                resolve_output_device_index(self._pa, device_name) if device_name else None
            )
        except RuntimeError:
            self._pa.terminate()
            raise
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False
        logging.info(
            f"Audio alert loaded: {wav_path} ({self._channels}ch, {self._rate}Hz)"
        )

    def play(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Audio notifier is closed")
            self._generation += 1
            generation = self._generation

        stream = self._pa.open(
            format=self._format,
            channels=self._channels,
            rate=self._rate,
            output=True,
            output_device_index=self._device_index,
        )
        threading.Thread(
            target=self._write_clip,
            args=(stream, generation),
            name="audio-alert",
            daemon=True,
        ).start()

    def _write_clip(self, stream, generation: int) -> None:
        step = self.CHUNK_FRAMES * self._sample_width * self._channels
        try:
            for i in range(0, len(self._pcm), step):
                with self._lock:
                    if self._closed or generation != self._generation:
                        break
                stream.write(self._pcm[i : i + step])
        except Exception:
            logging.exception("Audio alert playback failed")
        finally:
            try:
                stream.stop_stream()
                stream.close()
            except Exception as e:
                logging.debug(f"Audio stream close error: {e}")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._pa.terminate()


def create_notifier_from_config(alerts_cfg: dict) -> Optional[AudioNotifier]:
    """
    Build the audio notifier, or None when audio is disabled or unavailable.

    Missing audio hardware downgrades alerts to visual-only.
    """
    if not alerts_cfg.get("audio_enabled", False):
        logging.info("Audio alerts disabled")
        return None
    try:
        return PyAudioNotifier(
            alerts_cfg.get("audio_file", "assets/detection-alarm.wav"),
            device_name=alerts_cfg.get("audio_device_name"),
        )
    except (ImportError, OSError, RuntimeError, wave.Error) as e:
        logging.warning(f"Audio alerts unavailable, continuing visual-only: {e}")
        return None
