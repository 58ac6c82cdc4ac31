"""
wavebars — Signal Decoder
==========================
Turns an encoded audio buffer into a fixed-length, normalized **peak array**
for the static waveform view.

- **Native decode** via ``soundfile`` (libsndfile: WAV, FLAC, OGG, MP3 on
  recent builds) straight from memory.
- **Fallback decode** via ``librosa.load`` which hands unsupported
  containers to ``audioread`` / ffmpeg.
- **Peak downsampling** into exactly ``sample_count`` contiguous buckets,
  the last bucket absorbing the remainder.
- **Identity memoization**: asking twice for the same source object does not
  decode twice.

Usage::

    from src.engine.signal_decoder import SignalDecoder

    decoder = SignalDecoder()
    peaks = decoder.decode(wav_bytes, 200)          # tuple of 200 floats
    peaks = await decoder.decode_async(wav_bytes, 200)
"""

from __future__ import annotations

import asyncio
import io
import math
import os
import tempfile
import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import librosa
import numpy as np
import soundfile as sf
from loguru import logger

from app.core.config import settings
from src.engine.errors import DecodeFailure

PeakArray = tuple[float, ...]

MIN_SAMPLE_COUNT = 200
VIEWPORT_PIXELS_PER_PEAK = 4


@dataclass(frozen=True)
class DecodedAudio:
    """Logical PCM produced by either decode path.

    Attributes
    ----------
    channels : np.ndarray
        Float samples shaped ``(n_channels, n_samples)``.
    sample_rate : int
        Sampling rate in Hz.
    """

    channels: np.ndarray
    sample_rate: int

    @property
    def frame_count(self) -> int:
        return int(self.channels.shape[1])

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate


def default_sample_count(viewport_width: float) -> int:
    """Peak count for a static view: one peak per 4 px, never fewer than 200."""
    return max(MIN_SAMPLE_COUNT, math.ceil(viewport_width / VIEWPORT_PIXELS_PER_PEAK))


# ════════════════════════════════════════════════════════════════════════
#  1. Decode paths
# ════════════════════════════════════════════════════════════════════════


def _as_channels(data: np.ndarray) -> np.ndarray:
    """Coerce decoder output to ``(n_channels, n_samples)`` float64."""
    data = np.asarray(data, dtype=np.float64)
    if data.ndim == 1:
        return data[np.newaxis, :]
    return data


def decode_native(source: bytes) -> DecodedAudio:
    """Decode in-memory audio with libsndfile."""
    data, sr = sf.read(io.BytesIO(source), dtype="float64", always_2d=True)
    # soundfile returns (frames, channels)
    return DecodedAudio(channels=_as_channels(data.T), sample_rate=int(sr))


def decode_fallback(source: bytes) -> DecodedAudio:
    """Decode through librosa / audioread (ffmpeg and friends).

    audioread backends only accept paths, so the bytes are spooled to a
    temporary file first.
    """
    with tempfile.NamedTemporaryFile(suffix=".audio", delete=False) as tmp:
        tmp.write(source)
        tmp_path = Path(tmp.name)

    try:
        y, sr = librosa.load(str(tmp_path), sr=None, mono=False)
        return DecodedAudio(channels=_as_channels(y), sample_rate=int(sr))
    finally:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.debug("Could not remove temp file {}", tmp_path)


def decode_pcm(source: bytes) -> DecodedAudio:
    """Run the native path, falling back to the secondary path on failure.

    Raises
    ------
    DecodeFailure
        If both paths fail.
    """
    try:
        return decode_native(source)
    except Exception as native_exc:
        logger.info("Native decode failed ({}); trying fallback decoder", native_exc)
        try:
            return decode_fallback(source)
        except Exception as fallback_exc:
            logger.error(
                "Fallback decode failed ({}); giving up on {} bytes",
                fallback_exc,
                len(source),
            )
            raise DecodeFailure(
                "Failed to decode audio: unsupported or corrupt source",
                native_error=native_exc,
                fallback_error=fallback_exc,
            ) from fallback_exc


# ════════════════════════════════════════════════════════════════════════
#  2. Peak downsampling
# ════════════════════════════════════════════════════════════════════════


def downsample_peaks(channels: np.ndarray, sample_count: int) -> PeakArray:
    """Reduce PCM to ``sample_count`` normalized bucket peaks.

    Channels are averaged to mono. Bucket *i* spans
    ``[i * size, (i + 1) * size)`` with ``size = total // sample_count``;
    the final bucket extends to the end of the signal so every sample is
    covered exactly once.

    Parameters
    ----------
    channels : np.ndarray
        ``(n_channels, n_samples)`` or 1-D mono samples.
    sample_count : int
        Number of peaks to produce (``> 0``).

    Returns
    -------
    PeakArray
        Tuple of ``sample_count`` floats in ``[0, 1]``.
    """
    if sample_count <= 0:
        raise ValueError(f"sample_count must be positive, got {sample_count}")

    pcm = _as_channels(channels)
    mono = pcm.mean(axis=0) if pcm.shape[0] > 1 else pcm[0]
    magnitude = np.abs(mono)
    total = magnitude.shape[0]
    size = total // sample_count

    peaks = np.zeros(sample_count, dtype=np.float64)
    if size > 0:
        head = magnitude[: size * (sample_count - 1)]
        if head.size:
            peaks[:-1] = head.reshape(sample_count - 1, size).max(axis=1)
    tail = magnitude[size * (sample_count - 1):]
    if tail.size:
        peaks[-1] = tail.max()

    global_max = peaks.max() if peaks.size else 0.0
    if global_max > 0:
        peaks = peaks / global_max
    peaks = np.clip(peaks, 0.0, 1.0)
    return tuple(float(p) for p in peaks)


# ════════════════════════════════════════════════════════════════════════
#  3. Memoizing decoder
# ════════════════════════════════════════════════════════════════════════


class SignalDecoder:
    """Decode encoded audio to peak arrays with identity-keyed memoization.

    Cache entries hold a reference to the source object itself so that an
    ``id()`` recycled by the garbage collector never returns stale peaks.
    """

    def __init__(self, cache_size: Optional[int] = None) -> None:
        self.cache_size = cache_size if cache_size is not None else settings.DECODE_CACHE_SIZE
        self._cache: OrderedDict[tuple[int, int], tuple[bytes, PeakArray]] = OrderedDict()
        self._lock = threading.Lock()
        self.decode_count = 0

    def _lookup(self, source: bytes, sample_count: int) -> Optional[PeakArray]:
        key = (id(source), sample_count)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None or entry[0] is not source:
                return None
            self._cache.move_to_end(key)
            return entry[1]

    def _store(self, source: bytes, sample_count: int, peaks: PeakArray) -> None:
        if self.cache_size <= 0:
            return
        key = (id(source), sample_count)
        with self._lock:
            self._cache[key] = (source, peaks)
            self._cache.move_to_end(key)
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def decode(self, source: Optional[bytes], sample_count: int) -> Optional[PeakArray]:
        """Decode *source* into ``sample_count`` peaks.

        Returns ``None`` when *source* is ``None`` (nothing to show).

        Raises
        ------
        ValueError
            If ``sample_count`` is not positive.
        DecodeFailure
            If neither decode path can read the source.
        """
        if sample_count <= 0:
            raise ValueError(f"sample_count must be positive, got {sample_count}")
        if source is None:
            return None

        cached = self._lookup(source, sample_count)
        if cached is not None:
            logger.debug("Peak cache hit for source id={} n={}", id(source), sample_count)
            return cached

        audio = decode_pcm(source)
        self.decode_count += 1
        peaks = downsample_peaks(audio.channels, sample_count)
        logger.debug(
            "Decoded {} frames @ {} Hz ({} ch) → {} peaks",
            audio.frame_count,
            audio.sample_rate,
            audio.channels.shape[0],
            sample_count,
        )
        self._store(source, sample_count, peaks)
        return peaks

    async def decode_async(self, source: Optional[bytes], sample_count: int) -> Optional[PeakArray]:
        """Same as :meth:`decode`, run in a worker thread."""
        if source is None:
            return None
        return await asyncio.to_thread(self.decode, source, sample_count)
