"""
FFplay Audio Source

Infrastructure component that renders episode audio through ffplay
subprocesses and probes durations with ffprobe.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from podcast_player.application.interfaces.audio_source import AudioSource
from podcast_player.config.settings import AudioSettings
from podcast_player.domain.shared.exceptions import PlaybackSourceError
from podcast_player.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

_MAX_ATEMPO = 2.0
_MIN_ATEMPO = 0.5


def atempo_chain(speed: float) -> str:
    """Build an ``atempo`` filter chain; a single stage only covers 0.5-2.0."""
    stages: list[float] = []
    remaining = speed
    while remaining > _MAX_ATEMPO:
        stages.append(_MAX_ATEMPO)
        remaining /= _MAX_ATEMPO
    while remaining < _MIN_ATEMPO:
        stages.append(_MIN_ATEMPO)
        remaining /= _MIN_ATEMPO
    stages.append(remaining)
    return ",".join(f"atempo={s:.4g}" for s in stages)


def parse_probe_output(output: str) -> float | None:
    """Parse ffprobe's ``format=duration`` output. Returns None for ``N/A`` or garbage."""
    text = output.strip().splitlines()[0].strip() if output.strip() else ""
    try:
        duration = float(text)
    except ValueError:
        return None
    return duration if duration > 0 else None


@dataclass
class FFplayConfig:
    """Command-line configuration for ffplay/ffprobe."""

    ffplay_path: str = "ffplay"
    ffprobe_path: str = "ffprobe"
    tick_interval_seconds: float = 0.25
    stop_timeout_seconds: float = 2.0

    def build_play_command(
        self, uri: str, *, start: float, volume: float, speed: float
    ) -> list[str]:
        return [
            self.ffplay_path,
            "-nodisp",
            "-autoexit",
            "-loglevel",
            "error",
            "-ss",
            f"{start:.3f}",
            "-volume",
            str(round(volume * 100)),
            "-af",
            atempo_chain(speed),
            uri,
        ]

    def build_probe_command(self, uri: str) -> list[str]:
        return [
            self.ffprobe_path,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            uri,
        ]


class FFplayAudioSource(AudioSource):
    """AudioSource backed by one ffplay process at a time.

    ffplay cannot pause or seek from outside, so pausing stops the process
    and remembers the position; resuming, seeking while playing and changing
    volume or speed respawn it at the remembered position.
    """

    def __init__(
        self,
        settings: AudioSettings | None = None,
        config: FFplayConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._settings = settings or AudioSettings()
        self._config = config or FFplayConfig(
            ffplay_path=self._settings.ffplay_path,
            ffprobe_path=self._settings.ffprobe_path,
            tick_interval_seconds=self._settings.tick_interval_ms / 1000,
        )
        self._clock = clock

        self._uri: str | None = None
        self._duration: float | None = None
        self._ready = False
        self._volume = 1.0
        self._speed = 1.0

        # Position bookkeeping: while playing, position is
        # base + (now - started_at) * speed.
        self._base_position = 0.0
        self._started_at: float | None = None

        # Guards every halt/spawn so at most one ffplay process is alive.
        self._lock = asyncio.Lock()
        self._process: asyncio.subprocess.Process | None = None
        self._restart_task: asyncio.Task[None] | None = None
        self._restart_requested = False
        self._load_task: asyncio.Task[None] | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._watcher: asyncio.Task[None] | None = None

    # ── Introspection ───────────────────────────────────────────────

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_playing(self) -> bool:
        return self._started_at is not None

    @property
    def duration_seconds(self) -> float | None:
        return self._duration

    @property
    def position_seconds(self) -> float:
        if self._started_at is None:
            return self._base_position
        elapsed = (self._clock() - self._started_at) * self._speed
        position = self._base_position + elapsed
        if self._duration is not None:
            position = min(position, self._duration)
        return position

    # ── Transport ───────────────────────────────────────────────────

    async def load(self, uri: str) -> None:
        await self.unload()
        self._uri = uri
        self._load_task = asyncio.get_running_loop().create_task(self._probe(uri))

    async def play(self) -> None:
        if not self._ready or self._uri is None:
            raise PlaybackSourceError(self._uri, ErrorMessages.SOURCE_NOT_LOADED)
        async with self._lock:
            if self.is_playing:
                return
            await self._spawn(self._base_position)

    async def pause(self) -> None:
        async with self._lock:
            if not self.is_playing:
                return
            self._base_position = self.position_seconds
            await self._halt()

    async def seek(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        if self._duration is not None:
            seconds = min(seconds, self._duration)
        async with self._lock:
            if self.is_playing:
                await self._halt()
                await self._spawn(seconds)
            else:
                self._base_position = seconds

    async def unload(self) -> None:
        if self._load_task is not None:
            self._load_task.cancel()
            self._load_task = None

        self._restart_requested = False
        if self._restart_task is not None:
            await self._restart_task
            self._restart_task = None

        async with self._lock:
            await self._halt()
            self._uri = None
            self._duration = None
            self._ready = False
            self._base_position = 0.0

    def set_volume(self, volume: float) -> None:
        self._volume = volume
        self._respawn_if_playing()

    def set_speed(self, speed: float) -> None:
        if self.is_playing:
            # Fold elapsed time at the old rate into the base first.
            self._base_position = self.position_seconds
            self._started_at = self._clock()
        self._speed = speed
        self._respawn_if_playing()

    # ── Internals ───────────────────────────────────────────────────

    async def _probe(self, uri: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._config.build_probe_command(uri),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            self._emit_error(PlaybackSourceError(uri, str(e)))
            return

        if uri != self._uri:
            return
        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            self._emit_error(
                PlaybackSourceError(uri, message or ErrorMessages.SOURCE_PROBE_FAILED.format(uri=uri))
            )
            return

        self._duration = parse_probe_output(stdout.decode(errors="replace"))
        self._ready = True
        logger.debug(LogTemplates.SOURCE_PROBED, uri, self._duration)
        self._emit_ready(self._duration)

    async def _spawn(self, start: float) -> None:
        assert self._uri is not None
        command = self._config.build_play_command(
            self._uri, start=start, volume=self._volume, speed=self._speed
        )
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise PlaybackSourceError(self._uri, str(e)) from e

        self._process = proc
        self._base_position = start
        self._started_at = self._clock()
        logger.debug(LogTemplates.SOURCE_SPAWNED, self._uri, start, proc.pid)

        loop = asyncio.get_running_loop()
        self._ticker = loop.create_task(self._tick_loop())
        self._watcher = loop.create_task(self._watch(proc))

    async def _halt(self) -> None:
        proc = self._process
        self._process = None
        self._started_at = None

        for task in (self._ticker, self._watcher):
            if task is not None:
                task.cancel()
        self._ticker = None
        self._watcher = None

        if proc is None or proc.returncode is not None:
            return
        try:
            proc.terminate()
            await asyncio.wait_for(proc.wait(), timeout=self._config.stop_timeout_seconds)
        except TimeoutError:
            proc.kill()
            await proc.wait()
        except ProcessLookupError as e:
            logger.debug(LogTemplates.SOURCE_PROCESS_CLEANUP_ERROR, e)

    def _respawn_if_playing(self) -> None:
        """Request a restart with the current volume and speed.

        Requests made while a restart is pending are folded into it. A held
        lock means a spawn may be in flight, so the request is queued too.
        """
        if not self.is_playing and not self._lock.locked():
            return
        self._restart_requested = True
        if self._restart_task is None or self._restart_task.done():
            self._restart_task = asyncio.get_running_loop().create_task(self._restart())

    async def _restart(self) -> None:
        while self._restart_requested:
            self._restart_requested = False
            async with self._lock:
                if not self.is_playing:
                    return
                position = self.position_seconds
                await self._halt()
                try:
                    await self._spawn(position)
                except PlaybackSourceError as e:
                    self._emit_error(e)
                    return

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.tick_interval_seconds)
            self._emit_tick(self.position_seconds)

    async def _watch(self, proc: asyncio.subprocess.Process) -> None:
        returncode = await proc.wait()
        if proc is not self._process:
            return

        self._process = None
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._watcher = None

        if returncode == 0:
            self._base_position = self._duration or self.position_seconds
            self._started_at = None
            self._emit_ended()
            return

        self._base_position = self.position_seconds
        self._started_at = None
        stderr = b""
        if proc.stderr is not None:
            stderr = await proc.stderr.read()
        message = stderr.decode(errors="replace").strip() or ErrorMessages.SOURCE_EXITED.format(
            code=returncode
        )
        self._emit_error(PlaybackSourceError(self._uri, message))
