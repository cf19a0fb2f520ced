"""Audio infrastructure - ffprobe/ffplay audio source."""

from podcast_player.infrastructure.audio.ffplay_source import (
    FFplayAudioSource,
    FFplayConfig,
    atempo_chain,
    parse_probe_output,
)

__all__ = [
    "FFplayAudioSource",
    "FFplayConfig",
    "atempo_chain",
    "parse_probe_output",
]
