"""
Sound cues for the ZoneClock application.
Tones are generated in memory and played through the platform's audio player.
"""

import io
import logging
import math
import os
import struct
import subprocess
import sys
import tempfile
import wave
from typing import Callable, Dict, List, Optional, Tuple

from .settings import Settings, SoundType

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100

# (frequency Hz, duration ms) segments; 0 Hz is silence
Tone = List[Tuple[int, int]]

MICRO_BREAK_TONES: Dict[SoundType, Tone] = {
    SoundType.BELL: [(880, 120), (0, 40), (1046, 260)],
    SoundType.WOODFISH: [(420, 60), (0, 90), (420, 60)],
    SoundType.WATERDROP: [(1320, 50), (0, 30), (990, 90)],
}

# Singing-bowl style cue for long breaks and completed cycles
BOWL_TONE: Tone = [(528, 500), (0, 60), (396, 700)]


def generate_tone_wav(
    segments: Tone,
    volume: float = 0.5,
    sample_rate: int = SAMPLE_RATE
) -> bytes:
    """
    Generate a sequence of sine tones as WAV data.

    Args:
        segments: (frequency, duration_ms) pairs; frequency 0 is silence.
        volume: Volume level (0.0 to 1.0).
        sample_rate: Sample rate (44100 is CD quality).

    Returns:
        WAV file data as bytes.
    """
    max_amplitude = 32767 * max(0.0, min(1.0, volume))
    samples = []

    for frequency, duration_ms in segments:
        num_samples = int(sample_rate * duration_ms / 1000)
        if frequency <= 0:
            samples.extend([0] * num_samples)
            continue

        fade_samples = max(1, int(sample_rate * 0.01))  # 10ms fade
        for i in range(num_samples):
            t = i / sample_rate
            value = max_amplitude * math.sin(2 * math.pi * frequency * t)

            # Apply fade in/out to avoid clicks
            if i < fade_samples:
                value *= i / fade_samples
            elif i > num_samples - fade_samples:
                value *= (num_samples - i) / fade_samples

            samples.append(int(value))

    # Create WAV file in memory
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)  # Mono
        wav.setsampwidth(2)  # 16-bit
        wav.setframerate(sample_rate)
        wav.writeframes(struct.pack(f'<{len(samples)}h', *samples))

    return buffer.getvalue()


class SoundPlayer:
    """
    Cross-platform WAV player.
    Writes clips to temp files and hands them to the OS player.
    """

    def __init__(self):
        self._temp_files: Dict[str, str] = {}

    def has_clip(self, key: str) -> bool:
        return key in self._temp_files

    def add_clip(self, key: str, wav_data: bytes):
        """Write a clip to its temp file once; later cues reuse the file."""
        if key in self._temp_files:
            return
        fd, path = tempfile.mkstemp(suffix='.wav')
        with os.fdopen(fd, 'wb') as f:
            f.write(wav_data)
        self._temp_files[key] = path

    def play(self, key: str):
        """Play a stored clip without blocking; raises OSError when no player works."""
        path = self._temp_files.get(key)
        if path is None:
            raise OSError(f"No clip stored for {key}")
        self._play_file(path)

    def _play_file(self, path: str):
        """Platform-specific sound playback."""
        system = sys.platform.lower()

        if system == 'darwin':
            # macOS: use afplay
            subprocess.Popen(
                ['afplay', path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
        elif system.startswith('linux'):
            # Linux: try paplay (PulseAudio), then aplay (ALSA)
            for cmd in ['paplay', 'aplay']:
                try:
                    subprocess.Popen(
                        [cmd, path],
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL
                    )
                    return
                except FileNotFoundError:
                    continue
            raise OSError("No audio player found (tried paplay, aplay)")
        elif system == 'win32':
            # Windows: use winsound
            import winsound
            winsound.PlaySound(path, winsound.SND_FILENAME | winsound.SND_ASYNC)

    def cleanup(self):
        """Clean up temporary files."""
        for path in self._temp_files.values():
            try:
                os.remove(path)
            except OSError as e:
                logger.debug("Could not remove %s: %s", path, e)
        self._temp_files.clear()


class AudioPlayer:
    """
    Audio collaborator for the TimerEngine.

    Reads sound preferences from a settings provider on every cue, so changes
    apply immediately. Playback is best-effort: failures are logged.
    """

    def __init__(
        self,
        settings_provider: Callable[[], Settings],
        player: Optional[SoundPlayer] = None
    ):
        self._settings_provider = settings_provider
        self._player = player or SoundPlayer()

    def play_micro_break_sound(self):
        sound = self._settings_provider().sound
        self._play(sound.sound_type.value, MICRO_BREAK_TONES[sound.sound_type], sound.volume)

    def play_long_break_sound(self):
        self._play("bowl", BOWL_TONE, self._settings_provider().sound.volume)

    def play_cycle_complete_sound(self):
        self._play("bowl", BOWL_TONE, self._settings_provider().sound.volume)

    def _play(self, name: str, tone: Tone, volume: float):
        key = f"{name}@{volume:.2f}"
        try:
            if not self._player.has_clip(key):
                self._player.add_clip(key, generate_tone_wav(tone, volume))
            self._player.play(key)
        except OSError as e:
            logger.warning("Could not play %s sound: %s", name, e)
        else:
            logger.debug("Playing %s sound at volume %.2f", name, volume)

    def cleanup(self):
        self._player.cleanup()
