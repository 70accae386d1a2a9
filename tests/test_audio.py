"""Unit tests for tone generation and the audio collaborator."""

import io
import os
import wave
from unittest.mock import MagicMock

import pytest

from zoneclock.audio import AudioPlayer, SoundPlayer, generate_tone_wav
from zoneclock.settings import Settings, SoundSettings, SoundType


def wav_frames(data: bytes) -> int:
    with wave.open(io.BytesIO(data), 'rb') as wav:
        assert wav.getnchannels() == 1
        assert wav.getsampwidth() == 2
        return wav.getnframes()


class TestToneGeneration:
    def test_length_matches_segments(self):
        data = generate_tone_wav([(440, 100), (0, 50)], sample_rate=8000)
        assert wav_frames(data) == 800 + 400

    def test_silence_only(self):
        data = generate_tone_wav([(0, 10)], sample_rate=1000)
        with wave.open(io.BytesIO(data), 'rb') as wav:
            assert wav.readframes(10) == b"\x00\x00" * 10


@pytest.fixture()
def sound_player(monkeypatch):
    """A real SoundPlayer whose OS playback only records the file played."""
    sound = SoundPlayer()
    played = []
    monkeypatch.setattr(sound, "_play_file", played.append)
    sound.played = played
    yield sound
    sound.cleanup()


class TestAudioPlayer:
    def test_micro_break_uses_selected_sound(self, sound_player):
        settings = Settings(sound=SoundSettings(sound_type=SoundType.WOODFISH, volume=0.4))
        audio = AudioPlayer(lambda: settings, sound_player)

        audio.play_micro_break_sound()

        assert sound_player.has_clip("woodfish@0.40")
        assert len(sound_player.played) == 1

    def test_repeated_cues_reuse_one_file(self, sound_player):
        audio = AudioPlayer(Settings, sound_player)

        for _ in range(50):
            audio.play_micro_break_sound()

        assert len(sound_player._temp_files) == 1
        assert set(sound_player.played) == set(sound_player._temp_files.values())
        assert len(sound_player.played) == 50

    def test_long_break_and_cycle_complete_share_a_clip(self, sound_player):
        audio = AudioPlayer(Settings, sound_player)
        audio.play_long_break_sound()
        audio.play_cycle_complete_sound()
        assert len(sound_player._temp_files) == 1
        assert len(sound_player.played) == 2

    def test_volume_change_adds_one_clip(self, sound_player):
        settings = Settings()
        audio = AudioPlayer(lambda: settings, sound_player)
        audio.play_micro_break_sound()
        settings.sound.volume = 0.2
        audio.play_micro_break_sound()
        audio.play_micro_break_sound()
        assert len(sound_player._temp_files) == 2

    def test_playback_failure_is_logged(self, caplog):
        player = MagicMock(spec=SoundPlayer)
        player.has_clip.return_value = True
        player.play.side_effect = OSError("No audio player found")
        audio = AudioPlayer(Settings, player)

        audio.play_cycle_complete_sound()

        assert "Could not play bowl sound" in caplog.text

    def test_cleanup_delegates(self):
        player = MagicMock(spec=SoundPlayer)
        AudioPlayer(Settings, player).cleanup()
        player.cleanup.assert_called_once()


class TestSoundPlayer:
    def test_add_clip_writes_once(self, sound_player):
        sound_player.add_clip("tone", generate_tone_wav([(440, 10)], sample_rate=1000))
        path = sound_player._temp_files["tone"]
        sound_player.add_clip("tone", b"ignored")
        assert sound_player._temp_files == {"tone": path}
        with open(path, 'rb') as f:
            assert f.read(4) == b"RIFF"

    def test_unknown_clip_raises(self, sound_player):
        with pytest.raises(OSError):
            sound_player.play("missing")

    def test_cleanup_removes_temp_files(self, sound_player):
        sound_player.add_clip("tone", generate_tone_wav([(440, 10)], sample_rate=1000))
        sound_player.play("tone")
        path = sound_player._temp_files["tone"]

        sound_player.cleanup()

        assert sound_player._temp_files == {}
        assert not os.path.exists(path)
