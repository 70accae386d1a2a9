"""Unit tests for Settings validation and serialization."""

import pytest

from zoneclock.settings import (
    MicroBreakInterval,
    Settings,
    SoundSettings,
    SoundType,
    Theme,
)


class TestDefaults:
    def test_default_settings_are_valid(self):
        settings = Settings()
        assert settings.focus_duration == 90
        assert settings.break_duration == 20
        assert settings.micro_break_interval.min_seconds == 120
        assert settings.micro_break_interval.max_seconds == 300
        assert settings.theme == Theme.AUTO
        assert settings.notification_enabled is True
        assert settings.validate() == []
        assert settings.is_valid


class TestValidate:
    @pytest.mark.parametrize("minutes", [15, 90, 180])
    def test_focus_bounds_inclusive(self, minutes):
        assert Settings(focus_duration=minutes).is_valid

    @pytest.mark.parametrize("minutes", [14, 181])
    def test_focus_out_of_range(self, minutes):
        errors = Settings(focus_duration=minutes).validate()
        assert len(errors) == 1
        assert "Focus duration" in errors[0]

    @pytest.mark.parametrize("minutes", [4, 61])
    def test_break_out_of_range(self, minutes):
        errors = Settings(break_duration=minutes).validate()
        assert len(errors) == 1
        assert "Break duration" in errors[0]

    def test_interval_min_above_max(self):
        interval = MicroBreakInterval(min_seconds=250, max_seconds=200)
        assert not interval.is_valid()
        assert not Settings(micro_break_interval=interval).is_valid

    def test_interval_outside_bounds(self):
        assert not MicroBreakInterval(min_seconds=60, max_seconds=300).is_valid()
        assert not MicroBreakInterval(min_seconds=120, max_seconds=400).is_valid()

    def test_narrowed_interval_is_valid(self):
        assert MicroBreakInterval(min_seconds=180, max_seconds=180).is_valid()

    def test_volume_out_of_range(self):
        settings = Settings(sound=SoundSettings(volume=1.5))
        assert settings.validate() == ["Volume must be between 0 and 1"]

    def test_reports_every_violation(self):
        settings = Settings(focus_duration=5, break_duration=90)
        assert len(settings.validate()) == 2


class TestSerialization:
    def test_from_dict_restores_custom_values(self):
        settings = Settings(
            focus_duration=45,
            break_duration=10,
            micro_break_interval=MicroBreakInterval(150, 240),
            sound=SoundSettings(SoundType.WATERDROP, 0.3, False),
            dnd_enabled=True,
            theme=Theme.DARK,
            notification_enabled=False,
        )
        assert Settings.from_dict(settings.to_dict()) == settings

    def test_to_dict_uses_enum_values(self):
        data = Settings().to_dict()
        assert data["sound"]["sound_type"] == "bell"
        assert data["theme"] == "auto"
        assert data["micro_break_interval"] == {"min": 120, "max": 300}

    def test_missing_keys_take_defaults(self):
        assert Settings.from_dict({"focus_duration": 30}) == Settings(focus_duration=30)

    def test_unknown_sound_type_raises(self):
        with pytest.raises(ValueError):
            Settings.from_dict({"sound": {"sound_type": "gong"}})

    def test_display_name(self):
        assert SoundType.WOODFISH.display_name == "Woodfish"
