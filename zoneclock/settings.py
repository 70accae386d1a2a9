"""
User settings for the ZoneClock application.
Validated as a whole; an invalid value is never partially applied.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

# Bounds enforced by validate()
FOCUS_MINUTES_RANGE = (15, 180)
BREAK_MINUTES_RANGE = (5, 60)
MICRO_BREAK_INTERVAL_FLOOR = 120
MICRO_BREAK_INTERVAL_CEILING = 300


class SoundType(Enum):
    """Sound played when a micro-break starts."""
    BELL = "bell"
    WOODFISH = "woodfish"
    WATERDROP = "waterdrop"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Theme(Enum):
    """Colour theme preference."""
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass
class MicroBreakInterval:
    """Bounds, in seconds, of the randomized gap between micro-breaks."""
    min_seconds: int = MICRO_BREAK_INTERVAL_FLOOR
    max_seconds: int = MICRO_BREAK_INTERVAL_CEILING

    def is_valid(self) -> bool:
        return (
            self.min_seconds >= MICRO_BREAK_INTERVAL_FLOOR
            and self.max_seconds <= MICRO_BREAK_INTERVAL_CEILING
            and self.min_seconds <= self.max_seconds
        )


@dataclass
class SoundSettings:
    """Sound and haptics preferences."""
    sound_type: SoundType = SoundType.BELL
    volume: float = 0.7
    vibration_enabled: bool = True


@dataclass
class Settings:
    """
    Application settings.

    Durations are in minutes. Use validate() before applying or saving;
    SessionManager.update_settings() does this for you.
    """
    focus_duration: int = 90
    break_duration: int = 20
    micro_break_interval: MicroBreakInterval = field(default_factory=MicroBreakInterval)
    sound: SoundSettings = field(default_factory=SoundSettings)
    dnd_enabled: bool = False
    theme: Theme = Theme.AUTO
    notification_enabled: bool = True

    def validate(self) -> List[str]:
        """Return one message per violated rule (empty when valid)."""
        errors = []

        low, high = FOCUS_MINUTES_RANGE
        if not low <= self.focus_duration <= high:
            errors.append(f"Focus duration must be between {low} and {high} minutes")

        low, high = BREAK_MINUTES_RANGE
        if not low <= self.break_duration <= high:
            errors.append(f"Break duration must be between {low} and {high} minutes")

        if not self.micro_break_interval.is_valid():
            errors.append(
                "Micro-break interval must lie within "
                f"{MICRO_BREAK_INTERVAL_FLOOR}-{MICRO_BREAK_INTERVAL_CEILING} seconds "
                "with min not greater than max"
            )

        if not 0.0 <= self.sound.volume <= 1.0:
            errors.append("Volume must be between 0 and 1")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "focus_duration": self.focus_duration,
            "break_duration": self.break_duration,
            "micro_break_interval": {
                "min": self.micro_break_interval.min_seconds,
                "max": self.micro_break_interval.max_seconds,
            },
            "sound": {
                "sound_type": self.sound.sound_type.value,
                "volume": self.sound.volume,
                "vibration_enabled": self.sound.vibration_enabled,
            },
            "dnd_enabled": self.dnd_enabled,
            "theme": self.theme.value,
            "notification_enabled": self.notification_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """
        Create settings from a dictionary produced by to_dict().

        Missing keys take their defaults. Raises KeyError, TypeError or
        ValueError on malformed data.
        """
        defaults = cls()
        interval = data.get("micro_break_interval", {})
        sound = data.get("sound", {})
        return cls(
            focus_duration=int(data.get("focus_duration", defaults.focus_duration)),
            break_duration=int(data.get("break_duration", defaults.break_duration)),
            micro_break_interval=MicroBreakInterval(
                min_seconds=int(interval.get("min", MICRO_BREAK_INTERVAL_FLOOR)),
                max_seconds=int(interval.get("max", MICRO_BREAK_INTERVAL_CEILING)),
            ),
            sound=SoundSettings(
                sound_type=SoundType(sound.get("sound_type", SoundType.BELL.value)),
                volume=float(sound.get("volume", defaults.sound.volume)),
                vibration_enabled=bool(
                    sound.get("vibration_enabled", defaults.sound.vibration_enabled)
                ),
            ),
            dnd_enabled=bool(data.get("dnd_enabled", False)),
            theme=Theme(data.get("theme", Theme.AUTO.value)),
            notification_enabled=bool(data.get("notification_enabled", True)),
        )
