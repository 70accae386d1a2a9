"""Protocols for the collaborators the core calls into, plus no-op variants."""

from typing import List, Optional, Protocol

from .models import CycleRecord
from .settings import Settings


class SessionStore(Protocol):
    """Persistence capabilities required by the SessionManager."""
    def load_settings(self) -> Settings:
        ...

    def save_settings(self, settings: Settings) -> None:
        ...

    def save_cycle_record(self, record: CycleRecord) -> None:
        ...

    def load_all_cycle_records(self) -> List[CycleRecord]:
        ...

    def get_flag(self, key: str, default: bool = False) -> bool:
        ...

    def set_flag(self, key: str, value: bool) -> None:
        ...

    def get_value(self, key: str) -> Optional[str]:
        ...

    def set_value(self, key: str, value: str) -> None:
        ...

    def delete_value(self, key: str) -> None:
        ...


class NotificationService(Protocol):
    """Outbound notifications fired at phase boundaries."""
    def send_micro_break_notification(self) -> None:
        ...

    def send_cycle_complete_notification(self) -> None:
        ...

    def send_break_complete_notification(self) -> None:
        ...


class AudioService(Protocol):
    """Best-effort sound cues fired at phase boundaries."""
    def play_micro_break_sound(self) -> None:
        ...

    def play_long_break_sound(self) -> None:
        ...

    def play_cycle_complete_sound(self) -> None:
        ...


class NullNotificationService:
    """Notification service that does nothing."""

    def send_micro_break_notification(self) -> None:
        pass

    def send_cycle_complete_notification(self) -> None:
        pass

    def send_break_complete_notification(self) -> None:
        pass


class NullAudioService:
    """Audio service that does nothing."""

    def play_micro_break_sound(self) -> None:
        pass

    def play_long_break_sound(self) -> None:
        pass

    def play_cycle_complete_sound(self) -> None:
        pass
