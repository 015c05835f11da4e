"""
Timer Models - Modes, Durable Record, Configuration, Errors

Value objects shared by every napclock component:
- TimerMode: FixedDuration(minutes) or EndOfContent (tagged variants)
- ScheduledTimer: the durable "a timer is armed" record
- TimerConfiguration: last selection, only used to pre-fill the timer sheet
- Error taxonomy raised by TimerScheduler.arm()

Persisted layout of ScheduledTimer (one JSON object under one key):
    {"is_active": bool, "mode_tag": "fixed_duration" | "end_of_content",
     "minutes_if_fixed": int | null, "armed_at_epoch_ms": int,
     "fire_at_epoch_ms": int, "token": str}
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Union

import config


MODE_FIXED_DURATION = "fixed_duration"
MODE_END_OF_CONTENT = "end_of_content"

NO_PRESET_INDEX = -1


class TimerError(Exception):
    """Base class for errors surfaced by TimerScheduler.arm()"""


class PermissionDenied(TimerError):
    """Wake scheduling permission missing; caller should show a consent prompt"""


class PastDeadline(TimerError):
    """Computed fire time is not in the future"""


class AdapterFailure(TimerError):
    """Wake scheduler rejected the registration for any other reason"""


class InvalidTimerMode(ValueError):
    """Mode cannot be built (non-integer minutes, unknown tag or preset index)"""


@dataclass(frozen=True)
class FixedDuration:
    """Fire `minutes` after arming; pauses playback. Non-positive minutes are rejected at arm time."""
    minutes: int
    tag: ClassVar[str] = MODE_FIXED_DURATION

    def __post_init__(self):
        if isinstance(self.minutes, bool) or not isinstance(self.minutes, int):
            raise InvalidTimerMode(f"FixedDuration requires whole minutes, got {self.minutes!r}")

    @property
    def duration_ms(self) -> int:
        return self.minutes * 60_000


@dataclass(frozen=True)
class EndOfContent:
    """Fire when the current content item completes; advances content."""
    tag: ClassVar[str] = MODE_END_OF_CONTENT


TimerMode = Union[FixedDuration, EndOfContent]


def mode_from_tag(tag: str, minutes: Optional[int] = None) -> TimerMode:
    """
    Decode a persisted mode tag.

    Raises:
        InvalidTimerMode: unknown tag or missing/non-integer minutes
    """
    if tag == MODE_FIXED_DURATION:
        if minutes is None:
            raise InvalidTimerMode("fixed_duration mode stored without minutes")
        return FixedDuration(int(minutes))
    if tag == MODE_END_OF_CONTENT:
        return EndOfContent()
    raise InvalidTimerMode(f"Unknown timer mode tag: {tag!r}")


def mode_from_preset_index(index: int, presets: Optional[List[int]] = None) -> TimerMode:
    """
    Map a timer-sheet index to a mode.

    Indices 0..len(presets)-1 are fixed durations; len(presets) is end of content.
    """
    presets = presets if presets is not None else config.TIMER_PRESETS_MINUTES
    if 0 <= index < len(presets):
        return FixedDuration(presets[index])
    if index == len(presets):
        return EndOfContent()
    raise InvalidTimerMode(f"Unknown timer preset index: {index}")


def preset_index_for(mode: TimerMode, presets: Optional[List[int]] = None) -> int:
    """Inverse of mode_from_preset_index; NO_PRESET_INDEX for custom durations."""
    presets = presets if presets is not None else config.TIMER_PRESETS_MINUTES
    if isinstance(mode, EndOfContent):
        return len(presets)
    try:
        return presets.index(mode.minutes)
    except ValueError:
        return NO_PRESET_INDEX


def describe_mode(mode: TimerMode) -> str:
    """User-facing confirmation, e.g. 'Timer set for 15 minutes'."""
    if isinstance(mode, EndOfContent):
        return "End of content timer set"

    hours, minutes = divmod(mode.minutes, 60)
    if hours >= 1 and minutes == 0:
        return f"Timer set for {hours} hour{'s' if hours > 1 else ''}"
    if hours >= 1:
        return (
            f"Timer set for {hours} hour{'s' if hours > 1 else ''} "
            f"and {minutes} minute{'s' if minutes != 1 else ''}"
        )
    return f"Timer set for {minutes} minute{'s' if minutes != 1 else ''}"


@dataclass(frozen=True)
class ScheduledTimer:
    """Durable record: fully describes one live timer, or is inactive."""
    is_active: bool
    mode: TimerMode
    armed_at_epoch_ms: int
    fire_at_epoch_ms: int
    token: str

    @property
    def has_deadline(self) -> bool:
        return isinstance(self.mode, FixedDuration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_active': self.is_active,
            'mode_tag': self.mode.tag,
            'minutes_if_fixed': self.mode.minutes if isinstance(self.mode, FixedDuration) else None,
            'armed_at_epoch_ms': self.armed_at_epoch_ms,
            'fire_at_epoch_ms': self.fire_at_epoch_ms,
            'token': self.token,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduledTimer':
        """
        Rebuild from the persisted layout.

        Raises:
            InvalidTimerMode: unknown mode tag
            KeyError / TypeError / ValueError: malformed record
        """
        return cls(
            is_active=bool(data['is_active']),
            mode=mode_from_tag(data['mode_tag'], data.get('minutes_if_fixed')),
            armed_at_epoch_ms=int(data['armed_at_epoch_ms']),
            fire_at_epoch_ms=int(data['fire_at_epoch_ms']),
            token=str(data['token']),
        )

    def __repr__(self):
        state = "active" if self.is_active else "inactive"
        return f"ScheduledTimer({self.mode}, {state}, fire_at={self.fire_at_epoch_ms}, token={self.token[:8]})"


@dataclass(frozen=True)
class TimerConfiguration:
    """Last user selection. No bearing on correctness."""
    preset_index: int = NO_PRESET_INDEX
    minutes: Optional[int] = None

    @property
    def has_settings(self) -> bool:
        return self.preset_index != NO_PRESET_INDEX or self.minutes is not None

    @classmethod
    def for_mode(cls, mode: TimerMode, presets: Optional[List[int]] = None) -> 'TimerConfiguration':
        return cls(
            preset_index=preset_index_for(mode, presets),
            minutes=mode.minutes if isinstance(mode, FixedDuration) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'preset_index': self.preset_index, 'minutes': self.minutes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimerConfiguration':
        minutes = data.get('minutes')
        return cls(
            preset_index=int(data.get('preset_index', NO_PRESET_INDEX)),
            minutes=int(minutes) if minutes is not None else None,
        )


@dataclass(frozen=True)
class Armed:
    """Successful arm() result"""
    timer: ScheduledTimer
    message: str


@dataclass(frozen=True)
class TimerStatus:
    """Combined read-side snapshot for UI and diagnostics"""
    is_active: bool
    mode: Optional[TimerMode]
    fire_at_epoch_ms: Optional[int]
    remaining_ms: Optional[int]
    can_schedule: bool
    configuration: TimerConfiguration
