"""Temporizador de cuenta regresiva por tarea (la UI llama a tick() cada segundo)."""
from enum import Enum
from typing import Callable, Optional

PRESETS = (5, 10, 15, 25, 30, 45, 60)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


def format_time(total_seconds: int) -> str:
    total_seconds = max(int(total_seconds), 0)
    hours, rest = divmod(total_seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class CountdownTimer:
    def __init__(self, preset_minutes: Optional[int] = None, initial_seconds: Optional[int] = None,
                 on_complete: Optional[Callable[[], None]] = None):
        self.preset_minutes = preset_minutes
        self.initial_seconds = initial_seconds
        self.on_complete = on_complete
        self.state = TimerState.IDLE
        self.remaining = self._reset_value()

    def _reset_value(self) -> int:
        if self.preset_minutes:
            return self.preset_minutes * 60
        if self.initial_seconds:
            return self.initial_seconds
        return 0

    @property
    def display(self) -> str:
        return format_time(self.remaining)

    @property
    def running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self) -> bool:
        if self.remaining <= 0 or self.state == TimerState.RUNNING:
            return False
        self.state = TimerState.RUNNING
        return True

    def pause(self):
        if self.state == TimerState.RUNNING:
            self.state = TimerState.PAUSED

    def resume(self):
        if self.state == TimerState.PAUSED and self.remaining > 0:
            self.state = TimerState.RUNNING

    def reset(self):
        self.state = TimerState.IDLE
        self.remaining = self._reset_value()

    def set_preset(self, minutes: int):
        self.state = TimerState.IDLE
        self.remaining = max(int(minutes), 0) * 60

    def set_custom(self, minutes: int, seconds: int = 0):
        self.state = TimerState.IDLE
        self.remaining = max(int(minutes) * 60 + int(seconds), 0)

    def tick(self) -> int:
        if self.state != TimerState.RUNNING:
            return self.remaining
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self.state = TimerState.FINISHED
            if self.on_complete:
                self.on_complete()
        return self.remaining
