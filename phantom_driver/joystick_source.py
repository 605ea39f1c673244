"""
Joystick Source Interface

The live input the engine samples while recording. Real joystick drivers live
outside this package; anything with these two reads can be recorded. The
PhantomJoystick implements the same interface for playback, so a replaying
route can be handed to code written against a real joystick.
"""

from abc import ABC, abstractmethod


class JoystickSource(ABC):
    """Raw analog axis and digital button reads."""

    @abstractmethod
    def read_axis(self, index: int) -> float:
        """Value of analog axis index (0..5)."""

    @abstractmethod
    def read_button(self, index: int) -> bool:
        """State of digital button index (0..9)."""
