"""
services.py: Player preferences and the audio/haptic feedback service.

The feedback service is built once at startup and handed to the game. It
maps game events to short tones and vibration patterns and drops any cue the
player has switched off.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Preferences:
    audio: bool = True
    vibrate: bool = True

    def to_dict(self) -> dict:
        return {"audio": self.audio, "vibrate": self.vibrate}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Preferences":
        if not isinstance(data, dict):
            return cls()
        return cls(audio=bool(data.get("audio", True)), vibrate=bool(data.get("vibrate", True)))


class FeedbackSink:
    """Where cues end up. The pygame client plays them; tests record them."""

    def beep(self, freq: float, duration: float, wave: str = "sine", gain: float = 0.03):
        pass

    def vibrate(self, pattern: Sequence[int]):
        pass


class RecordingSink(FeedbackSink):
    def __init__(self):
        self.beeps = []
        self.vibrations = []

    def beep(self, freq, duration, wave="sine", gain=0.03):
        self.beeps.append((freq, duration, wave, gain))

    def vibrate(self, pattern):
        self.vibrations.append(tuple(pattern))


# event -> ((freq, seconds, wave, gain), ...), vibration pattern
CUES: Dict[str, Tuple[Tuple[Tuple[float, float, str, float], ...], Tuple[int, ...]]] = {
    "tap": (((520, 0.05, "sine", 0.02),), (10,)),
    "flip": (((360, 0.06, "triangle", 0.018),), ()),
    "chaos_flip": (((460, 0.05, "square", 0.02),), ()),
    "pass": (((700, 0.05, "square", 0.018),), ()),
    "near_miss": (((880, 0.05, "sine", 0.02),), (6,)),
    "coin": (((990, 0.04, "sine", 0.015),), ()),
    "powerup": (((660, 0.1, "sine", 0.025), (990, 0.1, "triangle", 0.025)), (8,)),
    "shield": (((240, 0.12, "triangle", 0.025),), (15, 30, 15)),
    "level_up": (((330, 0.2, "sine", 0.025), (220, 0.2, "triangle", 0.025)), ()),
    "best": (((523, 0.15, "sine", 0.025), (784, 0.15, "triangle", 0.025)), ()),
    "game_over": (((196, 0.18, "sine", 0.025), (130, 0.18, "triangle", 0.025)), (20, 60, 20)),
}


class FeedbackService:
    def __init__(self, prefs: Preferences, sink: Optional[FeedbackSink] = None):
        self.prefs = prefs
        self.sink = sink or FeedbackSink()

    def cue(self, event: str):
        if event not in CUES:
            logger.debug("No cue for event %r", event)
            return
        tones, pattern = CUES[event]
        if self.prefs.audio:
            for freq, duration, wave, gain in tones:
                self.sink.beep(freq, duration, wave, gain)
        if self.prefs.vibrate and pattern:
            self.sink.vibrate(pattern)
