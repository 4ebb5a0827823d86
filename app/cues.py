from enum import Enum


class KeyCue(str, Enum):
    CORRECT = "correct"
    ERROR = "error"
    SPACE = "space"


def select_cue(key: str, expected: str) -> KeyCue:
    """Sound class for a typed character: space, or correct/error against the expected one."""
    if key == " ":
        return KeyCue.SPACE
    return KeyCue.CORRECT if key == expected else KeyCue.ERROR
