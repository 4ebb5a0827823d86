from dataclasses import dataclass
import math

CHARS_PER_WORD = 5


@dataclass(frozen=True)
class RaceMetrics:
    wpm: int = 0
    accuracy: int = 100
    error_count: int = 0


def js_round(value: float) -> int:
    """Round half up, the way the browser's Math.round does (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def count_errors(sample_text: str, typed_text: str) -> int:
    return sum(1 for i, ch in enumerate(typed_text) if i >= len(sample_text) or ch != sample_text[i])


def accuracy_percent(position: int, error_count: int) -> int:
    if position == 0:
        return 100
    return js_round((position - error_count) / position * 100)


def words_per_minute(position: int, elapsed_ms: float, started: bool = True) -> int:
    """
    Standard 5-chars-per-word WPM. The word count is rounded before dividing,
    so 7 characters count as one word and 8 as two.
    """
    minutes = elapsed_ms / 60000.0
    if not started or minutes <= 0:
        return 0
    raw = js_round(position / CHARS_PER_WORD) / minutes
    if not math.isfinite(raw):
        return 0
    return js_round(raw)


def compute_metrics(sample_text: str, typed_text: str, elapsed_ms: float, started: bool = True) -> RaceMetrics:
    """
    Snapshot metrics for one keystroke. Everything is recomputed from the full
    typed text so a backspace corrects the error count retroactively.
    The caller keeps len(typed_text) <= len(sample_text).
    """
    position = len(typed_text)
    errors = count_errors(sample_text, typed_text)
    return RaceMetrics(
        wpm=words_per_minute(position, elapsed_ms, started),
        accuracy=accuracy_percent(position, errors),
        error_count=errors,
    )
