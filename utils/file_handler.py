import logging
import random
from pathlib import Path
from typing import List, Optional

log = logging.getLogger(__name__)

PASSAGES = [
    "The quick brown fox jumps over the lazy dog while the patient cat watches from the warm windowsill.",
    "Practice makes progress, not perfection. Every keystroke you type today builds the speed you will have tomorrow.",
    "A journey of a thousand miles begins with a single step, and a race of a thousand words begins with a single key.",
    "Clear code is written for people first and machines second, so choose names that explain what a thing is for.",
    "Rain tapped gently on the roof as the old train rolled through the valley, carrying letters to distant towns.",
]

_DEFAULT_FILE = Path("assets/texts/passages.txt")


def load_passages(path: Optional[Path] = None) -> List[str]:
    """Built-in passages plus blank-line separated blocks from the passages file."""
    p = Path(path) if path else _DEFAULT_FILE
    extra: List[str] = []
    if p.exists():
        try:
            txt = p.read_text(encoding="utf-8").replace("\r\n", "\n").strip()
            extra = [" ".join(b.split()) for b in txt.split("\n\n") if b.strip()]
        except OSError as e:
            log.warning("Failed to read passages from %s: %s", p, e)
    return PASSAGES + extra


def pick_passage(passages: Optional[List[str]] = None, rng: Optional[random.Random] = None) -> str:
    pool = passages or PASSAGES
    return (rng or random).choice(pool)
