from pathlib import Path

from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtCore import QUrl

from app.cues import KeyCue


_FILES = {
    KeyCue.CORRECT: "key-press.wav",
    KeyCue.ERROR: "key-error.wav",
    KeyCue.SPACE: "key-space.wav",
}


class AudioEngine:
    def __init__(self, sfx_dir="assets/sfx", enabled=True):
        self.effects = {cue: QSoundEffect() for cue in KeyCue}
        self.enabled = enabled
        for cue, effect in self.effects.items():
            path = Path(sfx_dir) / _FILES[cue]
            if path.exists():
                effect.setSource(QUrl.fromLocalFile(str(path)))
                effect.setVolume(0.25)

    def play(self, cue: KeyCue):
        if not self.enabled:
            return
        effect = self.effects.get(KeyCue(cue))
        if effect is not None and effect.source().isValid():
            effect.stop()
            effect.play()
