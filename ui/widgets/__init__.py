from ui.widgets.typing_area import TypingArea, normalize_key

__all__ = ["TypingArea", "normalize_key"]
