# Application Stats Package
from .progress import DeckProgress, summarize_progress

__all__ = ["DeckProgress", "summarize_progress"]
