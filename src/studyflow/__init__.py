"""studyflow: SM-2 spaced repetition scheduling for flashcard study."""

from studyflow.consts import VERSION

__version__ = VERSION
