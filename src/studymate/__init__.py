"""StudyMate: study-assistant client with flashcard review and quiz sessions."""

from studymate.consts import VERSION

__version__ = VERSION
