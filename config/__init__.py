"""Configuration module."""
from .constants import SUBJECTS, WEEKDAYS, AVATAR_GLYPHS, MIN_GRADE, MAX_GRADE, GRADE_VALUES
from .settings import Settings, get_settings, settings

__all__ = [
    "SUBJECTS",
    "WEEKDAYS",
    "AVATAR_GLYPHS",
    "MIN_GRADE",
    "MAX_GRADE",
    "GRADE_VALUES",
    "Settings",
    "get_settings",
    "settings",
]
