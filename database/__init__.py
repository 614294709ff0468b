"""Database module."""
from .models import (
    Base,
    User,
    SchoolClass,
    Teacher,
    TeacherSubject,
    TeacherClass,
    Student,
    Grade,
    Schedule,
    Homework,
    UserRole,
    new_id,
)
from .connection import build_engine, build_session_factory, get_db, get_db_context, init_db

__all__ = [
    "Base",
    "User",
    "SchoolClass",
    "Teacher",
    "TeacherSubject",
    "TeacherClass",
    "Student",
    "Grade",
    "Schedule",
    "Homework",
    "UserRole",
    "new_id",
    "build_engine",
    "build_session_factory",
    "get_db",
    "get_db_context",
    "init_db",
]
