"""API module for the School Gradebook."""
from .routes import auth_router, roster_router, grades_router, academics_router, stats_router
from .schemas import (
    LoginRequest,
    ProfileUpdateRequest,
    ClassCreateRequest,
    TeacherCreateRequest,
    TeacherUpdateRequest,
    StudentCreateRequest,
    StudentUpdateRequest,
    GradeCreateRequest,
    ScheduleCreateRequest,
    HomeworkCreateRequest,
    UserResponse,
    GradeResponse,
    OverviewResponse,
    SuccessResponse,
    ErrorResponse,
)

__all__ = [
    "auth_router",
    "roster_router",
    "grades_router",
    "academics_router",
    "stats_router",
    "LoginRequest",
    "ProfileUpdateRequest",
    "ClassCreateRequest",
    "TeacherCreateRequest",
    "TeacherUpdateRequest",
    "StudentCreateRequest",
    "StudentUpdateRequest",
    "GradeCreateRequest",
    "ScheduleCreateRequest",
    "HomeworkCreateRequest",
    "UserResponse",
    "GradeResponse",
    "OverviewResponse",
    "SuccessResponse",
    "ErrorResponse",
]
