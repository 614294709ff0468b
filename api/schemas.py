"""
Pydantic schemas for API requests and responses.
"""
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# Request schemas
class LoginRequest(BaseModel):
    """Credentials typed on the login form."""
    login_name: str = Field(..., description="Login name")
    secret: str = Field(..., description="Password")


class ProfileUpdateRequest(BaseModel):
    """Change of the logged-in user's own name and avatar."""
    display_name: Optional[str] = Field(None, description="New display name")
    avatar_glyph: Optional[str] = Field(None, description="New avatar emoji")


class ClassCreateRequest(BaseModel):
    """Request to create a class."""
    name: str = Field(..., description="Class name, e.g. '9A'")


class TeacherCreateRequest(BaseModel):
    """Request to create a teacher (admin only)."""
    display_name: str = Field(..., description="Full name")
    login_name: str = Field(..., description="Login name")
    secret: str = Field(..., description="Password")
    subjects: List[str] = Field(..., description="Subjects the teacher may grade")
    class_ids: List[str] = Field(default_factory=list, description="Classes the teacher teaches")
    avatar_glyph: Optional[str] = Field(None, description="Avatar emoji")


class TeacherUpdateRequest(BaseModel):
    """Partial update of a teacher; omitted fields keep their value."""
    display_name: Optional[str] = None
    login_name: Optional[str] = None
    secret: Optional[str] = None
    subjects: Optional[List[str]] = None
    class_ids: Optional[List[str]] = None
    avatar_glyph: Optional[str] = None


class StudentCreateRequest(BaseModel):
    """Request to create a student."""
    display_name: str = Field(..., description="Full name")
    login_name: str = Field(..., description="Login name")
    secret: str = Field(..., description="Password")
    class_id: str = Field(..., description="Class the student belongs to")
    avatar_glyph: Optional[str] = Field(None, description="Avatar emoji")


class StudentUpdateRequest(BaseModel):
    """Partial update of a student; omitted fields keep their value."""
    display_name: Optional[str] = None
    login_name: Optional[str] = None
    secret: Optional[str] = None
    class_id: Optional[str] = None
    avatar_glyph: Optional[str] = None


class GradeCreateRequest(BaseModel):
    """Request to record a grade (teacher only)."""
    student_id: str = Field(..., description="ID of the student")
    subject: str = Field(..., description="Subject name")
    value: int = Field(..., description="Grade value (2-5)")
    date: Optional[datetime] = Field(None, description="Grade date, defaults to now")


class ScheduleCreateRequest(BaseModel):
    """Request to add a lesson slot."""
    class_id: str
    weekday: str = Field(..., description="Monday .. Saturday")
    time: str = Field(..., description="Start time, HH:MM")
    subject: str


class HomeworkCreateRequest(BaseModel):
    """Request to add a homework assignment."""
    class_id: str
    subject: str
    description: str
    due_date: date


# Response schemas
class UserResponse(BaseModel):
    """User information response."""
    id: str
    login_name: str
    role: str
    display_name: str
    avatar_glyph: Optional[str] = None


class ClassResponse(BaseModel):
    id: str
    name: str
    owner_teacher_id: Optional[str] = None


class TeacherResponse(BaseModel):
    id: str
    display_name: str
    login_name: str
    avatar_glyph: Optional[str] = None
    subjects: List[str]
    class_ids: List[str]


class StudentResponse(BaseModel):
    id: str
    display_name: str
    login_name: str
    avatar_glyph: Optional[str] = None
    class_id: str
    class_name: Optional[str] = None


class GradeResponse(BaseModel):
    """Single grade response."""
    id: str
    student_id: str
    student_name: Optional[str]
    subject: str
    value: int
    date: Optional[str]
    teacher_id: Optional[str]


class ScheduleResponse(BaseModel):
    id: str
    class_id: str
    weekday: str
    time: str
    subject: str


class HomeworkResponse(BaseModel):
    id: str
    class_id: str
    subject: str
    description: str
    due_date: Optional[str]


class SubjectStatsResponse(BaseModel):
    """Average and histogram of one subject."""
    subject: str
    average: float
    average_display: str
    count: int
    distribution: Dict[int, int]


class StudentStatsResponse(BaseModel):
    student_id: str
    average: float
    average_display: str
    subjects: List[Dict[str, Any]]


class ClassStatsResponse(BaseModel):
    class_id: str
    average: float
    average_display: str
    report: Dict[str, Any]


class OverviewResponse(BaseModel):
    """Statistics over everything the requester may see."""
    overall_average: float
    overall_average_display: str
    grade_distribution: Dict[int, int]
    grade_percentages: Dict[int, str]
    top_students: List[Dict[str, Any]]
    subjects: List[SubjectStatsResponse]


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
    error_type: Optional[str] = None


class SuccessResponse(BaseModel):
    """Generic success response."""
    success: bool
    message: str
    data: Optional[Any] = None
