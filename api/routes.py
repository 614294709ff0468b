"""
API routes for the School Gradebook.

The routes are a thin presentation layer: they resolve the logged-in user,
call the tools, and turn a refused (None) result into a 403. Domain
exceptions are mapped to status codes by the handlers registered in main.py.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from tools import (
    Actor,
    StudentActor,
    AppState,
    SessionController,
    AccessPolicy,
    NotAuthenticatedError,
    update_own_profile,
    add_class,
    delete_class,
    list_classes,
    add_teacher,
    update_teacher,
    delete_teacher,
    list_teachers,
    add_student,
    update_student,
    delete_student,
    list_students,
    add_grade,
    delete_grade,
    list_grades,
    add_schedule,
    list_schedules,
    add_homework,
    list_homework,
    student_average,
    class_average,
    subject_average,
    subject_report,
    top_students,
    overall_average,
    grade_distribution,
    grade_percentages,
    student_subject_averages,
    get_class_report,
    format_average,
    format_percentage,
    dashboard,
)
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
    ClassResponse,
    TeacherResponse,
    StudentResponse,
    GradeResponse,
    ScheduleResponse,
    HomeworkResponse,
    SubjectStatsResponse,
    StudentStatsResponse,
    ClassStatsResponse,
    OverviewResponse,
    SuccessResponse,
)


# Router for login/logout/profile
auth_router = APIRouter(prefix="/auth", tags=["Auth"])

# Router for classes, teachers and students
roster_router = APIRouter(prefix="/roster", tags=["Roster"])

# Router for grades
grades_router = APIRouter(prefix="/grades", tags=["Grades"])

# Router for schedules and homework
academics_router = APIRouter(tags=["Schedule & Homework"])

# Router for statistics and dashboards
stats_router = APIRouter(tags=["Statistics"])


# ============== Dependencies ==============

def get_state(request: Request) -> AppState:
    """The AppState attached to the running application."""
    return request.app.state.gradebook


def get_session(state: AppState = Depends(get_state)):
    """Database session for one request."""
    yield from get_db(state.session_factory)


def get_actor(
    state: AppState = Depends(get_state),
    db: Session = Depends(get_session)
) -> Actor:
    """The logged-in user as an actor; 401 when nobody is logged in."""
    actor = SessionController(state).current_actor(db)
    if actor is None:
        raise NotAuthenticatedError()
    return actor


def _allowed(result, action: str):
    """Turn a refused operation into a 403."""
    if result is None:
        raise HTTPException(status_code=403, detail=f"Not allowed to {action}")
    return result


def _subject_stats(stats: dict) -> SubjectStatsResponse:
    return SubjectStatsResponse(
        subject=stats["subject"],
        average=stats["average"],
        average_display=format_average(stats["average"]),
        count=stats["count"],
        distribution=stats["distribution"],
    )


# ============== Auth Endpoints ==============

@auth_router.post("/login", response_model=UserResponse)
async def login(
    request: LoginRequest,
    state: AppState = Depends(get_state),
    db: Session = Depends(get_session)
):
    """Log in. Unknown login and wrong password get the same answer."""
    user = SessionController(state).login(db, request.login_name, request.secret)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid login or password")
    return UserResponse(**user)


@auth_router.post("/logout", response_model=SuccessResponse)
async def logout(state: AppState = Depends(get_state)):
    """Log out; succeeds even when nobody is logged in."""
    SessionController(state).logout()
    return SuccessResponse(success=True, message="Logged out")


@auth_router.get("/me", response_model=UserResponse)
async def me(
    state: AppState = Depends(get_state),
    db: Session = Depends(get_session)
):
    """The logged-in user."""
    user = SessionController(state).current_user(db)
    if user is None:
        raise NotAuthenticatedError()
    return UserResponse(**user)


@auth_router.put("/me", response_model=UserResponse)
async def update_me(
    request: ProfileUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Change own display name and avatar."""
    user = _allowed(
        update_own_profile(db, actor, request.display_name, request.avatar_glyph),
        "update this profile"
    )
    return UserResponse(**user)


# ============== Roster Endpoints ==============

@roster_router.get("/classes", response_model=list[ClassResponse])
async def get_classes(actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    """Classes visible to the logged-in user."""
    return [ClassResponse(**c) for c in list_classes(db, actor)]


@roster_router.post("/classes", response_model=ClassResponse)
async def create_class(
    request: ClassCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Create a class (admin or teacher)."""
    return ClassResponse(**_allowed(add_class(db, actor, request.name), "create classes"))


@roster_router.delete("/classes/{class_id}", response_model=SuccessResponse)
async def remove_class(
    class_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Delete an unreferenced class (admin only)."""
    data = _allowed(delete_class(db, actor, class_id), "delete classes")
    return SuccessResponse(success=True, message=f"Class {data['name']} deleted", data=data)


@roster_router.get("/classes/{class_id}/students", response_model=list[StudentResponse])
async def get_class_students(
    class_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Students of one class, as far as the user may see them."""
    return [StudentResponse(**s) for s in list_students(db, actor, class_id=class_id)]


@roster_router.get("/teachers", response_model=list[TeacherResponse])
async def get_teachers(actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    """Teachers visible to the logged-in user."""
    return [TeacherResponse(**t) for t in list_teachers(db, actor)]


@roster_router.post("/teachers", response_model=TeacherResponse)
async def create_teacher(
    request: TeacherCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Create a teacher (admin only)."""
    teacher = add_teacher(
        db,
        actor,
        display_name=request.display_name,
        login_name=request.login_name,
        secret=request.secret,
        subjects=request.subjects,
        class_ids=request.class_ids,
        avatar_glyph=request.avatar_glyph,
    )
    return TeacherResponse(**_allowed(teacher, "create teachers"))


@roster_router.patch("/teachers/{teacher_id}", response_model=TeacherResponse)
async def patch_teacher(
    teacher_id: str,
    request: TeacherUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Update a teacher (admin only)."""
    teacher = update_teacher(db, actor, teacher_id, **request.model_dump(exclude_unset=True))
    return TeacherResponse(**_allowed(teacher, "update teachers"))


@roster_router.delete("/teachers/{teacher_id}", response_model=SuccessResponse)
async def remove_teacher(
    teacher_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Delete a teacher and their account (admin only)."""
    data = _allowed(delete_teacher(db, actor, teacher_id), "delete teachers")
    return SuccessResponse(success=True, message=f"Teacher {data['display_name']} deleted", data=data)


@roster_router.get("/students", response_model=list[StudentResponse])
async def get_students(
    class_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Students visible to the logged-in user, optionally for one class."""
    return [StudentResponse(**s) for s in list_students(db, actor, class_id=class_id)]


@roster_router.post("/students", response_model=StudentResponse)
async def create_student(
    request: StudentCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Create a student (admin, or a teacher in one of their classes)."""
    student = add_student(
        db,
        actor,
        display_name=request.display_name,
        login_name=request.login_name,
        secret=request.secret,
        class_id=request.class_id,
        avatar_glyph=request.avatar_glyph,
    )
    return StudentResponse(**_allowed(student, "add students to this class"))


@roster_router.patch("/students/{student_id}", response_model=StudentResponse)
async def patch_student(
    student_id: str,
    request: StudentUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Update a student (admin only)."""
    student = update_student(db, actor, student_id, **request.model_dump(exclude_unset=True))
    return StudentResponse(**_allowed(student, "update students"))


@roster_router.delete("/students/{student_id}", response_model=SuccessResponse)
async def remove_student(
    student_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Delete a student, their account and their grades (admin only)."""
    data = _allowed(delete_student(db, actor, student_id), "delete students")
    return SuccessResponse(success=True, message=f"Student {data['display_name']} deleted", data=data)


# ============== Grade Endpoints ==============

@grades_router.get("", response_model=list[GradeResponse])
async def get_grades(
    student_id: Optional[str] = None,
    subject: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """
    Query grades with filters.

    Students only ever receive their own grades.
    """
    grades = list_grades(db, actor, student_id=student_id, subject=subject)
    return [GradeResponse(**g) for g in grades]


@grades_router.post("", response_model=GradeResponse)
async def create_grade(
    request: GradeCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Record a grade (teacher only, for a subject they teach)."""
    grade = add_grade(
        db,
        actor,
        student_id=request.student_id,
        subject=request.subject,
        value=request.value,
        date=request.date,
    )
    return GradeResponse(**_allowed(grade, f"grade {request.subject}"))


@grades_router.delete("/{grade_id}")
async def delete_grade_endpoint(grade_id: str, actor: Actor = Depends(get_actor)):
    """
    Delete a grade - NOT AVAILABLE.

    Always answers 405, grades are append-only.
    """
    delete_grade(grade_id)


# ============== Schedule & Homework Endpoints ==============

@academics_router.get("/schedules", response_model=list[ScheduleResponse])
async def get_schedules(
    class_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Lessons of the visible classes, by weekday and time."""
    return [ScheduleResponse(**s) for s in list_schedules(db, actor, class_id=class_id)]


@academics_router.post("/schedules", response_model=ScheduleResponse)
async def create_schedule(
    request: ScheduleCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Add a lesson (admin or teacher)."""
    lesson = add_schedule(
        db, actor, request.class_id, request.weekday, request.time, request.subject
    )
    return ScheduleResponse(**_allowed(lesson, "edit the schedule"))


@academics_router.get("/homework", response_model=list[HomeworkResponse])
async def get_homework(
    class_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Homework of the visible classes."""
    return [HomeworkResponse(**h) for h in list_homework(db, actor, class_id=class_id)]


@academics_router.post("/homework", response_model=HomeworkResponse)
async def create_homework(
    request: HomeworkCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Give a class homework (admin or teacher)."""
    homework = add_homework(
        db, actor, request.class_id, request.subject, request.description, request.due_date
    )
    return HomeworkResponse(**_allowed(homework, "assign homework"))


# ============== Statistics Endpoints ==============

@stats_router.get("/dashboard")
async def get_dashboard(actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    """The role-specific dashboard of the logged-in user."""
    return dashboard(db, actor)


@stats_router.get("/stats/overview", response_model=OverviewResponse)
async def get_overview(actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    """Overall statistics over the students the user may see."""
    scope = AccessPolicy(db).visible_student_ids(actor)
    average = overall_average(db, scope)
    return OverviewResponse(
        overall_average=average,
        overall_average_display=format_average(average),
        grade_distribution=grade_distribution(db, scope),
        grade_percentages={
            grade: format_percentage(share)
            for grade, share in grade_percentages(db, scope).items()
        },
        top_students=[
            {**row, "average_display": format_average(row["average"])}
            for row in top_students(db, student_ids=scope)
        ],
        subjects=[_subject_stats(s) for s in subject_report(db, scope)],
    )


@stats_router.get("/stats/students/{student_id}", response_model=StudentStatsResponse)
async def get_student_stats(
    student_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Average of one student, overall and per subject."""
    scope = AccessPolicy(db).visible_student_ids(actor)
    if scope is not None and student_id not in scope:
        raise HTTPException(status_code=403, detail="Cannot access this student's data")
    average = student_average(db, student_id)
    return StudentStatsResponse(
        student_id=student_id,
        average=average,
        average_display=format_average(average),
        subjects=student_subject_averages(db, student_id),
    )


@stats_router.get("/stats/classes/{class_id}", response_model=ClassStatsResponse)
async def get_class_stats(
    class_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Class average and per-student report (staff only)."""
    visible = AccessPolicy(db).visible_class_ids(actor)
    if isinstance(actor, StudentActor) or (visible is not None and class_id not in visible):
        raise HTTPException(status_code=403, detail="Cannot access this class")
    report = get_class_report(db, class_id)
    average = class_average(db, class_id)
    return ClassStatsResponse(
        class_id=class_id,
        average=average,
        average_display=format_average(average),
        report=report,
    )


@stats_router.get("/stats/subjects/{subject}", response_model=SubjectStatsResponse)
async def get_subject_stats(
    subject: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session)
):
    """Average and grade histogram of one subject."""
    scope = AccessPolicy(db).visible_student_ids(actor)
    return _subject_stats(subject_average(db, subject, scope))
