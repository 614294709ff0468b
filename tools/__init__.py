"""
Tools module for the School Gradebook.

This module provides the operations the presentation layer calls: session,
roster, grades, schedule/homework, statistics and dashboards, each gated by
the access policy.
"""
from .exceptions import (
    AuthorizationError,
    NotAuthenticatedError,
    EntityNotFoundError,
    ValidationError,
    ClassInUseError,
    FeatureNotAvailableError,
)

from .actors import (
    Actor,
    AdminActor,
    TeacherActor,
    StudentActor,
    actor_from_user,
    resolve_actor,
    unreachable_actor,
)

from .authorization import (
    AccessPolicy,
    get_access_policy,
)

from .session import (
    AppState,
    SessionController,
    create_app_state,
)

from .roster import (
    upsert_profile,
    update_own_profile,
    add_class,
    delete_class,
    list_classes,
    classes_for_teacher,
    add_teacher,
    update_teacher,
    delete_teacher,
    list_teachers,
    add_student,
    update_student,
    delete_student,
    students_in_class,
    list_students,
)

from .grades_write import (
    add_grade,
    update_grade,  # Always raises FeatureNotAvailableError
    delete_grade,  # Always raises FeatureNotAvailableError
)

from .grades_read import (
    list_grades,
    grades_for_student,
    get_my_grades,
)

from .academics import (
    add_schedule,
    schedules_for_class,
    list_schedules,
    schedule_for_student,
    add_homework,
    homework_for_class,
    list_homework,
    homework_for_student,
)

from .reporting import (
    student_average,
    class_average,
    class_ranking,
    subject_average,
    subject_report,
    top_students,
    overall_average,
    grade_distribution,
    grade_percentages,
    student_subject_averages,
    compute_statistics,
    get_class_report,
    format_average,
    format_percentage,
)

from .dashboards import dashboard

__all__ = [
    # Exceptions
    "AuthorizationError",
    "NotAuthenticatedError",
    "EntityNotFoundError",
    "ValidationError",
    "ClassInUseError",
    "FeatureNotAvailableError",
    # Actors
    "Actor",
    "AdminActor",
    "TeacherActor",
    "StudentActor",
    "actor_from_user",
    "resolve_actor",
    "unreachable_actor",
    # Authorization
    "AccessPolicy",
    "get_access_policy",
    # Session
    "AppState",
    "SessionController",
    "create_app_state",
    # Roster
    "upsert_profile",
    "update_own_profile",
    "add_class",
    "delete_class",
    "list_classes",
    "classes_for_teacher",
    "add_teacher",
    "update_teacher",
    "delete_teacher",
    "list_teachers",
    "add_student",
    "update_student",
    "delete_student",
    "students_in_class",
    "list_students",
    # Grades Write
    "add_grade",
    "update_grade",
    "delete_grade",
    # Grades Read
    "list_grades",
    "grades_for_student",
    "get_my_grades",
    # Schedule & homework
    "add_schedule",
    "schedules_for_class",
    "list_schedules",
    "schedule_for_student",
    "add_homework",
    "homework_for_class",
    "list_homework",
    "homework_for_student",
    # Reporting
    "student_average",
    "class_average",
    "class_ranking",
    "subject_average",
    "subject_report",
    "top_students",
    "overall_average",
    "grade_distribution",
    "grade_percentages",
    "student_subject_averages",
    "compute_statistics",
    "get_class_report",
    "format_average",
    "format_percentage",
    # Dashboards
    "dashboard",
]
