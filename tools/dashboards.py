"""
Role dashboards: the read view each kind of user lands on after login.
"""
from typing import Dict, Any
from sqlalchemy.orm import Session

from database import SchoolClass, Teacher, Student, Grade
from .actors import Actor, AdminActor, TeacherActor, StudentActor, unreachable_actor
from .authorization import AccessPolicy
from .roster import list_classes, list_students
from .grades_read import get_my_grades
from .academics import schedule_for_student, homework_for_student, list_homework
from . import reporting


def admin_dashboard(db: Session, actor: AdminActor) -> Dict[str, Any]:
    """School-wide counts and statistics."""
    return {
        "role": "admin",
        "user": {"id": actor.user_id, "display_name": actor.display_name},
        "counts": {
            "classes": db.query(SchoolClass).count(),
            "teachers": db.query(Teacher).count(),
            "students": db.query(Student).count(),
            "grades": db.query(Grade).count(),
        },
        "overall_average": reporting.overall_average(db),
        "grade_distribution": reporting.grade_distribution(db),
        "top_students": reporting.top_students(db),
        "class_ranking": reporting.class_ranking(db),
        "subjects": reporting.subject_report(db),
    }


def teacher_dashboard(db: Session, actor: TeacherActor) -> Dict[str, Any]:
    """The teacher's classes and students, with statistics limited to them."""
    policy = AccessPolicy(db)
    student_ids = policy.visible_student_ids(actor)

    students = list_students(db, actor)
    for student in students:
        student["average"] = reporting.student_average(db, student["id"])

    classes = list_classes(db, actor)
    for school_class in classes:
        school_class["average"] = reporting.class_average(db, school_class["id"])

    return {
        "role": "teacher",
        "user": {"id": actor.user_id, "display_name": actor.display_name},
        "subjects": sorted(policy.teacher_subjects(actor.user_id)),
        "classes": classes,
        "students": students,
        "homework": list_homework(db, actor),
        "overall_average": reporting.overall_average(db, student_ids),
        "grade_distribution": reporting.grade_distribution(db, student_ids),
        "grade_percentages": reporting.grade_percentages(db, student_ids),
        "top_students": reporting.top_students(db, student_ids=student_ids),
        "class_ranking": reporting.class_ranking(db, policy.visible_class_ids(actor)),
        "subject_report": reporting.subject_report(db, student_ids),
    }


def student_dashboard(db: Session, actor: StudentActor) -> Dict[str, Any]:
    """The student's own grades, averages, timetable and homework."""
    grades = get_my_grades(db, actor)
    subject_averages = sorted(
        reporting.student_subject_averages(db, actor.user_id),
        key=lambda row: row["average"],
        reverse=True,
    )
    return {
        "role": "student",
        "user": {"id": actor.user_id, "display_name": actor.display_name},
        "class_id": actor.class_id,
        "grades": grades,
        "total_grades": len(grades),
        "average": reporting.student_average(db, actor.user_id),
        "subject_averages": subject_averages,
        "schedule": schedule_for_student(db, actor.user_id),
        "homework": homework_for_student(db, actor.user_id),
    }


def dashboard(db: Session, actor: Actor) -> Dict[str, Any]:
    """Dispatch to the dashboard of the actor's role."""
    if isinstance(actor, AdminActor):
        return admin_dashboard(db, actor)
    if isinstance(actor, TeacherActor):
        return teacher_dashboard(db, actor)
    if isinstance(actor, StudentActor):
        return student_dashboard(db, actor)
    unreachable_actor(actor)
