"""
Schedule and homework tools for the School Gradebook.
"""
import logging
import re
from datetime import date, datetime
from typing import Dict, Any, Optional, List, Union
from sqlalchemy.orm import Session

from config import WEEKDAYS
from database import SchoolClass, Student, Schedule, Homework, new_id
from .actors import Actor
from .authorization import AccessPolicy
from .exceptions import ValidationError, EntityNotFoundError, require_text

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_class(db: Session, class_id: str) -> None:
    if not class_id:
        raise ValidationError("Select a class", "class_id")
    if not db.query(SchoolClass).filter(SchoolClass.id == class_id).first():
        raise EntityNotFoundError("Class", class_id)


def _parse_due_date(due_date: Union[str, date, None]) -> date:
    if isinstance(due_date, datetime):
        return due_date.date()
    if isinstance(due_date, date):
        return due_date
    text = require_text(due_date, "due_date", "Due date")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError("Due date must be YYYY-MM-DD", "due_date")


def _lesson_sort_key(lesson: Schedule):
    return (WEEKDAYS.index(lesson.weekday), lesson.time, lesson.seq)


# ============== Schedule ==============

def add_schedule(
    db: Session,
    actor: Optional[Actor],
    class_id: str,
    weekday: str,
    time: str,
    subject: str
) -> Optional[Dict[str, Any]]:
    """
    Add a lesson slot to a class timetable.

    AUTHORIZATION: admin or teacher.

    Args:
        class_id: Class attending the lesson
        weekday: One of WEEKDAYS
        time: Start time as HH:MM
        subject: Subject taught

    Raises:
        ValidationError: Missing field, unknown weekday or malformed time
        EntityNotFoundError: Unknown class
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_plan_lessons(actor), actor, "add_schedule"):
        return None

    _check_class(db, class_id)
    weekday = require_text(weekday, "weekday", "Day of the week")
    if weekday not in WEEKDAYS:
        raise ValidationError(f"Unknown day of the week: {weekday}", "weekday")
    time = require_text(time, "time", "Time")
    if not TIME_PATTERN.match(time):
        raise ValidationError("Time must be HH:MM", "time")
    subject = require_text(subject, "subject", "Subject")

    lesson = Schedule(id=new_id(), class_id=class_id, weekday=weekday, time=time, subject=subject)
    db.add(lesson)
    db.commit()
    db.refresh(lesson)

    logger.info("Lesson %s (%s %s %s) added by %s", lesson.id, weekday, time, subject, actor.user_id)
    return lesson.to_dict()


def schedules_for_class(db: Session, class_id: str) -> List[Dict[str, Any]]:
    """A class timetable ordered by weekday, then time."""
    lessons = db.query(Schedule).filter(Schedule.class_id == class_id).all()
    return [lesson.to_dict() for lesson in sorted(lessons, key=_lesson_sort_key)]


def list_schedules(
    db: Session,
    actor: Actor,
    class_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Lessons of the classes visible to the actor."""
    query = db.query(Schedule)
    visible = AccessPolicy(db).visible_class_ids(actor)
    if visible is not None:
        query = query.filter(Schedule.class_id.in_(visible))
    if class_id:
        query = query.filter(Schedule.class_id == class_id)
    return [lesson.to_dict() for lesson in sorted(query.all(), key=_lesson_sort_key)]


def schedule_for_student(db: Session, student_id: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    The student's class timetable grouped by weekday.

    Every weekday is present as a key, days without lessons map to an empty list.
    """
    week = {day: [] for day in WEEKDAYS}
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        return week
    for lesson in schedules_for_class(db, student.class_id):
        week[lesson["weekday"]].append(lesson)
    return week


# ============== Homework ==============

def add_homework(
    db: Session,
    actor: Optional[Actor],
    class_id: str,
    subject: str,
    description: str,
    due_date: Union[str, date]
) -> Optional[Dict[str, Any]]:
    """
    Give a class a homework assignment.

    AUTHORIZATION: admin or teacher.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_plan_lessons(actor), actor, "add_homework"):
        return None

    _check_class(db, class_id)
    subject = require_text(subject, "subject", "Subject")
    description = require_text(description, "description", "Description")
    due = _parse_due_date(due_date)

    homework = Homework(
        id=new_id(), class_id=class_id, subject=subject, description=description, due_date=due
    )
    db.add(homework)
    db.commit()
    db.refresh(homework)

    logger.info("Homework %s (%s, due %s) added by %s", homework.id, subject, due, actor.user_id)
    return homework.to_dict()


def homework_for_class(db: Session, class_id: str) -> List[Dict[str, Any]]:
    """Homework of a class in the order it was given."""
    items = (
        db.query(Homework)
        .filter(Homework.class_id == class_id)
        .order_by(Homework.seq)
        .all()
    )
    return [hw.to_dict() for hw in items]


def list_homework(
    db: Session,
    actor: Actor,
    class_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Homework of the classes visible to the actor."""
    query = db.query(Homework)
    visible = AccessPolicy(db).visible_class_ids(actor)
    if visible is not None:
        query = query.filter(Homework.class_id.in_(visible))
    if class_id:
        query = query.filter(Homework.class_id == class_id)
    return [hw.to_dict() for hw in query.order_by(Homework.seq).all()]


def homework_for_student(db: Session, student_id: str) -> List[Dict[str, Any]]:
    """Homework of the student's class."""
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        return []
    return homework_for_class(db, student.class_id)
