"""
Grade writing tools for the School Gradebook.
Grades are an append-only ledger recorded by teachers.

THERE ARE NO UPDATE OR DELETE OPERATIONS
"""
import logging
from datetime import datetime
from typing import Dict, Any, Optional
from sqlalchemy.orm import Session

from config import MIN_GRADE, MAX_GRADE
from database import Grade, Student, new_id
from .actors import Actor
from .authorization import AccessPolicy
from .exceptions import ValidationError, EntityNotFoundError, FeatureNotAvailableError, require_text

logger = logging.getLogger(__name__)


def add_grade(
    db: Session,
    actor: Optional[Actor],
    student_id: str,
    subject: str,
    value: int,
    date: Optional[datetime] = None
) -> Optional[Dict[str, Any]]:
    """
    Record a grade for a student.

    AUTHORIZATION: Teacher only, and only for a subject the teacher teaches.

    Args:
        db: Database session
        actor: The acting user
        student_id: ID of the student receiving the grade
        subject: Subject name, stored without surrounding whitespace
        value: Integer grade from 2 to 5
        date: Date of the grade (defaults to now)

    Returns:
        Created grade data, or None when the actor may not record it

    Raises:
        ValidationError: If a field is missing or the value is out of range
        EntityNotFoundError: If the student does not exist
    """
    subject = require_text(subject, "subject", "Subject")
    policy = AccessPolicy(db)

    # ENFORCEMENT: teacher with the subject in their set, otherwise no-op
    if not policy.check(policy.can_record_grade(actor, subject), actor, "add_grade"):
        return None

    if not student_id:
        raise ValidationError("Select a student", "student_id")

    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Grade value must be a whole number", "value")
    if value < MIN_GRADE or value > MAX_GRADE:
        raise ValidationError(f"Grade value must be between {MIN_GRADE} and {MAX_GRADE}", "value")

    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise EntityNotFoundError("Student", student_id)

    grade = Grade(
        id=new_id(),
        student_id=student_id,
        subject=subject,
        value=value,
        date=date or datetime.now(),
        teacher_id=actor.user_id,
    )

    db.add(grade)
    db.commit()
    db.refresh(grade)

    logger.info(
        "Grade %s (%s=%d) recorded for student %s by %s",
        grade.id, subject, value, student_id, actor.user_id
    )
    return grade.to_dict()


def update_grade(*args, **kwargs):
    """
    UPDATE IS NOT ALLOWED.
    Grades are append-only; record a new grade instead.

    Raises:
        FeatureNotAvailableError: Always
    """
    raise FeatureNotAvailableError(
        "update_grade - Grades cannot be changed once recorded."
    )


def delete_grade(*args, **kwargs):
    """
    DELETE IS NOT ALLOWED.
    This function exists to explicitly block delete attempts.

    Raises:
        FeatureNotAvailableError: Always
    """
    raise FeatureNotAvailableError(
        "delete_grade - Deleting grades is not allowed. "
        "Grades disappear only together with their student."
    )
