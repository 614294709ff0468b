"""
Grade reading tools for the School Gradebook.
Reads are filtered to what the actor may see.

RULE: Students only ever see their own grades; teachers see the grades of
students in their classes; admins see everything.
"""
import logging
from typing import Dict, Any, Optional, List
from sqlalchemy.orm import Session

from database import Grade
from .actors import Actor
from .authorization import AccessPolicy

logger = logging.getLogger(__name__)


def list_grades(
    db: Session,
    actor: Actor,
    student_id: Optional[str] = None,
    subject: Optional[str] = None,
    newest_first: bool = False
) -> List[Dict[str, Any]]:
    """
    Grades visible to the actor with optional filters.

    A filter on a student the actor may not see yields an empty list.

    Args:
        db: Database session
        actor: The requesting user
        student_id: Filter by student (optional)
        subject: Filter by subject (optional)
        newest_first: Order by date descending instead of recording order

    Returns:
        List of grade dicts
    """
    query = db.query(Grade)

    visible = AccessPolicy(db).visible_student_ids(actor)
    if visible is not None:
        query = query.filter(Grade.student_id.in_(visible))

    if student_id:
        query = query.filter(Grade.student_id == student_id)

    if subject:
        query = query.filter(Grade.subject == subject)

    if newest_first:
        query = query.order_by(Grade.date.desc(), Grade.seq.desc())
    else:
        query = query.order_by(Grade.seq)

    grades = query.all()
    logger.debug("Listed %d grades for user %s", len(grades), actor.user_id)
    return [g.to_dict() for g in grades]


def grades_for_student(db: Session, student_id: str) -> List[Dict[str, Any]]:
    """All grades of one student in recording order (unscoped)."""
    grades = (
        db.query(Grade)
        .filter(Grade.student_id == student_id)
        .order_by(Grade.seq)
        .all()
    )
    return [g.to_dict() for g in grades]


def get_my_grades(
    db: Session,
    actor: Actor,
    subject: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Convenience function for students to get their own grades, newest first.
    Always uses the actor's ID as the student ID.
    """
    return list_grades(
        db=db,
        actor=actor,
        student_id=actor.user_id,  # Always own grades
        subject=subject,
        newest_first=True
    )
