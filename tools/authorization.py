"""
Access policy for the School Gradebook.
Implements role-based gating of every mutation and the role-filtered read scopes.

RULES:
1. Classes: admin or teacher may create (a teacher becomes the owner); only admin deletes
2. Teachers: admin only (create, update, delete)
3. Students: admin creates anywhere, a teacher only into one of their classes;
   update and delete are admin only
4. Grades: teachers only, and only for subjects they teach
5. Schedules and homework: admin or teacher
6. Profile: every user edits only their own

A refusal is reported as ``False`` and logged; callers turn it into a silent
no-op. Teacher rights are always read from the store, never from the actor
snapshot, so a class created a moment ago already counts.
"""
import logging
from typing import Optional, Set
from sqlalchemy.orm import Session

from database import Teacher, TeacherClass, Student
from .actors import Actor, AdminActor, TeacherActor, StudentActor, unreachable_actor

logger = logging.getLogger(__name__)


class AccessPolicy:
    """
    Decides what an actor may do and see.
    """

    def __init__(self, db: Session):
        self.db = db

    def _teacher(self, teacher_id: str) -> Optional[Teacher]:
        return self.db.query(Teacher).filter(Teacher.id == teacher_id).first()

    def teacher_class_ids(self, teacher_id: str) -> Set[str]:
        """Live set of class ids linked to a teacher."""
        rows = (
            self.db.query(TeacherClass.class_id)
            .filter(TeacherClass.teacher_id == teacher_id)
            .all()
        )
        return {class_id for (class_id,) in rows}

    def teacher_subjects(self, teacher_id: str) -> Set[str]:
        """Live set of subjects a teacher may grade."""
        teacher = self._teacher(teacher_id)
        return set(teacher.subjects) if teacher else set()

    def check(self, allowed: bool, actor: Optional[Actor], action: str) -> bool:
        """Log a refusal and pass the decision through."""
        if not allowed:
            user_id = actor.user_id if actor is not None else None
            logger.info("Refused '%s' for user %s", action, user_id)
        return allowed

    # ---- mutations ----

    def can_create_class(self, actor: Optional[Actor]) -> bool:
        return isinstance(actor, (AdminActor, TeacherActor))

    def can_delete_class(self, actor: Optional[Actor]) -> bool:
        return isinstance(actor, AdminActor)

    def can_manage_teachers(self, actor: Optional[Actor]) -> bool:
        return isinstance(actor, AdminActor)

    def can_add_student(self, actor: Optional[Actor], class_id: str) -> bool:
        """Admins add students anywhere, teachers only into their own classes."""
        if actor is None:
            return False
        if isinstance(actor, AdminActor):
            return True
        if isinstance(actor, TeacherActor):
            return class_id in self.teacher_class_ids(actor.user_id)
        if isinstance(actor, StudentActor):
            return False
        unreachable_actor(actor)

    def can_manage_students(self, actor: Optional[Actor]) -> bool:
        return isinstance(actor, AdminActor)

    def can_record_grade(self, actor: Optional[Actor], subject: str) -> bool:
        """Only a teacher, and only for a subject in their subject set."""
        if not isinstance(actor, TeacherActor):
            return False
        return subject in self.teacher_subjects(actor.user_id)

    def can_plan_lessons(self, actor: Optional[Actor]) -> bool:
        """Schedules and homework are open to staff."""
        return isinstance(actor, (AdminActor, TeacherActor))

    def can_edit_profile(self, actor: Optional[Actor], user_id: str) -> bool:
        return actor is not None and actor.user_id == user_id

    # ---- read scopes ----

    def visible_class_ids(self, actor: Actor) -> Optional[Set[str]]:
        """
        Class ids the actor may see.

        Returns:
            None when the actor sees every class, otherwise the allowed ids
        """
        if isinstance(actor, AdminActor):
            return None
        if isinstance(actor, TeacherActor):
            return self.teacher_class_ids(actor.user_id)
        if isinstance(actor, StudentActor):
            return {actor.class_id}
        unreachable_actor(actor)

    def visible_student_ids(self, actor: Actor) -> Optional[Set[str]]:
        """
        Student ids the actor may see (and whose grades it may read).

        Returns:
            None when the actor sees every student, otherwise the allowed ids
        """
        if isinstance(actor, AdminActor):
            return None
        if isinstance(actor, TeacherActor):
            class_ids = self.teacher_class_ids(actor.user_id)
            if not class_ids:
                return set()
            rows = (
                self.db.query(Student.id)
                .filter(Student.class_id.in_(class_ids))
                .all()
            )
            return {student_id for (student_id,) in rows}
        if isinstance(actor, StudentActor):
            return {actor.user_id}
        unreachable_actor(actor)


def get_access_policy(db: Session) -> AccessPolicy:
    """Factory function to create AccessPolicy."""
    return AccessPolicy(db)
