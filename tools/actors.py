"""
Role-tagged actors.

A logged-in user is resolved into exactly one of three variants, each carrying
the payload its role needs. Code that branches on the role does so with
``isinstance`` and ends with ``unreachable_actor`` so that a missing branch
fails loudly instead of falling through.
"""
from dataclasses import dataclass
from typing import FrozenSet, NoReturn, Union
from sqlalchemy.orm import Session

from database import User, UserRole
from .exceptions import EntityNotFoundError


@dataclass(frozen=True)
class AdminActor:
    user_id: str
    display_name: str

    @property
    def role(self) -> UserRole:
        return UserRole.ADMIN


@dataclass(frozen=True)
class TeacherActor:
    user_id: str
    display_name: str
    subjects: FrozenSet[str]
    class_ids: FrozenSet[str]

    @property
    def role(self) -> UserRole:
        return UserRole.TEACHER


@dataclass(frozen=True)
class StudentActor:
    user_id: str
    display_name: str
    class_id: str

    @property
    def role(self) -> UserRole:
        return UserRole.STUDENT


Actor = Union[AdminActor, TeacherActor, StudentActor]


def unreachable_actor(actor) -> NoReturn:
    """Fail on an actor variant that a role dispatch did not handle."""
    raise TypeError(f"Unhandled actor variant: {type(actor).__name__}")


def actor_from_user(user: User) -> Actor:
    """
    Build the actor variant for a user row.

    Raises:
        EntityNotFoundError: If the role-specific profile row is missing
    """
    if user.role == UserRole.ADMIN.value:
        return AdminActor(user_id=user.id, display_name=user.display_name)

    if user.role == UserRole.TEACHER.value:
        if user.teacher is None:
            raise EntityNotFoundError("Teacher", user.id)
        return TeacherActor(
            user_id=user.id,
            display_name=user.display_name,
            subjects=frozenset(user.teacher.subjects),
            class_ids=frozenset(user.teacher.class_ids),
        )

    if user.role == UserRole.STUDENT.value:
        if user.student is None:
            raise EntityNotFoundError("Student", user.id)
        return StudentActor(
            user_id=user.id,
            display_name=user.display_name,
            class_id=user.student.class_id,
        )

    raise TypeError(f"Unknown role: {user.role}")


def resolve_actor(db: Session, user_id: str) -> Actor:
    """
    Load a user and resolve it to its actor variant.

    Raises:
        EntityNotFoundError: If the user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise EntityNotFoundError("User", user_id)
    return actor_from_user(user)
