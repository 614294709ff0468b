"""
Roster tools for the School Gradebook.
Classes, teachers and students: creation, updates, deletion and role-scoped listings.

Mutations return the affected record as a dict, or None when the access
policy refuses the actor (a silent no-op for the caller to report).
"""
import logging
from typing import Dict, Any, Optional, List, Iterable
from sqlalchemy.orm import Session

from database import (
    User, UserRole, SchoolClass, Teacher, TeacherSubject, TeacherClass,
    Student, Schedule, Homework, new_id
)
from .actors import Actor, AdminActor, TeacherActor, StudentActor, unreachable_actor
from .authorization import AccessPolicy
from .exceptions import ValidationError, EntityNotFoundError, ClassInUseError, require_text

logger = logging.getLogger(__name__)


def _get_class(db: Session, class_id: str) -> SchoolClass:
    school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not school_class:
        raise EntityNotFoundError("Class", class_id)
    return school_class


def _get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()
    if not teacher:
        raise EntityNotFoundError("Teacher", teacher_id)
    return teacher


def _get_student(db: Session, student_id: str) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise EntityNotFoundError("Student", student_id)
    return student


def _clean_subjects(subjects: Iterable[str]) -> List[str]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    cleaned = []
    for subject in subjects:
        subject = (subject or "").strip()
        if subject and subject not in cleaned:
            cleaned.append(subject)
    return cleaned


def _set_teacher_subjects(teacher: Teacher, subjects: List[str]) -> None:
    keep = [link for link in teacher.subject_links if link.subject in subjects]
    existing = {link.subject for link in keep}
    teacher.subject_links = keep + [
        TeacherSubject(subject=subject) for subject in subjects if subject not in existing
    ]


def _set_teacher_classes(db: Session, teacher: Teacher, class_ids: Iterable[str]) -> None:
    wanted = []
    for class_id in class_ids:
        if class_id not in wanted:
            _get_class(db, class_id)
            wanted.append(class_id)
    keep = [link for link in teacher.class_links if link.class_id in wanted]
    existing = {link.class_id for link in keep}
    teacher.class_links = keep + [
        TeacherClass(class_id=class_id) for class_id in wanted if class_id not in existing
    ]


# ============== Profiles ==============

def upsert_profile(
    db: Session,
    role: UserRole,
    user_id: Optional[str] = None,
    display_name: Optional[str] = None,
    login_name: Optional[str] = None,
    secret: Optional[str] = None,
    avatar_glyph: Optional[str] = None,
    subjects: Optional[Iterable[str]] = None,
    class_ids: Optional[Iterable[str]] = None,
    class_id: Optional[str] = None,
) -> User:
    """
    Create or update a user together with its role profile in one transaction.

    With ``user_id`` None a new User and its Teacher/Student row are created
    under the same id. Otherwise only the fields that are not None are
    changed; the rest keep their value. Either both rows change or neither.

    Args:
        db: Database session
        role: Role of the profile (fixed once created)
        user_id: Existing user to update, or None to create
        display_name, login_name, secret, avatar_glyph: Shared user fields
        subjects, class_ids: Teacher-only fields
        class_id: Student-only field

    Returns:
        The committed User row

    Raises:
        ValidationError: Missing required fields or role mismatch
        EntityNotFoundError: Unknown user or class
    """
    role = UserRole(role)
    try:
        if user_id is None:
            user = User(
                id=new_id(),
                role=role.value,
                display_name=require_text(display_name, "display_name", "Name"),
                login_name=require_text(login_name, "login_name", "Login"),
                secret=require_text(secret, "secret", "Password"),
                avatar_glyph=avatar_glyph,
            )
            db.add(user)
            if role == UserRole.TEACHER:
                cleaned = _clean_subjects(subjects or [])
                if not cleaned:
                    raise ValidationError("Select at least one subject", "subjects")
                user.teacher = Teacher(id=user.id)
                _set_teacher_subjects(user.teacher, cleaned)
                _set_teacher_classes(db, user.teacher, class_ids or [])
            elif role == UserRole.STUDENT:
                if not class_id:
                    raise ValidationError("Select a class", "class_id")
                _get_class(db, class_id)
                user.student = Student(id=user.id, class_id=class_id)
        else:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise EntityNotFoundError("User", user_id)
            if user.role != role.value:
                raise ValidationError(f"User {user_id} is not a {role.value}", "role")
            if display_name is not None:
                user.display_name = require_text(display_name, "display_name", "Name")
            if login_name is not None:
                user.login_name = require_text(login_name, "login_name", "Login")
            if secret is not None:
                user.secret = require_text(secret, "secret", "Password")
            if avatar_glyph is not None:
                user.avatar_glyph = avatar_glyph
            if role == UserRole.TEACHER:
                if subjects is not None:
                    cleaned = _clean_subjects(subjects)
                    if not cleaned:
                        raise ValidationError("Select at least one subject", "subjects")
                    _set_teacher_subjects(user.teacher, cleaned)
                if class_ids is not None:
                    _set_teacher_classes(db, user.teacher, class_ids)
            elif role == UserRole.STUDENT and class_id is not None:
                _get_class(db, class_id)
                user.student.class_id = class_id

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    return user


def update_own_profile(
    db: Session,
    actor: Optional[Actor],
    display_name: Optional[str] = None,
    avatar_glyph: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Change the logged-in user's name and avatar.

    The Teacher/Student view reads these fields from the user row, so the
    change shows up there too.
    """
    policy = AccessPolicy(db)
    if actor is None or not policy.check(
        policy.can_edit_profile(actor, actor.user_id), actor, "update_own_profile"
    ):
        return None

    user = upsert_profile(
        db,
        actor.role,
        user_id=actor.user_id,
        display_name=display_name,
        avatar_glyph=avatar_glyph,
    )
    logger.info("User %s updated their profile", user.id)
    return user.to_dict()


# ============== Classes ==============

def add_class(db: Session, actor: Optional[Actor], name: str) -> Optional[Dict[str, Any]]:
    """
    Create a class.

    AUTHORIZATION: admin or teacher. A teacher-created class is owned by the
    teacher and joins the teacher's classes.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_create_class(actor), actor, "add_class"):
        return None

    name = require_text(name, "name", "Class name")
    school_class = SchoolClass(id=new_id(), name=name)
    if isinstance(actor, TeacherActor):
        school_class.owner_teacher_id = actor.user_id
        school_class.teacher_links.append(TeacherClass(teacher_id=actor.user_id))

    db.add(school_class)
    db.commit()
    db.refresh(school_class)

    logger.info("Class %s ('%s') created by %s", school_class.id, name, actor.user_id)
    return school_class.to_dict()


def delete_class(db: Session, actor: Optional[Actor], class_id: str) -> Optional[Dict[str, Any]]:
    """
    Delete a class that nothing references any more.

    AUTHORIZATION: admin only.

    Raises:
        ClassInUseError: If students, lessons or homework still point at the class
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_delete_class(actor), actor, "delete_class"):
        return None

    school_class = _get_class(db, class_id)
    references = {
        "students": db.query(Student).filter(Student.class_id == class_id).count(),
        "lessons": db.query(Schedule).filter(Schedule.class_id == class_id).count(),
        "homework": db.query(Homework).filter(Homework.class_id == class_id).count(),
    }
    if any(references.values()):
        raise ClassInUseError(class_id, references)

    data = school_class.to_dict()
    db.delete(school_class)
    db.commit()

    logger.info("Class %s deleted by %s", class_id, actor.user_id)
    return data


def list_classes(db: Session, actor: Actor) -> List[Dict[str, Any]]:
    """Classes visible to the actor, in creation order."""
    query = db.query(SchoolClass)
    visible = AccessPolicy(db).visible_class_ids(actor)
    if visible is not None:
        query = query.filter(SchoolClass.id.in_(visible))
    return [c.to_dict() for c in query.order_by(SchoolClass.seq).all()]


def classes_for_teacher(db: Session, teacher_id: str) -> List[Dict[str, Any]]:
    """Classes linked to a teacher."""
    classes = (
        db.query(SchoolClass)
        .join(TeacherClass, TeacherClass.class_id == SchoolClass.id)
        .filter(TeacherClass.teacher_id == teacher_id)
        .order_by(SchoolClass.seq)
        .all()
    )
    return [c.to_dict() for c in classes]


# ============== Teachers ==============

def add_teacher(
    db: Session,
    actor: Optional[Actor],
    display_name: str,
    login_name: str,
    secret: str,
    subjects: Iterable[str],
    class_ids: Optional[Iterable[str]] = None,
    avatar_glyph: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Create a teacher and the paired user account.

    AUTHORIZATION: admin only.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_manage_teachers(actor), actor, "add_teacher"):
        return None

    user = upsert_profile(
        db,
        UserRole.TEACHER,
        display_name=display_name,
        login_name=login_name,
        secret=secret,
        avatar_glyph=avatar_glyph,
        subjects=subjects,
        class_ids=class_ids or [],
    )
    logger.info("Teacher %s created by %s", user.id, actor.user_id)
    return user.teacher.to_dict()


def update_teacher(
    db: Session,
    actor: Optional[Actor],
    teacher_id: str,
    display_name: Optional[str] = None,
    login_name: Optional[str] = None,
    secret: Optional[str] = None,
    subjects: Optional[Iterable[str]] = None,
    class_ids: Optional[Iterable[str]] = None,
    avatar_glyph: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Merge the given fields into a teacher; None leaves a field unchanged.

    AUTHORIZATION: admin only.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_manage_teachers(actor), actor, "update_teacher"):
        return None

    _get_teacher(db, teacher_id)
    user = upsert_profile(
        db,
        UserRole.TEACHER,
        user_id=teacher_id,
        display_name=display_name,
        login_name=login_name,
        secret=secret,
        avatar_glyph=avatar_glyph,
        subjects=subjects,
        class_ids=class_ids,
    )
    logger.info("Teacher %s updated by %s", teacher_id, actor.user_id)
    return user.teacher.to_dict()


def delete_teacher(db: Session, actor: Optional[Actor], teacher_id: str) -> Optional[Dict[str, Any]]:
    """
    Delete a teacher and its user account.

    Grades the teacher recorded stay in the ledger without a teacher.

    AUTHORIZATION: admin only.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_manage_teachers(actor), actor, "delete_teacher"):
        return None

    teacher = _get_teacher(db, teacher_id)
    data = teacher.to_dict()
    db.delete(teacher.user)
    db.commit()

    logger.info("Teacher %s deleted by %s", teacher_id, actor.user_id)
    return data


def list_teachers(db: Session, actor: Actor) -> List[Dict[str, Any]]:
    """
    Teachers visible to the actor: all for admins, themselves for teachers,
    nobody for students.
    """
    query = db.query(Teacher)
    if isinstance(actor, AdminActor):
        pass
    elif isinstance(actor, TeacherActor):
        query = query.filter(Teacher.id == actor.user_id)
    elif isinstance(actor, StudentActor):
        return []
    else:
        unreachable_actor(actor)
    return [t.to_dict() for t in query.order_by(Teacher.seq).all()]


# ============== Students ==============

def add_student(
    db: Session,
    actor: Optional[Actor],
    display_name: str,
    login_name: str,
    secret: str,
    class_id: str,
    avatar_glyph: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Create a student in a class together with the paired user account.

    AUTHORIZATION: admin, or a teacher adding to one of their own classes.
    """
    if not class_id:
        raise ValidationError("Select a class", "class_id")

    policy = AccessPolicy(db)
    if not policy.check(policy.can_add_student(actor, class_id), actor, "add_student"):
        return None

    user = upsert_profile(
        db,
        UserRole.STUDENT,
        display_name=display_name,
        login_name=login_name,
        secret=secret,
        avatar_glyph=avatar_glyph,
        class_id=class_id,
    )
    logger.info("Student %s created in class %s by %s", user.id, class_id, actor.user_id)
    return user.student.to_dict()


def update_student(
    db: Session,
    actor: Optional[Actor],
    student_id: str,
    display_name: Optional[str] = None,
    login_name: Optional[str] = None,
    secret: Optional[str] = None,
    class_id: Optional[str] = None,
    avatar_glyph: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Merge the given fields into a student; None leaves a field unchanged.

    AUTHORIZATION: admin only.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_manage_students(actor), actor, "update_student"):
        return None

    _get_student(db, student_id)
    user = upsert_profile(
        db,
        UserRole.STUDENT,
        user_id=student_id,
        display_name=display_name,
        login_name=login_name,
        secret=secret,
        avatar_glyph=avatar_glyph,
        class_id=class_id,
    )
    logger.info("Student %s updated by %s", student_id, actor.user_id)
    return user.student.to_dict()


def delete_student(db: Session, actor: Optional[Actor], student_id: str) -> Optional[Dict[str, Any]]:
    """
    Delete a student, its user account and all of its grades.

    AUTHORIZATION: admin only.
    """
    policy = AccessPolicy(db)
    if not policy.check(policy.can_manage_students(actor), actor, "delete_student"):
        return None

    student = _get_student(db, student_id)
    data = student.to_dict()
    data["deleted_grades"] = len(student.grades)
    db.delete(student.user)
    db.commit()

    logger.info(
        "Student %s deleted by %s (%d grades removed)",
        student_id, actor.user_id, data["deleted_grades"]
    )
    return data


def students_in_class(db: Session, class_id: str) -> List[Dict[str, Any]]:
    """All students of a class, in creation order."""
    students = (
        db.query(Student)
        .filter(Student.class_id == class_id)
        .order_by(Student.seq)
        .all()
    )
    return [s.to_dict() for s in students]


def list_students(
    db: Session,
    actor: Actor,
    class_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Students visible to the actor, optionally limited to one class.
    """
    query = db.query(Student)
    visible = AccessPolicy(db).visible_student_ids(actor)
    if visible is not None:
        query = query.filter(Student.id.in_(visible))
    if class_id:
        query = query.filter(Student.class_id == class_id)
    return [s.to_dict() for s in query.order_by(Student.seq).all()]
