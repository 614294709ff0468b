"""
Seed data for the School Gradebook.
Creates the built-in accounts and, optionally, a small demo school.
"""
import logging
from datetime import date, datetime, timedelta

from config import Settings, get_settings
from database import (
    User, UserRole, SchoolClass, TeacherClass, Student, Grade, Schedule, Homework, new_id
)
from tools.roster import upsert_profile

logger = logging.getLogger(__name__)


def seed_accounts(db, settings: Settings):
    """Create the administrator and the default teacher."""
    admin = upsert_profile(
        db,
        UserRole.ADMIN,
        display_name=settings.seed_admin_name,
        login_name=settings.seed_admin_login,
        secret=settings.seed_admin_secret,
        avatar_glyph=settings.seed_admin_avatar,
    )
    teacher = upsert_profile(
        db,
        UserRole.TEACHER,
        display_name=settings.seed_teacher_name,
        login_name=settings.seed_teacher_login,
        secret=settings.seed_teacher_secret,
        avatar_glyph=settings.seed_teacher_avatar,
        subjects=settings.seed_teacher_subjects,
    )
    return admin, teacher


def seed_demo_school(db, teacher_id: str):
    """Populate a small demo school owned by the given teacher."""
    classes = [
        SchoolClass(id=new_id(), name="10A", owner_teacher_id=teacher_id),
        SchoolClass(id=new_id(), name="10B", owner_teacher_id=teacher_id),
    ]
    db.add_all(classes)
    db.flush()
    db.add_all([TeacherClass(teacher_id=teacher_id, class_id=c.id) for c in classes])

    # (name, login, class index, grades per subject)
    roster = [
        ("Anna Petrova", "petrova", 0, {"Math": [5, 4, 5], "Physics": [4, 4]}),
        ("Boris Smirnov", "smirnov", 0, {"Math": [3, 4], "History": [4]}),
        ("Daria Kuznetsova", "kuznetsova", 1, {"Math": [5, 5], "English": [5, 4]}),
        ("Egor Volkov", "volkov", 1, {"Physics": [3, 2, 3]}),
    ]
    base_date = datetime.now() - timedelta(days=30)
    grades = []
    for name, login, class_index, by_subject in roster:
        user = User(
            id=new_id(), role=UserRole.STUDENT.value, display_name=name,
            login_name=login, secret="student", avatar_glyph="🧑‍🎓"
        )
        user.student = Student(id=user.id, class_id=classes[class_index].id)
        db.add(user)
        day = 0
        for subject, values in by_subject.items():
            for value in values:
                day += 2
                grades.append(Grade(
                    id=new_id(), student_id=user.id, subject=subject, value=value,
                    date=base_date + timedelta(days=day), teacher_id=teacher_id
                ))
    db.flush()
    db.add_all(grades)

    lessons = [
        ("Monday", "08:30", "Math"),
        ("Monday", "09:25", "Physics"),
        ("Wednesday", "10:20", "History"),
        ("Friday", "08:30", "English"),
    ]
    for school_class in classes:
        for weekday, time, subject in lessons:
            db.add(Schedule(
                id=new_id(), class_id=school_class.id, weekday=weekday, time=time, subject=subject
            ))

    db.add(Homework(
        id=new_id(), class_id=classes[0].id, subject="Math",
        description="Exercises 112-118", due_date=date.today() + timedelta(days=3)
    ))
    db.commit()

    logger.info("Demo school seeded: %d classes, %d students, %d grades",
                len(classes), len(roster), len(grades))


def seed_database(db, settings: Settings = None):
    """Seed an empty store. Does nothing if any user exists already."""
    settings = settings or get_settings()
    if db.query(User).count():
        return

    admin, teacher = seed_accounts(db, settings)
    logger.info("Seed accounts created: admin=%s teacher=%s", admin.id, teacher.id)

    if settings.seed_demo_data:
        seed_demo_school(db, teacher.id)


if __name__ == "__main__":
    from tools.session import create_app_state

    state = create_app_state(get_settings().model_copy(update={"seed_demo_data": True}))
    with state.session() as db:
        print("Database seeded successfully!")
        print(f"Created:")
        print(f"  - {db.query(User).count()} users")
        print(f"  - {db.query(SchoolClass).count()} classes")
        print(f"  - {db.query(Student).count()} students")
        print(f"  - {db.query(Grade).count()} grades")
