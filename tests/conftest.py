"""
Shared fixtures: every test gets its own in-memory gradebook.
"""
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from database import User
from tools import (
    SessionController,
    create_app_state,
    resolve_actor,
    add_class,
    add_teacher,
    add_student,
)


@pytest.fixture
def settings():
    """Settings with the demo school switched off."""
    return Settings(seed_demo_data=False)


@pytest.fixture
def state(settings):
    """Fresh AppState with only the seed accounts."""
    state = create_app_state(settings)
    yield state
    state.engine.dispose()


@pytest.fixture
def db(state):
    """Database session on the test state."""
    session = state.session_factory()
    yield session
    session.close()


@pytest.fixture
def controller(state):
    return SessionController(state)


@pytest.fixture
def admin(db, controller, settings):
    """The seeded administrator, logged in."""
    user = controller.login(db, settings.seed_admin_login, settings.seed_admin_secret)
    return resolve_actor(db, user["id"])


@pytest.fixture
def seed_teacher(db, settings):
    """The seeded teacher (teaches every catalogue subject, no classes yet)."""
    row = db.query(User).filter(User.login_name == settings.seed_teacher_login).first()
    return resolve_actor(db, row.id)


@pytest.fixture
def school(db, admin):
    """
    A small school built by the admin:
    classes 9A and 9B, a Math teacher for 9A and three students.
    """
    class_a = add_class(db, admin, "9A")
    class_b = add_class(db, admin, "9B")
    math_teacher = add_teacher(
        db, admin,
        display_name="Maria Ivanovna",
        login_name="mivanovna",
        secret="pw",
        subjects=["Math"],
        class_ids=[class_a["id"]],
    )
    ivan = add_student(db, admin, "Ivan", "ivanov", "pw", class_a["id"])
    olga = add_student(db, admin, "Olga", "olga", "pw", class_a["id"])
    petr = add_student(db, admin, "Petr", "petr", "pw", class_b["id"])
    return {
        "class_a": class_a,
        "class_b": class_b,
        "math_teacher": resolve_actor(db, math_teacher["id"]),
        "ivan": ivan,
        "olga": olga,
        "petr": petr,
    }
