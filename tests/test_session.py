"""
Tests for login, logout and the current user.
"""
from tools import (
    SessionController,
    AdminActor,
    StudentActor,
    create_app_state,
    delete_student,
)


class TestLogin:
    """Tests for authentication against the identity store."""

    def test_login_seed_accounts(self, db, controller, settings):
        user = controller.login(db, settings.seed_teacher_login, settings.seed_teacher_secret)

        assert user is not None
        assert user["role"] == "teacher"
        assert user["display_name"] == settings.seed_teacher_name
        assert "secret" not in user
        assert controller.state.current_user_id == user["id"]

    def test_wrong_secret_is_generic_failure(self, db, controller, settings):
        """A wrong secret and an unknown login look the same."""
        assert controller.login(db, settings.seed_teacher_login, "wrong") is None
        assert controller.login(db, "nobody", "wrong") is None
        assert controller.state.current_user_id is None

    def test_login_is_exact_match(self, db, controller, settings):
        assert controller.login(db, settings.seed_teacher_login.lower(), settings.seed_teacher_secret) is None
        assert controller.login(db, settings.seed_teacher_login + " ", settings.seed_teacher_secret) is None

    def test_failed_login_keeps_existing_session(self, db, controller, admin):
        assert controller.login(db, "nobody", "x") is None
        assert controller.state.current_user_id == admin.user_id

    def test_duplicate_credentials_first_added_wins(self, db, controller, admin, school):
        from tools import add_student

        twin = add_student(db, admin, "Ivan Twin", "ivanov", "pw", school["class_b"]["id"])
        user = controller.login(db, "ivanov", "pw")

        assert user["id"] == school["ivan"]["id"]
        assert user["id"] != twin["id"]


class TestCurrentUser:
    """Tests for the logged-in user and its role view."""

    def test_nobody_logged_in(self, db, controller):
        assert controller.current_user(db) is None
        assert controller.current_actor(db) is None

    def test_current_actor_matches_role(self, db, controller, admin, school):
        assert isinstance(controller.current_actor(db), AdminActor)

        controller.login(db, "ivanov", "pw")
        actor = controller.current_actor(db)
        assert isinstance(actor, StudentActor)
        assert actor.class_id == school["class_a"]["id"]

    def test_logout(self, db, controller, admin):
        controller.logout()
        assert controller.current_user(db) is None

        # Logging out twice is harmless
        controller.logout()
        assert controller.state.current_user_id is None

    def test_deleted_user_is_logged_out(self, db, state, admin, school):
        student_session = SessionController(state)
        student_session.login(db, "olga", "pw")

        delete_student(db, admin, school["olga"]["id"])

        assert student_session.current_user(db) is None
        assert state.current_user_id is None


class TestAppState:
    """Tests for independent application states."""

    def test_states_do_not_share_data(self, settings, db, admin):
        from tools import add_class, list_classes, resolve_actor

        add_class(db, admin, "Only here")

        other = create_app_state(settings)
        try:
            with other.session() as other_db:
                other_user = SessionController(other).login(
                    other_db, settings.seed_admin_login, settings.seed_admin_secret
                )
                other_admin = resolve_actor(other_db, other_user["id"])
                assert list_classes(other_db, other_admin) == []
        finally:
            other.engine.dispose()

        assert [c["name"] for c in list_classes(db, admin)] == ["Only here"]

    def test_seed_accounts_only_once(self, settings, state, db):
        from database import User
        from database.seed import seed_database

        before = db.query(User).count()
        seed_database(db, settings)
        assert db.query(User).count() == before == 2
