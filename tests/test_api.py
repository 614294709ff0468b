"""
Tests for the HTTP API.
"""
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture
def client():
    """Client for a fresh application with only the seed accounts."""
    app = create_app(Settings(seed_demo_data=False))
    with TestClient(app) as test_client:
        yield test_client


def login(client, login_name, secret):
    return client.post("/auth/login", json={"login_name": login_name, "secret": secret})


@pytest.fixture
def school(client):
    """Two classes, a Math teacher for 9A and a student in each class."""
    login(client, "admin", "admin")
    class_a = client.post("/roster/classes", json={"name": "9A"}).json()
    class_b = client.post("/roster/classes", json={"name": "9B"}).json()
    teacher = client.post("/roster/teachers", json={
        "display_name": "Maria Ivanovna",
        "login_name": "mivanovna",
        "secret": "pw",
        "subjects": ["Math"],
        "class_ids": [class_a["id"]],
    }).json()
    ivan = client.post("/roster/students", json={
        "display_name": "Ivan", "login_name": "ivanov", "secret": "pw", "class_id": class_a["id"],
    }).json()
    petr = client.post("/roster/students", json={
        "display_name": "Petr", "login_name": "petr", "secret": "pw", "class_id": class_b["id"],
    }).json()
    client.post("/auth/logout")
    return {"class_a": class_a, "class_b": class_b, "teacher": teacher, "ivan": ivan, "petr": petr}


class TestHealth:
    """Tests for the health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "online"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuthEndpoints:
    """Tests for login, logout and the current user."""

    def test_login_success(self, client):
        response = login(client, "RomanYarg", "1qaz2wsx")

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "teacher"
        assert "secret" not in data

    def test_login_failure_is_generic(self, client):
        wrong_secret = login(client, "RomanYarg", "nope")
        unknown = login(client, "ghost", "nope")

        assert wrong_secret.status_code == unknown.status_code == 401
        assert wrong_secret.json()["detail"] == unknown.json()["detail"]

    def test_me_requires_login(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["error_type"] == "NotAuthenticatedError"

    def test_me_and_logout(self, client):
        login(client, "admin", "admin")
        assert client.get("/auth/me").json()["role"] == "admin"

        assert client.post("/auth/logout").json()["success"] is True
        assert client.get("/auth/me").status_code == 401

    def test_update_own_profile(self, client):
        login(client, "RomanYarg", "1qaz2wsx")
        response = client.put("/auth/me", json={"avatar_glyph": "🤓"})

        assert response.status_code == 200
        assert response.json()["avatar_glyph"] == "🤓"
        assert response.json()["display_name"] == "Roman Yaroslavovich"


class TestRosterEndpoints:
    """Tests for class, teacher and student endpoints."""

    def test_refusal_is_403(self, client, school):
        login(client, "mivanovna", "pw")

        assert client.post("/roster/teachers", json={
            "display_name": "X", "login_name": "x", "secret": "x", "subjects": ["Art"],
        }).status_code == 403
        assert client.post("/roster/students", json={
            "display_name": "X", "login_name": "x", "secret": "x", "class_id": school["class_b"]["id"],
        }).status_code == 403

    def test_teacher_adds_student_to_own_class(self, client, school):
        login(client, "mivanovna", "pw")
        response = client.post("/roster/students", json={
            "display_name": "Nina", "login_name": "nina", "secret": "pw", "class_id": school["class_a"]["id"],
        })

        assert response.status_code == 200
        assert response.json()["class_name"] == "9A"

    def test_validation_error_is_400(self, client):
        login(client, "admin", "admin")
        response = client.post("/roster/classes", json={"name": "  "})

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_unknown_entity_is_404(self, client):
        login(client, "admin", "admin")
        assert client.patch("/roster/students/missing", json={"display_name": "X"}).status_code == 404

    def test_delete_class_in_use_is_409(self, client, school):
        login(client, "admin", "admin")
        response = client.delete(f"/roster/classes/{school['class_a']['id']}")

        assert response.status_code == 409
        assert response.json()["error_type"] == "ClassInUseError"

    def test_patch_student_keeps_unset_fields(self, client, school):
        login(client, "admin", "admin")
        response = client.patch(f"/roster/students/{school['ivan']['id']}", json={"display_name": "Ivan I."})

        assert response.status_code == 200
        assert response.json()["display_name"] == "Ivan I."
        assert response.json()["class_id"] == school["class_a"]["id"]

    def test_teacher_sees_own_class_students(self, client, school):
        login(client, "mivanovna", "pw")
        names = [s["display_name"] for s in client.get("/roster/students").json()]
        assert names == ["Ivan"]

    def test_delete_student(self, client, school):
        login(client, "admin", "admin")
        response = client.delete(f"/roster/students/{school['petr']['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["deleted_grades"] == 0
        assert client.get(f"/roster/classes/{school['class_b']['id']}/students").json() == []


class TestGradeEndpoints:
    """Tests for grade endpoints."""

    def test_record_and_read(self, client, school):
        login(client, "mivanovna", "pw")
        response = client.post("/grades", json={
            "student_id": school["ivan"]["id"], "subject": "Math", "value": 5,
        })
        assert response.status_code == 200

        login(client, "ivanov", "pw")
        grades = client.get("/grades").json()
        assert [g["value"] for g in grades] == [5]

    def test_foreign_subject_is_403(self, client, school):
        login(client, "mivanovna", "pw")
        response = client.post("/grades", json={
            "student_id": school["ivan"]["id"], "subject": "Physics", "value": 5,
        })
        assert response.status_code == 403

    def test_padded_subject_is_accepted(self, client, school):
        login(client, "mivanovna", "pw")
        response = client.post("/grades", json={
            "student_id": school["ivan"]["id"], "subject": "  Math ", "value": 4,
        })

        assert response.status_code == 200
        assert response.json()["subject"] == "Math"

    def test_out_of_range_is_400(self, client, school):
        login(client, "mivanovna", "pw")
        response = client.post("/grades", json={
            "student_id": school["ivan"]["id"], "subject": "Math", "value": 6,
        })
        assert response.status_code == 400

    def test_delete_not_available(self, client, school):
        login(client, "admin", "admin")
        response = client.delete("/grades/anything")

        assert response.status_code == 405
        assert response.json()["error_type"] == "FeatureNotAvailableError"

    def test_requires_login(self, client):
        assert client.get("/grades").status_code == 401


class TestAcademicEndpoints:
    """Tests for schedule and homework endpoints."""

    def test_schedule_and_homework(self, client, school):
        login(client, "mivanovna", "pw")
        lesson = client.post("/schedules", json={
            "class_id": school["class_a"]["id"], "weekday": "Monday", "time": "08:30", "subject": "Math",
        })
        homework = client.post("/homework", json={
            "class_id": school["class_a"]["id"], "subject": "Math",
            "description": "Page 42", "due_date": "2024-10-01",
        })
        assert lesson.status_code == 200
        assert homework.status_code == 200

        login(client, "petr", "pw")
        assert client.get("/schedules").json() == []
        assert client.get("/homework").json() == []

        login(client, "ivanov", "pw")
        assert [h["description"] for h in client.get("/homework").json()] == ["Page 42"]

    def test_bad_time_is_400(self, client, school):
        login(client, "admin", "admin")
        response = client.post("/schedules", json={
            "class_id": school["class_a"]["id"], "weekday": "Monday", "time": "8am", "subject": "Math",
        })
        assert response.status_code == 400


class TestStatsEndpoints:
    """Tests for statistics and dashboards."""

    @pytest.fixture
    def graded(self, client, school):
        login(client, "mivanovna", "pw")
        for student, value in ((school["ivan"], 5), (school["ivan"], 4), (school["petr"], 3)):
            client.post("/grades", json={"student_id": student["id"], "subject": "Math", "value": value})
        return school

    def test_overview_for_admin(self, client, graded):
        login(client, "admin", "admin")
        data = client.get("/stats/overview").json()

        assert data["overall_average_display"] == "4.00"
        assert data["grade_distribution"] == {"5": 1, "4": 1, "3": 1, "2": 0}
        assert [row["display_name"] for row in data["top_students"]] == ["Ivan", "Petr"]

    def test_student_stats_scoped(self, client, graded):
        login(client, "ivanov", "pw")

        own = client.get(f"/stats/students/{graded['ivan']['id']}")
        assert own.json()["average_display"] == "4.50"
        assert client.get(f"/stats/students/{graded['petr']['id']}").status_code == 403

    def test_class_stats_forbidden_for_students(self, client, graded):
        login(client, "ivanov", "pw")
        assert client.get(f"/stats/classes/{graded['class_a']['id']}").status_code == 403

        login(client, "mivanovna", "pw")
        response = client.get(f"/stats/classes/{graded['class_a']['id']}")
        assert response.status_code == 200
        assert response.json()["average_display"] == "4.50"

    def test_subject_stats(self, client, graded):
        login(client, "admin", "admin")
        data = client.get("/stats/subjects/Math").json()

        assert data["count"] == 3
        assert data["average_display"] == "4.00"

    def test_dashboard_by_role(self, client, graded):
        login(client, "ivanov", "pw")
        assert client.get("/dashboard").json()["role"] == "student"

        login(client, "mivanovna", "pw")
        assert client.get("/dashboard").json()["role"] == "teacher"
