"""
Tests for the statistics engine.
"""
import pytest

from tools import (
    EntityNotFoundError,
    add_grade,
    add_student,
    add_class,
    delete_student,
    student_average,
    class_average,
    class_ranking,
    subject_average,
    subject_report,
    top_students,
    overall_average,
    grade_distribution,
    grade_percentages,
    student_subject_averages,
    compute_statistics,
    get_class_report,
    format_average,
    format_percentage,
    dashboard,
    resolve_actor,
    update_teacher,
)


@pytest.fixture
def teacher(db, admin, school):
    """The school's Math teacher, also teaching Physics."""
    update_teacher(db, admin, school["math_teacher"].user_id, subjects=["Math", "Physics"])
    return resolve_actor(db, school["math_teacher"].user_id)


class TestAverages:
    """Tests for per-student, per-class and overall averages."""

    def test_no_grades_sentinel(self, db, school):
        assert student_average(db, school["ivan"]["id"]) == 0.0
        assert class_average(db, school["class_a"]["id"]) == 0.0
        assert overall_average(db) == 0.0

    def test_student_average_is_exact_mean(self, db, school, teacher):
        for value in (5, 4, 4):
            add_grade(db, teacher, school["ivan"]["id"], "Math", value)

        assert student_average(db, school["ivan"]["id"]) == pytest.approx(13 / 3)

    def test_other_students_do_not_affect_average(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        before = student_average(db, school["ivan"]["id"])

        add_grade(db, teacher, school["olga"]["id"], "Math", 2)

        assert student_average(db, school["ivan"]["id"]) == before

    def test_class_average_skips_ungraded(self, db, admin, school, teacher):
        add_student(db, admin, "Silent", "silent", "pw", school["class_a"]["id"])
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        add_grade(db, teacher, school["ivan"]["id"], "Math", 4)
        add_grade(db, teacher, school["olga"]["id"], "Math", 3)

        # mean of 4.5 and 3.0; the ungraded student is left out
        assert class_average(db, school["class_a"]["id"]) == pytest.approx(3.75)

    def test_deleted_student_falls_back_to_sentinel(self, db, admin, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        delete_student(db, admin, school["ivan"]["id"])

        assert student_average(db, school["ivan"]["id"]) == 0.0

    def test_overall_average(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        add_grade(db, teacher, school["petr"]["id"], "Physics", 2)

        assert overall_average(db) == pytest.approx(3.5)
        assert overall_average(db, [school["petr"]["id"]]) == pytest.approx(2.0)


class TestSubjects:
    """Tests for per-subject statistics."""

    def test_subject_average_with_histogram(self, db, school, teacher):
        for value in (5, 5, 3):
            add_grade(db, teacher, school["ivan"]["id"], "Math", value)
        add_grade(db, teacher, school["olga"]["id"], "Physics", 2)

        stats = subject_average(db, "Math")

        assert stats["average"] == pytest.approx(13 / 3)
        assert stats["count"] == 3
        assert stats["distribution"] == {5: 2, 4: 0, 3: 1, 2: 0}

    def test_subject_without_grades(self, db, school):
        stats = subject_average(db, "Chemistry")
        assert stats["average"] == 0.0
        assert stats["distribution"] == {5: 0, 4: 0, 3: 0, 2: 0}

    def test_subject_report_best_first(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 3)
        add_grade(db, teacher, school["ivan"]["id"], "Physics", 5)

        assert [row["subject"] for row in subject_report(db)] == ["Physics", "Math"]

    def test_student_subject_averages(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        add_grade(db, teacher, school["ivan"]["id"], "Physics", 3)
        add_grade(db, teacher, school["ivan"]["id"], "Math", 4)

        rows = student_subject_averages(db, school["ivan"]["id"])
        assert [(r["subject"], r["count"]) for r in rows] == [("Math", 2), ("Physics", 1)]
        assert rows[0]["average"] == pytest.approx(4.5)


class TestRanking:
    """Tests for top_students."""

    def test_excludes_ungraded_and_sorts(self, db, school, teacher):
        add_grade(db, teacher, school["olga"]["id"], "Math", 3)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        ranked = top_students(db)

        assert [r["display_name"] for r in ranked] == ["Petr", "Olga"]
        averages = [r["average"] for r in ranked]
        assert averages == sorted(averages, reverse=True)

    def test_ties_keep_insertion_order(self, db, school, teacher):
        for key in ("petr", "olga", "ivan"):
            add_grade(db, teacher, school[key]["id"], "Math", 4)

        assert [r["display_name"] for r in top_students(db)] == ["Ivan", "Olga", "Petr"]

    def test_truncated_to_n(self, db, school, teacher):
        for key in ("ivan", "olga", "petr"):
            add_grade(db, teacher, school[key]["id"], "Math", 5)

        assert len(top_students(db, n=2)) == 2
        assert top_students(db, n=0) == []

    def test_scoped_to_students(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 3)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        ranked = top_students(db, student_ids=[school["ivan"]["id"]])
        assert [r["display_name"] for r in ranked] == ["Ivan"]


class TestClassRanking:
    """Tests for class_ranking and the ranked dashboard views."""

    def test_best_class_first(self, db, admin, school, teacher):
        add_class(db, admin, "9C")
        add_grade(db, teacher, school["ivan"]["id"], "Math", 2)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        ranked = class_ranking(db)

        assert [(r["name"], r["average"]) for r in ranked] == [("9B", 5.0), ("9A", 2.0)]

    def test_ties_keep_creation_order(self, db, school, teacher):
        add_grade(db, teacher, school["petr"]["id"], "Math", 4)
        add_grade(db, teacher, school["ivan"]["id"], "Math", 4)

        assert [r["name"] for r in class_ranking(db)] == ["9A", "9B"]

    def test_scoped_to_classes(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 3)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        ranked = class_ranking(db, [school["class_a"]["id"]])
        assert [r["name"] for r in ranked] == ["9A"]
        assert class_ranking(db, []) == []

    def test_on_staff_dashboards(self, db, admin, school, teacher):
        update_teacher(
            db, admin, teacher.user_id,
            class_ids=[school["class_a"]["id"], school["class_b"]["id"]],
        )
        add_grade(db, teacher, school["ivan"]["id"], "Math", 2)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        teacher_view = dashboard(db, resolve_actor(db, teacher.user_id))
        assert [r["name"] for r in teacher_view["class_ranking"]] == ["9B", "9A"]
        assert [r["name"] for r in dashboard(db, admin)["class_ranking"]] == ["9B", "9A"]

    def test_teacher_ranking_limited_to_own_classes(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 3)
        add_grade(db, teacher, school["petr"]["id"], "Math", 5)

        assert [r["name"] for r in dashboard(db, teacher)["class_ranking"]] == ["9A"]

    def test_student_subjects_best_first(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 3)
        add_grade(db, teacher, school["ivan"]["id"], "Physics", 5)

        view = dashboard(db, resolve_actor(db, school["ivan"]["id"]))
        assert [r["subject"] for r in view["subject_averages"]] == ["Physics", "Math"]


class TestDistribution:
    """Tests for distribution and percentages."""

    def test_empty(self, db, school):
        assert grade_distribution(db) == {5: 0, 4: 0, 3: 0, 2: 0}
        assert grade_percentages(db) == {5: 0.0, 4: 0.0, 3: 0.0, 2: 0.0}

    def test_percentages(self, db, school, teacher):
        for value in (5, 5, 4, 2):
            add_grade(db, teacher, school["ivan"]["id"], "Math", value)

        assert grade_distribution(db) == {5: 2, 4: 1, 3: 0, 2: 1}
        assert grade_percentages(db) == {5: 50.0, 4: 25.0, 3: 0.0, 2: 25.0}


class TestFormatting:
    """Tests for presentation rounding."""

    @pytest.mark.parametrize("value,expected", [
        (5, "5.00"),
        (0.0, "0.00"),
        (4.665, "4.67"),
        (4.125, "4.13"),
        (13 / 3, "4.33"),
        (3.335, "3.34"),
    ])
    def test_format_average(self, value, expected):
        assert format_average(value) == expected

    def test_format_percentage(self):
        assert format_percentage(100 / 3) == "33.3"
        assert format_percentage(12.25) == "12.3"


class TestReports:
    """Tests for class reports and dashboards."""

    def test_compute_statistics(self):
        assert compute_statistics([]) == {
            "mean": None, "median": None, "min": None, "max": None, "total_grades": 0
        }
        stats = compute_statistics([5, 3, 4, 4])
        assert stats["mean"] == 4.0
        assert stats["median"] == 4.0
        assert (stats["min"], stats["max"], stats["total_grades"]) == (3, 5, 4)

    def test_class_report(self, db, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        add_grade(db, teacher, school["olga"]["id"], "Math", 3)

        report = get_class_report(db, school["class_a"]["id"])

        assert report["total_students"] == 2
        assert report["class_average"] == pytest.approx(4.0)
        assert [s["display_name"] for s in report["students"]] == ["Ivan", "Olga"]

    def test_class_report_unknown(self, db):
        with pytest.raises(EntityNotFoundError):
            get_class_report(db, "missing")

    def test_dashboards_by_role(self, db, admin, school, teacher):
        add_grade(db, teacher, school["ivan"]["id"], "Math", 5)
        add_grade(db, teacher, school["petr"]["id"], "Math", 2)

        admin_view = dashboard(db, admin)
        assert admin_view["counts"]["students"] == 3
        assert admin_view["overall_average"] == pytest.approx(3.5)

        teacher_view = dashboard(db, teacher)
        assert [s["display_name"] for s in teacher_view["students"]] == ["Ivan", "Olga"]
        assert teacher_view["overall_average"] == pytest.approx(5.0)

        student_view = dashboard(db, resolve_actor(db, school["petr"]["id"]))
        assert student_view["total_grades"] == 1
        assert student_view["average"] == pytest.approx(2.0)
