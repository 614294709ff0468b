"""
Statistics engine for the School Gradebook.

Every figure is recomputed from the current store on each call; nothing is
cached. Averages are returned at full precision and only rounded by
``format_average`` at the presentation edge.

A student without grades has the sentinel average ``0.0``. Since every grade
is between 2 and 5 a real average can never be zero, so callers filter the
sentinel out before ranking.
"""
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Optional, List, Iterable
from statistics import mean, median
from sqlalchemy.orm import Session

from config import GRADE_VALUES
from database import Grade, Student, SchoolClass
from .exceptions import EntityNotFoundError

NO_GRADES = 0.0


def _scoped_grades(db: Session, student_ids: Optional[Iterable[str]] = None) -> List[Grade]:
    """All grades in recording order, optionally limited to some students."""
    query = db.query(Grade)
    if student_ids is not None:
        query = query.filter(Grade.student_id.in_(list(student_ids)))
    return query.order_by(Grade.seq).all()


def _average(values: List[int]) -> float:
    return float(mean(values)) if values else NO_GRADES


def format_average(value: float) -> str:
    """Two decimals, halves rounded away from zero (4.665 -> '4.67')."""
    return str(Decimal(repr(float(value))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_percentage(value: float) -> str:
    """One decimal, halves rounded away from zero."""
    return str(Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def student_average(db: Session, student_id: str) -> float:
    """
    Mean of all grades of one student.

    Returns:
        The average, or 0.0 when the student has no grades (or no longer exists)
    """
    values = [
        value for (value,) in
        db.query(Grade.value).filter(Grade.student_id == student_id).order_by(Grade.seq).all()
    ]
    return _average(values)


def class_average(db: Session, class_id: str) -> float:
    """
    Mean of the student averages of a class.

    Students without grades are left out; 0.0 if nobody in the class has a grade.
    """
    students = (
        db.query(Student.id)
        .filter(Student.class_id == class_id)
        .order_by(Student.seq)
        .all()
    )
    averages = [student_average(db, student_id) for (student_id,) in students]
    return _average([avg for avg in averages if avg > NO_GRADES])


def class_ranking(db: Session, class_ids: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """
    Classes by average, best first.

    Classes without any graded student are left out. Equal averages keep the
    order in which the classes were created.
    """
    query = db.query(SchoolClass)
    if class_ids is not None:
        query = query.filter(SchoolClass.id.in_(list(class_ids)))

    ranked = []
    for school_class in query.order_by(SchoolClass.seq).all():
        average = class_average(db, school_class.id)
        if average > NO_GRADES:
            ranked.append({
                "class_id": school_class.id,
                "name": school_class.name,
                "average": average,
            })
    return sorted(ranked, key=lambda row: row["average"], reverse=True)


def compute_distribution(values: Iterable[int]) -> Dict[int, int]:
    """Count of grades at each value, always with all four buckets."""
    counts = Counter(values)
    return {grade: counts.get(grade, 0) for grade in GRADE_VALUES}


def subject_average(
    db: Session,
    subject: str,
    student_ids: Optional[Iterable[str]] = None
) -> Dict[str, Any]:
    """
    Average and histogram of one subject.

    Returns:
        Dict with subject, average (0.0 if no grades), count and distribution
    """
    values = [g.value for g in _scoped_grades(db, student_ids) if g.subject == subject]
    return {
        "subject": subject,
        "average": _average(values),
        "count": len(values),
        "distribution": compute_distribution(values),
    }


def subject_report(
    db: Session,
    student_ids: Optional[Iterable[str]] = None
) -> List[Dict[str, Any]]:
    """
    Statistics for every subject that has grades, best average first.

    Subjects with equal averages keep the order in which they were first graded.
    """
    by_subject: Dict[str, List[int]] = {}
    for grade in _scoped_grades(db, student_ids):
        by_subject.setdefault(grade.subject, []).append(grade.value)

    report = [
        {
            "subject": subject,
            "average": _average(values),
            "count": len(values),
            "distribution": compute_distribution(values),
        }
        for subject, values in by_subject.items()
    ]
    return sorted(report, key=lambda row: row["average"], reverse=True)


def top_students(
    db: Session,
    n: int = 5,
    student_ids: Optional[Iterable[str]] = None
) -> List[Dict[str, Any]]:
    """
    Best students by average, highest first.

    Students without grades never appear. Equal averages keep the order in
    which the students were added.
    """
    query = db.query(Student)
    if student_ids is not None:
        query = query.filter(Student.id.in_(list(student_ids)))

    ranked = []
    for student in query.order_by(Student.seq).all():
        average = student_average(db, student.id)
        if average > NO_GRADES:
            ranked.append({
                "student_id": student.id,
                "display_name": student.display_name,
                "avatar_glyph": student.avatar_glyph,
                "class_id": student.class_id,
                "average": average,
            })

    # sorted() is stable, so ties stay in insertion order
    ranked = sorted(ranked, key=lambda row: row["average"], reverse=True)
    return ranked[:max(n, 0)]


def overall_average(db: Session, student_ids: Optional[Iterable[str]] = None) -> float:
    """Mean of every grade in scope; 0.0 if there are none."""
    return _average([g.value for g in _scoped_grades(db, student_ids)])


def grade_distribution(db: Session, student_ids: Optional[Iterable[str]] = None) -> Dict[int, int]:
    """How many grades of each value (5, 4, 3, 2) are in scope."""
    return compute_distribution(g.value for g in _scoped_grades(db, student_ids))


def grade_percentages(db: Session, student_ids: Optional[Iterable[str]] = None) -> Dict[int, float]:
    """Share of each grade value in percent; all zeros when there are no grades."""
    distribution = grade_distribution(db, student_ids)
    total = sum(distribution.values())
    if total == 0:
        return {grade: 0.0 for grade in GRADE_VALUES}
    return {grade: count / total * 100 for grade, count in distribution.items()}


def student_subject_averages(db: Session, student_id: str) -> List[Dict[str, Any]]:
    """Per-subject average and count for one student, in first-graded order."""
    by_subject: Dict[str, List[int]] = {}
    for grade in _scoped_grades(db, [student_id]):
        by_subject.setdefault(grade.subject, []).append(grade.value)
    return [
        {"subject": subject, "average": _average(values), "count": len(values)}
        for subject, values in by_subject.items()
    ]


def compute_statistics(grades: List[int]) -> Dict[str, Any]:
    """
    Compute statistics for a list of grades.

    Args:
        grades: List of grade values

    Returns:
        Dictionary with mean, median, min, max, total
    """
    if not grades:
        return {
            "mean": None,
            "median": None,
            "min": None,
            "max": None,
            "total_grades": 0
        }

    return {
        "mean": float(mean(grades)),
        "median": float(median(grades)),
        "min": min(grades),
        "max": max(grades),
        "total_grades": len(grades)
    }


def get_class_report(db: Session, class_id: str) -> Dict[str, Any]:
    """
    Report for one class: every student with their average plus class statistics.

    Raises:
        EntityNotFoundError: If the class does not exist
    """
    school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not school_class:
        raise EntityNotFoundError("Class", class_id)

    student_reports = []
    all_grades = []
    for student in school_class.students:
        values = [g.value for g in student.grades]
        all_grades.extend(values)
        student_reports.append({
            "student_id": student.id,
            "display_name": student.display_name,
            "total_grades": len(values),
            "average": _average(values),
        })

    return {
        "class": school_class.to_dict(),
        "total_students": len(student_reports),
        "class_average": class_average(db, class_id),
        "class_statistics": compute_statistics(all_grades),
        "students": student_reports,
    }
