"""
Database models for the School Gradebook.
Defines all SQLAlchemy models for the identity, roster and academic record stores.

Every table carries an autoincrement ``seq`` column used for insertion order,
and an opaque string ``id`` that the rest of the system uses as the key.
"""
import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Enum, ForeignKey,
    UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def new_id() -> str:
    """Generate a new opaque entity id."""
    return uuid.uuid4().hex


class UserRole(str, PyEnum):
    """User roles enum."""
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base):
    """
    Users table - the identity store.

    Attributes:
        id: Opaque unique identifier, shared with the paired Teacher/Student row
        login_name: Name typed on the login form
        secret: Plain password (no hashing, this is not a security boundary)
        role: 'admin', 'teacher' or 'student'
        display_name: Full name shown in the UI
        avatar_glyph: Optional emoji avatar
    """
    __tablename__ = "users"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=new_id)
    login_name = Column(String(255), nullable=False)
    secret = Column(String(255), nullable=False)
    role = Column(Enum("admin", "teacher", "student", name="user_role"), nullable=False)
    display_name = Column(String(255), nullable=False)
    avatar_glyph = Column(String(32), nullable=True)

    # Relationships
    teacher = relationship(
        "Teacher", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    student = relationship(
        "Student", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id='{self.id}', login_name='{self.login_name}', role='{self.role}')>"

    def to_dict(self):
        """Public view of the user, never includes the secret."""
        return {
            "id": self.id,
            "login_name": self.login_name,
            "role": self.role,
            "display_name": self.display_name,
            "avatar_glyph": self.avatar_glyph,
        }


class SchoolClass(Base):
    """
    Classes (e.g. "9A") table.

    Attributes:
        id: Unique identifier
        name: Class name
        owner_teacher_id: Teacher who created the class, None for admin-created classes
    """
    __tablename__ = "classes"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=new_id)
    name = Column(String(255), nullable=False)
    owner_teacher_id = Column(String(32), ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    students = relationship("Student", back_populates="school_class", order_by="Student.seq")
    teacher_links = relationship("TeacherClass", back_populates="school_class", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SchoolClass(id='{self.id}', name='{self.name}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "owner_teacher_id": self.owner_teacher_id,
        }


class Teacher(Base):
    """
    Teachers table - role-specific half of a teacher profile.

    Name, login, secret and avatar live on the paired ``users`` row and are
    exposed here as read-only properties.
    """
    __tablename__ = "teachers"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Relationships
    user = relationship("User", back_populates="teacher")
    subject_links = relationship(
        "TeacherSubject", back_populates="teacher",
        cascade="all, delete-orphan", order_by="TeacherSubject.seq"
    )
    class_links = relationship(
        "TeacherClass", back_populates="teacher",
        cascade="all, delete-orphan", order_by="TeacherClass.seq"
    )

    @property
    def display_name(self):
        return self.user.display_name

    @property
    def login_name(self):
        return self.user.login_name

    @property
    def secret(self):
        return self.user.secret

    @property
    def avatar_glyph(self):
        return self.user.avatar_glyph

    @property
    def subjects(self):
        return [link.subject for link in self.subject_links]

    @property
    def class_ids(self):
        return [link.class_id for link in self.class_links]

    def __repr__(self):
        return f"<Teacher(id='{self.id}', subjects={self.subjects})>"

    def to_dict(self):
        return {
            "id": self.id,
            "display_name": self.display_name,
            "login_name": self.login_name,
            "avatar_glyph": self.avatar_glyph,
            "subjects": self.subjects,
            "class_ids": self.class_ids,
        }


class TeacherSubject(Base):
    """Subjects a teacher is allowed to grade."""
    __tablename__ = "teacher_subjects"
    __table_args__ = (UniqueConstraint("teacher_id", "subject", name="uq_teacher_subject"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(String(32), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(255), nullable=False)

    teacher = relationship("Teacher", back_populates="subject_links")

    def __repr__(self):
        return f"<TeacherSubject(teacher_id='{self.teacher_id}', subject='{self.subject}')>"


class TeacherClass(Base):
    """
    Association table linking teachers to the classes they teach.
    """
    __tablename__ = "teacher_classes"
    __table_args__ = (UniqueConstraint("teacher_id", "class_id", name="uq_teacher_class"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(String(32), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(String(32), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)

    teacher = relationship("Teacher", back_populates="class_links")
    school_class = relationship("SchoolClass", back_populates="teacher_links")

    def __repr__(self):
        return f"<TeacherClass(teacher_id='{self.teacher_id}', class_id='{self.class_id}')>"


class Student(Base):
    """
    Students table - role-specific half of a student profile.

    Attributes:
        id: Same value as the paired User.id
        class_id: The one class the student belongs to
    """
    __tablename__ = "students"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    class_id = Column(String(32), ForeignKey("classes.id"), nullable=False)

    # Relationships
    user = relationship("User", back_populates="student")
    school_class = relationship("SchoolClass", back_populates="students")
    grades = relationship(
        "Grade", back_populates="student", cascade="all, delete-orphan", order_by="Grade.seq"
    )

    @property
    def display_name(self):
        return self.user.display_name

    @property
    def login_name(self):
        return self.user.login_name

    @property
    def secret(self):
        return self.user.secret

    @property
    def avatar_glyph(self):
        return self.user.avatar_glyph

    def __repr__(self):
        return f"<Student(id='{self.id}', class_id='{self.class_id}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "display_name": self.display_name,
            "login_name": self.login_name,
            "avatar_glyph": self.avatar_glyph,
            "class_id": self.class_id,
            "class_name": self.school_class.name if self.school_class else None,
        }


class Grade(Base):
    """
    Grades table - an append-only ledger.

    Attributes:
        id: Unique identifier
        student_id: Student who received the grade
        subject: Subject name
        value: Integer grade between 2 and 5
        date: When the grade was recorded
        teacher_id: Teacher who recorded it (cleared if the teacher is deleted)
    """
    __tablename__ = "grades"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=new_id)
    student_id = Column(String(32), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(255), nullable=False)
    value = Column(Integer, nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.now)
    teacher_id = Column(String(32), ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    student = relationship("Student", back_populates="grades")

    def __repr__(self):
        return f"<Grade(id='{self.id}', student_id='{self.student_id}', subject='{self.subject}', value={self.value})>"

    def to_dict(self):
        """Convert grade to dictionary for API responses."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "student_name": self.student.display_name if self.student else None,
            "subject": self.subject,
            "value": self.value,
            "date": self.date.isoformat() if self.date else None,
            "teacher_id": self.teacher_id,
        }


class Schedule(Base):
    """
    Lesson slots of the weekly timetable.

    Attributes:
        class_id: Class attending the lesson
        weekday: One of the six school days
        time: Start time, "HH:MM"
        subject: Subject taught
    """
    __tablename__ = "schedules"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=new_id)
    class_id = Column(String(32), ForeignKey("classes.id"), nullable=False)
    weekday = Column(String(16), nullable=False)
    time = Column(String(5), nullable=False)
    subject = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Schedule(id='{self.id}', class_id='{self.class_id}', weekday='{self.weekday}', time='{self.time}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "class_id": self.class_id,
            "weekday": self.weekday,
            "time": self.time,
            "subject": self.subject,
        }


class Homework(Base):
    """Homework assignments given to a class."""
    __tablename__ = "homework"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=new_id)
    class_id = Column(String(32), ForeignKey("classes.id"), nullable=False)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    due_date = Column(Date, nullable=False)

    def __repr__(self):
        return f"<Homework(id='{self.id}', class_id='{self.class_id}', subject='{self.subject}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "class_id": self.class_id,
            "subject": self.subject,
            "description": self.description,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }
