"""Database models used by the e-learning backend.

The models are defined with SQLModel (built on SQLAlchemy and Pydantic)
and represent users, courses with their modules, quizzes, reviews and
discussions, per-user progress and notifications.  Comments are kept
concise to avoid distracting from the field definitions.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON


class User(SQLModel, table=True):
    """Employee or administrator account."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    role: str = "employee"  # 'employee' or 'admin'
    approved: bool = False
    points: int = 0
    badges: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    profile_image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Course(SQLModel, table=True):
    """Admin-owned course made of ordered modules and a final quiz."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""
    image_url: Optional[str] = None
    textbook_url: Optional[str] = None
    textbook_name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    modules: List["CourseModule"] = Relationship(
        back_populates="course",
        sa_relationship_kwargs={"order_by": "CourseModule.position"},
    )
    questions: List["QuizQuestion"] = Relationship(
        back_populates="course",
        sa_relationship_kwargs={"order_by": "QuizQuestion.position"},
    )
    reviews: List["Review"] = Relationship(
        back_populates="course",
        sa_relationship_kwargs={"order_by": "Review.timestamp"},
    )


class CourseModule(SQLModel, table=True):
    """One content unit within a course."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    position: int = 0
    title: str
    content: str  # stored as HTML

    course: Course = Relationship(back_populates="modules")


class QuizQuestion(SQLModel, table=True):
    """Multiple choice question of a course's final quiz."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    position: int = 0
    question: str
    options: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    correct_answer: str

    course: Course = Relationship(back_populates="questions")


class Review(SQLModel, table=True):
    """Immutable course review left by a learner."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    author_id: int = Field(foreign_key="user.id")
    author_name: str
    rating: int
    comment: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    course: Course = Relationship(back_populates="reviews")


class DiscussionPost(SQLModel, table=True):
    """Forum post; replies point at their parent post."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    parent_id: Optional[int] = Field(default=None, foreign_key="discussionpost.id")
    author_id: int = Field(foreign_key="user.id")
    author_name: str
    text: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class UserProgress(SQLModel, table=True):
    """Per-user, per-course progress record."""

    __tablename__ = "user_progress"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    course_id: int = Field(foreign_key="course.id", primary_key=True)
    completed_modules: List[int] = Field(sa_column=Column(JSON), default_factory=list)
    quiz_score: Optional[float] = None  # set together with completion_date
    rating: Optional[int] = None
    recently_viewed: Optional[datetime] = None
    completion_date: Optional[datetime] = None


class Notification(SQLModel, table=True):
    """Message addressed to one user; only ``read`` changes after creation."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    type: str  # approval, certificate, new_course, badge, admin_message
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    read: bool = False


class ExternalResource(SQLModel, table=True):
    """Entry of the shared resource library."""

    __tablename__ = "external_resource"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""
    url: str
    type: str = "article"  # book, article or video


class Settings(SQLModel, table=True):
    """Singleton table storing site‑wide configuration values."""
    id: Optional[int] = Field(default=1, primary_key=True)
    site_name: str = "Zamzam Learning"
    public_registration_disabled: bool = False
