"""Progress, quiz and certificate models returned by the ledger."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from .common import BadgeRead, Toast
from .course import ReviewRead


class ProgressRead(BaseModel):
    user_id: int
    course_id: int
    completed_modules: list[int] = []
    quiz_score: Optional[float] = None
    rating: Optional[int] = None
    recently_viewed: Optional[datetime] = None
    completion_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class CertificateData(BaseModel):
    course_id: int
    employee_name: str
    course_name: str
    completion_date: str


class ProgressResponse(BaseModel):
    progress: ProgressRead
    points_awarded: int = 0
    toasts: list[Toast] = []


class QuizSubmission(BaseModel):
    """Chosen option text per question, in quiz order."""

    answers: list[Optional[str]]


class QuizResult(BaseModel):
    score: float
    first_completion: bool
    points_awarded: int
    new_badges: list[BadgeRead]
    progress: ProgressRead
    certificate: CertificateData
    toasts: list[Toast] = []


class RatingCreate(BaseModel):
    rating: int
    comment: str = ""


class RatingResult(BaseModel):
    progress: ProgressRead
    review: ReviewRead
    toasts: list[Toast] = []
