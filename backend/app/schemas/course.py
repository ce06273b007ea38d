"""Course catalog request and response models."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ModuleBase(BaseModel):
    title: str
    content: str


class ModuleCreate(ModuleBase):
    id: Optional[int] = None  # set to keep an existing module when editing


class ModuleRead(ModuleBase):
    id: int
    position: int

    class Config:
        from_attributes = True


class QuizQuestionBase(BaseModel):
    question: str
    options: list[str]


class QuizQuestionCreate(QuizQuestionBase):
    correct_answer: str


class QuizQuestionRead(QuizQuestionBase):
    """Quiz question as shown to learners, without the answer."""

    id: int
    position: int

    class Config:
        from_attributes = True


class QuizQuestionAdminRead(QuizQuestionRead):
    correct_answer: str


class ReviewRead(BaseModel):
    id: int
    course_id: int
    author_id: int
    author_name: str
    rating: int
    comment: str
    timestamp: datetime

    class Config:
        from_attributes = True


class CourseBase(BaseModel):
    title: str
    description: str = ""
    image_url: Optional[str] = None
    textbook_url: Optional[str] = None
    textbook_name: Optional[str] = None


class CourseCreate(CourseBase):
    modules: list[ModuleCreate] = []
    quiz: list[QuizQuestionCreate] = []


class CourseUpdate(BaseModel):
    """Partial update; ``modules``/``quiz`` replace the whole sequence."""

    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    textbook_url: Optional[str] = None
    textbook_name: Optional[str] = None
    modules: Optional[list[ModuleCreate]] = None
    quiz: Optional[list[QuizQuestionCreate]] = None


class CourseRead(CourseBase):
    id: int
    created_at: datetime
    modules: list[ModuleRead]
    quiz: list[QuizQuestionRead]
    average_rating: Optional[float] = None
    review_count: int = 0


class CourseAdminRead(CourseRead):
    quiz: list[QuizQuestionAdminRead]


class DiscussionPostCreate(BaseModel):
    text: str = Field(min_length=1)


class DiscussionPostRead(BaseModel):
    id: int
    course_id: int
    parent_id: Optional[int] = None
    author_id: int
    author_name: str
    text: str
    timestamp: datetime
    replies: list["DiscussionPostRead"] = []


DiscussionPostRead.model_rebuild()
