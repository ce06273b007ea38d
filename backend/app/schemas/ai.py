from typing import Literal, Optional
from pydantic import BaseModel

from .course import ModuleCreate, QuizQuestionCreate


class CourseContentRequest(BaseModel):
    topic: str


class GeneratedCourseContent(BaseModel):
    description: str
    modules: list[ModuleCreate]


class QuizGenerationRequest(BaseModel):
    content: str


class GeneratedQuiz(BaseModel):
    questions: list[QuizQuestionCreate]


class AiMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatRequest(BaseModel):
    history: list[AiMessage]
    course_id: Optional[int] = None


class ChatResponse(BaseModel):
    text: str


class DiscussionTopics(BaseModel):
    topics: list[str]
