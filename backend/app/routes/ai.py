"""AI helpers: course drafting and quizzes for admins, study assistant for all."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app import ai
from app.database import get_session
from app.auth import get_current_user, require_role
from app.errors import ValidationFailed
from app.models import User
from app.schemas import (
    CourseContentRequest,
    GeneratedCourseContent,
    QuizGenerationRequest,
    GeneratedQuiz,
    ChatRequest,
    ChatResponse,
    DiscussionTopics,
)
from app.crud import get_posts_for_course
from app.routes.courses import get_course_or_404

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/course-content", response_model=GeneratedCourseContent)
async def draft_course_content(
    data: CourseContentRequest,
    current_user: User = Depends(require_role("admin")),
):
    if not data.topic.strip():
        raise ValidationFailed("Please enter a course topic.")
    return await ai.generate_course_content(data.topic)


@router.post("/quiz", response_model=GeneratedQuiz)
async def draft_quiz(
    data: QuizGenerationRequest,
    current_user: User = Depends(require_role("admin")),
):
    if not data.content.strip():
        raise ValidationFailed(
            "Please add some content to the modules before generating a quiz."
        )
    return GeneratedQuiz(questions=await ai.generate_quiz(data.content))


@router.post("/chat", response_model=ChatResponse)
async def assistant_chat(
    data: ChatRequest,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not data.history:
        raise ValidationFailed("Ask a question to start the conversation.")
    context = None
    if data.course_id is not None:
        course = await get_course_or_404(db, data.course_id)
        context = {"title": course.title, "description": course.description}
    return ChatResponse(text=await ai.chat(data.history, context))


@router.get("/discussion-topics/{course_id}", response_model=DiscussionTopics)
async def discussion_topics(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    await get_course_or_404(db, course_id)
    posts = await get_posts_for_course(db, course_id)
    if not posts:
        raise ValidationFailed(
            "There are no posts to analyze yet.", code="discussion_empty"
        )
    text = "\n\n".join(p.text for p in posts)
    return DiscussionTopics(topics=await ai.analyze_discussion_topics(text))
