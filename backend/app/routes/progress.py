"""Learner progress: views, module completion, quizzes, ratings, certificates."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.auth import get_current_user
from app.errors import NotFound, ValidationFailed
from app.models import User
from app.schemas import (
    ProgressRead,
    ProgressResponse,
    QuizSubmission,
    QuizResult,
    RatingCreate,
    RatingResult,
    CertificateData,
)
from app.ledger import ProgressLedger, get_ledger, format_completion_date
from app.routes.courses import get_course_or_404

router = APIRouter(tags=["progress"])


@router.get("/progress/me", response_model=list[ProgressRead])
async def my_progress(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    progress = await ledger.get_user_progress(db, current_user.id)
    return list(progress.values())


@router.get("/progress/me/{course_id}", response_model=ProgressRead)
async def my_course_progress(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    progress = await ledger.get_progress(db, current_user.id, course_id)
    if progress is None:
        await get_course_or_404(db, course_id)
        return ProgressRead(user_id=current_user.id, course_id=course_id)
    return progress


@router.post("/courses/{course_id}/view", response_model=ProgressResponse)
async def view_course(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    return await ledger.record_view(db, current_user, course)


@router.post(
    "/courses/{course_id}/modules/{module_id}/complete",
    response_model=ProgressResponse,
)
async def complete_module(
    course_id: int,
    module_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    if module_id not in {m.id for m in course.modules}:
        raise NotFound("Module not found", code="module_not_found")
    return await ledger.record_module_completion(db, current_user, course.id, module_id)


@router.post("/courses/{course_id}/quiz", response_model=QuizResult)
async def submit_quiz(
    course_id: int,
    submission: QuizSubmission,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    questions = course.questions
    if not questions:
        raise ValidationFailed("Quiz Not Available", code="quiz_not_available")
    progress = await ledger.get_progress(db, current_user.id, course.id)
    completed = set(progress.completed_modules) if progress else set()
    if not {m.id for m in course.modules} <= completed:
        raise ValidationFailed(
            "Complete all modules to unlock the quiz.", code="quiz_locked"
        )
    if len(submission.answers) != len(questions):
        raise ValidationFailed(
            "Answer every question before finishing the quiz.",
            code="quiz_incomplete",
        )
    correct = sum(
        1 for q, answer in zip(questions, submission.answers) if answer == q.correct_answer
    )
    score = correct / len(questions) * 100
    return await ledger.record_quiz_completion(db, current_user, course, score)


@router.post("/courses/{course_id}/rating", response_model=RatingResult)
async def rate_course(
    course_id: int,
    data: RatingCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    return await ledger.record_rating(db, current_user, course, data.rating, data.comment)


@router.get("/courses/{course_id}/certificate", response_model=CertificateData)
async def course_certificate(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    progress = await ledger.get_progress(db, current_user.id, course.id)
    if progress is None or progress.completion_date is None:
        raise NotFound(
            "Complete the course quiz to earn a certificate.",
            code="certificate_not_found",
        )
    return CertificateData(
        course_id=course.id,
        employee_name=current_user.name,
        course_name=course.title,
        completion_date=format_completion_date(progress.completion_date),
    )
