"""Course catalog, reviews and discussion forum."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.auth import get_current_user, require_role
from app.errors import NotFound
from app.models import Course, DiscussionPost, User
from app.schemas import (
    CourseCreate,
    CourseUpdate,
    CourseRead,
    CourseAdminRead,
    ReviewRead,
    DiscussionPostCreate,
    DiscussionPostRead,
)
from app.crud import (
    get_course,
    get_all_courses,
    create_course,
    update_course,
    delete_course,
    get_reviews_for_course,
    get_posts_for_course,
    get_post,
    create_post,
    get_approved_employees,
)
from app.ledger import ProgressLedger, get_ledger
from app.notifications import notify, NOTIFICATION_NEW_COURSE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


async def get_course_or_404(db: AsyncSession, course_id: int) -> Course:
    course = await get_course(db, course_id)
    if course is None:
        raise NotFound("This course is no longer available.", code="course_not_found")
    return course


def serialize_course(course: Course, include_answers: bool = False) -> CourseRead:
    ratings = [r.rating for r in course.reviews]
    data = {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "image_url": course.image_url,
        "textbook_url": course.textbook_url,
        "textbook_name": course.textbook_name,
        "created_at": course.created_at,
        "modules": course.modules,
        "quiz": course.questions,
        "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else None,
        "review_count": len(ratings),
    }
    model = CourseAdminRead if include_answers else CourseRead
    return model.model_validate(data, from_attributes=True)


def build_discussion_tree(posts: list[DiscussionPost]) -> list[DiscussionPostRead]:
    """Nest replies under their parents, keeping posting order."""
    nodes = {
        p.id: DiscussionPostRead(
            id=p.id,
            course_id=p.course_id,
            parent_id=p.parent_id,
            author_id=p.author_id,
            author_name=p.author_name,
            text=p.text,
            timestamp=p.timestamp,
            replies=[],
        )
        for p in posts
    }
    roots = []
    for p in posts:
        node = nodes[p.id]
        parent = nodes.get(p.parent_id) if p.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


@router.get("/", response_model=list[CourseRead])
async def list_courses(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return [serialize_course(c) for c in await get_all_courses(db)]


@router.get("/{course_id}", response_model=CourseRead)
async def read_course(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    course = await get_course_or_404(db, course_id)
    return serialize_course(course)


@router.get("/{course_id}/edit", response_model=CourseAdminRead)
async def read_course_for_editing(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    """Full course including the quiz answers, for the admin editor."""
    course = await get_course_or_404(db, course_id)
    return serialize_course(course, include_answers=True)


@router.post("/", response_model=CourseAdminRead)
async def add_course(
    data: CourseCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = Course(**data.model_dump(exclude={"modules", "quiz"}))
    course = await create_course(
        db,
        course,
        [m.model_dump() for m in data.modules],
        [q.model_dump() for q in data.quiz],
    )
    logger.info("Course %s created by %s", course.id, current_user.email)
    for employee in await get_approved_employees(db):
        await notify(
            db,
            employee.id,
            NOTIFICATION_NEW_COURSE,
            f'A new course is available: "{course.title}".',
            ledger.hub,
        )
    return serialize_course(course, include_answers=True)


@router.put("/{course_id}", response_model=CourseAdminRead)
async def edit_course(
    course_id: int,
    data: CourseUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    course = await get_course_or_404(db, course_id)
    fields = data.model_dump(exclude_unset=True, exclude={"modules", "quiz"})
    modules = [m.model_dump() for m in data.modules] if data.modules is not None else None
    questions = [q.model_dump() for q in data.quiz] if data.quiz is not None else None
    course = await update_course(db, course, fields, modules, questions)
    return serialize_course(course, include_answers=True)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_course(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    course = await get_course_or_404(db, course_id)
    await delete_course(db, course)
    # Progress rows for the course are gone; drop their mirrored copies.
    ledger.cache.clear()
    logger.info("Course %s deleted by %s", course_id, current_user.email)


@router.get("/{course_id}/reviews", response_model=list[ReviewRead])
async def list_reviews(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    await get_course_or_404(db, course_id)
    return await get_reviews_for_course(db, course_id)


@router.get("/{course_id}/discussion", response_model=list[DiscussionPostRead])
async def list_discussion(
    course_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    await get_course_or_404(db, course_id)
    return build_discussion_tree(await get_posts_for_course(db, course_id))


@router.post("/{course_id}/discussion", response_model=DiscussionPostRead)
async def add_post(
    course_id: int,
    data: DiscussionPostCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    await get_course_or_404(db, course_id)
    post = await create_post(
        db,
        DiscussionPost(
            course_id=course_id,
            author_id=current_user.id,
            author_name=current_user.name,
            text=data.text,
        ),
    )
    return build_discussion_tree([post])[0]


@router.post(
    "/{course_id}/discussion/{post_id}/replies", response_model=DiscussionPostRead
)
async def add_reply(
    course_id: int,
    post_id: int,
    data: DiscussionPostCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    await get_course_or_404(db, course_id)
    parent = await get_post(db, post_id)
    if parent is None or parent.course_id != course_id:
        raise NotFound("Post not found", code="post_not_found")
    reply = await create_post(
        db,
        DiscussionPost(
            course_id=course_id,
            parent_id=parent.id,
            author_id=current_user.id,
            author_name=current_user.name,
            text=data.text,
        ),
    )
    return build_discussion_tree([reply])[0]
