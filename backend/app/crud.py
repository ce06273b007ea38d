"""Asynchronous CRUD helpers for the application's data models.

Each function in this module encapsulates a specific database operation
using SQLModel and SQLAlchemy.  Centralizing the logic keeps route
handlers light and makes behavior easier to test.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, delete
from sqlalchemy.orm import selectinload
from sqlalchemy import func, or_
from app.models import (
    User,
    Course,
    CourseModule,
    QuizQuestion,
    Review,
    DiscussionPost,
    UserProgress,
    Notification,
    ExternalResource,
    Settings,
)
from app.auth import get_password_hash


async def get_settings(db: AsyncSession) -> Settings:
    """Fetch the singleton settings record, creating it if necessary."""
    result = await db.execute(select(Settings).where(Settings.id == 1))
    settings = result.scalar_one_or_none()
    if not settings:
        settings = Settings()
        db.add(settings)
        await db.commit()
        await db.refresh(settings)
    return settings


async def save_settings(db: AsyncSession, settings: Settings) -> Settings:
    """Persist settings changes and return the refreshed object."""

    db.add(settings)
    await db.commit()
    await db.refresh(settings)
    return settings


# --- Users -------------------------------------------------------------------

async def create_user(db: AsyncSession, user: User):
    """Create a new user, hashing the password if it is still plain text."""

    if not user.password_hash.startswith("$2b$"):
        user.password_hash = get_password_hash(user.password_hash)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user_by_email(db: AsyncSession, email: str):
    """Return a user by email or ``None`` if not found."""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Load a user by primary key."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def count_users(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(User))
    return result.scalar()


async def get_all_users(
    db: AsyncSession, search: str | None = None, status: str = "all"
) -> list[User]:
    """Return users ordered by id, optionally filtered.

    ``search`` matches name or email case-insensitively and ``status`` is
    one of ``all``, ``approved`` or ``pending``.
    """

    stmt = select(User).order_by(User.id)
    if search:
        like = f"%{search}%"
        stmt = stmt.where(or_(User.name.ilike(like), User.email.ilike(like)))
    if status == "approved":
        stmt = stmt.where(User.approved == True)  # noqa: E712
    elif status == "pending":
        stmt = stmt.where(User.approved == False)  # noqa: E712
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_approved_employees(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.role == "employee", User.approved == True)  # noqa: E712
        .order_by(User.id)
    )
    return result.scalars().all()


async def get_leaderboard(db: AsyncSession, limit: int | None = None) -> list[User]:
    """Approved employees ordered by points, highest first."""
    stmt = (
        select(User)
        .where(User.role == "employee", User.approved == True)  # noqa: E712
        .order_by(User.points.desc(), User.name)
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()


async def save_user(db: AsyncSession, user: User) -> User:
    """Persist changes to an existing user."""

    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user: User) -> None:
    """Remove a user together with their progress and notifications."""

    await db.execute(delete(UserProgress).where(UserProgress.user_id == user.id))
    await db.execute(delete(Notification).where(Notification.user_id == user.id))
    await db.delete(user)
    await db.commit()


# --- Courses -----------------------------------------------------------------

def _course_query():
    return select(Course).options(
        selectinload(Course.modules),
        selectinload(Course.questions),
        selectinload(Course.reviews),
    )


async def get_course(db: AsyncSession, course_id: int) -> Course | None:
    """Load a course with modules, quiz and reviews eagerly loaded."""
    result = await db.execute(_course_query().where(Course.id == course_id))
    return result.scalar_one_or_none()


async def get_all_courses(db: AsyncSession) -> list[Course]:
    result = await db.execute(_course_query().order_by(Course.id))
    return result.scalars().all()


async def count_courses(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Course))
    return result.scalar()


def _build_modules(course_id: int, modules: list[dict]) -> list[CourseModule]:
    return [
        CourseModule(
            course_id=course_id,
            position=index,
            title=m["title"],
            content=m["content"],
        )
        for index, m in enumerate(modules)
    ]


def _build_questions(course_id: int, questions: list[dict]) -> list[QuizQuestion]:
    return [
        QuizQuestion(
            course_id=course_id,
            position=index,
            question=q["question"],
            options=list(q["options"]),
            correct_answer=q["correct_answer"],
        )
        for index, q in enumerate(questions)
    ]


async def create_course(
    db: AsyncSession,
    course: Course,
    modules: list[dict],
    questions: list[dict],
) -> Course:
    """Create a course with its ordered modules and quiz in one transaction."""
    db.add(course)
    await db.flush()  # ensure course.id is populated
    db.add_all(_build_modules(course.id, modules))
    db.add_all(_build_questions(course.id, questions))
    await db.commit()
    db.expunge(course)
    return await get_course(db, course.id)


def _sync_modules(course: Course, modules: list[dict]) -> list[CourseModule]:
    """Update modules in place by id and return the rows no longer listed.

    Keeping ids stable lets learners' completed module ids survive an edit.
    """
    existing = {m.id: m for m in course.modules}
    kept = []
    for index, data in enumerate(modules):
        row = existing.pop(data.get("id"), None)
        if row is None:
            row = CourseModule(course_id=course.id, title="", content="")
        row.position = index
        row.title = data["title"]
        row.content = data["content"]
        kept.append(row)
    course.modules = kept
    return list(existing.values())


async def update_course(
    db: AsyncSession,
    course: Course,
    fields: dict,
    modules: list[dict] | None = None,
    questions: list[dict] | None = None,
) -> Course:
    """Apply field changes to a course loaded with :func:`get_course`.

    A given module list is matched to the stored modules by ``id``: known
    modules are edited in place, new ones are inserted and missing ones
    deleted.  A given quiz replaces the old one.
    """
    for field, value in fields.items():
        setattr(course, field, value)
    db.add(course)
    if modules is not None:
        for row in _sync_modules(course, modules):
            await db.delete(row)
    if questions is not None:
        for row in course.questions:
            await db.delete(row)
        course.questions = _build_questions(course.id, questions)
    await db.commit()
    db.expunge(course)
    return await get_course(db, course.id)


async def delete_course(db: AsyncSession, course: Course) -> None:
    """Remove a course and everything that belongs to it."""
    course_id = course.id
    db.expunge(course)
    await db.execute(delete(UserProgress).where(UserProgress.course_id == course_id))
    await db.execute(delete(Review).where(Review.course_id == course_id))
    await db.execute(
        delete(DiscussionPost).where(DiscussionPost.course_id == course_id)
    )
    await db.execute(delete(QuizQuestion).where(QuizQuestion.course_id == course_id))
    await db.execute(delete(CourseModule).where(CourseModule.course_id == course_id))
    await db.execute(delete(Course).where(Course.id == course_id))
    await db.commit()


async def get_reviews_for_course(db: AsyncSession, course_id: int) -> list[Review]:
    result = await db.execute(
        select(Review)
        .where(Review.course_id == course_id)
        .order_by(Review.timestamp.desc())
    )
    return result.scalars().all()


# --- Discussion --------------------------------------------------------------

async def get_posts_for_course(
    db: AsyncSession, course_id: int
) -> list[DiscussionPost]:
    result = await db.execute(
        select(DiscussionPost)
        .where(DiscussionPost.course_id == course_id)
        .order_by(DiscussionPost.timestamp, DiscussionPost.id)
    )
    return result.scalars().all()


async def get_post(db: AsyncSession, post_id: int) -> DiscussionPost | None:
    result = await db.execute(
        select(DiscussionPost).where(DiscussionPost.id == post_id)
    )
    return result.scalar_one_or_none()


async def create_post(db: AsyncSession, post: DiscussionPost) -> DiscussionPost:
    db.add(post)
    await db.commit()
    await db.refresh(post)
    return post


# --- Progress ----------------------------------------------------------------

async def get_progress(
    db: AsyncSession, user_id: int, course_id: int
) -> UserProgress | None:
    result = await db.execute(
        select(UserProgress).where(
            UserProgress.user_id == user_id,
            UserProgress.course_id == course_id,
        )
    )
    return result.scalar_one_or_none()


async def get_progress_for_user(db: AsyncSession, user_id: int) -> list[UserProgress]:
    result = await db.execute(
        select(UserProgress)
        .where(UserProgress.user_id == user_id)
        .order_by(UserProgress.course_id)
    )
    return result.scalars().all()


async def get_completed_course_ids(db: AsyncSession, user_id: int) -> list[int]:
    """Ids of courses whose quiz the user has taken at least once."""
    result = await db.execute(
        select(UserProgress.course_id).where(
            UserProgress.user_id == user_id,
            UserProgress.quiz_score.is_not(None),
        )
    )
    return list(result.scalars().all())


async def get_all_progress(db: AsyncSession) -> list[UserProgress]:
    result = await db.execute(
        select(UserProgress).order_by(UserProgress.user_id, UserProgress.course_id)
    )
    return result.scalars().all()


# --- Notifications -----------------------------------------------------------

async def create_notification(
    db: AsyncSession, notification: Notification
) -> Notification:
    """Persist a new notification."""

    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification


async def get_notification(
    db: AsyncSession, notification_id: int
) -> Notification | None:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    return result.scalar_one_or_none()


async def list_notifications(
    db: AsyncSession, user_id: int, unread_only: bool = False
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read == False)  # noqa: E712
    stmt = stmt.order_by(Notification.timestamp.desc(), Notification.id.desc())
    result = await db.execute(stmt)
    return result.scalars().all()


async def mark_notification_read(
    db: AsyncSession, notification: Notification
) -> Notification:
    notification.read = True
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_notifications_read(db: AsyncSession, user_id: int) -> int:
    """Mark every unread notification of a user as read; return how many."""
    unread = await list_notifications(db, user_id, unread_only=True)
    for notification in unread:
        notification.read = True
        db.add(notification)
    await db.commit()
    return len(unread)


# --- External resources ------------------------------------------------------

async def get_all_resources(db: AsyncSession) -> list[ExternalResource]:
    result = await db.execute(select(ExternalResource).order_by(ExternalResource.id))
    return result.scalars().all()


async def get_resource(
    db: AsyncSession, resource_id: int
) -> ExternalResource | None:
    result = await db.execute(
        select(ExternalResource).where(ExternalResource.id == resource_id)
    )
    return result.scalar_one_or_none()


async def save_resource(
    db: AsyncSession, resource: ExternalResource
) -> ExternalResource:
    db.add(resource)
    await db.commit()
    await db.refresh(resource)
    return resource


async def delete_resource(db: AsyncSession, resource: ExternalResource) -> None:
    await db.delete(resource)
    await db.commit()


# --- Seed content ------------------------------------------------------------

async def ensure_course_content(db: AsyncSession) -> None:
    """Seed the catalog and resource library on a fresh database."""

    from app.course_content import SAMPLE_COURSES, SAMPLE_RESOURCES

    if await count_courses(db) == 0:
        for data in SAMPLE_COURSES:
            course = Course(
                title=data["title"],
                description=data["description"],
                image_url=data.get("image_url"),
            )
            db.add(course)
            await db.flush()
            db.add_all(_build_modules(course.id, data["modules"]))
            db.add_all(_build_questions(course.id, data["quiz"]))
    result = await db.execute(select(func.count()).select_from(ExternalResource))
    if result.scalar() == 0:
        for data in SAMPLE_RESOURCES:
            db.add(ExternalResource(**data))
    await db.commit()
