"""Progress & reward ledger.

Turns learner events (course viewed, module finished, quiz submitted,
course rated) into progress updates, point credits, badge grants and
notifications.  Each operation is written as a single database
transaction: if the commit fails nothing is kept, the cached copy of the
progress record is dropped and :class:`~app.errors.StoreError` is raised.
Notifications are only pushed to listeners after a successful commit.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.badges import BadgeContext, evaluate_badges
from app.crud import (
    count_courses,
    get_completed_course_ids,
    get_progress as load_progress,
    get_progress_for_user,
    get_user,
)
from app.errors import NotFound, StoreError, ValidationFailed
from app.models import Course, Notification, Review, User, UserProgress
from app.notifications import (
    NOTIFICATION_BADGE,
    NOTIFICATION_CERTIFICATE,
    NotificationHub,
    hub,
)
from app.schemas import (
    BadgeRead,
    CertificateData,
    NotificationRead,
    ProgressRead,
    ProgressResponse,
    QuizResult,
    RatingResult,
    ReviewRead,
    Toast,
)

logger = logging.getLogger(__name__)

MODULE_POINTS = 10
COURSE_COMPLETION_POINTS = 100


def format_completion_date(value: datetime) -> str:
    """Render a date the way certificates print it, e.g. ``May 4, 2025``."""
    return f"{value:%B} {value.day}, {value.year}"


class ProgressCache:
    """Read-through mirror of ``user_progress`` rows keyed by (user, course).

    The database stays the source of truth: entries are replaced after each
    successful write and dropped whenever a write fails.
    """

    def __init__(self):
        self._entries: dict[tuple[int, int], ProgressRead] = {}

    def get(self, user_id: int, course_id: int) -> ProgressRead | None:
        entry = self._entries.get((user_id, course_id))
        return entry.model_copy(deep=True) if entry is not None else None

    def put(self, progress: UserProgress | ProgressRead) -> ProgressRead:
        snapshot = ProgressRead.model_validate(progress)
        self._entries[(snapshot.user_id, snapshot.course_id)] = snapshot
        return snapshot.model_copy(deep=True)

    def invalidate(self, user_id: int, course_id: int | None = None) -> None:
        if course_id is not None:
            self._entries.pop((user_id, course_id), None)
            return
        for key in [k for k in self._entries if k[0] == user_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ProgressLedger:
    def __init__(self, notification_hub: NotificationHub | None = None):
        self.cache = ProgressCache()
        self.hub = notification_hub or hub

    # --- reads -------------------------------------------------------------

    async def get_progress(
        self, db: AsyncSession, user_id: int, course_id: int
    ) -> ProgressRead | None:
        cached = self.cache.get(user_id, course_id)
        if cached is not None:
            return cached
        progress = await load_progress(db, user_id, course_id)
        if progress is None:
            return None
        return self.cache.put(progress)

    async def get_user_progress(
        self, db: AsyncSession, user_id: int
    ) -> dict[int, ProgressRead]:
        """Reload every progress record of a user and refresh the cache."""
        records = await get_progress_for_user(db, user_id)
        return {p.course_id: self.cache.put(p) for p in records}

    # --- writes ------------------------------------------------------------

    async def record_view(
        self, db: AsyncSession, user: User, course: Course
    ) -> ProgressResponse:
        """Stamp the course as recently viewed, starting progress if needed."""
        progress = await self._load_or_start(db, user.id, course.id)
        progress.recently_viewed = datetime.utcnow()
        await self._commit(db, (user.id, course.id), progress)
        return ProgressResponse(progress=self.cache.put(progress))

    async def record_module_completion(
        self, db: AsyncSession, user: User, course_id: int, module_id: int
    ) -> ProgressResponse:
        """Mark a module done and credit its points, once per module."""
        progress = await self._load_or_start(db, user.id, course_id)
        if module_id in progress.completed_modules:
            return ProgressResponse(progress=ProgressRead.model_validate(progress))

        progress.completed_modules = [*progress.completed_modules, module_id]
        self._credit(user, MODULE_POINTS)
        await self._commit(db, (user.id, course_id), progress, user)
        logger.info(
            "User %s completed module %s of course %s", user.id, module_id, course_id
        )
        return ProgressResponse(
            progress=self.cache.put(progress), points_awarded=MODULE_POINTS
        )

    async def record_quiz_completion(
        self, db: AsyncSession, user: User, course: Course, score: float
    ) -> QuizResult:
        """Store a quiz score and hand out completion points and badges.

        The completion date and the completion bonus belong to the first
        attempt only; later attempts update the score and may still earn
        badges the learner does not hold yet.
        """
        if not 0 <= score <= 100:
            raise ValidationFailed("Quiz score must be between 0 and 100.")

        progress = await self._load_or_start(db, user.id, course.id)
        completed_ids = set(await get_completed_course_ids(db, user.id))
        catalog_size = await count_courses(db)

        first_completion = progress.quiz_score is None
        progress.quiz_score = score
        if first_completion:
            progress.completion_date = datetime.utcnow()
        elif progress.completion_date is None:
            logger.warning(
                "Progress of user %s on course %s had a score but no completion date",
                user.id,
                course.id,
            )
            progress.completion_date = datetime.utcnow()
        completed_ids.add(course.id)

        points = 0
        notifications: list[Notification] = []
        toasts: list[Toast] = []
        if first_completion:
            points += COURSE_COMPLETION_POINTS
            notifications.append(
                Notification(
                    user_id=user.id,
                    type=NOTIFICATION_CERTIFICATE,
                    message=f'Congratulations! You earned a certificate for "{course.title}".',
                )
            )

        new_badges = evaluate_badges(
            BadgeContext(
                completed_count=len(completed_ids),
                score=score,
                catalog_size=catalog_size,
                held_badges=frozenset(user.badges or []),
            )
        )
        for badge in new_badges:
            points += badge["points"]
            toasts.append(Toast(message=f"Badge Unlocked: {badge['name']}!", type="success"))
            notifications.append(
                Notification(
                    user_id=user.id,
                    type=NOTIFICATION_BADGE,
                    message=f'You earned the "{badge["name"]}" badge and {badge["points"]} points!',
                )
            )
        if new_badges:
            user.badges = [*(user.badges or []), *(b["id"] for b in new_badges)]
        self._credit(user, points)

        await self._commit(db, (user.id, course.id), progress, user, *notifications)
        logger.info(
            "User %s scored %s on course %s (first=%s, points=%s, badges=%s)",
            user.id,
            score,
            course.id,
            first_completion,
            points,
            [b["id"] for b in new_badges],
        )
        await self._publish(notifications)

        return QuizResult(
            score=score,
            first_completion=first_completion,
            points_awarded=points,
            new_badges=[BadgeRead(**b) for b in new_badges],
            progress=self.cache.put(progress),
            certificate=CertificateData(
                course_id=course.id,
                employee_name=user.name,
                course_name=course.title,
                completion_date=format_completion_date(progress.completion_date),
            ),
            toasts=toasts,
        )

    async def record_rating(
        self,
        db: AsyncSession,
        user: User,
        course: Course,
        rating: int,
        comment: str = "",
    ) -> RatingResult:
        """Store the learner's rating and append a review to the course."""
        if not 1 <= rating <= 5:
            raise ValidationFailed("Rating must be between 1 and 5.")

        progress = await self._load_or_start(db, user.id, course.id)
        progress.rating = rating
        review = Review(
            course_id=course.id,
            author_id=user.id,
            author_name=user.name,
            rating=rating,
            comment=comment,
            timestamp=datetime.utcnow(),
        )
        await self._commit(db, (user.id, course.id), progress, review)
        return RatingResult(
            progress=self.cache.put(progress),
            review=ReviewRead.model_validate(review),
            toasts=[Toast(message="Thank you for your review!", type="success")],
        )

    async def award_points(self, db: AsyncSession, user_id: int, delta: int) -> User:
        if delta < 0:
            raise ValidationFailed("Points can only be added.")
        user = await get_user(db, user_id)
        if user is None:
            raise NotFound("User not found", code="user_not_found")
        self._credit(user, delta)
        await self._commit(db, None, user)
        logger.info("Awarded %s points to user %s", delta, user_id)
        return user

    # --- helpers -----------------------------------------------------------

    async def _load_or_start(
        self, db: AsyncSession, user_id: int, course_id: int
    ) -> UserProgress:
        progress = await load_progress(db, user_id, course_id)
        if progress is None:
            progress = UserProgress(
                user_id=user_id,
                course_id=course_id,
                completed_modules=[],
                quiz_score=None,
            )
        return progress

    @staticmethod
    def _credit(user: User, delta: int) -> None:
        user.points = (user.points or 0) + delta

    async def _commit(
        self, db: AsyncSession, key: tuple[int, int] | None, *instances
    ) -> None:
        db.add_all(instances)
        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            if key is not None:
                self.cache.invalidate(*key)
            logger.warning("Ledger write failed for %s: %s", key, exc)
            raise StoreError("Could not save your progress. Please try again.") from exc

    async def _publish(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            await self.hub.publish(NotificationRead.model_validate(notification))


ledger = ProgressLedger()


def get_ledger() -> ProgressLedger:
    """FastAPI dependency returning the process-wide ledger."""
    return ledger
