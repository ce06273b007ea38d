"""Tests for the progress & reward ledger."""

import asyncio
import logging
import pathlib
import sys
from datetime import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel import SQLModel, select

# Allow importing the app package
sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from app.models import User, Course, Notification, Review, UserProgress
from app.crud import create_course, get_progress
from app.errors import NotFound, StoreError, ValidationFailed
from app.ledger import ProgressLedger, format_completion_date
from app.notifications import NotificationHub, NOTIFICATION_BADGE, NOTIFICATION_CERTIFICATE


async def _setup_test_db(course_count=1):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    TestSession = async_sessionmaker(engine, expire_on_commit=False)

    async with TestSession() as session:
        user = User(
            name="Aisha",
            email="aisha@example.com",
            password_hash="x",
            role="employee",
            approved=True,
        )
        session.add(user)
        await session.commit()
        for i in range(course_count):
            await create_course(
                session,
                Course(title=f"Course {i + 1}", description="Intro"),
                [
                    {"title": "Basics", "content": "<p>One</p>"},
                    {"title": "Practice", "content": "<p>Two</p>"},
                ],
                [{"question": "Q?", "options": ["A", "B"], "correct_answer": "A"}],
            )

    return TestSession


async def _load(session, course_id=1):
    user = await session.get(User, 1)
    course = await session.get(Course, course_id)
    return user, course


def test_first_completion_with_perfect_score():
    async def run():
        TestSession = await _setup_test_db(course_count=2)
        hub = NotificationHub()
        pushed = []
        hub.subscribe(1, pushed.append)
        ledger = ProgressLedger(hub)

        async with TestSession() as session:
            user, course = await _load(session)
            result = await ledger.record_quiz_completion(session, user, course, 100)

            assert result.first_completion is True
            assert result.points_awarded == 175
            assert sorted(b.id for b in result.new_badges) == ["first-course", "quiz-master"]
            assert [t.message for t in result.toasts] == [
                "Badge Unlocked: First Step!",
                "Badge Unlocked: Quiz Master!",
            ]
            assert result.certificate.employee_name == "Aisha"
            assert result.certificate.course_name == "Course 1"
            assert result.progress.completion_date is not None

        async with TestSession() as session:
            user = await session.get(User, 1)
            assert user.points == 175
            assert sorted(user.badges) == ["first-course", "quiz-master"]
            rows = (await session.execute(select(Notification))).scalars().all()
            types = sorted(n.type for n in rows)
            assert types == [NOTIFICATION_BADGE, NOTIFICATION_BADGE, NOTIFICATION_CERTIFICATE]

        assert len(pushed) == 3
        assert pushed[0].type == NOTIFICATION_CERTIFICATE

    asyncio.run(run())


def test_third_completion_grants_prolific_and_completionist():
    async def run():
        TestSession = await _setup_test_db(course_count=3)
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            for course_id, score in ((1, 70), (2, 90)):
                session.add(
                    UserProgress(
                        user_id=1,
                        course_id=course_id,
                        completed_modules=[],
                        quiz_score=score,
                        completion_date=datetime(2025, 1, course_id),
                    )
                )
            await session.commit()

        async with TestSession() as session:
            user, course = await _load(session, course_id=3)
            result = await ledger.record_quiz_completion(session, user, course, 80)

        assert sorted(b.id for b in result.new_badges) == [
            "completionist",
            "first-course",
            "prolific-learner",
        ]
        assert result.points_awarded == 100 + 25 + 75 + 150

    asyncio.run(run())


def test_module_completion_awards_points_once():
    async def run():
        TestSession = await _setup_test_db()
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            user, _ = await _load(session)
            first = await ledger.record_module_completion(session, user, 1, 1)
            second = await ledger.record_module_completion(session, user, 1, 1)

            assert first.points_awarded == 10
            assert second.points_awarded == 0
            assert second.progress.completed_modules == [1]

        async with TestSession() as session:
            user = await session.get(User, 1)
            assert user.points == 10
            progress = await get_progress(session, 1, 1)
            assert progress.completed_modules == [1]

    asyncio.run(run())


def test_retake_keeps_completion_date_and_badges():
    async def run():
        TestSession = await _setup_test_db(course_count=2)
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            user, course = await _load(session)
            first = await ledger.record_quiz_completion(session, user, course, 50)
            retake = await ledger.record_quiz_completion(session, user, course, 100)

        assert first.points_awarded == 125
        assert retake.first_completion is False
        assert retake.progress.quiz_score == 100
        assert retake.progress.completion_date == first.progress.completion_date
        assert retake.certificate.completion_date == first.certificate.completion_date
        # first-course is already held; only the perfect score adds a badge
        assert [b.id for b in retake.new_badges] == ["quiz-master"]
        assert retake.points_awarded == 50

        async with TestSession() as session:
            again = await ledger.record_quiz_completion(
                session, await session.get(User, 1), course, 100
            )
            user = await session.get(User, 1)

        assert again.new_badges == []
        assert again.points_awarded == 0
        assert user.points == 175
        assert user.badges.count("quiz-master") == 1

    asyncio.run(run())


def test_rating_appends_review():
    async def run():
        TestSession = await _setup_test_db()
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            user, course = await _load(session)
            await ledger.record_module_completion(session, user, 1, 2)
            result = await ledger.record_rating(session, user, course, 4, "Good")

        assert result.progress.rating == 4
        assert result.progress.completed_modules == [2]
        assert result.progress.quiz_score is None
        assert result.toasts[0].message == "Thank you for your review!"

        async with TestSession() as session:
            reviews = (await session.execute(select(Review))).scalars().all()
            assert len(reviews) == 1
            review = reviews[0]
            assert (review.author_id, review.author_name) == (1, "Aisha")
            assert (review.rating, review.comment) == (4, "Good")
            assert review.timestamp is not None

    asyncio.run(run())


def test_view_starts_progress_record():
    async def run():
        TestSession = await _setup_test_db()
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            user, course = await _load(session)
            assert await ledger.get_progress(session, 1, 1) is None
            result = await ledger.record_view(session, user, course)

        assert result.progress.recently_viewed is not None
        assert result.progress.completed_modules == []
        assert result.progress.quiz_score is None
        assert len(ledger.cache) == 1

    asyncio.run(run())


def test_validation_errors_leave_state_unchanged():
    async def run():
        TestSession = await _setup_test_db()
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            user, course = await _load(session)
            with pytest.raises(ValidationFailed):
                await ledger.record_quiz_completion(session, user, course, 120)
            with pytest.raises(ValidationFailed):
                await ledger.record_rating(session, user, course, 6)
            with pytest.raises(ValidationFailed):
                await ledger.award_points(session, 1, -5)
            with pytest.raises(NotFound):
                await ledger.award_points(session, 99, 5)

        async with TestSession() as session:
            user = await session.get(User, 1)
            assert user.points == 0
            assert await get_progress(session, 1, 1) is None

    asyncio.run(run())


def test_failed_write_aborts_and_invalidates_cache():
    async def run():
        TestSession = await _setup_test_db(course_count=2)
        hub = NotificationHub()
        pushed = []
        hub.subscribe(1, pushed.append)
        ledger = ProgressLedger(hub)

        async with TestSession() as session:
            user, course = await _load(session)
            await ledger.record_view(session, user, course)
            assert ledger.cache.get(1, 1) is not None

        async with TestSession() as session:
            user, course = await _load(session)

            async def failing_commit():
                raise SQLAlchemyError("disk full")

            session.commit = failing_commit
            with pytest.raises(StoreError):
                await ledger.record_quiz_completion(session, user, course, 100)

        assert ledger.cache.get(1, 1) is None
        assert pushed == []

        async with TestSession() as session:
            user = await session.get(User, 1)
            assert user.points == 0
            assert user.badges == []
            progress = await get_progress(session, 1, 1)
            assert progress.quiz_score is None
            assert progress.completion_date is None
            rows = (await session.execute(select(Notification))).scalars().all()
            assert rows == []

    asyncio.run(run())


def test_award_points_accumulates():
    async def run():
        TestSession = await _setup_test_db()
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            await ledger.award_points(session, 1, 20)
            user = await ledger.award_points(session, 1, 5)

        assert user.points == 25

    asyncio.run(run())


def test_format_completion_date():
    assert format_completion_date(datetime(2025, 5, 4, 13, 0)) == "May 4, 2025"


def test_scored_record_without_date_is_repaired_and_logged(caplog):
    async def run():
        TestSession = await _setup_test_db(course_count=2)
        ledger = ProgressLedger(NotificationHub())

        async with TestSession() as session:
            session.add(UserProgress(user_id=1, course_id=1, completed_modules=[], quiz_score=40))
            await session.commit()

        async with TestSession() as session:
            user, course = await _load(session)
            with caplog.at_level(logging.WARNING, logger="app.ledger"):
                result = await ledger.record_quiz_completion(session, user, course, 60)

        assert result.first_completion is False
        assert result.progress.completion_date is not None
        assert "had a score but no completion date" in caplog.text

    asyncio.run(run())
