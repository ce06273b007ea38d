"""End-to-end tests for taking a course through the HTTP API."""

import asyncio
import pathlib
import sys

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

# Allow importing the app package
sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from app.main import app
from app.database import get_session
from app.ledger import ProgressLedger, get_ledger
from app.notifications import NotificationHub

COURSE = {
    "title": "Sukuk Fundamentals",
    "description": "Asset-backed certificates.",
    "modules": [
        {"title": "What is a Sukuk?", "content": "<p>Ownership certificates.</p>"},
        {"title": "Sukuk vs Bonds", "content": "<p>Asset backing.</p>"},
    ],
    "quiz": [
        {
            "question": "What does a Sukuk holder own?",
            "options": ["Debt", "A share of an asset"],
            "correct_answer": "A share of an asset",
        },
        {
            "question": "Are Sukuk interest-bearing?",
            "options": ["Yes", "No"],
            "correct_answer": "No",
        },
    ],
}


async def _setup_test_db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    TestSession = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_session():
        async with TestSession() as session:
            yield session

    test_ledger = ProgressLedger(NotificationHub())
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_ledger] = lambda: test_ledger

    return TestSession


async def _login(client, email, password):
    resp = await client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def _admin_and_employee(client):
    """Register the initial admin plus one approved employee."""
    resp = await client.post(
        "/register",
        json={"name": "Admin", "email": "admin@example.com", "password": "adminpass"},
    )
    assert resp.status_code == 200
    admin_headers = await _login(client, "admin@example.com", "adminpass")

    resp = await client.post(
        "/register",
        json={"name": "Fatima", "email": "fatima@example.com", "password": "pass"},
    )
    employee_id = resp.json()["id"]
    resp = await client.post(f"/admin/users/{employee_id}/approve", headers=admin_headers)
    assert resp.status_code == 200
    employee_headers = await _login(client, "fatima@example.com", "pass")
    return admin_headers, employee_headers


def test_complete_course_flow():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)

            resp = await client.post("/courses/", headers=admin_headers, json=COURSE)
            assert resp.status_code == 200
            course = resp.json()
            course_id = course["id"]
            module_ids = [m["id"] for m in course["modules"]]
            assert course["quiz"][0]["correct_answer"] == "A share of an asset"

            # Learners never see the answers
            resp = await client.get(f"/courses/{course_id}", headers=headers)
            assert resp.status_code == 200
            assert "correct_answer" not in resp.json()["quiz"][0]

            resp = await client.get(f"/progress/me/{course_id}", headers=headers)
            assert resp.json()["completed_modules"] == []

            resp = await client.post(f"/courses/{course_id}/view", headers=headers)
            assert resp.status_code == 200
            assert resp.json()["progress"]["recently_viewed"] is not None

            answers = {"answers": ["A share of an asset", "No"]}
            resp = await client.post(f"/courses/{course_id}/quiz", headers=headers, json=answers)
            assert resp.status_code == 400
            assert resp.json()["code"] == "quiz_locked"
            assert resp.json()["toast"]["type"] == "error"

            for module_id in module_ids:
                resp = await client.post(
                    f"/courses/{course_id}/modules/{module_id}/complete", headers=headers
                )
                assert resp.json()["points_awarded"] == 10
            resp = await client.post(
                f"/courses/{course_id}/modules/{module_ids[0]}/complete", headers=headers
            )
            assert resp.json()["points_awarded"] == 0

            resp = await client.get(f"/courses/{course_id}/certificate", headers=headers)
            assert resp.status_code == 404
            assert resp.json()["code"] == "certificate_not_found"

            resp = await client.post(
                f"/courses/{course_id}/quiz", headers=headers, json={"answers": ["No"]}
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "quiz_incomplete"

            resp = await client.post(f"/courses/{course_id}/quiz", headers=headers, json=answers)
            assert resp.status_code == 200
            result = resp.json()
            assert result["score"] == 100
            assert result["first_completion"] is True
            # only course in the catalog, so completionist too
            assert sorted(b["id"] for b in result["new_badges"]) == [
                "completionist",
                "first-course",
                "quiz-master",
            ]
            assert result["points_awarded"] == 100 + 25 + 50 + 150
            assert result["certificate"]["employee_name"] == "Fatima"

            resp = await client.get("/users/me", headers=headers)
            assert resp.json()["points"] == 20 + 325

            resp = await client.get(f"/courses/{course_id}/certificate", headers=headers)
            assert resp.status_code == 200
            assert resp.json() == result["certificate"]

            resp = await client.post(
                f"/courses/{course_id}/quiz", headers=headers, json={"answers": ["Debt", "No"]}
            )
            retake = resp.json()
            assert retake["score"] == 50
            assert retake["first_completion"] is False
            assert retake["points_awarded"] == 0
            assert retake["certificate"]["completion_date"] == result["certificate"]["completion_date"]

            resp = await client.get("/users/me/badges", headers=headers)
            assert len(resp.json()) == 3

            resp = await client.get("/notifications/", headers=headers)
            types = [n["type"] for n in resp.json()]
            assert types.count("certificate") == 1
            assert types.count("badge") == 3
            assert "approval" in types
            assert "new_course" in types

    asyncio.run(run())


def test_rating_and_reviews():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)
            resp = await client.post("/courses/", headers=admin_headers, json=COURSE)
            course_id = resp.json()["id"]

            resp = await client.post(
                f"/courses/{course_id}/rating", headers=headers, json={"rating": 9}
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "validation_error"

            resp = await client.post(
                f"/courses/{course_id}/rating",
                headers=headers,
                json={"rating": 4, "comment": "Good"},
            )
            assert resp.status_code == 200
            body = resp.json()
            assert body["progress"]["rating"] == 4
            assert body["review"]["comment"] == "Good"
            assert body["toasts"] == [{"message": "Thank you for your review!", "type": "success"}]

            resp = await client.get(f"/courses/{course_id}/reviews", headers=headers)
            assert [(r["author_name"], r["rating"]) for r in resp.json()] == [("Fatima", 4)]

            resp = await client.get(f"/courses/{course_id}", headers=headers)
            assert resp.json()["average_rating"] == 4.0
            assert resp.json()["review_count"] == 1

    asyncio.run(run())


def test_discussion_threads():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)
            resp = await client.post("/courses/", headers=admin_headers, json=COURSE)
            course_id = resp.json()["id"]

            resp = await client.post(
                f"/courses/{course_id}/discussion",
                headers=headers,
                json={"text": "Is a Sukuk tradable?"},
            )
            assert resp.status_code == 200
            post_id = resp.json()["id"]

            resp = await client.post(
                f"/courses/{course_id}/discussion/{post_id}/replies",
                headers=admin_headers,
                json={"text": "Yes, on secondary markets."},
            )
            assert resp.json()["parent_id"] == post_id

            resp = await client.post(
                f"/courses/{course_id}/discussion/999/replies",
                headers=headers,
                json={"text": "Lost"},
            )
            assert resp.status_code == 404

            resp = await client.post(
                f"/courses/{course_id}/discussion", headers=headers, json={"text": ""}
            )
            assert resp.status_code == 422

            resp = await client.get(f"/courses/{course_id}/discussion", headers=headers)
            tree = resp.json()
            assert len(tree) == 1
            assert tree[0]["author_name"] == "Fatima"
            assert [r["author_name"] for r in tree[0]["replies"]] == ["Admin"]

    asyncio.run(run())


def test_deleted_course_is_not_found():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)
            resp = await client.post("/courses/", headers=admin_headers, json=COURSE)
            course_id = resp.json()["id"]
            await client.post(f"/courses/{course_id}/view", headers=headers)

            resp = await client.post(
                f"/courses/{course_id}/modules/999/complete", headers=headers
            )
            assert resp.status_code == 404
            assert resp.json()["code"] == "module_not_found"

            resp = await client.delete(f"/courses/{course_id}", headers=headers)
            assert resp.status_code == 403

            resp = await client.delete(f"/courses/{course_id}", headers=admin_headers)
            assert resp.status_code == 204

            resp = await client.get(f"/courses/{course_id}", headers=headers)
            assert resp.status_code == 404
            body = resp.json()
            assert body["code"] == "course_not_found"
            assert body["message"] == "This course is no longer available."

            resp = await client.get("/progress/me", headers=headers)
            assert resp.json() == []

    asyncio.run(run())


def test_course_without_quiz():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)
            resp = await client.post(
                "/courses/",
                headers=admin_headers,
                json={"title": "Ethics", "modules": [], "quiz": []},
            )
            course_id = resp.json()["id"]

            resp = await client.post(
                f"/courses/{course_id}/quiz", headers=headers, json={"answers": []}
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "quiz_not_available"

            resp = await client.put(
                f"/courses/{course_id}",
                headers=admin_headers,
                json={"quiz": [COURSE["quiz"][1]]},
            )
            assert resp.status_code == 200
            assert len(resp.json()["quiz"]) == 1

            resp = await client.post(
                f"/courses/{course_id}/quiz", headers=headers, json={"answers": ["Yes"]}
            )
            assert resp.status_code == 200
            assert resp.json()["score"] == 0

    asyncio.run(run())


def test_editing_modules_keeps_learner_progress():
    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            admin_headers, headers = await _admin_and_employee(client)
            resp = await client.post("/courses/", headers=admin_headers, json=COURSE)
            await client.post("/courses/", headers=admin_headers, json=COURSE)
            course = resp.json()
            course_id = course["id"]
            modules = course["modules"]
            for module in modules:
                await client.post(
                    f"/courses/{course_id}/modules/{module['id']}/complete", headers=headers
                )

            edited = [
                {"id": m["id"], "title": m["title"] + " (revised)", "content": m["content"]}
                for m in modules
            ]
            resp = await client.put(
                f"/courses/{course_id}", headers=admin_headers, json={"modules": edited}
            )
            assert resp.status_code == 200
            after = resp.json()["modules"]
            assert [m["id"] for m in after] == [m["id"] for m in modules]
            assert after[0]["title"] == "What is a Sukuk? (revised)"

            # re-completing the same content earns nothing
            resp = await client.post(
                f"/courses/{course_id}/modules/{modules[0]['id']}/complete", headers=headers
            )
            assert resp.json()["points_awarded"] == 0
            resp = await client.get("/users/me", headers=headers)
            assert resp.json()["points"] == 20

            answers = {"answers": ["A share of an asset", "No"]}
            resp = await client.post(f"/courses/{course_id}/quiz", headers=headers, json=answers)
            assert resp.status_code == 200

            # drop the first module, reorder, and add a new one
            resp = await client.put(
                f"/courses/{course_id}",
                headers=admin_headers,
                json={
                    "modules": [
                        {"title": "Case Study", "content": "<p>New.</p>"},
                        edited[1],
                    ]
                },
            )
            after = resp.json()["modules"]
            assert [m["title"] for m in after] == ["Case Study", "Sukuk vs Bonds (revised)"]
            assert after[1]["id"] == modules[1]["id"]
            assert after[0]["id"] not in {m["id"] for m in modules}
            assert [m["position"] for m in after] == [0, 1]

            resp = await client.get(f"/courses/{course_id}/edit", headers=admin_headers)
            assert len(resp.json()["modules"]) == 2

    asyncio.run(run())
