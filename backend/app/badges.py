"""Badge catalog and the rules that grant badges on course completion.

Each rule pairs a badge id with a predicate over a :class:`BadgeContext`.
The rules are evaluated in order once per quiz completion and every rule
that holds for a badge the learner does not own yet is granted.
"""

from typing import Callable, NamedTuple


BADGE_FIRST_COURSE = "first-course"
BADGE_PROLIFIC_LEARNER = "prolific-learner"
BADGE_QUIZ_MASTER = "quiz-master"
BADGE_COMPLETIONIST = "completionist"

BADGE_DEFINITIONS = {
    BADGE_FIRST_COURSE: {
        "id": BADGE_FIRST_COURSE,
        "name": "First Step",
        "description": "Completed your first course.",
        "points": 25,
    },
    BADGE_PROLIFIC_LEARNER: {
        "id": BADGE_PROLIFIC_LEARNER,
        "name": "Prolific Learner",
        "description": "Completed 3 courses.",
        "points": 75,
    },
    BADGE_QUIZ_MASTER: {
        "id": BADGE_QUIZ_MASTER,
        "name": "Quiz Master",
        "description": "Achieved a perfect score (100%) on a quiz.",
        "points": 50,
    },
    BADGE_COMPLETIONIST: {
        "id": BADGE_COMPLETIONIST,
        "name": "Completionist",
        "description": "Completed all available courses.",
        "points": 150,
    },
}


class BadgeContext(NamedTuple):
    completed_count: int
    score: float
    catalog_size: int
    held_badges: frozenset[str]


BADGE_RULES: list[tuple[str, Callable[[BadgeContext], bool]]] = [
    (BADGE_FIRST_COURSE, lambda ctx: ctx.completed_count >= 1),
    (BADGE_PROLIFIC_LEARNER, lambda ctx: ctx.completed_count >= 3),
    (BADGE_QUIZ_MASTER, lambda ctx: ctx.score == 100),
    (BADGE_COMPLETIONIST, lambda ctx: ctx.completed_count == ctx.catalog_size),
]


def evaluate_badges(ctx: BadgeContext) -> list[dict]:
    """Return definitions of the badges newly earned in ``ctx``."""
    earned = []
    for badge_id, predicate in BADGE_RULES:
        if badge_id in ctx.held_badges:
            continue
        if predicate(ctx):
            earned.append(BADGE_DEFINITIONS[badge_id])
    return earned


def get_badge(badge_id: str) -> dict | None:
    return BADGE_DEFINITIONS.get(badge_id)
