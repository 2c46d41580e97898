import pytest

from codeclash.core.errors import Conflict, NotFound
from codeclash.core.utils import utcnow
from codeclash.reviews import review_service

from conftest import user_context


@pytest.fixture
async def problem(db):
    await db.problems.insert_one({"problem_id": "PRB_1", "title": "Two Sum", "created_at": utcnow()})
    return "PRB_1"


def review_data(problem_id, rating, **extra):
    return {"problem_id": problem_id, "submission_id": "SUB_1", "rating": rating, **extra}


async def test_second_review_conflicts_and_keeps_first(db, problem):
    user = user_context("u1", "a@x.io")
    first = await review_service.submit_review(db, user, review_data(problem, 4, comment="nice"))

    with pytest.raises(Conflict):
        await review_service.submit_review(db, user, review_data(problem, 1))

    stored = await db.reviews.find_one({"review_id": first["review_id"]})
    assert stored["rating"] == 4
    assert await db.reviews.count_documents({"problem_id": problem}) == 1


async def test_review_for_unknown_problem(db):
    with pytest.raises(NotFound):
        await review_service.submit_review(db, user_context("u1", "a@x.io"), review_data("PRB_X", 3))


async def test_problem_stats_count_only_approved(db, problem):
    for idx, rating in enumerate([5, 4, 4, 2]):
        await review_service.submit_review(
            db, user_context(f"u{idx}", f"u{idx}@x.io"), review_data(problem, rating)
        )
    rejected = await review_service.submit_review(
        db, user_context("troll", "troll@x.io"), review_data(problem, 1)
    )
    await review_service.update_review_status(db, rejected["review_id"], "rejected")

    result = await review_service.get_problem_reviews(db, problem, page=1, limit=2)

    assert len(result["reviews"]) == 2
    assert result["pagination"] == {"page": 1, "limit": 2, "total": 4, "pages": 2}
    assert result["stats"]["average_rating"] == 3.8
    assert result["stats"]["total_ratings"] == 4
    assert result["stats"]["rating_distribution"] == {"1": 0, "2": 1, "3": 0, "4": 2, "5": 1}


async def test_helpful_vote_once_per_user(db, problem):
    review = await review_service.submit_review(db, user_context("u1", "a@x.io"), review_data(problem, 5))

    await review_service.vote_helpful(db, review["review_id"], "b@x.io")
    with pytest.raises(Conflict):
        await review_service.vote_helpful(db, review["review_id"], "b@x.io")
    with pytest.raises(NotFound):
        await review_service.vote_helpful(db, "REV_MISSING", "b@x.io")

    stored = await db.reviews.find_one({"review_id": review["review_id"]})
    assert stored["helpful_votes"] == 1


async def test_admin_listing_filters(db, problem):
    await review_service.submit_review(
        db, user_context("u1", "alice@x.io", "Alice"), review_data(problem, 5, comment="great")
    )
    second = await review_service.submit_review(
        db, user_context("u2", "bob@x.io", "Bob"), review_data(problem, 3)
    )
    await review_service.update_review_status(db, second["review_id"], "pending")

    pending, pagination = await review_service.list_reviews(db, status="pending")
    assert [r["user_email"] for r in pending] == ["bob@x.io"]
    assert pagination["total"] == 1

    found, _ = await review_service.list_reviews(db, search="ali")
    assert [r["user_email"] for r in found] == ["alice@x.io"]
    assert "helpful_voters" not in found[0]


async def test_average_rating_rounds_halves_up(db, problem):
    for idx, rating in enumerate([2, 2, 2, 3]):
        await review_service.submit_review(
            db, user_context(f"u{idx}", f"u{idx}@x.io"), review_data(problem, rating)
        )

    result = await review_service.get_problem_reviews(db, problem)

    assert result["stats"]["average_rating"] == 2.3
