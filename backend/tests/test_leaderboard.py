from datetime import datetime, timezone

import pytest

from runclub.core.errors import DuplicateUsername, NotFound, ValidationFailed
from runclub.services.leaderboard import LeaderboardStatsStore

NOW = datetime(2025, 8, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(repos):
    return LeaderboardStatsStore(repos.leaderboard)


def _user(first, miles=0.0, runs=0, registered=True, **extra):
    return {
        "firstName": first,
        "lastName": "Runner",
        "totalMiles": miles,
        "totalRuns": runs,
        "isRegistered": registered,
        **extra,
    }


def test_create_defaults_totals_to_zero(store):
    user = store.create({"firstName": "Kam", "lastName": "Rivera"}, NOW)

    assert user.total_runs == 0
    assert user.total_miles == 0.0
    assert user.is_registered is False
    assert user.username is None
    assert store.get(user.id) == user


def test_duplicate_username_ignores_case(store):
    store.create(_user("Amy", username="amy"))
    with pytest.raises(DuplicateUsername):
        store.create(_user("Other Amy", username="AMY"))


def test_users_without_username_can_share_names(store):
    a = store.create(_user("Sam"))
    b = store.create(_user("Sam"))
    assert a.id != b.id


def test_username_is_stored_lowercase(store):
    assert store.create(_user("Bob", username="  BoB ")).username == "bob"


@pytest.mark.parametrize(
    "body",
    [
        {"lastName": "Runner"},
        {"firstName": "Kam", "lastName": "Runner", "totalRuns": -1},
        {"firstName": "Kam", "lastName": "Runner", "totalMiles": "lots"},
        {"firstName": "Kam", "lastName": "Runner", "totalRuns": 1.5},
        {"firstName": "Kam", "lastName": "Runner", "isRegistered": "yes"},
    ],
)
def test_create_validates_body(store, body):
    with pytest.raises(ValidationFailed):
        store.create(body)


def test_ranking_orders_by_miles_descending(store):
    ten = store.create(_user("Ten", 10))
    thirty_a = store.create(_user("ThirtyA", 30))
    thirty_b = store.create(_user("ThirtyB", 30))
    five = store.create(_user("Five", 5))

    ranked = store.list()
    by_id = {u.id: u.rank for u in ranked}

    assert [u.rank for u in ranked] == [1, 2, 3, 4]
    assert [u.total_miles for u in ranked] == [30, 30, 10, 5]
    assert {by_id[thirty_a.id], by_id[thirty_b.id]} == {1, 2}
    assert by_id[ten.id] == 3
    assert by_id[five.id] == 4


def test_list_hides_unregistered_unless_asked(store):
    store.create(_user("Real", 12, registered=True))
    store.create(_user("Seeded", 50, registered=False))

    assert [u.first_name for u in store.list()] == ["Real"]
    assert store.list()[0].rank == 1

    everyone = store.list(include_unregistered=True)
    assert [(u.first_name, u.rank) for u in everyone] == [("Seeded", 1), ("Real", 2)]


def test_set_absolute_replaces_totals(store):
    user = store.create(_user("Kam", 10, 2, username="kam"))
    later = datetime(2025, 8, 21, tzinfo=timezone.utc)

    updated = store.set_absolute(
        user.id,
        {"firstName": "Kamala", "lastName": "R", "totalRuns": 7, "totalMiles": 33.5},
        later,
    )

    assert (updated.first_name, updated.total_runs, updated.total_miles) == ("Kamala", 7, 33.5)
    # username never changes, registration kept when omitted
    assert updated.username == "kam"
    assert updated.is_registered is True
    assert store.get(user.id).last_updated == later


def test_set_absolute_can_flip_registration(store):
    user = store.create(_user("Seed", registered=False))
    updated = store.set_absolute(
        user.id,
        {"firstName": "Seed", "lastName": "Runner", "totalRuns": 0, "totalMiles": 0, "isRegistered": True},
    )
    assert updated.is_registered is True


def test_set_absolute_unknown_user(store):
    with pytest.raises(NotFound):
        store.set_absolute("nope", _user("Ghost"))


def test_adjust_adds_deltas(store):
    user = store.create(_user("Kam", 10.5, 3))

    store.adjust(user.id, {"deltaRuns": 1})
    updated = store.adjust(user.id, {"deltaMiles": 4.25})

    assert updated.total_runs == 4
    assert updated.total_miles == pytest.approx(14.75)
    assert store.get(user.id).total_runs == 4


def test_adjust_clamps_at_zero(store):
    user = store.create(_user("Kam", 3.0, 1))
    updated = store.adjust(user.id, {"deltaRuns": -5, "deltaMiles": -10})

    assert updated.total_runs == 0
    assert updated.total_miles == 0.0


def test_adjust_unknown_user(store):
    with pytest.raises(NotFound):
        store.adjust("nope", {"deltaRuns": 1})


def test_adjust_rejects_non_numeric(store):
    user = store.create(_user("Kam"))
    with pytest.raises(ValidationFailed):
        store.adjust(user.id, {"deltaMiles": "a few"})


def test_delete(store):
    user = store.create(_user("Gone"))
    assert store.delete(user.id).id == user.id
    with pytest.raises(NotFound):
        store.get(user.id)
    with pytest.raises(NotFound):
        store.delete(user.id)
