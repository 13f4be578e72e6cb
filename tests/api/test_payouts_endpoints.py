import pytest
from fastapi.testclient import TestClient

from prize_service.main import app
from prize_service.runtime import get_match_client, get_notification_client
from prize_service.services.match_service import Participant
from prize_service.storage.database import get_db


@pytest.fixture
def client(db, match_client, notification_client):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_match_client] = lambda: match_client
    app.dependency_overrides[get_notification_client] = lambda: notification_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fixed_list_rule(client: TestClient) -> dict:
    response = client.post(
        "/rules",
        json={"name": "Top 3", "type": "fixed_list", "config": {"prizes": [500, 300, 100]}},
    )
    assert response.status_code == 201
    return response.json()


def test_distribute_with_rule_and_read_history(client: TestClient, fixed_list_rule: dict, match_client, notification_client) -> None:
    response = client.post(
        "/matches/m-1/distribute",
        json={
            "rule_id": fixed_list_rule["id"],
            "results": [
                {"uid": "a", "username": "Alice", "rank": 2},
                {"uid": "b", "username": "Bob", "rank": 4},
                {"uid": "c", "username": "Carol", "rank": 1},
            ],
        },
    )

    assert response.status_code == 201
    payout = response.json()
    assert payout["match_id"] == "m-1"
    assert payout["rule_id"] == fixed_list_rule["id"]
    assert payout["total_amount"] == 800
    assert payout["winners_count"] == 2
    assert payout["winners"] == [
        {"uid": "a", "username": "Alice", "amount": 300, "breakdown": "Rank 2 Fixed Prize", "position": 2},
        {"uid": "c", "username": "Carol", "amount": 500, "breakdown": "Rank 1 Fixed Prize", "position": 1},
    ]
    assert match_client.distributed == [("m-1", [{"uid": "a", "amount": 300}, {"uid": "c", "amount": 500}])]
    assert len(notification_client.sent) == 2

    history = client.get("/payouts", params={"match_id": "m-1"})
    assert history.status_code == 200
    assert [item["id"] for item in history.json()] == [payout["id"]]

    single = client.get(f"/payouts/{payout['id']}")
    assert single.status_code == 200
    assert single.json()["winners"] == payout["winners"]


def test_distribute_manual_amounts(client: TestClient, match_client) -> None:
    response = client.post(
        "/matches/m-2/distribute",
        json={
            "winners": [
                {"uid": "a", "username": "Alice", "amount": 150},
                {"uid": "b", "username": "Bob", "amount": 0},
            ]
        },
    )

    assert response.status_code == 201
    assert response.json()["rule_id"] is None
    assert match_client.distributed == [("m-2", [{"uid": "a", "amount": 150}])]


def test_history_matches_fractional_credit(client: TestClient, match_client) -> None:
    rule = client.post(
        "/rules",
        json={"name": "Kill Bounty", "type": "rank_kill", "config": {"per_kill": "0.25"}},
    ).json()

    response = client.post(
        "/matches/m-3/distribute",
        json={"rule_id": rule["id"], "results": [{"uid": "a", "username": "Alice", "kills": 3}]},
    )

    assert response.status_code == 201
    assert match_client.distributed == [("m-3", [{"uid": "a", "amount": 0.75}])]
    stored = client.get(f"/payouts/{response.json()['id']}").json()
    assert stored["total_amount"] == 0.75
    assert [(w["uid"], w["amount"], w["breakdown"]) for w in stored["winners"]] == [("a", 0.75, "3 Kills (0.75)")]


def test_manual_amount_below_a_cent_is_rejected(client: TestClient, match_client) -> None:
    response = client.post("/matches/m-2/distribute", json={"winners": [{"uid": "a", "amount": "10.005"}]})

    assert response.status_code == 422
    assert match_client.distributed == []


def test_zero_winners_blocks_distribution(client: TestClient, fixed_list_rule: dict, match_client) -> None:
    response = client.post(
        "/matches/m-1/distribute",
        json={"rule_id": fixed_list_rule["id"], "results": [{"uid": "a", "rank": 9}]},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "no_payout_possible"
    assert match_client.distributed == []
    assert client.get("/payouts").json() == []


def test_distribute_with_unknown_rule(client: TestClient) -> None:
    response = client.post(
        "/matches/m-1/distribute",
        json={"rule_id": "missing", "results": [{"uid": "a", "rank": 1}]},
    )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "rule_not_found"


def test_distribute_requires_single_source(client: TestClient) -> None:
    response = client.post(
        "/matches/m-1/distribute",
        json={"rule_id": "r-1", "winners": [{"uid": "a", "amount": 10}]},
    )

    assert response.status_code == 422


def test_upstream_failure_is_reported(client: TestClient, fixed_list_rule: dict, match_client) -> None:
    match_client.fail = True

    response = client.post(
        "/matches/m-1/distribute",
        json={"rule_id": fixed_list_rule["id"], "results": [{"uid": "a", "rank": 1}]},
    )

    assert response.status_code == 503
    body = response.json()["detail"]
    assert body["code"] == "upstream_unavailable"
    assert body["details"] == {"retryable": True}


def test_participants_proxy(client: TestClient, match_client) -> None:
    match_client.participants = [Participant(uid="a", username="Alice", push_enabled=True)]

    response = client.get("/matches/m-1/participants")

    assert response.status_code == 200
    assert response.json() == [{"uid": "a", "username": "Alice", "push_enabled": True}]


def test_missing_payout(client: TestClient) -> None:
    response = client.get("/payouts/42")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "payout_not_found"


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}
