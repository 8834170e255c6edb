"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from mess_admin.api.app import create_app
from mess_admin.api.admin import PERMISSION_HINT
from mess_admin.services.complaints import (
    ComplaintPermissionError,
    ComplaintUpdateError,
)
from mess_admin.services.insights import MISSING_KEY_MESSAGE
from tests.conftest import FakeInsightsClient, InMemoryComplaintRepository

HEADERS = {"X-Admin-Token": "admin-token"}


def test_public_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_admin_requires_token(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    assert (
        client.get("/admin/health", headers={"X-Admin-Token": "wrong"}).status_code
        == 401
    )
    assert client.get("/admin/health", headers=HEADERS).json() == {"status": "ok"}


def test_dashboard_endpoint_runs_session_in_lifespan(container, feed) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/admin/dashboard", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["loading"] is False
        assert data["activeMealInfo"] == {
            "meal": "Breakfast",
            "isLive": True,
            "date": "2024-01-01",
            "isTomorrow": False,
        }
        assert data["attendanceCount"] == 2
        assert data["attendanceByMeal"]["Breakfast"] == 2
        assert data["dailyStats"][-1]["label"] == "01-01"
        assert data["pendingComplaints"] == 1
        assert data["usersCount"] == 1
        assert feed.active()

    assert not feed.active()


def test_meal_window_endpoint(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/meal-window", headers=HEADERS).json()

    assert data["current"] == "Breakfast"
    assert data["next"] is None
    assert data["active"]["isLive"] is True


def test_attendance_endpoint(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/attendance", headers=HEADERS).json()

    assert [(m["date"], m["meal"]) for m in data["meals"]] == [
        ("2024-01-01", "Breakfast"),
        ("2023-12-31", "Dinner"),
    ]
    breakfast = data["meals"][0]
    assert breakfast["totalCount"] == 2
    assert breakfast["servingWindow"] == "07:30 - 09:30"
    assert [d["date"] for d in data["dailyStats"]] == ["2023-12-31", "2024-01-01"]


def test_attendance_endpoint_rejects_non_positive_days(container) -> None:
    client = TestClient(create_app(container))

    for days in (0, -3):
        response = client.get(
            "/admin/attendance", params={"days": days}, headers=HEADERS
        )
        assert response.status_code == 422

    one_day = client.get(
        "/admin/attendance", params={"days": 1}, headers=HEADERS
    ).json()
    assert [d["date"] for d in one_day["dailyStats"]] == ["2024-01-01"]


def test_ratings_summary_endpoint(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/ratings/summary", headers=HEADERS).json()

    assert data["count"] == 1
    assert data["averages"] == {"overall": 4.5, "staff": 4.0, "hygiene": 3.0}
    assert data["items"][0]["name"] == "Rice"
    assert data["users"][0]["email"] == "asha@example.com"


def test_ratings_summary_groups_and_heatmap(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/ratings/summary", headers=HEADERS).json()

    assert data["total"] == 1
    assert data["months"] == ["2024-01"]
    (group,) = data["dateGroups"]
    assert group["date"] == "2024-01-01"
    assert group["day"] == "Monday"
    assert [m["meal"] for m in group["meals"]] == ["Lunch"]
    assert group["meals"][0]["avg"] == 4.5
    assert data["heatmap"] == [
        {
            "date": "2024-01-01",
            "Breakfast": {"avg": None, "count": 0},
            "Lunch": {"avg": 4.5, "count": 1},
            "Dinner": {"avg": None, "count": 0},
        }
    ]


def test_ratings_summary_filters(container) -> None:
    client = TestClient(create_app(container))

    def summary(**params: object) -> dict:
        response = client.get("/admin/ratings/summary", params=params, headers=HEADERS)
        assert response.status_code == 200
        return response.json()

    assert summary(month="2023-12")["count"] == 0
    assert summary(month="2023-12")["total"] == 1
    assert summary(meal="Dinner")["count"] == 0
    matched = summary(meal=["Lunch", "Dinner"], **{"from": "2024-01-01"})
    assert matched["count"] == 1
    assert summary(to="2023-12-31")["dateGroups"] == []

    for params in ({"month": "Jan"}, {"from": "yesterday"}, {"meal": "Brunch"}):
        response = client.get("/admin/ratings/summary", params=params, headers=HEADERS)
        assert response.status_code == 422


def test_complaints_endpoint_groups_and_filters(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/complaints", headers=HEADERS).json()
    assert data["counts"] == {"Pending": 1, "In Progress": 0, "Resolved": 1}
    assert [c["id"] for c in data["groups"]["Pending"]] == ["c1"]
    assert data["categories"][0] == "All"
    assert "Staff Behavior" in data["categories"]

    filtered = client.get(
        "/admin/complaints", params={"category": "Hygiene"}, headers=HEADERS
    ).json()
    assert [c["id"] for c in filtered["complaints"]] == ["c2"]

    searched = client.get(
        "/admin/complaints", params={"search": "cold"}, headers=HEADERS
    ).json()
    assert [c["id"] for c in searched["complaints"]] == ["c1"]


def test_update_complaint_status(container, complaint_repository) -> None:
    client = TestClient(create_app(container))

    response = client.patch(
        "/admin/complaints/c1", json={"status": "In Progress"}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["status"] == "In Progress"
    assert complaint_repository.updates[0][:2] == ("c1", "In Progress")


def test_update_complaint_status_errors(
    container, complaint_repository: InMemoryComplaintRepository
) -> None:
    client = TestClient(create_app(container))

    invalid = client.patch(
        "/admin/complaints/c1", json={"status": "Closed"}, headers=HEADERS
    )
    assert invalid.status_code == 422

    missing = client.patch(
        "/admin/complaints/nope", json={"status": "Resolved"}, headers=HEADERS
    )
    assert missing.status_code == 404

    complaint_repository.update_error = ComplaintPermissionError("denied")
    denied = client.patch(
        "/admin/complaints/c1", json={"status": "Resolved"}, headers=HEADERS
    )
    assert denied.status_code == 403
    assert denied.json()["detail"] == PERMISSION_HINT

    complaint_repository.update_error = ComplaintUpdateError("timeout")
    failed = client.patch(
        "/admin/complaints/c1", json={"status": "Resolved"}, headers=HEADERS
    )
    assert failed.status_code == 502
    assert complaint_repository.updates == []


def test_users_endpoint(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/admin/users", headers=HEADERS).json()

    assert data["users"][0]["name"] == "Asha"
    assert data["users"][0]["email"] == "asha@example.com"
    assert data["adminCount"] == 2


def test_activity_endpoint(container) -> None:
    with TestClient(create_app(container)) as client:
        data = client.get("/admin/activity", headers=HEADERS).json()

    assert [a["id"] for a in data["activities"]] == [
        "act_c_c2",
        "act_r_r1",
        "act_c_c1",
    ]


def test_insights_endpoint(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/admin/insights", headers=HEADERS)
    assert response.json() == {"insights": MISSING_KEY_MESSAGE}

    fake = FakeInsightsClient(reply="- Open the second counter")
    container.insights_service.client = fake
    response = client.post("/admin/insights", headers=HEADERS)
    assert response.json() == {"insights": "- Open the second counter"}
    assert fake.prompts
