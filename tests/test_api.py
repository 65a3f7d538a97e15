from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient
from google.api_core import exceptions as gcp_exceptions

from tests.fakes import FakeFirestore


def event_payload(start: datetime | None = None, hours: int = 3, **overrides) -> dict:
    start = start or datetime.now(UTC) + timedelta(days=7)
    payload = {
        "title": "Builders Night",
        "bannerUrl": "https://res.cloudinary.com/lbd/image/upload/v1718442000/events/banner.jpg",
        "category": "meetup",
        "description": "Talks and pizza",
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(hours=hours)).isoformat(),
        "location": {"type": "physical", "details": "Lagos"},
        "registrationLink": "https://lu.ma/builders",
        "tags": ["web3"],
    }
    payload.update(overrides)
    return payload


def create_event(app_client: TestClient, headers: dict, **kwargs) -> str:
    response = app_client.post("/events", headers=headers, json=event_payload(**kwargs))
    assert response.status_code == 200, response.text
    return response.json()["id"]


def test_event_writes_require_auth(app_client: TestClient):
    assert app_client.post("/events", json=event_payload()).status_code == 401
    assert app_client.delete("/events/evt").status_code == 401

    response = app_client.post("/events", headers={"Authorization": "Bearer nope"}, json=event_payload())
    assert response.status_code == 401


def test_create_and_read_event(app_client: TestClient, admin_headers: dict):
    event_id = create_event(app_client, admin_headers)

    response = app_client.get(f"/events/{event_id}")
    assert response.status_code == 200
    item = response.json()
    assert item["id"] == event_id
    assert item["title"] == "Builders Night"
    assert item["status"] == "upcoming"
    assert item["location"] == {"type": "physical", "details": "Lagos"}
    assert "w_800,h_600,c_fill,q_auto:good,f_auto" in item["bannerThumbnailUrl"]
    for key in ("startDate", "endDate", "createdAt", "updatedAt", "registrationLink"):
        assert isinstance(item[key], str)


def test_end_before_start_is_rejected_without_write(
    app_client: TestClient, admin_headers: dict, fake_db: FakeFirestore
):
    start = datetime.now(UTC) + timedelta(days=1)
    payload = event_payload(start=start, endDate=(start - timedelta(hours=1)).isoformat())

    response = app_client.post("/events", headers=admin_headers, json=payload)

    assert response.status_code == 422
    assert fake_db.collection("events").docs == {}


def test_missing_event_is_404(app_client: TestClient):
    assert app_client.get("/events/missing").status_code == 404


def test_list_filters(app_client: TestClient, admin_headers: dict):
    past_start = datetime.now(UTC) - timedelta(days=30)
    upcoming = create_event(app_client, admin_headers, category="workshop", title="Solidity Workshop")
    past = create_event(app_client, admin_headers, start=past_start, category="meetup", title="Spring Meetup")

    everything = app_client.get("/events").json()
    assert {item["id"] for item in everything} == {past, upcoming}

    by_category = app_client.get("/events", params={"category": "workshop"}).json()
    assert [item["id"] for item in by_category] == [upcoming]

    by_time = app_client.get("/events", params={"when": "past"}).json()
    assert [item["id"] for item in by_time] == [past]
    assert by_time[0]["status"] == "past"

    by_search = app_client.get("/events", params={"search": "solidity"}).json()
    assert [item["id"] for item in by_search] == [upcoming]

    assert app_client.get("/events", params={"category": "party"}).status_code == 422


def test_partial_update(app_client: TestClient, admin_headers: dict, fake_db: FakeFirestore):
    event_id = create_event(app_client, admin_headers)
    before = fake_db.collection("events").document(event_id).get().to_dict()

    response = app_client.patch(f"/events/{event_id}", headers=admin_headers, json={"title": "Renamed"})

    assert response.status_code == 200, response.text
    assert response.json()["title"] == "Renamed"
    after = fake_db.collection("events").document(event_id).get().to_dict()
    assert after["description"] == before["description"]
    assert after["startDate"] == before["startDate"]


def test_update_checked_against_stored_dates(app_client: TestClient, admin_headers: dict):
    start = datetime.now(UTC) + timedelta(days=7)
    event_id = create_event(app_client, admin_headers, start=start)

    response = app_client.patch(
        f"/events/{event_id}",
        headers=admin_headers,
        json={"endDate": (start - timedelta(days=1)).isoformat()},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == ["endDate must be after startDate"]


def test_update_unknown_event(app_client: TestClient, admin_headers: dict):
    response = app_client.patch("/events/missing", headers=admin_headers, json={"title": "x"})
    assert response.status_code == 404


def test_stats_only_after_event_finished(app_client: TestClient, admin_headers: dict):
    upcoming = create_event(app_client, admin_headers)
    finished = create_event(app_client, admin_headers, start=datetime.now(UTC) - timedelta(days=2))
    body = {
        "stats": [{"title": "Attendees", "value": "120"}, {"title": " ", "value": ""}],
        "gallery": ["https://i.imgur.com/a.png"],
        "albumUrl": "https://flickr.com/album/1",
    }

    blocked = app_client.put(f"/events/{upcoming}/stats", headers=admin_headers, json=body)
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["error"] == "event_not_finished"

    response = app_client.put(f"/events/{finished}/stats", headers=admin_headers, json=body)
    assert response.status_code == 200, response.text
    item = response.json()
    assert item["stats"] == [{"title": "Attendees", "value": "120"}]
    assert item["gallery"] == ["https://i.imgur.com/a.png"]
    assert item["albumUrl"] == "https://flickr.com/album/1"


def test_stats_reject_share_links(app_client: TestClient, admin_headers: dict):
    finished = create_event(app_client, admin_headers, start=datetime.now(UTC) - timedelta(days=2))

    response = app_client.put(
        f"/events/{finished}/stats",
        headers=admin_headers,
        json={"gallery": ["https://photos.app.goo.gl/abc123"]},
    )

    assert response.status_code == 422


def test_share_links_rejected_on_create(app_client: TestClient, admin_headers: dict, fake_db: FakeFirestore):
    for overrides in (
        {"albumUrl": "https://photos.app.goo.gl/abc123"},
        {"gallery": ["https://i.imgur.com/a.png", "https://drive.google.com/file/d/xyz"]},
    ):
        response = app_client.post("/events", headers=admin_headers, json=event_payload(**overrides))

        assert response.status_code == 422
    assert fake_db.collection("events").docs == {}


def test_share_links_rejected_on_update(app_client: TestClient, admin_headers: dict, fake_db: FakeFirestore):
    event_id = create_event(app_client, admin_headers, albumUrl="https://flickr.com/album/1")

    for body in (
        {"albumUrl": "https://drive.google.com/file/d/xyz"},
        {"gallery": ["https://photos.google.com/share/AF1Qip"]},
    ):
        response = app_client.patch(f"/events/{event_id}", headers=admin_headers, json=body)

        assert response.status_code == 422
    stored = fake_db.collection("events").document(event_id).get().to_dict()
    assert stored["albumUrl"] == "https://flickr.com/album/1"
    assert stored["gallery"] == []


def test_delete_event(app_client: TestClient, admin_headers: dict):
    event_id = create_event(app_client, admin_headers)

    response = app_client.delete(f"/events/{event_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert app_client.get(f"/events/{event_id}").status_code == 404
    assert app_client.delete(f"/events/{event_id}", headers=admin_headers).status_code == 404


def test_store_outage_is_500(app_client: TestClient, fake_db: FakeFirestore):
    fake_db.fail_with = gcp_exceptions.ServiceUnavailable("down")

    response = app_client.get("/events")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch events"


def test_events_summary(app_client: TestClient, admin_headers: dict):
    upcoming = create_event(app_client, admin_headers, category="workshop")
    finished = create_event(app_client, admin_headers, start=datetime.now(UTC) - timedelta(days=2), category="meetup")
    app_client.put(
        f"/events/{finished}/stats",
        headers=admin_headers,
        json={"stats": [{"title": "Attendees", "value": "85"}]},
    )

    response = app_client.get("/events/summary")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["totalEvents"] == 2
    assert body["totalAttendees"] == 85
    assert body["upcomingEvents"] == 1
    assert body["upcomingByCategory"]["workshop"] == 1
    assert body["upcomingByCategory"]["x-space"] == 0
    assert {item["id"] for item in body["recent"]} == {upcoming, finished}
