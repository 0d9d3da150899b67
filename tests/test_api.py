from unittest.mock import patch
import requests

SHOREDITCH = "2b-n1-a-29-shoreditch-heights"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_ingest_defaults_to_fixture(client):
    r = client.post("/api/reviews/hostaway")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["provider"] == "hostaway"
    assert body["requestedSource"] == "mock"
    assert body["source"] == "mock"
    assert body["error"] is None
    assert body["ingested"] == 7
    assert body["count"] == 7
    assert [row["listingName"] for row in body["summary"]] == [
        "1B E2 C - 11 Columbia Road Lofts",
        "2B N1 A - 29 Shoreditch Heights",
        "Studio W1 - 4 Marylebone Mews",
    ]
    shoreditch = body["summary"][1]
    assert shoreditch["reviewCount"] == 3
    assert shoreditch["pendingCount"] == 3
    assert shoreditch["averageRating"] == 8.5
    assert shoreditch["latestReviewAt"] == "2024-03-02T09:12:33.000Z"


def test_ingest_api_falls_back_when_remote_fails(client, monkeypatch):
    monkeypatch.setenv("HOSTAWAY_ACCOUNT_ID", "1")
    monkeypatch.setenv("HOSTAWAY_API_KEY", "k")
    with patch("guestreviews.collectors.hostaway_client.requests.get", side_effect=requests.ConnectionError("offline")):
        r = client.post("/api/reviews/hostaway", json={"source": "api"})
    assert r.status_code == 200
    body = r.json()
    assert body["requestedSource"] == "api"
    assert body["source"] == "mock"
    assert body["error"]
    assert body["ingested"] == 7


def test_list_from_database_with_filters(client):
    client.post("/api/reviews/hostaway")
    client.post("/api/reviews/approve", json={"extId": "7454", "approved": True})

    r = client.get("/api/reviews/hostaway", params={"listingSlug": SHOREDITCH, "approved": "true"})
    body = r.json()
    assert body["source"] == "database"
    assert body["count"] == 1
    assert body["reviews"][0]["extId"] == "7454"
    assert body["reviews"][0]["approved"] is True
    assert body["filters"]["listingSlug"] == SHOREDITCH
    assert body["filters"]["approved"] is True
    assert body["summary"][0]["approvedCount"] == 1


def test_list_sort_and_date_range(client):
    client.post("/api/reviews/hostaway")
    r = client.get("/api/reviews/hostaway", params={"sort": "rating:desc", "from": "2023-12-01", "to": "2024-12-31"})
    body = r.json()
    assert body["filters"]["sort"] == "rating:desc"
    assert body["filters"]["from"] == "2023-12-01"
    assert [rv["extId"] for rv in body["reviews"]][:3] == ["HA-9002", "8101", "7454"]
    assert "7453" not in {rv["extId"] for rv in body["reviews"]}


def test_list_rejects_bad_date(client):
    r = client.get("/api/reviews/hostaway", params={"from": "soon"})
    assert r.status_code == 400


def test_list_raw_fixture(client):
    r = client.get("/api/reviews/hostaway", params={"raw": "1"})
    body = r.json()
    assert r.status_code == 200
    assert body["source"] == "mock"
    assert body["count"] == 7
    assert all(rv["approved"] is False for rv in body["reviews"])
    by_id = {rv["extId"]: rv for rv in body["reviews"]}
    assert by_id["7455"]["categories"] is None
    assert by_id["8101"]["categories"] == {"cleanliness": 10, "value": None}


def test_list_api_fallback_reports_502(client):
    r = client.get("/api/reviews/hostaway", params={"source": "api"})
    assert r.status_code == 502
    body = r.json()
    assert body["source"] == "mock"
    assert body["fallback"] == "api"
    assert body["error"] == "Hostaway credentials are not configured."
    assert body["count"] == 7


def test_approve_unknown_review(client):
    r = client.post("/api/reviews/approve", json={"extId": "nope", "approved": True})
    assert r.status_code == 404


def test_approve_requires_fields(client):
    assert client.post("/api/reviews/approve", json={"approved": True}).status_code == 422
    assert client.post("/api/reviews/approve", json={"extId": "", "approved": True}).status_code == 422
    assert client.post("/api/reviews/approve", json={"extId": "7453"}).status_code == 422


def test_approve_round_trip(client):
    client.post("/api/reviews/hostaway")
    r = client.post("/api/reviews/approve", json={"extId": "7453", "approved": True})
    assert r.json() == {"ok": True, "extId": "7453", "approved": True}
    r = client.post("/api/reviews/approve", json={"extId": "7453", "approved": False})
    assert r.json()["approved"] is False


def test_property_page_shows_only_approved(client):
    client.post("/api/reviews/hostaway")
    client.post("/api/reviews/approve", json={"extId": "7453", "approved": True})
    client.post("/api/reviews/approve", json={"extId": "7454", "approved": True})

    body = client.get(f"/api/properties/{SHOREDITCH}").json()
    assert body["name"] == "2B N1 A - 29 Shoreditch Heights"
    assert body["reviewCount"] == 2
    assert [rv["extId"] for rv in body["reviews"]] == ["7454", "7453"]
    assert body["averageRating"] == 9
    assert body["categoryAverages"][0] == {"key": "location", "label": "location", "average": 10.0}
    assert body["categoryAverages"][-1] == {"key": "cleanliness", "label": "cleanliness", "average": 9.5}


def test_property_page_unknown_slug(client):
    assert client.get("/api/properties/nowhere").status_code == 404
    assert client.get("/properties/nowhere/report").status_code == 404


def test_property_report_renders(client):
    client.post("/api/reviews/hostaway")
    client.post("/api/reviews/approve", json={"extId": "9001", "approved": True})
    r = client.get("/properties/studio-w1-4-marylebone-mews/report")
    assert r.status_code == 200
    assert "Studio W1 - 4 Marylebone Mews" in r.text
    assert "data:image/png;base64," in r.text
    assert "Tom Weller" in r.text


def test_property_report_escapes_stored_text(client, db):
    from guestreviews.models import Listing
    db.add(Listing(slug="tag-house", name="<i>Tag House</i>", channel="<script>x</script>"))
    db.commit()
    r = client.get("/properties/tag-house/report")
    assert r.status_code == 200
    assert "<script>" not in r.text
    assert "&lt;script&gt;x&lt;/script&gt;" in r.text
    assert "&lt;i&gt;Tag House&lt;/i&gt;" in r.text
