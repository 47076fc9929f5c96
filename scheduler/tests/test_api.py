"""End-to-end tests against the HTTP surface, backed by fakeredis."""

SKI_TRIP = {
    "title": "Ski trip",
    "startDate": "2024-01-01T00:00:00",
    "endDate": "2024-01-31T00:00:00",
    "timeframeType": "weekend",
    "creatorName": "Ann",
}


def create(client, **overrides):
    resp = client.post("/events", json={**SKI_TRIP, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def vote(client, event_id, name, votes, respondent_id=None):
    body = {
        "respondentName": name,
        "responses": [
            {"timeframeId": tf_id, "availability": availability}
            for tf_id, availability in votes.items()
        ],
    }
    if respondent_id is None:
        return client.post(f"/events/{event_id}/responses", json=body)
    return client.put(f"/events/{event_id}/responses/{respondent_id}", json=body)


class TestEvents:
    def test_create_event(self, client):
        data = create(client)

        assert set(data) == {"eventId", "shareCode", "timeframes", "event"}
        assert data["event"]["shareCode"] == data["shareCode"]
        assert data["event"]["status"] == "active"
        assert data["event"]["timeframeType"] == "weekend"
        assert [tf["label"] for tf in data["timeframes"]] == [
            "Jan 6-7, 2024",
            "Jan 13-14, 2024",
            "Jan 20-21, 2024",
            "Jan 27-28, 2024",
        ]
        assert data["timeframes"][0]["startDate"] == "2024-01-06T00:00:00"
        assert data["timeframes"][0]["endDate"] == "2024-01-07T00:00:00"

    def test_get_event_by_id_and_share_code(self, client):
        data = create(client)

        by_id = client.get(f"/events/{data['eventId']}")
        by_code = client.get(f"/events/code/{data['shareCode'].lower()}")

        assert by_id.status_code == 200
        assert by_code.status_code == 200
        assert by_id.json() == by_code.json()
        assert by_id.json()["event"]["eventId"] == data["eventId"]

    def test_unknown_event(self, client):
        resp = client.get("/events/does-not-exist")

        assert resp.status_code == 404
        assert resp.json() == {
            "error": "not_found",
            "detail": "Event not found",
            "context": {"event_id": "does-not-exist"},
        }

    def test_malformed_share_code(self, client):
        resp = client.get("/events/code/abc")

        assert resp.status_code == 400
        assert resp.json()["error"] == "bad_request"

    def test_unknown_share_code(self, client):
        assert client.get("/events/code/ZZZZZZ").status_code == 404

    def test_reversed_range_is_rejected(self, client):
        resp = client.post(
            "/events", json={**SKI_TRIP, "endDate": "2023-12-01T00:00:00"}
        )

        assert resp.status_code == 422

    def test_blank_title_is_rejected(self, client):
        resp = client.post("/events", json={**SKI_TRIP, "title": "   "})

        assert resp.status_code == 422

    def test_unknown_timeframe_type_is_rejected(self, client):
        resp = client.post("/events", json={**SKI_TRIP, "timeframeType": "fortnightly"})

        assert resp.status_code == 422

    def test_close_event(self, client):
        data = create(client)

        resp = client.post(f"/events/{data['eventId']}/close")

        assert resp.status_code == 200
        assert resp.json()["status"] == "closed"


class TestResponses:
    def test_submit_and_fetch(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]

        resp = vote(client, data["eventId"], "Bob", {t1: "preferred"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Responses submitted successfully"

        fetched = client.get(f"/events/{data['eventId']}/responses/{body['respondentId']}")
        assert fetched.status_code == 200
        (response,) = fetched.json()
        assert response["timeframeId"] == t1
        assert response["availability"] == "preferred"
        assert response["respondentName"] == "Bob"

    def test_update_responses(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]
        respondent_id = vote(client, data["eventId"], "Bob", {t1: "preferred"}).json()[
            "respondentId"
        ]

        resp = vote(client, data["eventId"], "Bob", {t1: "not_available"}, respondent_id)

        assert resp.status_code == 200
        assert resp.json()["message"] == "Responses updated successfully"
        fetched = client.get(f"/events/{data['eventId']}/responses/{respondent_id}").json()
        assert [r["availability"] for r in fetched] == ["not_available"]

    def test_update_unknown_respondent(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]

        resp = vote(client, data["eventId"], "Bob", {t1: "preferred"}, "nobody")

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Respondent not found"

    def test_respondent_id_with_separator_is_not_found(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]

        fetched = client.get(f"/events/{data['eventId']}/responses/abc%7Cdef")
        updated = vote(client, data["eventId"], "Bob", {t1: "preferred"}, "abc%7Cdef")

        assert fetched.status_code == 404
        assert fetched.json()["detail"] == "Respondent not found"
        assert updated.status_code == 404
        assert updated.json()["detail"] == "Respondent not found"

    def test_update_keeps_respondent_position_in_summary(self, client):
        data = create(client)
        event_id = data["eventId"]
        t1 = data["timeframes"][0]["timeframeId"]
        ann = vote(client, event_id, "Ann", {t1: "preferred"}).json()["respondentId"]
        vote(client, event_id, "Bob", {t1: "could_make"})

        vote(client, event_id, "Ann", {t1: "could_make"}, ann)

        summary = client.get(f"/events/{event_id}/summary").json()
        (first,) = [s for s in summary["timeframeSummaries"] if s["timeframeId"] == t1]
        assert [r["respondentName"] for r in first["respondents"]] == ["Ann", "Bob"]

    def test_unknown_timeframe(self, client):
        data = create(client)

        resp = vote(client, data["eventId"], "Bob", {"bogus": "preferred"})

        assert resp.status_code == 400
        assert resp.json()["context"] == {"timeframe_ids": ["bogus"]}

    def test_invalid_availability(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]

        resp = vote(client, data["eventId"], "Bob", {t1: "maybe"})

        assert resp.status_code == 422

    def test_empty_responses(self, client):
        data = create(client)

        resp = vote(client, data["eventId"], "Bob", {})

        assert resp.status_code == 422

    def test_closed_event_refuses_votes(self, client):
        data = create(client)
        t1 = data["timeframes"][0]["timeframeId"]
        client.post(f"/events/{data['eventId']}/close")

        resp = vote(client, data["eventId"], "Bob", {t1: "preferred"})

        assert resp.status_code == 409
        assert resp.json()["error"] == "conflict"


class TestSummary:
    def test_summary_ranking(self, client):
        data = create(client)
        event_id = data["eventId"]
        t1, t2, t3, t4 = (tf["timeframeId"] for tf in data["timeframes"])
        vote(client, event_id, "Bob", {t3: "preferred", t1: "not_available"})
        vote(client, event_id, "Cy", {t3: "could_make", t2: "could_make"})

        resp = client.get(f"/events/{event_id}/summary")

        assert resp.status_code == 200
        summary = resp.json()
        assert summary["totalRespondents"] == 2
        ranked = summary["timeframeSummaries"]
        assert [s["timeframeId"] for s in ranked] == [t3, t2, t4, t1]
        assert ranked[0]["score"] == 4
        assert ranked[0]["preferredCount"] == 1
        assert ranked[0]["couldMakeCount"] == 1
        assert ranked[-1]["notAvailableCount"] == 1
        assert ranked[-1]["score"] == -1

    def test_summary_unknown_event(self, client):
        assert client.get("/events/missing/summary").status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "backend": "redis", "store": "healthy"}
