"""HTTP routes: status codes, wire shape and error translation."""

from datetime import datetime, timezone


def _created_at(body):
    return datetime.fromisoformat(body["createdAt"].replace("Z", "+00:00"))


def test_full_lifecycle(client):
    res = client.post("/api/messages", json={"text": "hi"})
    assert res.status_code == 201
    created = res.json()
    assert set(created) == {"id", "text", "createdAt"}
    assert created["text"] == "hi"
    assert created["id"] == 1
    assert _created_at(created).tzinfo is not None

    res = client.get("/api/messages")
    assert res.status_code == 200
    assert res.json() == [created]

    res = client.put("/api/messages/1", json={"text": "bye"})
    assert res.status_code == 200
    assert res.json() == {"id": 1, "text": "bye", "createdAt": created["createdAt"]}

    res = client.delete("/api/messages/1")
    assert res.status_code == 204
    assert res.content == b""

    assert client.get("/api/messages").json() == []

    res = client.put("/api/messages/1", json={"text": "x"})
    assert res.status_code == 404
    assert res.json() == {"error": "Message not found"}


def test_create_with_client_timestamp(client):
    res = client.post(
        "/api/messages", json={"text": "hi", "timestamp": "2025-01-15T18:00:00+08:00"}
    )
    assert res.status_code == 201
    assert _created_at(res.json()) == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def test_create_accepts_legacy_message_field(client):
    res = client.post("/api/messages", json={"message": "legacy"})
    assert res.status_code == 201
    assert res.json()["text"] == "legacy"


def test_list_newest_first(client):
    for text, ts in [
        ("t1", "2025-01-01T00:00:00Z"),
        ("t3", "2025-01-03T00:00:00Z"),
        ("t2", "2025-01-02T00:00:00Z"),
    ]:
        client.post("/api/messages", json={"text": text, "timestamp": ts})
    assert [m["text"] for m in client.get("/api/messages").json()] == ["t3", "t2", "t1"]


def test_create_empty_text_returns_400(client):
    for body in ({"text": ""}, {"text": "   "}, {}, {"text": 7}):
        res = client.post("/api/messages", json=body)
        assert res.status_code == 400
        assert res.json() == {"error": "Message text is required"}
    assert client.get("/api/messages").json() == []


def test_create_without_body_returns_400(client):
    res = client.post("/api/messages")
    assert res.status_code == 400
    assert "error" in res.json()


def test_create_malformed_json_returns_generic_500(client):
    res = client.post(
        "/api/messages",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 500
    assert res.json() == {"error": "Internal Server Error"}


def test_update_empty_text_returns_400(client):
    msg = client.post("/api/messages", json={"text": "hi"}).json()
    res = client.put(f"/api/messages/{msg['id']}", json={"text": " "})
    assert res.status_code == 400
    assert client.get("/api/messages").json()[0]["text"] == "hi"


def test_update_unknown_id_returns_404(client):
    res = client.put("/api/messages/42", json={"text": "x"})
    assert res.status_code == 404


def test_delete_unknown_id_returns_404(client):
    client.post("/api/messages", json={"text": "keep"})
    res = client.delete("/api/messages/42")
    assert res.status_code == 404
    assert res.json() == {"error": "Message not found"}
    assert len(client.get("/api/messages").json()) == 1


def test_non_integer_id_returns_404(client):
    assert client.delete("/api/messages/abc").status_code == 404
    assert client.put("/api/messages/abc", json={"text": "x"}).status_code == 404


def test_storage_fault_returns_generic_500(client):
    client.app.state.store.engine.dispose()
    with client.app.state.store.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE messages")

    res = client.get("/api/messages")
    assert res.status_code == 500
    assert res.json() == {"error": "Internal Server Error"}
    assert "messages" not in res.text


def test_responses_carry_request_id(client):
    res = client.get("/api/messages")
    assert res.headers["X-Request-ID"]


def test_create_with_out_of_range_timestamp_falls_back_to_now(client):
    before = datetime.now(timezone.utc)
    res = client.post(
        "/api/messages", json={"text": "hi", "timestamp": "0001-01-01T00:00:00+05:00"}
    )
    assert res.status_code == 201
    assert _created_at(res.json()) >= before.replace(microsecond=0)
