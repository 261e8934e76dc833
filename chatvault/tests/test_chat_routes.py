"""Route tests for chat creation, listing, retrieval and append."""

import uuid


def _create(client, headers, text="Hello there"):
    resp = client.post("/api/chats", json={"text": text}, headers=headers)
    assert resp.status_code == 201
    return resp.json()["chatId"]


class TestCreateChat:
    def test_returns_201_with_chat_id(self, client, alice):
        resp = client.post("/api/chats", json={"text": "What is a prime number?"}, headers=alice)
        assert resp.status_code == 201
        body = resp.json()
        assert set(body) == {"chatId"}
        uuid.UUID(body["chatId"])

    def test_created_chat_has_single_user_entry(self, client, alice):
        chat_id = _create(client, alice, "What is a prime number?")
        chat = client.get(f"/api/chats/{chat_id}", headers=alice).json()
        assert chat["id"] == chat_id
        assert chat["userId"] == "user_alice"
        assert chat["history"] == [
            {"role": "user", "parts": [{"text": "What is a prime number?"}]}
        ]

    def test_chat_appears_in_user_list_with_truncated_title(self, client, alice):
        text = "x" * 45
        chat_id = _create(client, alice, text)
        chats = client.get("/api/userchats", headers=alice).json()
        assert len(chats) == 1
        assert chats[0]["chatId"] == chat_id
        assert chats[0]["title"] == "x" * 40
        assert "createdAt" in chats[0]

    def test_missing_text_is_400(self, client, alice, memory_repo):
        resp = client.post("/api/chats", json={}, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"
        assert memory_repo.list_user_chats("user_alice") == []

    def test_empty_text_is_400(self, client, alice):
        assert client.post("/api/chats", json={"text": ""}, headers=alice).status_code == 400

    def test_whitespace_only_text_creates_chat(self, client, alice):
        chat_id = _create(client, alice, "   ")
        chats = client.get("/api/userchats", headers=alice).json()
        assert [(c["chatId"], c["title"]) for c in chats] == [(chat_id, "   ")]

    def test_non_string_text_is_400(self, client, alice):
        resp = client.post("/api/chats", json={"text": 42}, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_missing_body_is_400(self, client, alice):
        resp = client.post("/api/chats", headers=alice)
        assert resp.status_code == 400

    def test_unauthenticated_is_401(self, client, memory_repo):
        resp = client.post("/api/chats", json={"text": "hi"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Unauthorized", "error": "UNAUTHORIZED"}


class TestListUserChats:
    def test_empty_list_for_new_user(self, client, alice):
        resp = client.get("/api/userchats", headers=alice)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_creation_order_preserved(self, client, alice):
        ids = [_create(client, alice, f"chat number {i}") for i in range(3)]
        chats = client.get("/api/userchats", headers=alice).json()
        assert [c["chatId"] for c in chats] == ids
        assert [c["title"] for c in chats] == ["chat number 0", "chat number 1", "chat number 2"]

    def test_users_see_only_their_chats(self, client, alice, bob):
        a = _create(client, alice, "alice chat")
        b = _create(client, bob, "bob chat")
        assert [c["chatId"] for c in client.get("/api/userchats", headers=alice).json()] == [a]
        assert [c["chatId"] for c in client.get("/api/userchats", headers=bob).json()] == [b]

    def test_unauthenticated_is_401(self, client):
        assert client.get("/api/userchats").status_code == 401


class TestGetChat:
    def test_other_users_chat_is_404(self, client, alice, bob):
        chat_id = _create(client, alice)
        resp = client.get(f"/api/chats/{chat_id}", headers=bob)
        assert resp.status_code == 404
        assert resp.json() == {"message": "Chat not found", "error": "CHAT_NOT_FOUND"}

    def test_unknown_chat_is_404(self, client, alice):
        resp = client.get(f"/api/chats/{uuid.uuid4()}", headers=alice)
        assert resp.status_code == 404

    def test_unauthenticated_is_401(self, client, alice):
        chat_id = _create(client, alice)
        assert client.get(f"/api/chats/{chat_id}").status_code == 401


class TestAppendToChat:
    def test_question_answer_and_image(self, client, alice):
        chat_id = _create(client, alice, "first")
        resp = client.put(
            f"/api/chats/{chat_id}",
            json={"question": "what is this?", "answer": "a cat", "img": "/uploads/cat.png"},
            headers=alice,
        )
        assert resp.status_code == 200
        assert resp.json() == {"acknowledged": True, "modifiedCount": 1, "appended": 2}

        history = client.get(f"/api/chats/{chat_id}", headers=alice).json()["history"]
        assert history == [
            {"role": "user", "parts": [{"text": "first"}]},
            {"role": "user", "parts": [{"text": "what is this?"}], "img": "/uploads/cat.png"},
            {"role": "model", "parts": [{"text": "a cat"}]},
        ]

    def test_answer_only_appends_one_model_entry(self, client, alice):
        chat_id = _create(client, alice, "first")
        resp = client.put(f"/api/chats/{chat_id}", json={"answer": "hello"}, headers=alice)
        assert resp.status_code == 200
        assert resp.json()["appended"] == 1

        history = client.get(f"/api/chats/{chat_id}", headers=alice).json()["history"]
        assert len(history) == 2
        assert history[-1] == {"role": "model", "parts": [{"text": "hello"}]}

    def test_empty_question_is_skipped(self, client, alice):
        chat_id = _create(client, alice, "first")
        resp = client.put(
            f"/api/chats/{chat_id}", json={"question": "", "answer": "ok"}, headers=alice,
        )
        assert resp.json()["appended"] == 1

    def test_appends_accumulate_in_order(self, client, alice):
        chat_id = _create(client, alice, "q0")
        client.put(f"/api/chats/{chat_id}", json={"answer": "a0"}, headers=alice)
        client.put(f"/api/chats/{chat_id}", json={"question": "q1", "answer": "a1"}, headers=alice)
        history = client.get(f"/api/chats/{chat_id}", headers=alice).json()["history"]
        assert [(e["role"], e["parts"][0]["text"]) for e in history] == [
            ("user", "q0"), ("model", "a0"), ("user", "q1"), ("model", "a1"),
        ]

    def test_missing_answer_is_400_and_history_unchanged(self, client, alice):
        chat_id = _create(client, alice, "first")
        resp = client.put(f"/api/chats/{chat_id}", json={"question": "q"}, headers=alice)
        assert resp.status_code == 400
        history = client.get(f"/api/chats/{chat_id}", headers=alice).json()["history"]
        assert len(history) == 1

    def test_other_users_chat_is_404_and_unchanged(self, client, alice, bob):
        chat_id = _create(client, alice, "first")
        resp = client.put(
            f"/api/chats/{chat_id}", json={"question": "q", "answer": "a"}, headers=bob,
        )
        assert resp.status_code == 404
        history = client.get(f"/api/chats/{chat_id}", headers=alice).json()["history"]
        assert len(history) == 1

    def test_unknown_chat_is_404(self, client, alice):
        resp = client.put(f"/api/chats/{uuid.uuid4()}", json={"answer": "a"}, headers=alice)
        assert resp.status_code == 404

    def test_does_not_change_chat_list(self, client, alice):
        chat_id = _create(client, alice, "first")
        before = client.get("/api/userchats", headers=alice).json()
        client.put(f"/api/chats/{chat_id}", json={"question": "q", "answer": "a"}, headers=alice)
        assert client.get("/api/userchats", headers=alice).json() == before


def test_cors_preflight_allows_client_origin(client):
    resp = client.options(
        "/api/chats",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert resp.headers["access-control-allow-credentials"] == "true"
