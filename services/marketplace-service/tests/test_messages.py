"""Tests for direct messaging between users."""

from datetime import datetime

import pytest

from app.models import Message, Notification
from helpers import auth_headers, create_message


def unread_for(client, user):
    response = client.get("/api/messages/unread-count", headers=auth_headers(user))
    return response.json()["unread_count"]


class TestSendMessage:
    """Test POST /api/messages."""

    def test_send_message(self, client, db_session, investor, owner):
        response = client.post(
            "/api/messages",
            json={"receiver_id": owner.id, "subject": "Hello", "content": "Is the plan on track?"},
            headers=auth_headers(investor),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Message sent successfully"
        assert data["data"]["status"] == "UNREAD"
        assert data["data"]["sender"]["id"] == investor.id
        assert data["data"]["receiver"]["id"] == owner.id

        notification = (
            db_session.query(Notification).filter(Notification.user_id == owner.id).one()
        )
        assert notification.title == "New Message Received"
        assert notification.content == "You have received a new message from Ada Obi: Hello"

    def test_cannot_message_self(self, client, investor):
        response = client.post(
            "/api/messages",
            json={"receiver_id": investor.id, "subject": "Note", "content": "To self"},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot send message to yourself"

    def test_unknown_receiver(self, client, db_session, investor):
        response = client.post(
            "/api/messages",
            json={"receiver_id": "missing", "subject": "Hi", "content": "Anyone there?"},
            headers=auth_headers(investor),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Receiver not found"
        assert db_session.query(Message).count() == 0

    def test_empty_subject_fails_validation(self, client, investor, owner):
        response = client.post(
            "/api/messages",
            json={"receiver_id": owner.id, "subject": "", "content": "Body"},
            headers=auth_headers(investor),
        )
        assert response.status_code == 400


class TestListMessages:
    """Test GET /api/messages."""

    @pytest.fixture
    def inbox(self, db_session, investor, second_investor, owner):
        first = create_message(
            db_session, investor, owner, subject="First", created_at=datetime(2026, 5, 1)
        )
        second = create_message(
            db_session, second_investor, owner, subject="Second", created_at=datetime(2026, 5, 2)
        )
        reply = create_message(
            db_session, owner, investor, subject="Reply", created_at=datetime(2026, 5, 3)
        )
        return {"first": first, "second": second, "reply": reply}

    def test_received_messages_newest_first(self, client, owner, inbox):
        response = client.get("/api/messages", headers=auth_headers(owner))

        assert response.status_code == 200
        data = response.json()
        assert [m["subject"] for m in data["messages"]] == ["Second", "First"]
        assert data["pagination"]["total"] == 2

    def test_listing_received_marks_read(self, client, owner, inbox):
        assert unread_for(client, owner) == 2

        first = client.get("/api/messages", headers=auth_headers(owner)).json()
        assert {m["status"] for m in first["messages"]} == {"UNREAD"}
        assert unread_for(client, owner) == 0

        second = client.get("/api/messages", headers=auth_headers(owner)).json()
        assert {m["status"] for m in second["messages"]} == {"READ"}

    def test_sent_messages_do_not_mark_read(self, client, investor, owner, inbox):
        response = client.get(
            "/api/messages", params={"type": "sent"}, headers=auth_headers(investor)
        )

        assert [m["subject"] for m in response.json()["messages"]] == ["First"]
        assert unread_for(client, owner) == 2
        assert unread_for(client, investor) == 1

    def test_unknown_type_fails_validation(self, client, owner):
        response = client.get(
            "/api/messages", params={"type": "archived"}, headers=auth_headers(owner)
        )
        assert response.status_code == 400


class TestConversations:
    """Test the conversation endpoints."""

    @pytest.fixture
    def threads(self, db_session, investor, second_investor, owner):
        create_message(
            db_session, investor, owner, subject="Question", created_at=datetime(2026, 6, 1)
        )
        create_message(
            db_session, owner, investor, subject="Answer", created_at=datetime(2026, 6, 2)
        )
        create_message(
            db_session, owner, investor, subject="Follow-up", created_at=datetime(2026, 6, 3)
        )
        create_message(
            db_session,
            investor,
            second_investor,
            subject="Co-invest?",
            created_at=datetime(2026, 6, 5),
        )

    def test_conversation_list(self, client, investor, second_investor, owner, threads):
        response = client.get("/api/messages/conversations", headers=auth_headers(investor))

        assert response.status_code == 200
        conversations = response.json()["conversations"]
        assert [c["user"]["id"] for c in conversations] == [second_investor.id, owner.id]
        assert conversations[0]["latest_message"]["subject"] == "Co-invest?"
        assert conversations[0]["unread_count"] == 0
        assert conversations[1]["latest_message"]["subject"] == "Follow-up"
        assert conversations[1]["unread_count"] == 2

    def test_no_conversations(self, client, admin):
        response = client.get("/api/messages/conversations", headers=auth_headers(admin))
        assert response.json() == {"conversations": []}

    def test_thread_is_chronological_and_marks_read(self, client, investor, owner, threads):
        response = client.get(
            f"/api/messages/conversations/{owner.id}", headers=auth_headers(investor)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["other_user"]["id"] == owner.id
        assert [m["subject"] for m in data["messages"]] == ["Question", "Answer", "Follow-up"]
        assert data["messages"][2]["status"] == "UNREAD"

        # Only the other side's messages to the caller are marked
        assert unread_for(client, investor) == 0
        assert unread_for(client, owner) == 1

    def test_thread_with_unknown_user(self, client, investor):
        response = client.get(
            "/api/messages/conversations/missing", headers=auth_headers(investor)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"
