"""
Tests for the investment endpoints.

Covers submission rules, capacity accounting, the status lifecycle,
cancellation and return recording.
"""

from datetime import datetime
from unittest.mock import patch

import pytest

from app.domain.entities import BusinessStatus, InvestmentStatus
from app.domain.exceptions import ConcurrentModificationError
from app.models import Investment, Notification
from app.services import investment_service
from helpers import (auth_headers, create_business, create_investment,
                     create_return)


def notifications_for(db, user, title):
    return (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.title == title)
        .all()
    )


class TestCreateInvestment:
    """Test POST /api/investments."""

    def test_create_investment_success(self, client, db_session, investor, owner, business):
        """A valid investment starts PENDING and counts toward raised capital."""
        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 50_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Investment submitted successfully"
        assert data["investment"]["status"] == "PENDING"
        assert data["investment"]["amount"] == 50_000
        assert data["investment"]["business"]["title"] == "Lagos Solar Farms"
        assert data["investment"]["investor"]["id"] == investor.id

        db_session.refresh(business)
        assert business.current_raised == 50_000
        assert business.status == BusinessStatus.OPEN.value

    def test_create_investment_notifies_both_parties(
        self, client, db_session, investor, owner, business
    ):
        client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 50_000},
            headers=auth_headers(investor),
        )

        owner_notes = notifications_for(db_session, owner, "New Investment Received")
        assert len(owner_notes) == 1
        assert "Ada Obi has invested ₦50,000 in Lagos Solar Farms" in owner_notes[0].content
        assert len(notifications_for(db_session, investor, "Investment Submitted")) == 1

    def test_filling_target_marks_business_funded(self, client, db_session, investor, owner):
        business = create_business(
            db_session, owner, target_capital=100_000.0, minimum_investment=1_000.0
        )

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 100_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 201
        db_session.refresh(business)
        assert business.status == BusinessStatus.FUNDED.value
        assert business.current_raised == 100_000

    def test_only_investors_can_invest(self, client, owner, business):
        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 50_000},
            headers=auth_headers(owner),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Only investors can make investments"

    def test_unknown_business(self, client, investor):
        response = client.post(
            "/api/investments",
            json={"business_id": "missing-business", "amount": 50_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Business opportunity not found"

    def test_closed_business_rejected(self, client, db_session, investor, owner):
        business = create_business(db_session, owner, status=BusinessStatus.CLOSED.value)

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 50_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "This investment opportunity is no longer open"

    def test_below_minimum_rejected(self, client, db_session, investor, business):
        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 5_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Minimum investment amount is ₦10,000"
        db_session.refresh(business)
        assert business.current_raised == 0

    def test_exceeding_remaining_capacity_rejected(
        self, client, db_session, investor, second_investor, owner
    ):
        business = create_business(
            db_session, owner, target_capital=100_000.0, minimum_investment=1_000.0
        )
        create_investment(db_session, second_investor, business, 80_000)

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 30_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Investment amount exceeds remaining capacity. Maximum available: ₦20,000"
        )
        db_session.refresh(business)
        assert business.current_raised == 80_000

    def test_duplicate_open_investment_rejected(self, client, db_session, investor, business):
        create_investment(db_session, investor, business, 20_000)

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 20_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "You already have an active investment in this opportunity"
        )

    def test_reinvest_after_cancellation(self, client, db_session, investor, business):
        create_investment(
            db_session, investor, business, 20_000, status=InvestmentStatus.CANCELLED
        )

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 20_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 201

    def test_invalid_amount_fails_validation(self, client, investor, business):
        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 0},
            headers=auth_headers(investor),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation failed"
        assert data["details"][0]["loc"] == ["body", "amount"]

    def test_requires_authentication(self, client, business):
        response = client.post(
            "/api/investments", json={"business_id": business.id, "amount": 50_000}
        )
        assert response.status_code == 401


class TestListInvestments:
    """Test GET /api/investments and GET /api/investments/business."""

    @pytest.fixture
    def portfolio(self, db_session, investor, second_investor, owner, other_owner, business):
        other_business = create_business(
            db_session, other_owner, title="Abuja Cold Storage", industry="Agriculture"
        )
        active = create_investment(
            db_session,
            investor,
            business,
            100_000,
            status=InvestmentStatus.ACTIVE,
            created_at=datetime(2026, 1, 10),
        )
        create_return(db_session, active, 5_000)
        pending = create_investment(
            db_session, investor, other_business, 50_000, created_at=datetime(2026, 2, 10)
        )
        theirs = create_investment(
            db_session, second_investor, business, 30_000, created_at=datetime(2026, 3, 10)
        )
        return {"active": active, "pending": pending, "theirs": theirs}

    def test_investor_lists_own_investments(self, client, investor, portfolio):
        response = client.get("/api/investments", headers=auth_headers(investor))

        assert response.status_code == 200
        data = response.json()
        assert [inv["id"] for inv in data["investments"]] == [
            portfolio["pending"].id,
            portfolio["active"].id,
        ]
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 2, "pages": 1}
        assert data["summary"] == {
            "total_invested": 150_000,
            "total_returns": 5_000,
            "total_value": 155_000,
            "active_investments": 1,
            "pending_investments": 1,
        }

    def test_status_filter_applies_to_summary(self, client, investor, portfolio):
        response = client.get(
            "/api/investments", params={"status": "ACTIVE"}, headers=auth_headers(investor)
        )

        data = response.json()
        assert len(data["investments"]) == 1
        assert data["investments"][0]["returns"][0]["amount"] == 5_000
        assert data["summary"]["total_invested"] == 100_000
        assert data["summary"]["pending_investments"] == 0

    def test_summary_covers_all_pages(self, client, investor, portfolio):
        response = client.get(
            "/api/investments", params={"limit": 1}, headers=auth_headers(investor)
        )

        data = response.json()
        assert len(data["investments"]) == 1
        assert data["pagination"]["pages"] == 2
        assert data["summary"]["total_invested"] == 150_000

    def test_owner_sees_investments_into_own_businesses(self, client, owner, portfolio):
        response = client.get("/api/investments/business", headers=auth_headers(owner))

        assert response.status_code == 200
        ids = {inv["id"] for inv in response.json()["investments"]}
        assert ids == {portfolio["active"].id, portfolio["theirs"].id}

    def test_admin_sees_every_investment(self, client, admin, portfolio):
        response = client.get("/api/investments/business", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 3

    def test_investor_cannot_list_business_investments(self, client, investor, portfolio):
        response = client.get("/api/investments/business", headers=auth_headers(investor))

        assert response.status_code == 403
        assert response.json()["error"] == (
            "Access denied. Business owner or administrator role required."
        )

    def test_invalid_status_filter(self, client, investor):
        response = client.get(
            "/api/investments", params={"status": "LOST"}, headers=auth_headers(investor)
        )
        assert response.status_code == 400


class TestGetInvestment:
    """Test GET /api/investments/{id}."""

    def test_investor_sees_performance(self, client, db_session, investor, business):
        investment = create_investment(
            db_session, investor, business, 100_000, status=InvestmentStatus.ACTIVE
        )
        create_return(db_session, investment, 5_000)
        create_return(db_session, investment, 3_000)

        response = client.get(f"/api/investments/{investment.id}", headers=auth_headers(investor))

        assert response.status_code == 200
        data = response.json()["investment"]
        performance = data["performance"]
        assert performance["total_returns"] == 8_000
        assert performance["current_value"] == 108_000
        assert performance["roi"] == pytest.approx(8.0)
        assert performance["return_count"] == 2
        assert len(data["returns"]) == 2

    def test_business_owner_can_view(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 20_000)

        response = client.get(f"/api/investments/{investment.id}", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["investment"]["performance"]["roi"] == 0

    def test_unrelated_user_forbidden(self, client, db_session, investor, second_investor, business):
        investment = create_investment(db_session, investor, business, 20_000)

        response = client.get(
            f"/api/investments/{investment.id}", headers=auth_headers(second_investor)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Not authorized to view this investment"

    def test_missing_investment(self, client, investor):
        response = client.get("/api/investments/missing", headers=auth_headers(investor))

        assert response.status_code == 404
        assert response.json()["error"] == "Investment not found"


class TestUpdateInvestmentStatus:
    """Test PATCH /api/investments/{id}."""

    def test_owner_approves_investment(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "ACTIVE", "note": "Welcome aboard"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json()["investment"]["status"] == "ACTIVE"

        notes = notifications_for(db_session, investor, "Investment Status Updated")
        assert len(notes) == 1
        assert notes[0].content == (
            "Your investment has been approved and is now active for Lagos Solar Farms. "
            "Note: Welcome aboard"
        )

        db_session.refresh(business)
        assert business.current_raised == 50_000

    def test_admin_can_update(self, client, db_session, investor, admin, business):
        investment = create_investment(
            db_session, investor, business, 50_000, status=InvestmentStatus.ACTIVE
        )

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "COMPLETED"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["investment"]["status"] == "COMPLETED"
        db_session.refresh(business)
        assert business.current_raised == 50_000

    def test_investor_cannot_update(self, client, db_session, investor, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "ACTIVE"},
            headers=auth_headers(investor),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Not authorized to update this investment"

    def test_other_owner_cannot_update(self, client, db_session, investor, other_owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "ACTIVE"},
            headers=auth_headers(other_owner),
        )

        assert response.status_code == 403

    def test_skipping_approval_rejected(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "COMPLETED"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Cannot change investment status from PENDING to COMPLETED"
        )

    def test_same_status_rejected(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "PENDING"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Investment is already PENDING"

    def test_terminal_status_is_final(self, client, db_session, investor, owner, business):
        investment = create_investment(
            db_session, investor, business, 50_000, status=InvestmentStatus.COMPLETED
        )

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "ACTIVE"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400

    def test_owner_cancellation_releases_capacity(
        self, client, db_session, investor, owner, business
    ):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "CANCELLED"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        db_session.refresh(business)
        assert business.current_raised == 0

    def test_cancellation_reopens_funded_business(self, client, db_session, investor, owner):
        business = create_business(
            db_session,
            owner,
            target_capital=100_000.0,
            minimum_investment=1_000.0,
            status=BusinessStatus.FUNDED.value,
        )
        investment = create_investment(db_session, investor, business, 100_000)

        response = client.patch(
            f"/api/investments/{investment.id}",
            json={"status": "CANCELLED"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        db_session.refresh(business)
        assert business.status == BusinessStatus.OPEN.value
        assert business.current_raised == 0

    def test_concurrent_change_returns_conflict(
        self, client, db_session, investor, owner, business
    ):
        investment = create_investment(db_session, investor, business, 50_000)

        with patch(
            "app.services.investment_service._compare_and_set_status",
            side_effect=ConcurrentModificationError("Investment", investment.id),
        ):
            response = client.patch(
                f"/api/investments/{investment.id}",
                json={"status": "ACTIVE"},
                headers=auth_headers(owner),
            )

        assert response.status_code == 409
        assert response.json()["error"] == (
            "Investment was modified by another request, please retry"
        )

    def test_compare_and_set_detects_stale_status(self, db_session, investor, business):
        investment = create_investment(db_session, investor, business, 50_000)

        with pytest.raises(ConcurrentModificationError):
            investment_service._compare_and_set_status(
                db_session, investment, InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED
            )
        db_session.rollback()

        stored = db_session.query(Investment).filter(Investment.id == investment.id).one()
        assert stored.status == InvestmentStatus.PENDING.value


class TestCancelInvestment:
    """Test DELETE /api/investments/{id}."""

    def test_investor_cancels_pending(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.delete(
            f"/api/investments/{investment.id}", headers=auth_headers(investor)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Investment cancelled successfully"
        assert data["investment"]["status"] == "CANCELLED"

        db_session.refresh(business)
        assert business.current_raised == 0
        notes = notifications_for(db_session, owner, "Investment Cancelled")
        assert len(notes) == 1
        assert "₦50,000" in notes[0].content

    def test_cannot_cancel_active(self, client, db_session, investor, business):
        investment = create_investment(
            db_session, investor, business, 50_000, status=InvestmentStatus.ACTIVE
        )

        response = client.delete(
            f"/api/investments/{investment.id}", headers=auth_headers(investor)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Can only cancel pending investments"

    def test_only_investor_can_cancel(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 50_000)

        response = client.delete(f"/api/investments/{investment.id}", headers=auth_headers(owner))

        assert response.status_code == 403
        assert response.json()["error"] == "Not authorized to cancel this investment"

    def test_cancel_then_reinvest(self, client, db_session, investor, business):
        investment = create_investment(db_session, investor, business, 50_000)
        client.delete(f"/api/investments/{investment.id}", headers=auth_headers(investor))

        response = client.post(
            "/api/investments",
            json={"business_id": business.id, "amount": 40_000},
            headers=auth_headers(investor),
        )

        assert response.status_code == 201
        db_session.refresh(business)
        assert business.current_raised == 40_000


class TestRecordReturn:
    """Test POST /api/investments/{id}/returns."""

    def test_owner_records_return(self, client, db_session, investor, owner, business):
        investment = create_investment(
            db_session, investor, business, 100_000, status=InvestmentStatus.ACTIVE
        )

        response = client.post(
            f"/api/investments/{investment.id}/returns",
            json={"amount": 12_000, "description": "Q1 dividend"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 201
        assert response.json()["investment_return"]["amount"] == 12_000

        notes = notifications_for(db_session, investor, "Return Received")
        assert len(notes) == 1
        assert "₦12,000" in notes[0].content

        detail = client.get(f"/api/investments/{investment.id}", headers=auth_headers(investor))
        assert detail.json()["investment"]["performance"]["roi"] == pytest.approx(12.0)

    def test_pending_investment_rejected(self, client, db_session, investor, owner, business):
        investment = create_investment(db_session, investor, business, 100_000)

        response = client.post(
            f"/api/investments/{investment.id}/returns",
            json={"amount": 12_000, "description": "Early payout"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Returns can only be recorded for active or completed investments"
        )

    def test_investor_cannot_record_return(self, client, db_session, investor, business):
        investment = create_investment(
            db_session, investor, business, 100_000, status=InvestmentStatus.ACTIVE
        )

        response = client.post(
            f"/api/investments/{investment.id}/returns",
            json={"amount": 12_000, "description": "Self payout"},
            headers=auth_headers(investor),
        )

        assert response.status_code == 403

    def test_non_positive_amount_rejected(self, client, db_session, investor, owner, business):
        investment = create_investment(
            db_session, investor, business, 100_000, status=InvestmentStatus.ACTIVE
        )

        response = client.post(
            f"/api/investments/{investment.id}/returns",
            json={"amount": 0, "description": "Nothing"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
