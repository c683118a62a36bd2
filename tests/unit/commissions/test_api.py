"""
Test commission API endpoints
"""
from decimal import Decimal

import pytest

from commissions.service import CommissionService
from database.models import LeadStatus

pytestmark = pytest.mark.unit


@pytest.fixture
def commission(db_session, make_lead, va):
    lead = make_lead(va_id=va.id)
    lead.status = LeadStatus.SOLD
    db_session.commit()
    return CommissionService(db_session).create_commission_for_lead(lead)


class TestCommissionAPI:
    def test_list_due(self, superadmin_client, commission):
        response = superadmin_client.get("/api/commissions")

        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body] == [commission.id]
        assert Decimal(body[0]["amount"]) == Decimal("150.00")

    def test_filter_by_lead(self, superadmin_client, commission):
        response = superadmin_client.get("/api/commissions", params={"lead_id": commission.lead_id})

        assert [item["lead_id"] for item in response.json()] == [commission.lead_id]

    def test_manager_forbidden(self, manager_client, commission):
        assert manager_client.get("/api/commissions").status_code == 403

    def test_mark_paid(self, superadmin_client, commission, superadmin):
        response = superadmin_client.post(f"/api/commissions/mark-paid/{commission.id}")

        assert response.status_code == 200
        assert response.json()["is_paid"] is True
        assert response.json()["paid_by"] == superadmin.id
        assert superadmin_client.get("/api/commissions").json() == []

    def test_mark_paid_missing(self, superadmin_client):
        assert superadmin_client.post("/api/commissions/mark-paid/missing").status_code == 404

    def test_recalculate(self, superadmin_client, commission):
        response = superadmin_client.post(f"/api/commissions/recalculate/{commission.lead_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Commission recalculated"

    def test_recalculate_without_commission(self, superadmin_client, make_lead):
        lead = make_lead()

        response = superadmin_client.post(f"/api/commissions/recalculate/{lead.id}")

        assert response.json()["message"] == "No commission for this lead"

    def test_va_sees_own_commissions(self, va_client, commission):
        response = va_client.get("/api/commissions/mine")

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [commission.id]

    def test_admin_has_no_own_commissions_view(self, superadmin_client):
        assert superadmin_client.get("/api/commissions/mine").status_code == 403


class TestCommissionExport:
    def test_export_csv(self, superadmin_client, commission):
        response = superadmin_client.get("/api/commissions/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=commissions-" in response.headers["content-disposition"]

        lines = response.text.strip().splitlines()
        assert lines[0] == "Lead ID,VA Name,Vehicle,Commission Amount,Status,Created Date"
        assert lines[1].startswith(f"{commission.lead_id},Alice,2018 Toyota Corolla,$150.00,Due,")

    def test_export_forbidden_for_va(self, va_client):
        assert va_client.get("/api/commissions/export.csv").status_code == 403
