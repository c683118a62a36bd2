"""
Tests for VA administration, including transactional VA deletion
"""
from decimal import Decimal

import pytest

from account_management.auth_service import AuthService
from account_management.va_service import VAService, percent_to_fraction
from commissions.service import CommissionService
from core.audit import AuditLogger
from core.exceptions import DuplicateError, NotFoundError
from database.models import VA, AuditAction, AuditLog, Commission, Lead, LeadEvent, LeadStatus, MagicToken, User

pytestmark = [pytest.mark.unit, pytest.mark.critical]


def test_percent_to_fraction():
    assert percent_to_fraction(Decimal("12.5")) == Decimal("0.1250")
    assert percent_to_fraction("10") == Decimal("0.1000")
    assert percent_to_fraction(None) is None


class TestVAService:
    def test_create_unlinked_va(self, db_session):
        va = VAService(db_session).create_va(name="Legacy", commission_percentage=Decimal("15"))

        assert va.user_id is None
        assert va.commission_percentage == Decimal("0.15")

    def test_user_can_only_have_one_va(self, db_session, va):
        with pytest.raises(DuplicateError):
            VAService(db_session).create_va(name="Again", user_id=va.user_id)

    def test_create_for_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            VAService(db_session).create_va(name="Ghost", user_id="missing")

    def test_update_va(self, db_session, va):
        updated = VAService(db_session).update_va(va.id, {"timezone": "America/Chicago", "user_id": "ignored"})

        assert updated.timezone == "America/Chicago"
        assert updated.user_id != "ignored"

    def test_set_commission_percentage(self, db_session, va):
        updated = VAService(db_session).set_commission_percentage(va.id, Decimal("20"))
        assert updated.commission_percentage == Decimal("0.2")

    def test_create_va_account(self, db_session):
        user, va, password = VAService(db_session).create_va_account("new.va@example.com", "Erin", Decimal("12"))

        assert va.user_id == user.id
        assert va.commission_percentage == Decimal("0.12")
        assert AuthService.authenticate_user(db_session, "new.va@example.com", password).id == user.id

    def test_create_va_account_duplicate_email(self, db_session, superadmin):
        with pytest.raises(DuplicateError):
            VAService(db_session).create_va_account("admin@example.com", "Erin", Decimal("10"))

        assert db_session.query(VA).count() == 0


class TestDeleteVA:
    def test_delete_detaches_and_anonymizes(self, db_session, va, make_lead, superadmin):
        va_id, user_id = va.id, va.user_id
        lead = make_lead(va_id=va_id, user_id=user_id)
        lead.status = LeadStatus.SOLD
        db_session.commit()
        commission = CommissionService(db_session).create_commission_for_lead(lead)
        AuthService.create_magic_link(db_session, va.user.email)
        AuditLogger(db_session).record(AuditAction.LOGIN, user_id, "user", user_id)

        name = VAService(db_session).delete_va(va_id)

        db_session.expire_all()
        assert name == "Alice"
        assert db_session.get(VA, va_id) is None
        assert db_session.get(User, user_id) is None
        assert db_session.get(Lead, lead.id).va_id is None
        assert db_session.get(Commission, commission.id).va_id is None
        assert db_session.query(MagicToken).count() == 0
        assert db_session.query(AuditLog).filter(AuditLog.user_id == user_id).count() == 0
        assert db_session.query(AuditLog).count() == 1
        assert db_session.query(LeadEvent).filter(LeadEvent.lead_id == lead.id).one().user_id is None

    def test_deleted_lead_reports_admin(self, db_session, va, make_lead):
        lead = make_lead(va_id=va.id)

        VAService(db_session).delete_va(va.id)

        db_session.expire_all()
        assert db_session.get(Lead, lead.id).va_name == "Admin"

    def test_delete_unlinked_va(self, db_session, make_va):
        va = make_va(name="Legacy", with_user=False)
        assert VAService(db_session).delete_va(va.id) == "Legacy"

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            VAService(db_session).delete_va("missing")
