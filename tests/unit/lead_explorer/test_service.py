"""
Tests for LeadService business rules
"""
from decimal import Decimal

import pytest

from core.exceptions import AuthorizationError, DuplicateLeadError, NotFoundError, ValidationError
from database.models import Commission, LeadStatus, UserRole
from lead_explorer.service import LeadService

pytestmark = [pytest.mark.unit, pytest.mark.critical]


class TestCreateLead:
    def test_va_submission_assigned_to_own_record(self, db_session, lead_data, va, make_va):
        other_va = make_va(name="Bob")
        lead = LeadService(db_session).create_lead(lead_data(va_id=other_va.id), va.user_id)

        assert lead.va_id == va.id

    def test_admin_submission_keeps_chosen_va(self, db_session, lead_data, superadmin, va):
        lead = LeadService(db_session).create_lead(lead_data(va_id=va.id), superadmin.id)
        assert lead.va_id == va.id

    def test_admin_submission_without_va(self, db_session, lead_data, superadmin):
        lead = LeadService(db_session).create_lead(lead_data(), superadmin.id)
        assert lead.va_id is None

    def test_duplicate_url_rejected(self, db_session, lead_data, superadmin):
        service = LeadService(db_session)
        first = service.create_lead(lead_data(source_url="https://cars.example.com/listing/1"), superadmin.id)

        with pytest.raises(DuplicateLeadError) as exc_info:
            service.create_lead(
                lead_data(source_url="https://CARS.example.com/listing/1?ref=x", make="Ford", model="Focus"),
                superadmin.id,
            )

        assert exc_info.value.conflicting_lead_id == first.id
        assert exc_info.value.status_code == 409

    def test_similar_vehicle_rejected(self, db_session, lead_data, superadmin):
        service = LeadService(db_session)
        first = service.create_lead(lead_data(asking_price=Decimal("10000")), superadmin.id)

        with pytest.raises(DuplicateLeadError) as exc_info:
            service.create_lead(lead_data(asking_price=Decimal("10300")), superadmin.id)

        assert exc_info.value.details["conflicting_lead_id"] == first.id

    def test_unknown_va_rejected(self, db_session, lead_data, superadmin):
        with pytest.raises(ValidationError) as exc_info:
            LeadService(db_session).create_lead(lead_data(va_id="no-such-va"), superadmin.id)

        assert exc_info.value.details["field"] == "va_id"
        assert LeadService(db_session).list_leads({}, superadmin.id, UserRole.SUPERADMIN) == []

    def test_unknown_user(self, db_session, lead_data):
        with pytest.raises(NotFoundError):
            LeadService(db_session).create_lead(lead_data(), "missing-user")


class TestVisibility:
    def test_va_only_lists_own_leads(self, db_session, make_lead, va, make_va, superadmin):
        other = make_va(name="Bob")
        mine = make_lead(va_id=va.id)
        make_lead(va_id=other.id, make="Honda", model="Civic")
        service = LeadService(db_session)

        va_view = service.list_leads({"va_id": other.id}, va.user_id, UserRole.VA)
        admin_view = service.list_leads({}, superadmin.id, UserRole.SUPERADMIN)

        assert [lead.id for lead in va_view] == [mine.id]
        assert len(admin_view) == 2

    def test_va_cannot_fetch_other_va_lead(self, db_session, make_lead, va, make_va):
        other_lead = make_lead(va_id=make_va(name="Bob").id)

        with pytest.raises(NotFoundError):
            LeadService(db_session).get_visible_lead(other_lead.id, va.user_id, UserRole.VA)

    def test_va_without_record_sees_nothing(self, db_session, make_lead, make_user):
        make_lead()
        user = make_user(UserRole.VA)

        assert LeadService(db_session).list_leads({}, user.id, UserRole.VA) == []


class TestUpdateStatus:
    def test_sold_creates_commission(self, db_session, make_lead, va, superadmin):
        lead = make_lead(va_id=va.id)
        service = LeadService(db_session)

        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)

        commission = db_session.query(Commission).filter(Commission.lead_id == lead.id).one()
        # 10% of 1500 profit
        assert commission.amount == Decimal("150.00")
        assert commission.va_id == va.id
        assert commission.is_due and not commission.is_paid

    def test_sold_twice_keeps_single_commission(self, db_session, make_lead, va, superadmin):
        lead = make_lead(va_id=va.id)
        service = LeadService(db_session)

        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)
        service.update_status(lead.id, LeadStatus.BOUGHT, superadmin.id, UserRole.SUPERADMIN)
        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)

        assert db_session.query(Commission).filter(Commission.lead_id == lead.id).count() == 1

    def test_sold_without_va_creates_no_commission(self, db_session, make_lead, superadmin):
        lead = make_lead()
        LeadService(db_session).update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)

        assert db_session.query(Commission).count() == 0

    def test_va_cannot_change_status(self, db_session, make_lead, va):
        lead = make_lead(va_id=va.id)

        with pytest.raises(AuthorizationError):
            LeadService(db_session).update_status(lead.id, LeadStatus.APPROVED, va.user_id, UserRole.VA)

    def test_manager_cannot_mark_paid(self, db_session, make_lead, manager):
        lead = make_lead()

        with pytest.raises(AuthorizationError):
            LeadService(db_session).update_status(lead.id, LeadStatus.PAID, manager.id, UserRole.MANAGER)

    def test_events_newest_first(self, db_session, make_lead, superadmin):
        lead = make_lead(user_id=superadmin.id)
        service = LeadService(db_session)

        service.update_status(lead.id, LeadStatus.APPROVED, superadmin.id, UserRole.SUPERADMIN, notes="ok")
        service.update_status(lead.id, LeadStatus.CONTACTED, superadmin.id, UserRole.SUPERADMIN)

        events = service.get_lead_events(lead.id)
        assert [event.to_status for event in events] == [
            LeadStatus.CONTACTED,
            LeadStatus.APPROVED,
            LeadStatus.PENDING,
        ]


class TestUpdateLead:
    def test_price_edit_recalculates_unpaid_commission(self, db_session, make_lead, va, superadmin):
        lead = make_lead(va_id=va.id)
        service = LeadService(db_session)
        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)

        service.update_lead(lead.id, {"estimated_sale_price": Decimal("14000")})

        commission = db_session.query(Commission).filter(Commission.lead_id == lead.id).one()
        db_session.refresh(commission)
        assert commission.amount == Decimal("350.00")

    def test_url_edit_to_existing_listing_rejected(self, db_session, make_lead):
        first = make_lead(source_url="https://cars.example.com/listing/a")
        second = make_lead(source_url="https://cars.example.com/listing/b", make="Honda", model="Civic")

        with pytest.raises(DuplicateLeadError):
            LeadService(db_session).update_lead(second.id, {"source_url": "https://cars.example.com/listing/a?x=1"})

        assert first.id != second.id

    def test_missing_lead(self, db_session):
        with pytest.raises(NotFoundError):
            LeadService(db_session).update_lead("missing", {"make": "Kia"})

    def test_reassigning_va_moves_unpaid_commission(self, db_session, make_lead, make_va, superadmin):
        first = make_va(name="Bea", commission_percentage=Decimal("0.10"))
        second = make_va(name="Cleo", commission_percentage=Decimal("0.20"))
        lead = make_lead(va_id=first.id)
        service = LeadService(db_session)
        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)

        service.update_lead(lead.id, {"va_id": second.id})

        commission = db_session.query(Commission).filter(Commission.lead_id == lead.id).one()
        db_session.refresh(commission)
        assert commission.va_id == second.id
        # 20% of 1500 profit
        assert commission.amount == Decimal("300.00")

    def test_reassigning_va_leaves_paid_commission(self, db_session, make_lead, make_va, superadmin):
        first = make_va(name="Bea", commission_percentage=Decimal("0.10"))
        second = make_va(name="Cleo", commission_percentage=Decimal("0.20"))
        lead = make_lead(va_id=first.id)
        service = LeadService(db_session)
        service.update_status(lead.id, LeadStatus.SOLD, superadmin.id, UserRole.SUPERADMIN)
        commission = db_session.query(Commission).filter(Commission.lead_id == lead.id).one()
        service.commissions.mark_paid(commission.id, superadmin.id)

        service.update_lead(lead.id, {"va_id": second.id})

        db_session.refresh(commission)
        assert commission.va_id == first.id
        assert commission.amount == Decimal("150.00")

    def test_unknown_va_rejected(self, db_session, make_lead, va):
        lead = make_lead(va_id=va.id)

        with pytest.raises(ValidationError):
            LeadService(db_session).update_lead(lead.id, {"va_id": "no-such-va"})

        db_session.refresh(lead)
        assert lead.va_id == va.id
