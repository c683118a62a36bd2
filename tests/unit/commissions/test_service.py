"""
Tests for commission calculation, payouts and export
"""
import csv
import io
from decimal import Decimal

import pytest

from commissions.service import CSV_HEADERS, CommissionService, calculate_commission
from core.exceptions import NotFoundError
from database.models import Commission, LeadStatus
from system_settings.repository import SettingsRepository

pytestmark = [pytest.mark.unit, pytest.mark.critical]


@pytest.fixture
def sold_lead(db_session, make_lead, va):
    lead = make_lead(va_id=va.id)
    lead.status = LeadStatus.SOLD
    db_session.commit()
    return lead


class TestCalculateCommission:
    def test_rounds_to_cents(self):
        assert calculate_commission(Decimal("1234.56"), Decimal("0.1")) == Decimal("123.46")

    def test_never_negative(self):
        assert calculate_commission(Decimal("-100"), Decimal("0.1")) == Decimal("0.00")


class TestEffectiveRate:
    def test_falls_back_to_configured_default(self, db_session, va):
        assert CommissionService(db_session).get_effective_rate(va) == Decimal("0.1")

    def test_global_setting_overrides_default(self, db_session, va):
        SettingsRepository(db_session).set("commission_percent", "0.15")
        assert CommissionService(db_session).get_effective_rate(va) == Decimal("0.15")

    def test_va_rate_overrides_global_setting(self, db_session, make_va):
        SettingsRepository(db_session).set("commission_percent", "0.15")
        va = make_va(name="Carol", commission_percentage=Decimal("0.2"))

        assert CommissionService(db_session).get_effective_rate(va) == Decimal("0.2")


class TestCreateCommission:
    def test_create_for_sold_lead(self, db_session, sold_lead, va):
        commission = CommissionService(db_session).create_commission_for_lead(sold_lead)

        assert commission.amount == Decimal("150.00")
        assert commission.va_id == va.id
        assert commission.is_due is True
        assert commission.is_paid is False

    def test_idempotent(self, db_session, sold_lead):
        service = CommissionService(db_session)
        first = service.create_commission_for_lead(sold_lead)
        second = service.create_commission_for_lead(sold_lead)

        assert first.id == second.id
        assert db_session.query(Commission).count() == 1

    def test_no_va_no_commission(self, db_session, make_lead):
        lead = make_lead()
        assert CommissionService(db_session).create_commission_for_lead(lead) is None


class TestRecalculate:
    def test_unpaid_follows_profit(self, db_session, sold_lead):
        service = CommissionService(db_session)
        service.create_commission_for_lead(sold_lead)

        sold_lead.estimated_profit = Decimal("3000.00")
        db_session.commit()

        assert service.recalculate_commission(sold_lead.id).amount == Decimal("300.00")

    def test_paid_commission_frozen(self, db_session, sold_lead, superadmin):
        service = CommissionService(db_session)
        commission = service.create_commission_for_lead(sold_lead)
        service.mark_paid(commission.id, superadmin.id)

        sold_lead.estimated_profit = Decimal("3000.00")
        db_session.commit()

        assert service.recalculate_commission(sold_lead.id).amount == Decimal("150.00")

    def test_missing_lead(self, db_session):
        with pytest.raises(NotFoundError):
            CommissionService(db_session).recalculate_commission("missing")


class TestMarkPaid:
    def test_mark_paid(self, db_session, sold_lead, superadmin):
        service = CommissionService(db_session)
        commission = service.create_commission_for_lead(sold_lead)

        paid = service.mark_paid(commission.id, superadmin.id)

        assert paid.is_paid is True
        assert paid.paid_by == superadmin.id
        assert paid.paid_at is not None
        assert service.list_commissions() == []

    def test_mark_paid_twice_keeps_first_payment(self, db_session, sold_lead, superadmin, manager):
        service = CommissionService(db_session)
        commission = service.create_commission_for_lead(sold_lead)
        service.mark_paid(commission.id, superadmin.id)

        assert service.mark_paid(commission.id, manager.id).paid_by == superadmin.id

    def test_missing_commission(self, db_session, superadmin):
        with pytest.raises(NotFoundError):
            CommissionService(db_session).mark_paid("missing", superadmin.id)


class TestExportCsv:
    def test_export(self, db_session, sold_lead, superadmin, make_lead, make_va):
        service = CommissionService(db_session)
        paid = service.create_commission_for_lead(sold_lead)
        service.mark_paid(paid.id, superadmin.id)

        other_lead = make_lead(va_id=make_va(name="Bob").id, make="Honda", model="Civic", year=2020)
        service.create_commission_for_lead(other_lead)

        rows = list(csv.reader(io.StringIO(service.export_commissions_csv())))

        assert rows[0] == CSV_HEADERS
        assert len(rows) == 3
        by_lead = {row[0]: row for row in rows[1:]}
        assert by_lead[sold_lead.id][1:5] == ["Alice", "2018 Toyota Corolla", "$150.00", "Paid"]
        assert by_lead[other_lead.id][1:5] == ["Bob", "2020 Honda Civic", "$150.00", "Due"]
        assert len(by_lead[other_lead.id][5]) == len("2024-01-01")

    def test_export_empty(self, db_session):
        assert CommissionService(db_session).export_commissions_csv().strip() == ",".join(CSV_HEADERS)
