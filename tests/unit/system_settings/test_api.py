"""
Test system settings and audit log endpoints
"""
from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from system_settings.api import validate_setting_value
from system_settings.repository import DEFAULT_SETTINGS, SettingsRepository

pytestmark = pytest.mark.unit


class TestSettingsRepository:
    def test_seed_defaults_is_idempotent(self, db_session):
        repo = SettingsRepository(db_session)

        assert sorted(repo.seed_defaults()) == sorted(DEFAULT_SETTINGS)
        assert repo.seed_defaults() == []
        assert repo.all() == DEFAULT_SETTINGS

    def test_seed_keeps_existing_values(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set("company_name", "Flip Co")

        repo.seed_defaults()

        assert repo.get("company_name") == "Flip Co"

    def test_typed_readers(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set("commission_percent", "0.25")
        repo.set("session_timeout_hours", "12")
        repo.set("notify_new_lead", "false")

        assert repo.get_decimal("commission_percent", Decimal("0.1")) == Decimal("0.25")
        assert repo.get_int("session_timeout_hours", 24) == 12
        assert repo.get_bool("notify_new_lead", True) is False
        assert repo.get_bool("missing", True) is True

    def test_unparseable_value_falls_back(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set("commission_percent", "ten percent")

        assert repo.get_decimal("commission_percent", Decimal("0.1")) == Decimal("0.1")


class TestValidateSettingValue:
    @pytest.mark.parametrize(
        "key,value",
        [
            ("commission_percent", "1.5"),
            ("commission_percent", "-0.1"),
            ("commission_percent", "abc"),
            ("session_timeout_hours", "0"),
            ("magic_link_expiry_minutes", "ten"),
        ],
    )
    def test_rejected(self, key, value):
        with pytest.raises(ValidationError):
            validate_setting_value(key, value)

    def test_free_text_accepted(self):
        validate_setting_value("company_name", "Anything at all")
        validate_setting_value("commission_percent", "0.2")


class TestSettingsAPI:
    def test_put_and_get(self, superadmin_client):
        response = superadmin_client.put("/api/settings/commission_percent", json={"value": 0.2})

        assert response.status_code == 200
        assert response.json()["value"] == "0.2"
        assert superadmin_client.get("/api/settings/commission_percent").json()["value"] == "0.2"
        assert superadmin_client.get("/api/settings").json() == {"commission_percent": "0.2"}

    def test_boolean_stored_as_text(self, superadmin_client):
        response = superadmin_client.put("/api/settings/notify_new_lead", json={"value": False})
        assert response.json()["value"] == "false"

    def test_invalid_value_is_400(self, superadmin_client):
        response = superadmin_client.put("/api/settings/commission_percent", json={"value": "3"})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "value"

    def test_missing_key_is_404(self, superadmin_client):
        assert superadmin_client.get("/api/settings/nope").status_code == 404

    def test_manager_forbidden(self, manager_client):
        assert manager_client.put("/api/settings/company_name", json={"value": "X"}).status_code == 403

    def test_global_rate_used_for_new_commissions(self, superadmin_client, make_lead, va):
        superadmin_client.put("/api/settings/commission_percent", json={"value": "0.2"})
        lead = make_lead(va_id=va.id)

        superadmin_client.patch(f"/api/leads/{lead.id}/status", json={"status": "SOLD"})

        commissions = superadmin_client.get("/api/commissions").json()
        assert Decimal(commissions[0]["amount"]) == Decimal("300.00")


class TestAuditLogAPI:
    def test_mutations_are_audited(self, superadmin_client, superadmin):
        superadmin_client.put("/api/settings/company_name", json={"value": "Flip Co"})

        logs = superadmin_client.get("/api/audit-logs").json()

        assert logs[0]["action"] == "UPDATE"
        assert logs[0]["resource_type"] == "setting"
        assert logs[0]["resource_id"] == "company_name"
        assert logs[0]["user_id"] == superadmin.id
        assert logs[0]["user_agent"] == "testclient"

    def test_limit(self, superadmin_client):
        for name in ("A", "B", "C"):
            superadmin_client.put("/api/settings/company_name", json={"value": name})

        assert len(superadmin_client.get("/api/audit-logs", params={"limit": 2}).json()) == 2

    def test_va_forbidden(self, va_client):
        assert va_client.get("/api/audit-logs").status_code == 403
