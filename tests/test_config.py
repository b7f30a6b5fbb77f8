"""Tests for settings and settlement policy."""

import pytest

from trip_settlement.config import DEFAULT_COMPANY_FUNDED_PAYERS, SettlementPolicy, Settings


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("ENGINE_VERSION", "2.1.0")
        monkeypatch.setenv("PORT", "9001")
        monkeypatch.setenv("DEBUG", "TRUE")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.engine_version == "2.1.0"
        assert settings.port == 9001
        assert settings.debug is True
        assert settings.log_level == "DEBUG"


class TestSettlementPolicy:
    def test_defaults(self):
        policy = SettlementPolicy()
        assert policy.company_funded_payers == DEFAULT_COMPANY_FUNDED_PAYERS
        assert policy.require_approval_before_payment is False

    def test_empty_tag_rejected(self):
        with pytest.raises(ValueError):
            SettlementPolicy(company_funded_payers=frozenset({"company_card", ""}))

    def test_blank_tag_rejected(self):
        with pytest.raises(ValueError):
            SettlementPolicy(company_funded_payers=frozenset({"   "}))
