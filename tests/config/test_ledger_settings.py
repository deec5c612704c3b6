"""
Configuration loading tests.

Verifies:
- Packaged defaults parse into LedgerSettings
- Override files and environment variables layer in order
- Unknown keys and invalid values are rejected
- The checksum identifies the effective configuration
"""

from decimal import Decimal

import pytest

from gl_config import get_active_config
from gl_config.loader import compute_checksum, parse_settings
from gl_config.schema import LedgerSettings, PostingAccounts
from gl_kernel.models.account import AccountType
from gl_kernel.services.account_service import DEFAULT_ACCOUNTS


class TestDefaults:
    def test_packaged_defaults(self):
        settings = get_active_config(environ={})
        assert settings.balance_tolerance == Decimal("0.01")
        assert settings.journal_number_prefix == "JE"
        assert settings.journal_number_width == 6
        assert settings.recalc_max_workers == 4
        assert settings.database_url is None
        assert settings.posting_accounts == PostingAccounts()
        assert settings.checksum

    def test_default_accounts_match_kernel_defaults(self):
        settings = get_active_config(environ={})
        assert settings.default_accounts == DEFAULT_ACCOUNTS
        by_code = {a.code: a for a in settings.default_accounts}
        assert by_code["1200"].account_type == AccountType.ASSET
        assert by_code["2000"].account_type == AccountType.LIABILITY
        assert by_code["4000"].account_type == AccountType.REVENUE

    def test_dataclass_defaults_agree_with_yaml(self):
        yaml_settings = get_active_config(environ={})
        plain = LedgerSettings()
        assert yaml_settings.balance_tolerance == plain.balance_tolerance
        assert yaml_settings.number_allocation_retries == plain.number_allocation_retries
        assert yaml_settings.default_page_size == plain.default_page_size


class TestOverrides:
    def test_override_file(self, tmp_path):
        path = tmp_path / "gl.yaml"
        path.write_text(
            "balance_tolerance: '0.05'\n"
            "recalc_max_workers: 2\n"
            "posting_accounts:\n"
            "  receivables: '1100'\n"
            "  revenue: '4100'\n"
            "  payables: '2100'\n"
            "  expense: '6100'\n"
        )
        settings = get_active_config(path, environ={})
        assert settings.balance_tolerance == Decimal("0.05")
        assert settings.recalc_max_workers == 2
        assert settings.posting_accounts.receivables == "1100"
        assert settings.journal_number_prefix == "JE"

    def test_override_file_from_environment(self, tmp_path):
        path = tmp_path / "gl.yaml"
        path.write_text("journal_number_prefix: GJ\n")
        settings = get_active_config(environ={"GL_KERNEL_CONFIG": str(path)})
        assert settings.journal_number_prefix == "GJ"

    def test_database_url_and_log_level_from_environment(self):
        settings = get_active_config(
            environ={"DATABASE_URL": "sqlite:///ledger.db", "GL_LOG_LEVEL": "DEBUG"}
        )
        assert settings.database_url == "sqlite:///ledger.db"
        assert settings.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml", environ={})


class TestValidation:
    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="balance_tolerence"):
            parse_settings({"balance_tolerence": "0.01"})

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            parse_settings({"balance_tolerance": "-0.01"})

    def test_zero_workers_rejected(self):
        with pytest.raises(ValueError):
            LedgerSettings(recalc_max_workers=0)

    def test_unknown_account_type_rejected(self):
        with pytest.raises(ValueError):
            parse_settings({"default_accounts": [{"code": "9", "name": "X", "type": "contra"}]})


class TestChecksum:
    def test_checksum_is_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_checksum_changes_with_content(self):
        assert parse_settings({}).checksum != parse_settings({"recalc_max_workers": 2}).checksum

    def test_config_trace_logged(self, captured_logs):
        get_active_config(environ={})
        traces = [r for r in captured_logs() if r["message"] == "GL_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["checksum"]
