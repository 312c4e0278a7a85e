"""Tests for the package-wide configuration object."""

import pytest
import lidov
from lidov import config, temp_config


class TestTempConfig:
    """temp_config sets values and always restores them."""

    def test_values_restored(self):
        """Settings return to their previous values on exit."""
        before = config.OUTPUT_PRECISION
        with temp_config(OUTPUT_PRECISION=4):
            assert config.OUTPUT_PRECISION == 4
        assert config.OUTPUT_PRECISION == before

    def test_restored_after_exception(self):
        """Settings are restored even if the block raises."""
        with pytest.raises(RuntimeError):
            with temp_config(STRICT_VALIDATION=False):
                raise RuntimeError("boom")
        assert config.STRICT_VALIDATION is True

    def test_unknown_key(self):
        """Unknown settings are rejected."""
        with pytest.raises(AttributeError, match="no attribute"):
            with temp_config(NOT_A_SETTING=1):
                pass


class TestReset:
    """reset() restores defaults."""

    def test_reset(self):
        config.PROGRESS_EVERY = 7
        config.reset()
        assert config.PROGRESS_EVERY == 10000

    def test_repr_lists_settings(self):
        text = repr(lidov.config)
        assert "OUTPUT_PRECISION" in text
        assert "INTEGRATION_TOL" in text

    def test_hash_decimals(self):
        """HASH_DECIMALS follows EQUALITY_ATOL."""
        with temp_config(EQUALITY_ATOL=2e-6):
            assert config.HASH_DECIMALS == 4
