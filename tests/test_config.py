"""
Tests for startup configuration
Invalid credential settings must stop the process before it serves requests
"""

import pytest
from pydantic import ValidationError

from taskhub.core.config import Settings

VALID_KEY = "k" * 32


class TestCredentialSettings:

    def test_minimum_key_accepted(self):
        settings = Settings(JWT_SECRET_KEY=VALID_KEY)

        assert settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES == 60
        assert settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS == 7

    def test_undersized_key_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY="k" * 31)

    def test_key_measured_in_bytes(self):
        # 16 two-byte characters
        Settings(JWT_SECRET_KEY="é" * 16)

    @pytest.mark.parametrize("minutes", [0, 1441])
    def test_access_lifetime_bounds(self, minutes):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_KEY, JWT_ACCESS_TOKEN_EXPIRE_MINUTES=minutes)

    @pytest.mark.parametrize("days", [0, 31])
    def test_refresh_lifetime_bounds(self, days):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_KEY, JWT_REFRESH_TOKEN_EXPIRE_DAYS=days)

    @pytest.mark.parametrize("minutes, days", [(1, 1), (1440, 30)])
    def test_lifetime_limits_inclusive(self, minutes, days):
        settings = Settings(
            JWT_SECRET_KEY=VALID_KEY,
            JWT_ACCESS_TOKEN_EXPIRE_MINUTES=minutes,
            JWT_REFRESH_TOKEN_EXPIRE_DAYS=days,
        )

        assert settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES == minutes

    @pytest.mark.parametrize("field", ["JWT_ISSUER", "JWT_AUDIENCE"])
    def test_issuer_and_audience_required(self, field):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_KEY, **{field: ""})

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_KEY, JWT_ALGORITHM="RS256")
