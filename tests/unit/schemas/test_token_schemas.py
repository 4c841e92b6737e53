"""Unit tests for token and credential schemas."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from ads_core.schemas.credential import CredentialSnapshot
from ads_core.schemas.provider import ProviderRequest, ProviderResponse
from ads_core.schemas.token import AdvertisingProfile, TokenGrant
from ads_core.utils.time import now_utc


@pytest.mark.unit
class TestTokenGrant:
    def test_parses_full_response(self):
        grant = TokenGrant.model_validate(
            {"access_token": "at", "refresh_token": "rt", "expires_in": 1800, "token_type": "bearer"}
        )

        assert grant.lifetime_seconds(3600) == 1800
        assert grant.refresh_token == "rt"

    @pytest.mark.parametrize("expires_in", [None, 0, -5, "soon"])
    def test_unusable_expires_in_falls_back_to_default(self, expires_in):
        grant = TokenGrant.model_validate({"access_token": "at", "expires_in": expires_in})

        assert grant.expires_in is None
        assert grant.lifetime_seconds(3600) == 3600

    def test_blank_refresh_token_treated_as_missing(self):
        grant = TokenGrant.model_validate({"access_token": "at", "refresh_token": "  "})

        assert grant.refresh_token is None

    def test_missing_access_token_rejected(self):
        with pytest.raises(ValidationError):
            TokenGrant.model_validate({"refresh_token": "rt"})


@pytest.mark.unit
def test_advertising_profile_coerces_numeric_id():
    profile = AdvertisingProfile.model_validate({"profileId": 3550000000000, "countryCode": "US"})

    assert profile.profile_id == "3550000000000"
    assert profile.country_code == "US"


@pytest.mark.unit
class TestCredentialSnapshotStaleness:
    def _snapshot(self, **overrides):
        data = {
            "id": "c1",
            "advertiser_id": "adv",
            "platform_id": "p1",
            "access_token": "at",
            "refresh_token": "rt",
            "token_expires_at": now_utc() + timedelta(hours=1),
        }
        data.update(overrides)
        return CredentialSnapshot(**data)

    def test_fresh_token_not_stale(self):
        assert self._snapshot().is_stale(300) is False

    def test_token_inside_skew_window_is_stale(self):
        snapshot = self._snapshot(token_expires_at=now_utc() + timedelta(seconds=120))

        assert snapshot.is_stale(300) is True

    def test_missing_expiry_or_token_is_stale(self):
        assert self._snapshot(token_expires_at=None).is_stale(300) is True
        assert self._snapshot(access_token=None).is_stale(300) is True

    def test_naive_expiry_treated_as_utc(self):
        naive = (now_utc() + timedelta(hours=1)).replace(tzinfo=None)

        assert self._snapshot(token_expires_at=naive).is_stale(300) is False


@pytest.mark.unit
def test_provider_request_upper_cases_method():
    assert ProviderRequest(method="put", url="/v2/sp/campaigns").method == "PUT"


@pytest.mark.unit
@pytest.mark.parametrize("status_code,ok", [(200, True), (204, True), (301, False), (404, False)])
def test_provider_response_ok(status_code, ok):
    assert ProviderResponse(status_code=status_code).ok is ok
