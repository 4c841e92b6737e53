"""Unit tests for the credential ORM models."""

import pytest

from ads_core.models import AdPlatform, PlatformCredential, PlatformOperationLog


@pytest.mark.unit
@pytest.mark.model
class TestCredentialModels:
    def test_table_names(self):
        assert AdPlatform.__tablename__ == "ad_platforms"
        assert PlatformCredential.__tablename__ == "platform_credentials"
        assert PlatformOperationLog.__tablename__ == "platform_operation_logs"

    def test_one_credential_per_advertiser_and_platform(self):
        constraints = {
            constraint.name: [column.name for column in constraint.columns]
            for constraint in PlatformCredential.__table__.constraints
            if constraint.name
        }

        assert constraints["uq_platform_credentials_advertiser_platform"] == ["advertiser_id", "platform_id"]

    def test_uuid_primary_keys(self):
        platform = AdPlatform(name="amazon", display_name="Amazon Ads", api_base_url="https://x")

        assert PlatformCredential.__table__.c.id.type.length == 36
        assert AdPlatform.__table__.c.id.default is not None
        assert platform.name == "amazon"

    def test_operation_log_has_no_foreign_key_on_credential(self):
        """Log entries outlive the credential they describe."""
        assert not PlatformOperationLog.__table__.c.credential_id.foreign_keys
