"""
Unit tests for API request and response models.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.api.models import InitiateRequest, ProofResponse, VerifyResponse
from src.domain.models import VerificationProof
from src.domain.ports import ProofStatus, VerificationType

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestInitiateRequest:
    """Tests for InitiateRequest validation."""

    def test_valid_request(self) -> None:
        request = InitiateRequest(domain="example.com", verification_type="FILE_UPLOAD")

        assert request.domain == "example.com"
        assert request.verification_type is VerificationType.FILE_UPLOAD
        assert request.app_id is None

    def test_app_id_optional(self) -> None:
        request = InitiateRequest(domain="example.com", verification_type="DNS_TXT", app_id="app-1")
        assert request.app_id == "app-1"

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InitiateRequest(domain="example.com", verification_type="SMS")

    def test_empty_domain_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InitiateRequest(domain="", verification_type="DNS_TXT")

    def test_overlong_domain_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InitiateRequest(domain="a" * 254, verification_type="DNS_TXT")

    def test_missing_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InitiateRequest()


class TestResponses:
    """Tests for response serialization."""

    def test_verify_response_serializes_status_as_string(self) -> None:
        response = VerifyResponse(
            verified=False, message="m", status=ProofStatus.FAILED, retry_count=3
        )
        assert response.model_dump(mode="json")["status"] == "FAILED"

    def test_proof_response_from_domain_model(self) -> None:
        """ProofResponse reads attributes straight off a VerificationProof."""
        proof = VerificationProof(
            id="proof-1",
            developer_id="dev-1",
            app_id="app-1",
            domain="example.com",
            verification_type=VerificationType.META_TAG,
            verification_token="rapid-verify-abc",
            status=ProofStatus.VERIFIED,
            expires_at=NOW + timedelta(days=7),
            created_at=NOW,
            updated_at=NOW,
            verified_at=NOW,
            verification_data={"method": "META_TAG", "verified_at": NOW.isoformat()},
        )

        response = ProofResponse.model_validate(proof)

        assert response.id == "proof-1"
        assert response.app_id == "app-1"
        assert response.status is ProofStatus.VERIFIED
        assert response.verification_data["method"] == "META_TAG"
        assert response.verified_at == NOW
