"""
API v1 routes.

Defines REST endpoints for the Domain Ownership Verification API.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import get_developer_id, get_verification_service
from src.api.models import (
    ErrorResponse,
    InitiateRequest,
    InitiateResponse,
    ProofResponse,
    VerifyResponse,
)
from src.domain.exceptions import (
    AppNotFound,
    DeveloperNotFound,
    InvalidDomain,
    InvalidVerificationType,
    ProofNotFound,
)
from src.domain.verification import VerificationService

router = APIRouter(tags=["v1"])

# Identical for missing proofs and proofs owned by someone else
NOT_FOUND_DETAIL = "Verification not found"

_not_found_response = {404: {"model": ErrorResponse, "description": "Verification not found"}}


@router.post(
    "/verifications",
    response_model=InitiateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Developer or app not found"},
        400: {"model": ErrorResponse, "description": "Invalid domain or verification type"},
        422: {"description": "Validation error"},
    },
    summary="Initiate domain verification",
    description="Issue a verification token for a domain. The response includes "
    "instructions for publishing the token via DNS, meta tag or hosted file.",
)
async def initiate_verification(
    request_data: InitiateRequest,
    developer_id: str = Depends(get_developer_id),
    service: VerificationService = Depends(get_verification_service),
) -> InitiateResponse:
    """
    Start a verification for the calling developer.

    - **domain**: Hostname to verify
    - **verification_type**: DNS_TXT, META_TAG, FILE_UPLOAD or MANUAL_REVIEW
    - **app_id**: Optional app the claim is for
    """
    try:
        initiated = service.initiate(
            developer_id,
            request_data.domain,
            request_data.verification_type,
            app_id=request_data.app_id,
        )
    except DeveloperNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Developer not found",
        ) from None
    except AppNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="App not found or does not belong to developer",
        ) from None
    except InvalidDomain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid domain",
        ) from None
    except InvalidVerificationType:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification type",
        ) from None

    return InitiateResponse(
        verification_id=initiated.verification_id,
        token=initiated.token,
        expires_at=initiated.expires_at,
        instructions=initiated.instructions,
    )


# Plain def: the evidence check blocks on DNS/HTTP, so FastAPI runs it in
# the threadpool. Bookkeeping completes even if the client disconnects.
@router.post(
    "/verifications/{verification_id}/verify",
    response_model=VerifyResponse,
    responses=_not_found_response,
    summary="Verify domain ownership",
    description="Check the published evidence against the token. Failed checks "
    "consume one of the proof's retries; the reason says what to fix.",
)
def verify_verification(
    verification_id: str,
    developer_id: str = Depends(get_developer_id),
    service: VerificationService = Depends(get_verification_service),
) -> VerifyResponse:
    """Run the evidence check for a proof owned by the calling developer."""
    try:
        outcome = service.verify(verification_id, developer_id=developer_id)
    except ProofNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        ) from None

    return VerifyResponse(
        verified=outcome.verified,
        message=outcome.message,
        status=outcome.status,
        retry_count=outcome.retry_count,
    )


@router.get(
    "/verifications",
    response_model=list[ProofResponse],
    summary="List verifications",
    description="All verifications of the calling developer, newest first.",
)
async def list_verifications(
    developer_id: str = Depends(get_developer_id),
    service: VerificationService = Depends(get_verification_service),
) -> list[ProofResponse]:
    return [ProofResponse.model_validate(proof) for proof in service.list_verifications(developer_id)]


@router.get(
    "/verifications/{verification_id}",
    response_model=ProofResponse,
    responses=_not_found_response,
    summary="Get verification status",
)
async def get_verification(
    verification_id: str,
    developer_id: str = Depends(get_developer_id),
    service: VerificationService = Depends(get_verification_service),
) -> ProofResponse:
    try:
        proof = service.get_status(verification_id, developer_id)
    except ProofNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        ) from None
    return ProofResponse.model_validate(proof)


@router.delete(
    "/verifications/{verification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_not_found_response,
    summary="Delete verification",
)
async def delete_verification(
    verification_id: str,
    developer_id: str = Depends(get_developer_id),
    service: VerificationService = Depends(get_verification_service),
) -> Response:
    if not service.delete(verification_id, developer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
