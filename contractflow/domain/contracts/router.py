"""Contract router - FastAPI endpoints for contract operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...database import get_db
from .actors import Actor, Party
from .entities import ContractStatus, SignaturePayload
from .errors import ValidationError
from .schemas import (
    ContractCreate,
    ContractListResponse,
    ContractResponse,
    ContractUpdate,
    SignContractRequest,
)
from .service import ContractService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])

# Width of the signature_user_agent column
MAX_USER_AGENT_LENGTH = 500


def get_contract_service(request: Request, db: Session = Depends(get_db)) -> ContractService:
    """Dependency injection for ContractService"""
    return ContractService(db, request.app.state.settings)


def _parse_if_match(if_match: Optional[str]) -> Optional[int]:
    if if_match is None:
        return None
    try:
        return int(if_match.strip().strip('"'))
    except ValueError as e:
        raise ValidationError("If-Match must carry the contract version number") from e


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=ContractListResponse)
async def list_contracts(
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
    status: Optional[ContractStatus] = Query(None, description="Filter by contract status"),
    party: Optional[Party] = Query(None, description="List as owner or as client"),
    limit: Optional[int] = Query(None, description="Page size"),
    offset: int = Query(0, description="Number of contracts to skip"),
):
    """List contracts for the current user (newest update first)"""
    contracts, total_count = service.list_contracts(current_actor, party, status, limit, offset)
    return ContractListResponse(
        contracts=[ContractResponse.from_record(c) for c in contracts],
        totalCount=total_count,
    )


@router.post("", response_model=ContractResponse, status_code=201)
async def create_contract(
    data: ContractCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
):
    """Create a new draft contract"""
    contract = service.create_contract(data.to_draft(), current_actor)
    return ContractResponse.from_record(contract)


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: str,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
):
    """Get a specific contract"""
    return ContractResponse.from_record(service.get_contract(contract_id, current_actor))


@router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    contract_id: str,
    data: ContractUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
    if_match: Optional[str] = Header(None),
):
    """Update a draft contract"""
    contract = service.update_contract(
        contract_id, data.to_patch(), current_actor, expected_version=_parse_if_match(if_match)
    )
    return ContractResponse.from_record(contract)


@router.delete("/{contract_id}", response_model=ContractResponse)
async def cancel_contract(
    contract_id: str,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
):
    """Cancel a contract (soft delete, it stays listed as cancelled)"""
    return ContractResponse.from_record(service.cancel_contract(contract_id, current_actor))


# ============================================================================
# WORKFLOW TRANSITIONS
# ============================================================================


@router.post("/{contract_id}/send", response_model=ContractResponse)
async def send_contract(
    contract_id: str,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
):
    """Send a draft contract to the client"""
    return ContractResponse.from_record(service.send_contract(contract_id, current_actor))


@router.post("/{contract_id}/sign", response_model=ContractResponse)
async def sign_contract(
    contract_id: str,
    request: Request,
    data: Optional[SignContractRequest] = None,
    current_actor: Actor = Depends(get_current_actor),
    service: ContractService = Depends(get_contract_service),
):
    """Sign a sent contract as the client"""
    payload = SignaturePayload(
        signer_name=data.signerName.strip() if data and data.signerName else None,
        signer_email=current_actor.email,
        ip_address=request.client.host if request.client else None,
        user_agent=(request.headers.get("user-agent") or "")[:MAX_USER_AGENT_LENGTH] or None,
    )
    return ContractResponse.from_record(service.sign_contract(contract_id, current_actor, payload))
