"""Contract domain entities - immutable records passed between engine and store"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContractStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ContractStatus.SIGNED, ContractStatus.CANCELLED)


class Signature(BaseModel):
    """Client signature, stamped once on sent → signed"""

    model_config = ConfigDict(frozen=True)

    signed_by: str
    signed_at: datetime
    signer_name: Optional[str] = None
    signer_email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ContractRecord(BaseModel):
    """A stored contract. The lifecycle engine returns new copies, never mutates"""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    client_id: str
    client_email: Optional[str] = None
    proposal_id: Optional[str] = None
    status: ContractStatus = ContractStatus.DRAFT
    title: str
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: tuple[str, ...] = ()
    amount: float
    currency: str
    timeline: Optional[str] = None
    signature: Optional[Signature] = None
    sent_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int = 1


class ContractDraft(BaseModel):
    """Fields supplied when creating a contract. Required fields are checked by the engine"""

    client_id: Optional[str] = None
    client_email: Optional[str] = None
    proposal_id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: list[str] = []
    amount: Optional[float] = None
    currency: Optional[str] = None
    timeline: Optional[str] = None


class ContractPatch(BaseModel):
    """Content edits allowed while a contract is a draft. None means unchanged"""

    title: Optional[str] = None
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: Optional[list[str]] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    timeline: Optional[str] = None
    client_email: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class SignaturePayload(BaseModel):
    signed_at: Optional[datetime] = None
    signer_name: Optional[str] = None
    signer_email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
