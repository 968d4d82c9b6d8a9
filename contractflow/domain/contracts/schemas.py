"""Contract domain schemas - Pydantic models for the HTTP surface"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .entities import ContractDraft, ContractPatch, ContractRecord


class ContractCreate(BaseModel):
    """Schema for creating a new contract"""

    clientId: Optional[str] = None
    clientEmail: Optional[str] = None
    proposalId: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: list[str] = []
    amount: Optional[float] = None
    currency: Optional[str] = None
    timeline: Optional[str] = None

    def to_draft(self) -> ContractDraft:
        return ContractDraft(
            client_id=self.clientId,
            client_email=self.clientEmail,
            proposal_id=self.proposalId,
            title=self.title,
            content=self.content,
            terms=self.terms,
            deliverables=self.deliverables,
            amount=self.amount,
            currency=self.currency,
            timeline=self.timeline,
        )


class ContractUpdate(BaseModel):
    """Schema for editing a draft contract"""

    title: Optional[str] = None
    clientEmail: Optional[str] = None
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: Optional[list[str]] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    timeline: Optional[str] = None

    def to_patch(self) -> ContractPatch:
        return ContractPatch(
            title=self.title,
            client_email=self.clientEmail,
            content=self.content,
            terms=self.terms,
            deliverables=self.deliverables,
            amount=self.amount,
            currency=self.currency,
            timeline=self.timeline,
        )


class SignContractRequest(BaseModel):
    """Schema for a client signature submission"""

    signerName: Optional[str] = None


class SignatureResponse(BaseModel):
    signedBy: str
    signedAt: datetime
    signerName: Optional[str] = None
    signerEmail: Optional[str] = None
    ipAddress: Optional[str] = None
    userAgent: Optional[str] = None


class ContractResponse(BaseModel):
    """Schema for contract response"""

    id: str
    ownerId: str
    clientId: str
    clientEmail: Optional[str] = None
    proposalId: Optional[str] = None
    status: str
    title: str
    content: Optional[str] = None
    terms: Optional[str] = None
    deliverables: list[str]
    amount: float
    currency: str
    timeline: Optional[str] = None
    signature: Optional[SignatureResponse] = None
    sentAt: Optional[datetime] = None
    cancelledAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime
    version: int

    @classmethod
    def from_record(cls, contract: ContractRecord) -> "ContractResponse":
        signature = contract.signature
        return cls(
            id=contract.id,
            ownerId=contract.owner_id,
            clientId=contract.client_id,
            clientEmail=contract.client_email,
            proposalId=contract.proposal_id,
            status=contract.status.value,
            title=contract.title,
            content=contract.content,
            terms=contract.terms,
            deliverables=list(contract.deliverables),
            amount=contract.amount,
            currency=contract.currency,
            timeline=contract.timeline,
            signature=(
                SignatureResponse(
                    signedBy=signature.signed_by,
                    signedAt=signature.signed_at,
                    signerName=signature.signer_name,
                    signerEmail=signature.signer_email,
                    ipAddress=signature.ip_address,
                    userAgent=signature.user_agent,
                )
                if signature
                else None
            ),
            sentAt=contract.sent_at,
            cancelledAt=contract.cancelled_at,
            createdAt=contract.created_at,
            updatedAt=contract.updated_at,
            version=contract.version,
        )


class ContractListResponse(BaseModel):
    contracts: list[ContractResponse]
    totalCount: int
