"""Contract repository - Database operations for contracts"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from ...models import Contract
from .actors import Party
from .entities import ContractRecord, ContractStatus, Signature
from .errors import ConcurrencyConflictError


def to_record(row: Contract) -> ContractRecord:
    """Map an ORM row to an immutable contract record"""
    signature = None
    if row.signed_by:
        signature = Signature(
            signed_by=row.signed_by,
            signed_at=row.signed_at,
            signer_name=row.signer_name,
            signer_email=row.signer_email,
            ip_address=row.signature_ip,
            user_agent=row.signature_user_agent,
        )

    return ContractRecord(
        id=row.id,
        owner_id=row.owner_id,
        client_id=row.client_id,
        client_email=row.client_email,
        proposal_id=row.proposal_id,
        status=ContractStatus(row.status),
        title=row.title,
        content=row.content,
        terms=row.terms,
        deliverables=tuple(row.deliverables or ()),
        amount=row.amount,
        currency=row.currency,
        timeline=row.timeline,
        signature=signature,
        sent_at=row.sent_at,
        cancelled_at=row.cancelled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


def to_columns(record: ContractRecord) -> dict:
    """Every column of the row, so a put is a full overwrite"""
    signature = record.signature
    return {
        "id": record.id,
        "owner_id": record.owner_id,
        "client_id": record.client_id,
        "client_email": record.client_email,
        "proposal_id": record.proposal_id,
        "status": record.status.value,
        "title": record.title,
        "content": record.content,
        "terms": record.terms,
        "deliverables": list(record.deliverables),
        "amount": record.amount,
        "currency": record.currency,
        "timeline": record.timeline,
        "signed_by": signature.signed_by if signature else None,
        "signed_at": signature.signed_at if signature else None,
        "signer_name": signature.signer_name if signature else None,
        "signer_email": signature.signer_email if signature else None,
        "signature_ip": signature.ip_address if signature else None,
        "signature_user_agent": signature.user_agent if signature else None,
        "sent_at": record.sent_at,
        "cancelled_at": record.cancelled_at,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "version": record.version,
    }


class ContractRepository:
    """Repository for contract database operations"""

    @staticmethod
    def get_by_id(db: Session, contract_id: str) -> Optional[ContractRecord]:
        """Get a specific contract by ID"""
        row = db.query(Contract).filter(Contract.id == contract_id).first()
        return to_record(row) if row else None

    @staticmethod
    def put(
        db: Session, record: ContractRecord, expected_version: Optional[int] = None
    ) -> ContractRecord:
        """
        Write the whole record in one transaction.

        expected_version=None inserts a new row. Otherwise the stored row must
        still be at expected_version; if another writer got there first the
        transaction is rolled back and ConcurrencyConflictError is raised.
        """
        columns = to_columns(record)

        if expected_version is None:
            db.add(Contract(**columns))
            try:
                db.commit()
            except (IntegrityError, FlushError) as e:
                db.rollback()
                if db.get(Contract, record.id) is None:
                    raise
                raise ConcurrencyConflictError(f"Contract {record.id} already exists") from e
            return record

        result = db.execute(
            update(Contract)
            .where(Contract.id == record.id, Contract.version == expected_version)
            .values(**columns)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            raise ConcurrencyConflictError(
                f"Contract {record.id} was modified concurrently (expected version {expected_version})"
            )

        db.commit()
        return record

    @staticmethod
    def list_by_party(
        db: Session,
        party_id: str,
        party: Party,
        status: Optional[ContractStatus] = None,
        limit: int = 50,
        offset: int = 0,
        include_drafts: bool = True,
    ) -> tuple[list[ContractRecord], int]:
        """Contracts where party_id plays the given party, newest update first"""
        column = Contract.owner_id if party == Party.OWNER else Contract.client_id
        query = db.query(Contract).filter(column == party_id)

        if not include_drafts:
            query = query.filter(Contract.status != ContractStatus.DRAFT.value)

        return ContractRepository._page(query, status, limit, offset)

    @staticmethod
    def list_all(
        db: Session,
        status: Optional[ContractStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ContractRecord], int]:
        """All contracts, for admins"""
        return ContractRepository._page(db.query(Contract), status, limit, offset)

    @staticmethod
    def _page(query, status: Optional[ContractStatus], limit: int, offset: int):
        if status:
            query = query.filter(Contract.status == status.value)

        total_count = query.count()
        rows = (
            query.order_by(Contract.updated_at.desc(), Contract.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [to_record(row) for row in rows], total_count
