"""Contract service - read-validate-write cycles around the lifecycle engine"""

import logging
from collections.abc import Callable
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...config import Settings
from ...utils.sanitization import sanitize_list, sanitize_string, validate_and_sanitize_input
from .actors import Action, Actor, Party, can
from .entities import (
    ContractDraft,
    ContractPatch,
    ContractRecord,
    ContractStatus,
    SignaturePayload,
)
from .errors import ConcurrencyConflictError, ForbiddenError, NotFoundError, ValidationError
from .lifecycle import Clock, ContractLifecycle, utcnow
from .repository import ContractRepository

logger = logging.getLogger(__name__)

# Free text escaped before storage
TEXT_FIELDS = ("title", "content", "terms", "timeline")
# Column widths, checked after escaping
FIELD_LIMITS = {
    "title": 255,
    "timeline": 500,
    "client_id": 255,
    "client_email": 255,
    "proposal_id": 36,
    "signer_name": 255,
}


def _clean(payload: BaseModel, text_fields: tuple[str, ...] = TEXT_FIELDS) -> BaseModel:
    """Escape free text and check each bounded field fits its column"""
    fields = type(payload).model_fields
    update = {}
    for field in fields:
        value = getattr(payload, field)
        max_length = FIELD_LIMITS.get(field)
        try:
            if field in text_fields and max_length:
                update[field] = validate_and_sanitize_input(value, max_length)
            elif field in text_fields:
                update[field] = sanitize_string(value)
            elif max_length and value is not None and len(value) > max_length:
                raise ValueError(f"Input exceeds maximum length of {max_length} characters")
        except ValueError as e:
            raise ValidationError(f"{field}: {e}") from e

    if "deliverables" in fields:
        update["deliverables"] = sanitize_list(payload.deliverables)
    return payload.model_copy(update=update)


class ContractService:
    """Service layer for contract business logic"""

    def __init__(self, db: Session, settings: Settings, clock: Clock = utcnow):
        self.db = db
        self.settings = settings
        self.repo = ContractRepository()
        self.engine = ContractLifecycle(clock=clock, default_currency=settings.default_currency)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_contract(self, contract_id: str, actor: Actor) -> ContractRecord:
        """Get a contract the actor is allowed to see"""
        contract = self._load(contract_id)
        if not can(actor, Action.READ, contract):
            raise ForbiddenError("You do not have access to this contract")
        if contract.status == ContractStatus.DRAFT and actor.party_in(contract) == Party.CLIENT:
            # Drafts stay private to the owner until sent
            raise NotFoundError("Contract not found")
        return contract

    def list_contracts(
        self,
        actor: Actor,
        party: Optional[Party] = None,
        status: Optional[ContractStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[ContractRecord], int]:
        """List contracts for the actor, newest update first"""
        limit = self.settings.default_page_size if limit is None else limit
        if not 1 <= limit <= self.settings.max_page_size:
            raise ValidationError(f"limit must be between 1 and {self.settings.max_page_size}")
        if offset < 0:
            raise ValidationError("offset must be zero or positive")

        if actor.is_admin and party is None:
            return self.repo.list_all(self.db, status=status, limit=limit, offset=offset)

        party = party or actor.default_party()
        return self.repo.list_by_party(
            self.db,
            actor.user_id,
            party,
            status=status,
            limit=limit,
            offset=offset,
            include_drafts=party == Party.OWNER,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_contract(self, payload: ContractDraft, actor: Actor) -> ContractRecord:
        """Create a new draft contract owned by the actor"""
        logger.info(f"📝 Creating contract for owner {actor.user_id}, client {payload.client_id}")

        contract = self.engine.create(actor, _clean(payload))
        self.repo.put(self.db, contract, expected_version=None)

        logger.info(f"✅ Contract {contract.id} created as draft")
        return contract

    def update_contract(
        self,
        contract_id: str,
        patch: ContractPatch,
        actor: Actor,
        expected_version: Optional[int] = None,
    ) -> ContractRecord:
        """Edit a draft. expected_version pins the edit to the version the caller saw"""
        clean = _clean(patch)

        def apply(contract: ContractRecord) -> ContractRecord:
            if expected_version is not None and contract.version != expected_version:
                raise ConcurrencyConflictError(
                    f"Contract is at version {contract.version}, not {expected_version}"
                )
            return self.engine.update(contract, actor, clean)

        return self._transition(contract_id, "update", apply)

    def send_contract(self, contract_id: str, actor: Actor) -> ContractRecord:
        """Send a draft to the client, freezing its content"""
        return self._transition(contract_id, "send", lambda c: self.engine.send(c, actor))

    def sign_contract(
        self, contract_id: str, actor: Actor, payload: Optional[SignaturePayload] = None
    ) -> ContractRecord:
        """Sign a sent contract as its client"""
        if payload:
            payload = _clean(payload, text_fields=("signer_name",))
        return self._transition(contract_id, "sign", lambda c: self.engine.sign(c, actor, payload))

    def cancel_contract(self, contract_id: str, actor: Actor) -> ContractRecord:
        """Cancel (soft delete) a draft or sent contract"""
        return self._transition(contract_id, "cancel", lambda c: self.engine.cancel(c, actor))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, contract_id: str) -> ContractRecord:
        contract = self.repo.get_by_id(self.db, contract_id)
        if not contract:
            raise NotFoundError("Contract not found")
        return contract

    def _transition(
        self,
        contract_id: str,
        operation: str,
        apply: Callable[[ContractRecord], ContractRecord],
    ) -> ContractRecord:
        """
        Read the contract, let the engine validate the change, then write it
        back guarded by the version read. A lost race re-runs the cycle
        against fresh state, up to max_conflict_retries times, but only while
        the status is still the one first validated against: once another
        writer has moved the contract on, the loser gets the conflict.
        """
        attempts = self.settings.max_conflict_retries + 1
        validated_status = None
        for attempt in range(1, attempts + 1):
            current = self._load(contract_id)
            if validated_status is not None and current.status != validated_status:
                logger.warning(
                    f"⚠️ Contract {contract_id} moved {validated_status.value} → "
                    f"{current.status.value} while {operation} was in flight"
                )
                raise ConcurrencyConflictError(
                    f"Contract {contract_id} became {current.status.value} during {operation}"
                )

            updated = apply(current)
            validated_status = current.status

            if updated is current:
                logger.info(f"🔁 {operation} replayed on contract {contract_id} ({current.status.value})")
                return current

            try:
                self.repo.put(self.db, updated, expected_version=current.version)
            except ConcurrencyConflictError:
                logger.warning(
                    f"⚠️ Version conflict on {operation} for contract {contract_id} "
                    f"(attempt {attempt}/{attempts})"
                )
                continue

            logger.info(
                f"✅ Contract {contract_id} {operation}: "
                f"{current.status.value} → {updated.status.value} (v{updated.version})"
            )
            return updated

        raise ConcurrencyConflictError(
            f"Contract {contract_id} kept changing during {operation}; gave up after {attempts} attempts"
        )
