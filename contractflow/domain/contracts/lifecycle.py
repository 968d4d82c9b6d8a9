"""Contract lifecycle engine - the only place contract state changes

    draft --send(owner)--> sent --sign(client)--> signed      [terminal]
    draft --cancel(owner/client)--> cancelled                 [terminal]
    sent  --cancel(owner/client)--> cancelled                 [terminal]

The engine is pure: it takes the current record and returns the next one.
Replaying send/sign/cancel against a contract already in the target state
returns the same record object, which callers use to skip the write.
Permission is always checked before state.
"""

import math
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional

from .actors import Action, Actor, require, require_creator
from .entities import (
    ContractDraft,
    ContractPatch,
    ContractRecord,
    ContractStatus,
    Signature,
    SignaturePayload,
)
from .errors import InvalidStateError, ValidationError

Clock = Callable[[], datetime]

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
ONE_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form the database stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ContractLifecycle:
    """Validates and applies contract state transitions"""

    def __init__(self, clock: Clock = utcnow, default_currency: str = "USD"):
        self.clock = clock
        self.default_currency = default_currency

    # ------------------------------------------------------------------
    # Creation and edits
    # ------------------------------------------------------------------

    def create(self, actor: Actor, payload: ContractDraft) -> ContractRecord:
        require_creator(actor)

        missing = [
            name
            for name, value in (
                ("title", payload.title),
                ("clientId", payload.client_id),
            )
            if _is_blank(value)
        ]
        if payload.amount is None:
            missing.append("amount")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        self._check_amount(payload.amount)
        if payload.client_id == actor.user_id:
            raise ValidationError("A contract needs a client other than its owner")

        currency = self._normalize_currency(payload.currency or self.default_currency)
        deliverables = self._normalize_deliverables(payload.deliverables)

        now = self.clock()
        return ContractRecord(
            id=str(uuid.uuid4()),
            owner_id=actor.user_id,
            client_id=payload.client_id,
            client_email=payload.client_email,
            proposal_id=payload.proposal_id,
            status=ContractStatus.DRAFT,
            title=payload.title.strip(),
            content=payload.content,
            terms=payload.terms,
            deliverables=deliverables,
            amount=payload.amount,
            currency=currency,
            timeline=payload.timeline,
            created_at=now,
            updated_at=now,
            version=1,
        )

    def update(self, contract: ContractRecord, actor: Actor, patch: ContractPatch) -> ContractRecord:
        require(actor, Action.UPDATE, contract)
        if contract.status != ContractStatus.DRAFT:
            raise InvalidStateError(
                f"Only draft contracts can be edited (status is {contract.status.value})"
            )

        changes = patch.changes()
        if not changes:
            raise ValidationError("No fields to update")

        if "title" in changes:
            if _is_blank(changes["title"]):
                raise ValidationError("Title cannot be empty")
            changes["title"] = changes["title"].strip()
        if "amount" in changes:
            self._check_amount(changes["amount"])
        if "currency" in changes:
            changes["currency"] = self._normalize_currency(changes["currency"])
        if "deliverables" in changes:
            changes["deliverables"] = self._normalize_deliverables(changes["deliverables"])

        return self._advance(contract, **changes)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def send(self, contract: ContractRecord, actor: Actor) -> ContractRecord:
        require(actor, Action.SEND, contract)
        if contract.status == ContractStatus.SENT:
            return contract
        if contract.status != ContractStatus.DRAFT:
            raise InvalidStateError(
                f"Cannot send a contract that is {contract.status.value}"
            )

        now = self._next_timestamp(contract)
        return self._advance(contract, now=now, status=ContractStatus.SENT, sent_at=now)

    def sign(
        self,
        contract: ContractRecord,
        actor: Actor,
        payload: Optional[SignaturePayload] = None,
    ) -> ContractRecord:
        require(actor, Action.SIGN, contract)
        if contract.status == ContractStatus.SIGNED:
            return contract
        if contract.status != ContractStatus.SENT:
            raise InvalidStateError(
                f"Contract must be in sent status to be signed (status is {contract.status.value})"
            )

        payload = payload or SignaturePayload()
        now = self._next_timestamp(contract)
        signature = Signature(
            signed_by=actor.user_id,
            signed_at=payload.signed_at or now,
            signer_name=payload.signer_name,
            signer_email=payload.signer_email or actor.email,
            ip_address=payload.ip_address,
            user_agent=payload.user_agent,
        )
        return self._advance(contract, now=now, status=ContractStatus.SIGNED, signature=signature)

    def cancel(self, contract: ContractRecord, actor: Actor) -> ContractRecord:
        require(actor, Action.CANCEL, contract)
        if contract.status == ContractStatus.CANCELLED:
            return contract
        if contract.status.is_terminal:
            raise InvalidStateError(
                f"Cannot cancel a contract that is {contract.status.value}"
            )

        now = self._next_timestamp(contract)
        return self._advance(
            contract, now=now, status=ContractStatus.CANCELLED, cancelled_at=now
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_timestamp(self, contract: ContractRecord) -> datetime:
        """Clock reading strictly after the contract's last update"""
        now = self.clock()
        if now <= contract.updated_at:
            now = contract.updated_at + ONE_TICK
        return now

    def _advance(self, contract: ContractRecord, now: Optional[datetime] = None, **changes) -> ContractRecord:
        return contract.model_copy(
            update={
                **changes,
                "updated_at": now or self._next_timestamp(contract),
                "version": contract.version + 1,
            }
        )

    @staticmethod
    def _check_amount(amount: float) -> None:
        if not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Amount must be a positive number")

    @staticmethod
    def _normalize_currency(currency: str) -> str:
        code = currency.strip().upper()
        if not CURRENCY_PATTERN.match(code):
            raise ValidationError(f"Invalid currency code: {currency}")
        return code

    @staticmethod
    def _normalize_deliverables(deliverables: list[str]) -> tuple[str, ...]:
        if any(_is_blank(item) for item in deliverables):
            raise ValidationError("Deliverables cannot contain empty items")
        return tuple(item.strip() for item in deliverables)
