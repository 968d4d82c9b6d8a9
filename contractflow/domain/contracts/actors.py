"""Actors and capability checks for the contract workflow

An Actor is the authenticated caller: a user id tagged with its account
role. Whether it may act on a contract depends on the Party it plays in that
contract (owner or client), looked up in CAPABILITIES.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .entities import ContractRecord
from .errors import ForbiddenError


class Role(str, Enum):
    """Account role carried in the access token"""

    FREELANCER = "freelancer"
    CLIENT = "client"
    ADMIN = "admin"


class Party(str, Enum):
    """Side an actor is on within one contract"""

    OWNER = "owner"
    CLIENT = "client"


class Action(str, Enum):
    READ = "read"
    UPDATE = "update"
    SEND = "send"
    SIGN = "sign"
    CANCEL = "cancel"


CAPABILITIES: dict[Action, frozenset[Party]] = {
    Action.READ: frozenset({Party.OWNER, Party.CLIENT}),
    Action.UPDATE: frozenset({Party.OWNER}),
    Action.SEND: frozenset({Party.OWNER}),
    Action.SIGN: frozenset({Party.CLIENT}),
    Action.CANCEL: frozenset({Party.OWNER, Party.CLIENT}),
}

# Account roles allowed to draft new contracts
CREATOR_ROLES = frozenset({Role.FREELANCER, Role.ADMIN})


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def party_in(self, contract: ContractRecord) -> Optional[Party]:
        """Which side of the contract this actor is on, if any"""
        if self.user_id == contract.owner_id:
            return Party.OWNER
        if self.user_id == contract.client_id:
            return Party.CLIENT
        return None

    def default_party(self) -> Party:
        """Party used for listings when the caller doesn't pick one"""
        return Party.CLIENT if self.role == Role.CLIENT else Party.OWNER


def can(actor: Actor, action: Action, contract: ContractRecord) -> bool:
    party = actor.party_in(contract)
    if party is None:
        return action == Action.READ and actor.is_admin
    return party in CAPABILITIES[action]


def require(actor: Actor, action: Action, contract: ContractRecord) -> None:
    if not can(actor, action, contract):
        raise ForbiddenError(f"You cannot {action.value} this contract")


def require_creator(actor: Actor) -> None:
    if actor.role not in CREATOR_ROLES:
        raise ForbiddenError("Only freelancers can create contracts")
