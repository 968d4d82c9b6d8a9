"""Contract domain errors

Every error carries the HTTP status the API layer answers with and a short
machine-readable code. Only the app factory translates them to responses.
"""


class ContractError(Exception):
    """Base class for contract workflow failures"""

    status_code = 400
    code = "contract_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContractError):
    """Malformed or missing input"""

    status_code = 400
    code = "validation_error"


class ForbiddenError(ContractError):
    """Actor lacks permission for the requested operation"""

    status_code = 403
    code = "forbidden"


class NotFoundError(ContractError):
    """Unknown contract id (or a contract the actor may not see)"""

    status_code = 404
    code = "not_found"


class InvalidStateError(ContractError):
    """Transition is not legal from the contract's current status"""

    status_code = 409
    code = "invalid_state"


class ConcurrencyConflictError(ContractError):
    """Optimistic write lost the race against another writer"""

    status_code = 409
    code = "concurrency_conflict"
