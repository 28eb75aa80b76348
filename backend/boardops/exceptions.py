"""
BoardOps - Exception Hierarchy

Every error the planning engine raises on purpose derives from
BoardOpsException and carries a machine-readable code, the HTTP status the
API answers with, and a details dict that ends up in the JSON body.

Usage:
    from boardops.exceptions import NotFoundError, InvalidTransitionError

    raise NotFoundError("ProductionOrder", order_id)
    raise ValidationError("Order quantity must be positive", field="quantity", value=0)
"""
from typing import Any, Dict, List, Optional


class BoardOpsException(Exception):
    """
    Base class for BoardOps errors.

    Attributes:
        message: Human-readable description
        error_code: Stable code clients can switch on (e.g. "NOT_FOUND")
        status_code: HTTP status returned by the API
        details: Structured context (ids, states, shortages)
    """

    error_code: str = "BOARDOPS_ERROR"
    status_code: int = 500

    def __init__(self, message: str = "Production planning error", *, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ===================
# 400: bad input or illegal state
# ===================


class ValidationError(BoardOpsException):
    """Input rejected by a service: non-positive quantity, empty code, bad schedule."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details)


class InvalidTransitionError(BoardOpsException):
    """
    A lifecycle operation was attempted from a status that does not allow it,
    e.g. completing a PLANNED order or cancelling a COMPLETED one.

    details.allowed_states lists the statuses the operation is valid from.
    """

    error_code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        *,
        action: str,
        current_state: str,
        allowed_states: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        allowed = list(allowed_states or [])
        details = dict(details or {})
        details.update(
            entity=entity,
            entity_id=str(entity_id),
            action=action,
            current_state=current_state,
            allowed_states=allowed,
        )
        self.current_state = current_state
        self.allowed_states = allowed
        super().__init__(
            f"Cannot {action} {entity} {entity_id} in status {current_state}"
            f" (allowed from: {', '.join(allowed) or 'none'})",
            details=details,
        )


class DuplicateError(BoardOpsException):
    """A unique key (finished product code) is already taken."""

    error_code = "DUPLICATE_ERROR"
    status_code = 400

    def __init__(self, resource: str, *, field: str, value: Any):
        super().__init__(
            f"{resource} with {field}='{value}' already exists",
            details={"resource": resource, "field": field, "value": str(value)},
        )


# ===================
# 404
# ===================


class NotFoundError(BoardOpsException):
    """A referenced finished product, component, BOM line or order does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Any = None):
        details = {"resource": resource}
        if resource_id is None:
            message = f"{resource} not found"
        else:
            details["resource_id"] = str(resource_id)
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details)


# ===================
# 409
# ===================


class ConcurrencyError(BoardOpsException):
    """The row changed status between our read and our write; nothing was applied."""

    error_code = "CONCURRENCY_ERROR"
    status_code = 409

    def __init__(self, entity: str, entity_id: Any, *, expected_state: str):
        super().__init__(
            f"{entity} {entity_id} is no longer {expected_state}",
            details={"entity": entity, "entity_id": str(entity_id), "expected_state": expected_state},
        )


# ===================
# 422: valid request, refused by a business rule
# ===================


class BusinessRuleError(BoardOpsException):
    """E.g. deleting a finished product that active orders still build."""

    error_code = "BUSINESS_RULE_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str,
        *,
        rule: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if rule:
            details["rule"] = rule
        super().__init__(message, details=details)


class InsufficientInventoryError(BusinessRuleError):
    """Strict completion found components below the order's requirement."""

    error_code = "INSUFFICIENT_INVENTORY"

    def __init__(self, order_id: Any, *, shortages: List[Dict[str, Any]]):
        self.shortages = shortages
        super().__init__(
            f"Insufficient component stock for production order {order_id}: "
            f"{len(shortages)} component(s) short",
            rule="strict_completion",
            details={"order_id": str(order_id), "shortages": shortages},
        )
