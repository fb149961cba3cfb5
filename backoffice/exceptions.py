"""Typed errors raised by the back-office services.

Every error carries a machine-readable ``code`` and the HTTP status the API
answers with. Route handlers do not catch these; the application-level error
handler turns them into the ``{"success": false, "error": ...}`` envelope.

    BackOfficeError
    +-- ValidationError          400
    +-- Unauthorized             401
    +-- PermissionDenied         403
    +-- NotFound                 404
    +-- BusinessRuleError        409
    |   +-- InsufficientStock
    |   +-- InvalidTransition
    |   +-- AlreadyCheckedIn
    |   +-- NoOpenEntry
    |   +-- SlotUnavailable
    |   +-- LimitExceeded
    |       +-- DailyLimitExceeded
    |       +-- MonthlyLimitExceeded
    +-- Conflict                 409
"""


class BackOfficeError(Exception):
    code = 'BACKOFFICE_ERROR'
    status_code = 500

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self):
        return {'success': False, 'error': self.message, 'code': self.code}


class ValidationError(BackOfficeError):
    """Invalid request data."""
    code = 'VALIDATION_ERROR'
    status_code = 400

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self):
        payload = super().to_dict()
        if self.errors:
            payload['errors'] = self.errors
        return payload


class Unauthorized(BackOfficeError):
    """Authentication required."""
    code = 'UNAUTHORIZED'
    status_code = 401


class PermissionDenied(BackOfficeError):
    """Insufficient permissions."""
    code = 'FORBIDDEN'
    status_code = 403


class NotFound(BackOfficeError):
    """Resource not found."""
    code = 'NOT_FOUND'
    status_code = 404


class BusinessRuleError(BackOfficeError):
    code = 'BUSINESS_RULE_VIOLATION'
    status_code = 409


class InsufficientStock(BusinessRuleError):
    """Not enough stock at the location."""
    code = 'INSUFFICIENT_STOCK'

    def __init__(self, item_id, location_id, available, requested):
        self.item_id = item_id
        self.location_id = location_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock: {available} available, {requested} requested"
        )


class InvalidTransition(BusinessRuleError):
    code = 'INVALID_TRANSITION'

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move transfer from '{current}' to '{requested}'"
        )


class AlreadyCheckedIn(BusinessRuleError):
    """You are already checked in"""
    code = 'ALREADY_CHECKED_IN'


class NoOpenEntry(BusinessRuleError):
    """You are not currently checked in"""
    code = 'NO_OPEN_ENTRY'


class SlotUnavailable(BusinessRuleError):
    """Time slot is not available"""
    code = 'SLOT_UNAVAILABLE'


class LimitExceeded(BusinessRuleError):
    code = 'LIMIT_EXCEEDED'

    def __init__(self, message, used, requested, limit):
        self.used = used
        self.requested = requested
        self.limit = limit
        super().__init__(message)


class DailyLimitExceeded(LimitExceeded):
    code = 'DAILY_LIMIT_EXCEEDED'


class MonthlyLimitExceeded(LimitExceeded):
    code = 'MONTHLY_LIMIT_EXCEEDED'


class Conflict(BackOfficeError):
    """The record was modified by another request. Please retry."""
    code = 'CONFLICT'
    status_code = 409
