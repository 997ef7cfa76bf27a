# app/errors.py

"""
Ledger error taxonomy.

Services raise these; app/main.py renders them as
{"detail": message} with the matching HTTP status.
"""


class LedgerError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Missing field, bad amount, over-allocation, empty payout."""
    status_code = 422


class ConflictError(LedgerError):
    """Duplicate order number or concurrent modification."""
    status_code = 409


class NotFoundError(LedgerError):
    status_code = 404
