"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Caller-supplied value violates a documented constraint"""

    pass


class InsufficientBalanceError(ValidationError):
    """Outgoing entry exceeds the user's current balance"""

    pass


class NotFoundError(DomainException):
    """Referenced user, loan or savings profile does not exist"""

    pass


class LoanOverdueError(DomainException):
    """User holds a loan past its full term and may not transact"""

    pass


class NoActiveLoanError(DomainException):
    """Repayment requested but nothing is left to repay"""

    pass


class PersistenceError(DomainException):
    """Store failed to read or write; in-flight writes were rolled back"""

    pass
