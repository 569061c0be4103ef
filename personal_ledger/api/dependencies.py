"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from personal_ledger.engine.ledger import Ledger
from personal_ledger.engine.loans import LoanEngine
from personal_ledger.engine.savings import SavingsEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger(request: Request) -> Ledger:
    """Provide the ledger wired to the application's store"""
    return request.app.state.ledger


def get_savings_engine(request: Request) -> SavingsEngine:
    """Provide the savings engine wired to the application's store"""
    return request.app.state.savings


def get_loan_engine(request: Request) -> LoanEngine:
    """Provide the loan engine wired to the application's store"""
    return request.app.state.loans
