"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient

from personal_ledger.api.main import create_app
from personal_ledger.engine.ledger import Ledger
from personal_ledger.engine.loans import LoanEngine
from personal_ledger.engine.savings import SavingsEngine
from personal_ledger.infrastructure.database.session import Store


USER_EMAIL = "alice@example.com"
OTHER_EMAIL = "bob@example.com"


@pytest.fixture
def store(tmp_path) -> Generator[Store, None, None]:
    """File-backed SQLite store, fresh per test"""
    test_store = Store(f"sqlite:///{tmp_path / 'ledger.db'}")
    test_store.create_schema()
    try:
        yield test_store
    finally:
        test_store.dispose()


@pytest.fixture
def savings(store: Store) -> SavingsEngine:
    return SavingsEngine(store)


@pytest.fixture
def loans(store: Store) -> LoanEngine:
    return LoanEngine(store)


@pytest.fixture
def ledger(store: Store, savings: SavingsEngine, loans: LoanEngine) -> Ledger:
    return Ledger(store, savings, loans)


@pytest.fixture
def user(ledger: Ledger) -> str:
    """Registered user email"""
    ledger.register_user("Alice", USER_EMAIL, "$2b$12$hash-from-auth-layer")
    return USER_EMAIL


@pytest.fixture
def other_user(ledger: Ledger) -> str:
    ledger.register_user("Bob", OTHER_EMAIL, "$2b$12$another-hash")
    return OTHER_EMAIL


@pytest.fixture
def client(store: Store) -> TestClient:
    """Create FastAPI test client bound to the test store, scheduler off"""
    app = create_app(store=store, scheduler_enabled=False)
    return TestClient(app)
