"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from personal_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from personal_ledger.api.v1 import interest, loans, savings, transactions, users
from personal_ledger.engine.ledger import Ledger
from personal_ledger.engine.loans import LoanEngine
from personal_ledger.engine.savings import SavingsEngine
from personal_ledger.engine.scheduler import SweepScheduler
from personal_ledger.infrastructure.database.session import Store
from personal_ledger.infrastructure.observability.logging import setup_logging
from personal_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(store: Store | None = None, scheduler_enabled: bool | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    The store is created here (or injected by tests) and the engines are
    wired to it. The lifespan owns the ordering: schema and scheduler come up
    on startup; on shutdown the scheduler stops before the store is disposed.
    """
    store = store or Store(settings.database_url)
    if scheduler_enabled is None:
        scheduler_enabled = settings.sweep_scheduler_enabled

    savings_engine = SavingsEngine(store)
    loan_engine = LoanEngine(store)
    ledger = Ledger(store, savings_engine, loan_engine)
    scheduler = SweepScheduler(savings_engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.create_schema()
        if scheduler_enabled:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()
            store.dispose()

    app = FastAPI(
        title="Personal Ledger",
        description="Ledger, savings skim and loan engine",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.ledger = ledger
    app.state.savings = savings_engine
    app.state.loans = loan_engine
    app.state.scheduler = scheduler

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "scheduler_running": scheduler.is_running}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(savings.router, prefix="/v1", tags=["savings"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(interest.router, prefix="/v1", tags=["interest"])

    return app


app = create_app()
