from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from prize_service.api.payouts import router as payouts_router
from prize_service.api.rules import router as rules_router
from prize_service.logging_setup import setup_logging
from prize_service.storage.database import init_db


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    init_db()
    yield


app = FastAPI(title="Prize Service API", lifespan=lifespan)
app.include_router(rules_router)
app.include_router(payouts_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
