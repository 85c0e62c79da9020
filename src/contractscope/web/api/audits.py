"""REST API for running and retrieving audits."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from contractscope.audit.models import TokenContext
from contractscope.audit.orchestrator import AuditOrchestrator
from contractscope.errors import InvalidInputError
from contractscope.storage.repos import AuditRepo

router = APIRouter(tags=["audits"])


class TokenBody(BaseModel):
    symbol: str
    total_supply: float
    vulnerable_amount: float | None = None
    holders: int = 0
    pool_liquidity: list[float] = []


class AuditCreate(BaseModel):
    source: str
    token: TokenBody | None = None


@router.post("/audits")
async def create_audit(body: AuditCreate, request: Request):
    state = request.app.state
    orchestrator = AuditOrchestrator(
        source=state.source,
        policy=state.policy,
        sink=AuditRepo(state.db),
    )

    token = None
    if body.token is not None:
        token = TokenContext(
            symbol=body.token.symbol,
            total_supply=body.token.total_supply,
            vulnerable_amount=body.token.vulnerable_amount,
            holders=body.token.holders,
            pool_liquidity=tuple(body.token.pool_liquidity),
        )

    try:
        result = await orchestrator.run(body.source, token)
    except InvalidInputError as e:
        return JSONResponse(status_code=422, content={"detail": str(e)})
    return result.to_dict()


@router.get("/audits")
async def list_audits(request: Request, limit: int = 50, offset: int = 0):
    repo = AuditRepo(request.app.state.db)
    return await repo.list_all(limit=limit, offset=offset)


@router.get("/audits/{record_id}")
async def get_audit(record_id: str, request: Request):
    repo = AuditRepo(request.app.state.db)
    record = await repo.get(record_id)
    if not record:
        return JSONResponse(
            status_code=404,
            content={"detail": "Audit not found"},
        )
    return record
