from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from splitledger.core.config import settings
from splitledger.core.exceptions import ConsistencyError, LedgerError, NotFoundError, ValidationError
from splitledger.core.logging import configure_logging
from splitledger.api.v1.routes.system import router as system_router
from splitledger.api.v1.routes.expense import router as expense_router
from splitledger.api.v1.routes.settlement import router as settlement_router
from splitledger.api.v1.routes.group import router as group_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Split Ledger")

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConsistencyError: 500,
}

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(status_code=status, content={"detail": exc.message})

@app.get("/")
async def root():
    return {"message": "Split Ledger is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(expense_router, prefix="/api/v1/expense")
app.include_router(settlement_router, prefix="/api/v1/settlements")
app.include_router(group_router, prefix="/api/v1/groups")
