import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.endpoints.api import api_router
from app.core.errors import INTERNAL_ERROR_DETAIL
from app.core.flow_logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Inbound Logistics API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # For development; restrict to the dashboard origin in production
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR_DETAIL})


app.include_router(api_router, prefix="/api/v1")

@app.get("/health")
def health():
    return {"status": "up"}
