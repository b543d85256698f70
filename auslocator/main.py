"""Australian Address Locator: FastAPI application entry point.

REST routes for address verification, location search and the interaction
log, plus the GraphQL endpoint at /graphql.
"""

import ipaddress
import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from auslocator.config import settings
from auslocator.graphql_api import graphql_router
from auslocator.integrations.australia_post import (
    AustraliaPostClient,
    AustraliaPostUnavailable,
    australia_post_client,
)
from auslocator.schemas import LogQuery, SearchLocationsRequest, VerifyAddressRequest
from auslocator.services.log_service import InvalidLogRequest, LogService, get_log_service

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("auslocator")

SEARCH_LIMIT = 20


def get_lookup_client() -> AustraliaPostClient:
    """FastAPI dependency: the shared Australia Post client."""
    return australia_post_client


def client_ip(request: Request) -> str | None:
    """Best-effort caller IP; None unless it parses as an IP address."""
    candidate = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if not candidate:
        candidate = request.headers.get("x-real-ip", "").strip()
    if not candidate and request.client:
        candidate = request.client.host
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return None


def _errors(e: ValidationError | RequestValidationError) -> list[dict]:
    if isinstance(e, ValidationError):
        return e.errors(include_url=False, include_context=False, include_input=False)
    return [{"loc": err.get("loc"), "msg": err.get("msg"), "type": err.get("type")} for err in e.errors()]


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Address locator starting | auspost_key=%s | logging=%s",
        settings.has_australia_post_key, settings.logging_configured,
    )

    service = get_log_service()
    index_ok = await service.ensure_index()
    logger.info("Elasticsearch: %s", "index ready" if index_ok else "unavailable (logging disabled)")

    yield

    await service.store.close()
    logger.info("Address locator shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Australian Address Locator API",
    description="Australian postcode/suburb verification and locality search",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Session-Id"],
)

app.include_router(graphql_router, prefix="/graphql")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request parameters", "details": _errors(exc)},
    )


# ═══════════════ ADDRESS LOOKUP ═══════════════

@app.post("/verify-address")
async def verify_address(
    request: Request,
    background_tasks: BackgroundTasks,
    lookup: AustraliaPostClient = Depends(get_lookup_client),
    service: LogService = Depends(get_log_service),
):
    try:
        body = await request.json()
        req = VerifyAddressRequest.model_validate(body)
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={"isValid": False, "message": "Invalid input data", "errors": _errors(e)},
        )
    except ValueError:
        return JSONResponse(
            status_code=400,
            content={"isValid": False, "message": "Invalid input data", "errors": []},
        )

    try:
        result = await lookup.verify(req.postcode, req.suburb, req.state)
    except Exception as e:
        logger.error("Address verification error: %s", str(e)[:300])
        return JSONResponse(
            status_code=500,
            content={"isValid": False, "message": "Internal server error. Please try again later."},
        )

    logger.info(
        "Verification | postcode=%s | suburb=%s | state=%s | valid=%s",
        req.postcode, req.suburb, req.state, result.isValid,
    )

    if settings.server_side_logging:
        # Fire-and-forget; submit() never raises on backend failure
        background_tasks.add_task(
            service.submit,
            "verifier",
            {"input": req.model_dump(), "result": result.model_dump(exclude_none=True)},
            session_id=request.headers.get("x-session-id"),
            user_agent=request.headers.get("user-agent"),
            ip_address=client_ip(request),
        )

    return result.model_dump(exclude_none=True)


@app.post("/search-locations")
async def search_locations(
    request: Request,
    lookup: AustraliaPostClient = Depends(get_lookup_client),
):
    try:
        body = await request.json()
        req = SearchLocationsRequest.model_validate(body)
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={
                "locations": [], "total": 0,
                "error": "Invalid search parameters", "details": _errors(e),
            },
        )
    except ValueError:
        return JSONResponse(
            status_code=400,
            content={"locations": [], "total": 0, "error": "Invalid search parameters", "details": []},
        )

    try:
        result = await lookup.search(req.query, req.category, limit=SEARCH_LIMIT)
    except Exception as e:
        logger.error("Location search error: %s", str(e)[:300])
        return JSONResponse(
            status_code=500,
            content={
                "locations": [], "total": 0,
                "error": "Internal server error. Please try again later.",
            },
        )

    logger.info("Search | query=%s | category=%s | total=%d", req.query, req.category, result.total)
    return result.model_dump(exclude_none=True)


@app.get("/health-check")
async def health_check(
    lookup: AustraliaPostClient = Depends(get_lookup_client),
    service: LogService = Depends(get_log_service),
):
    try:
        message = await lookup.health_check()
    except AustraliaPostUnavailable:
        return JSONResponse(status_code=500, content={"error": "Health check failed"})

    return {
        "status": "ok",
        "message": message,
        "logging": await service.store.health_check(),
    }


# ═══════════════ INTERACTION LOGS ═══════════════

@app.post("/logs")
async def submit_log(request: Request, service: LogService = Depends(get_log_service)):
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    payload = dict(body)
    log_type = payload.pop("type", None)
    session_id = payload.pop("sessionId", None)

    try:
        success = await service.submit(
            log_type,
            payload,
            session_id=session_id,
            user_agent=request.headers.get("user-agent"),
            ip_address=client_ip(request),
        )
    except InvalidLogRequest as e:
        return JSONResponse(status_code=400, content={"error": str(e), "details": e.details})
    except Exception as e:
        logger.error("Error logging interaction: %s", str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    if not success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to log interaction"},
        )
    return {"success": True, "message": "Interaction logged successfully"}


@app.get("/logs")
async def list_logs(
    type: Literal["verifier", "source"] | None = None,
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    startDate: str | None = None,
    endDate: str | None = None,
    search: str | None = None,
    service: LogService = Depends(get_log_service),
):
    options = LogQuery(
        type=type,
        limit=limit,
        offset=offset,
        startDate=startDate or None,
        endDate=endDate or None,
        searchTerm=search or None,
    )
    try:
        page = await service.list(options)
    except Exception as e:
        logger.error("Error retrieving logs: %s", str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return {
        "success": True,
        "data": [entry.to_document() for entry in page.logs],
        "total": page.total,
        "pagination": page.pagination.model_dump(),
    }


@app.get("/logs/stats")
async def log_stats(service: LogService = Depends(get_log_service)):
    try:
        report = await service.get_statistics()
    except Exception as e:
        logger.error("Error getting log statistics: %s", str(e)[:300])
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "healthy": False},
        )

    content = {"success": report.healthy, "healthy": report.healthy, "stats": report.stats.model_dump()}
    if not report.healthy:
        content["message"] = "Elasticsearch is not available"
    return content


@app.delete("/logs")
async def reset_logs(service: LogService = Depends(get_log_service)):
    if not await service.reset():
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to reset Elasticsearch index"},
        )
    return {"success": True, "message": "Elasticsearch index reset successfully"}
