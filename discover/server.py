"""
FastAPI server for the Discover service.

Exposes:
  - GET /health - Health check
  - GET /api/browse/suggestions - Ranked, paginated profile suggestions
  - POST /api/fame-rating/events - Recompute fame ratings after an interaction
  - GET /docs - Interactive API documentation (Swagger UI)
  - GET /openapi.json - OpenAPI schema
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status, Header
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Any, List, Optional, Annotated
import time

# Import configuration (loads .env automatically)
from discover.config import config, validate_config

# Import logging setup
from discover.utils.logging_config import logger, setup_logging

from discover.graphs.browse import DEADLINE_EXCEEDED, create_browse_graph
from discover.tools import firestore_tools
from discover.tools.fame_rating import users_to_rescore
from discover.utils.errors import FirestoreUnavailableError, InvalidInputError
from discover.utils.validation import BrowseQuery, browse_error_code

# Setup logging
setup_logging(debug=config.DEBUG)

# ============================================================
# VALIDATE CONFIGURATION AT STARTUP
# ============================================================
try:
    config_status = validate_config()
    logger.info("✅ Configuration validated successfully")
    for key, value in config_status.items():
        logger.info(f"  {key}: {value}")
except ValueError as e:
    logger.error(f"❌ Configuration error: {e}")
    exit(1)

# ============================================================
# FASTAPI APPLICATION
# ============================================================
app = FastAPI(
    title="Discover Service",
    description="Match-suggestion ranking for the browse/discover page",
    version="1.0.0",
)

# ============================================================
# CORS CONFIGURATION
# ============================================================
# Allow requests from the web client and API gateway during dev.
origins = [
    "http://localhost:5173",  # Vite dev
    "http://localhost:3000",  # API gateway dev
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================
# REQUEST/RESPONSE MODELS
# ============================================================
class SuggestionsResponse(BaseModel):
    """
    Response body for /api/browse/suggestions.

    Attributes:
        profiles (list): Ranked page of candidate profiles
        total (int): Number of eligible candidates across all pages
        limit (int): Page size actually applied (after clamping)
        offset (int): Offset of the page
    """
    profiles: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int


class FameEventRequest(BaseModel):
    """
    Interaction event reported by the event system.

    Attributes:
        event (str): like, unlike, match, unmatch, visit, block, unblock or report
        fromUserId (str): User performing the action
        toUserId (str): User the action targets
        isMatch (bool): Whether the pair is (or just stopped being) a match
    """
    event: str
    fromUserId: str
    toUserId: str
    isMatch: bool = False


class FameEventResponse(BaseModel):
    ratings: Dict[str, int]


# ============================================================
# MIDDLEWARE
# ============================================================
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """
    Middleware to track request processing time.

    Adds X-Process-Time header to all responses showing how long request took.
    """
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


def require_service_token(
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Reject the request unless it carries the configured service token.

    Runs as a route dependency, so it is checked before query validation.
    """
    if not config.SERVICE_TOKEN:
        return
    if authorization != f"Bearer {config.SERVICE_TOKEN}":
        logger.warning("Unauthorized request: invalid or missing token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


# ============================================================
# ROUTES
# ============================================================

@app.get("/health", tags=["System"])
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict: {"status": "healthy"}
    """
    return {"status": "healthy"}


@app.get(
    "/api/browse/suggestions",
    response_model=SuggestionsResponse,
    tags=["Browse"],
    dependencies=[Depends(require_service_token)],
)
def get_suggestions(
    query: Annotated[BrowseQuery, Query()],
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> SuggestionsResponse:
    """
    Return ranked profile suggestions for the requesting user.

    Query parameters: limit, offset, sortBy (distance|age|fame|tags),
    order (asc|desc), minAge, maxAge, maxDistance, minFame, maxFame,
    tags (comma separated), location, view (list|map).

    Raises:
        HTTPException: 400 on invalid parameters, 401 on a bad service
            token, 503 when the store is unavailable, 504 past the deadline
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="MISSING_USER_ID",
        )

    browse = query.to_request()
    start_time = time.time()
    graph = create_browse_graph()

    try:
        state = graph.invoke(
            {
                "user_id": x_user_id.strip(),
                "filters": browse.filters,
                "sort": browse.sort,
                "limit": browse.limit,
                "offset": browse.offset,
                "deadline_at": start_time + config.REQUEST_DEADLINE,
            }
        )
    except FirestoreUnavailableError as e:
        logger.error(f"❌ Store unavailable during browse: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile store unavailable",
        )
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"Browse request timed out after {config.REQUEST_DEADLINE}s",
        )

    execution_time = time.time() - start_time
    metadata = state.get("response_metadata", {})
    logger.info(
        "browse summary: sort=%s/%s view=%s total=%s success=%s time=%.2fs",
        browse.sort.key,
        browse.sort.direction,
        browse.view,
        state.get("result", {}).get("total"),
        metadata.get("success"),
        execution_time,
    )

    if metadata.get("error") == DEADLINE_EXCEEDED:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"Browse request timed out after {config.REQUEST_DEADLINE}s",
        )

    return SuggestionsResponse(**state["result"])


@app.post(
    "/api/fame-rating/events",
    response_model=FameEventResponse,
    tags=["Fame"],
    dependencies=[Depends(require_service_token)],
)
def record_fame_event(event: FameEventRequest) -> FameEventResponse:
    """
    Recompute and persist fame ratings for the users an event affects.

    The target is always rescored; on a match the actor is rescored too.
    """
    try:
        affected = users_to_rescore(
            event.event, event.fromUserId, event.toUserId, event.isMatch
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.code)

    try:
        ratings = {
            user_id: firestore_tools.recalculate_fame_rating(user_id)
            for user_id in affected
        }
    except FirestoreUnavailableError as e:
        logger.error(f"❌ Store unavailable during fame recalculation: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile store unavailable",
        )
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Fame recalculation timed out",
        )

    return FameEventResponse(ratings=ratings)


@app.get("/", tags=["System"])
async def root() -> Dict[str, str]:
    """
    Root endpoint.

    Returns information about the API and how to access documentation.
    """
    return {
        "service": "Discover Service",
        "version": "1.0.0",
        "docs": "http://localhost:8000/docs",
        "health": "http://localhost:8000/health"
    }


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions with consistent error response format.
    """
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Turn invalid browse query parameters into 400 responses with an error code.

    Other validation failures (e.g. a malformed event body) keep FastAPI's 422.
    """
    query_errors = [e for e in exc.errors() if tuple(e.get("loc", ()))[:1] == ("query",)]
    code = browse_error_code(query_errors)
    if code is None:
        return await request_validation_exception_handler(request, exc)

    logger.info(f"Rejected browse request: {code}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": code,
            "status_code": status.HTTP_400_BAD_REQUEST
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected exceptions.

    Never returns the exception message to the client; use logging instead.
    """
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.exception("Full traceback:")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500
        }
    )


# ============================================================
# STARTUP EVENTS
# ============================================================

@app.on_event("startup")
async def startup_event():
    """
    Run when the application starts.

    Configuration is already validated above (in module-level code),
    but we log it again here for visibility.
    """
    logger.info("=" * 60)
    logger.info("🚀 Discover Service Starting Up")
    logger.info("=" * 60)

    logger.info(f"Firebase Project: {config.FIREBASE_PROJECT_ID}")
    logger.info(f"Debug Mode: {config.DEBUG}")
    logger.info(f"Request Deadline: {config.REQUEST_DEADLINE}s")
    logger.info(f"Store Timeout: {config.STORE_TIMEOUT}s")
    logger.info(f"Max Candidates: {config.MAX_CANDIDATES}")

    logger.info("=" * 60)
    logger.info("✅ Service ready to handle requests")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    """
    Run when the application shuts down.
    """
    logger.info("🛑 Discover Service Shutting Down")


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    """
    Run with: python -m uvicorn discover.server:app --reload
    """
    import uvicorn
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info" if not config.DEBUG else "debug"
    )
