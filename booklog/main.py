from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from booklog.core.config import settings
from booklog.database import Database
from booklog.routers import (
    auth,
    books,
    genres,
    user_books,
    reading_lists,
    recommendations,
)

# ----------------------------
# Logging
# ----------------------------
logger = logging.getLogger("booklog")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Messages for path/query parameters that fail to parse
PARAM_ERRORS = {
    "book_id": "Invalid book ID",
    "genre_id": "Invalid genre ID",
    "list_id": "Invalid reading list ID",
    "userId": "Invalid user ID",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("[BOOT] opening database %s", settings.get_masked_database_url())
    db = Database()
    db.init_db()
    app.state.db = db
    try:
        yield
    finally:
        db.dispose()
        logger.info("[SHUTDOWN] database closed")


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)


# ----------------------------
# CORS
# ----------------------------
cors_origins = settings.cors_origins_list
logger.info("[CORS] allow_origins=%s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are plain 400s naming the offending field."""
    errors = exc.errors()
    detail = "Invalid request"
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ())]
        field = loc[-1] if loc else ""
        if errors[0].get("type") == "json_invalid":
            detail = "Invalid JSON body"
        elif field in PARAM_ERRORS:
            detail = PARAM_ERRORS[field]
        elif loc and loc[0] == "body" and len(loc) == 1:
            detail = "Invalid request body"
        elif field:
            detail = f"Invalid value for {field}"
    logger.info("[400] %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[UNHANDLED] %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


# ----------------------------
# Routers
# ----------------------------
app.include_router(auth.router, prefix="/api")
app.include_router(books.router, prefix="/api")
app.include_router(genres.router, prefix="/api")
app.include_router(user_books.router, prefix="/api")
app.include_router(reading_lists.router, prefix="/api")
app.include_router(recommendations.router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/health")
def api_health_check():
    return {"status": "ok"}
