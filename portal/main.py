# portal/main.py

# ------------------ load .env from project root before config is read ------------------
import pathlib
from dotenv import load_dotenv, find_dotenv

ROOT = pathlib.Path(__file__).resolve().parent.parent

env_path = ROOT / ".env"
if not env_path.exists():
    env_path = find_dotenv()

load_dotenv(env_path)

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.config import CORS_ORIGINS, LOG_LEVEL
from portal.database import create_tables
from portal.errors import PortalError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)
log.info("Loaded .env from: %s", env_path or "(none)")

app = FastAPI(title="College Portal")

# routers are imported after app creation
from portal.auth.login import router as auth_router
from portal.faculty.router import router as faculty_router
from portal.salary.router import router as salary_router

# -------------------- Middleware --------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Archive-Entries", "X-Archive-Failed"],
)


# -------------------- Error responses --------------------
@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid {location}: {first.get('msg')}" if location else "Invalid request."
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error."})


# ------------------- Routes -------------------
@app.get("/")
def home():
    return {
        "message": "College Portal API running!",
        "endpoints": {
            "login": "/api/auth/login",
            "faculty": "/api/faculty",
            "salary": "/api/salary/history",
        },
    }


app.include_router(auth_router, prefix="/api")
app.include_router(faculty_router, prefix="/api")
app.include_router(salary_router, prefix="/api")


@app.on_event("startup")
def _create_tables():
    create_tables()
    log.info("Database tables ready")
