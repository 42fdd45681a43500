import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sellerhub.config import get_settings
from sellerhub.db import create_db_and_tables
from sellerhub.errors import ErrorKind, MeliOAuthError
from sellerhub.routers import meli_oauth

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield

app = FastAPI(title="SellerHub", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

@app.exception_handler(MeliOAuthError)
async def meli_oauth_error_handler(request: Request, exc: MeliOAuthError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

# Include routers
app.include_router(meli_oauth.router)

@app.get("/")
def root():
    return {"message": "SellerHub backend is live"}
