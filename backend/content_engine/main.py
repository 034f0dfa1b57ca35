"""FastAPI 애플리케이션 진입점. 미들웨어, 예외 핸들러, API 라우터를 등록합니다."""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from content_engine.config import settings
from content_engine.database import engine
from content_engine.errors import ContentEngineError
from content_engine.routers import auth, collections, contents, versions, locks
from content_engine.utils.migrations import run_migrations

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Content Engine",
    description="콘텐츠 버전 이력, 릴리스, 계층형 잠금 관리 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ContentEngineError)
def handle_content_engine_error(request: Request, exc: ContentEngineError):
    logger.debug("[error] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


# Register all routers
app.include_router(auth.router)
app.include_router(collections.router)
app.include_router(contents.router)
app.include_router(versions.router)
app.include_router(locks.router)


@app.on_event("startup")
def ensure_schema():
    run_migrations(engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "content-engine"}
