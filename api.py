import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from config import settings
from database import engine, async_session
from errors import LedgerError
from routers import (
    auth_router,
    invest_router,
    users_router,
    teams_router,
    admin_router,
    comments_router
)
from cache import init_cache
from services.price_scheduler import PriceScheduler

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """로깅 설정 (요청 본문, 토큰 등 민감 정보는 기록하지 않는다)"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    # 시끄러운 서드파티 로거 억제
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)

    # Redis 연결
    redis_cache = await init_cache()

    # DB 연결 테스트
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connected")
    except Exception as e:
        print(f"⚠️ Database connection failed: {e}")

    # 가격 재계산 스케줄러
    app.state.session_factory = async_session
    scheduler = PriceScheduler(async_session)
    app.state.price_scheduler = scheduler
    if settings.PRICE_SCHEDULER_ENABLED:
        scheduler.start()
        print(f"✅ Price scheduler started ({scheduler.interval:g}s)")

    yield

    # 종료 시
    await scheduler.stop()
    if redis_cache:
        await redis_cache.close()
    await engine.dispose()
    print("✅ Connections closed")


app = FastAPI(
    title="Student Investment Game API",
    description="팀 투자 게임 (매수/매도, 가격 재계산, 리더보드) API",
    lifespan=lifespan,
    docs_url="/swagger",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS 미들웨어
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """원장 오류 -> {"status": "error", "kind", "message"}"""
    if exc.status_code >= 409:
        logger.error(f"{exc.kind} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# API 라우터 등록
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(invest_router, prefix="/api/invest", tags=["invest"])
app.include_router(users_router, prefix="/api", tags=["users"])
app.include_router(teams_router, prefix="/api", tags=["teams"])
app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(comments_router, prefix="/api", tags=["comments"])


# ============ REST API ============

@app.get("/api")
async def api_info():
    return {
        "message": "Student Investment Game API",
        "auth": {
            "POST /api/auth/check-user": "학번 존재 여부 확인",
            "POST /api/auth/signup": "회원가입 (초기 자본 지급)",
            "POST /api/auth/signin": "로그인 (토큰 재발급)"
        },
        "invest": {
            "POST /api/invest": "매수",
            "POST /api/invest/sell": "매도",
            "GET /api/user": "내 정보",
            "GET /api/user/portfolio": "포트폴리오",
            "GET /api/user/portfolio/{teamId}": "팀별 포지션",
            "GET /api/user/history": "투자 내역",
            "GET /api/leaderboard": "리더보드"
        },
        "market": {
            "GET /api/teams": "팀 목록",
            "GET /api/teams/{id}/prices": "가격 이력",
            "GET /api/prices": "팀별 최신 가격"
        },
        "comments": {
            "GET /api/teams/{id}/comments": "팀 코멘트 (created_at 커서)",
            "POST /api/teams/{id}/comments": "팀 코멘트 작성",
            "GET /api/comments": "전체 코멘트 (id 커서)",
            "POST /api/comments": "전체 코멘트 작성"
        },
        "documentation": {
            "GET /swagger": "Swagger UI",
            "GET /redoc": "ReDoc",
            "GET /openapi.json": "OpenAPI 스키마"
        }
    }


@app.get("/stats")
async def get_stats():
    """서버 상태"""
    scheduler = getattr(app.state, "price_scheduler", None)
    return {
        "price_scheduler": scheduler.status() if scheduler else None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
