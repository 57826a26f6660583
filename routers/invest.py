"""투자(매수/매도) 라우터"""
import hashlib
import logging
from pydantic import BaseModel, Field

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cache import get_cache, invalidate
from database import get_db
from middleware.auth import get_bearer_token
from services.invest_service import InvestService

logger = logging.getLogger(__name__)

router = APIRouter()


class InvestRequest(BaseModel):
    """매수/매도 요청 (amount: 거래 금액)"""
    amount: int = Field(gt=0)
    teamId: int = Field(gt=0)


class InvestResponse(BaseModel):
    amount: int
    status: str
    message: str


def _lock_name(token: str) -> str:
    # 토큰 원문을 Redis 키에 남기지 않는다
    return f"invest:{hashlib.sha256(token.encode()).hexdigest()[:32]}"


async def _execute(side: str, token: str, request: InvestRequest, db: AsyncSession) -> dict:
    service = InvestService(db)
    execute = service.buy if side == "buy" else service.sell

    cache = await get_cache()

    # 분산 락으로 동일 사용자의 동시 거래 방지
    try:
        if cache and cache.is_connected:
            async with cache.distributed_lock(_lock_name(token), ttl=10, wait_timeout=5.0):
                result = await execute(token, request.amount, request.teamId)
        else:
            # Redis 없으면 DB 행 잠금만으로 실행
            result = await execute(token, request.amount, request.teamId)
    except TimeoutError:
        logger.warning(f"Invest lock timeout ({side})")
        raise HTTPException(
            status_code=429,
            detail="Too many concurrent requests. Please try again."
        )

    await invalidate("leaderboard:*")
    return result


@router.post("", response_model=InvestResponse)
async def buy(
    request: InvestRequest,
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
):
    """매수"""
    return await _execute("buy", token, request, db)


@router.post("/sell", response_model=InvestResponse)
async def sell(
    request: InvestRequest,
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
):
    """매도"""
    return await _execute("sell", token, request, db)
