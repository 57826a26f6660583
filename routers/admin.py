"""관리자 라우터"""
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cache import invalidate
from database import get_db, async_session
from middleware.auth import require_admin
from services import admin_tables, portfolio_service
from services.price_scheduler import PriceScheduler
from services.pricing_config import get_pricing_config, update_pricing_config
from services.user_deletion import UserDeletionService, delete_users

router = APIRouter(dependencies=[Depends(require_admin)])


class PricingConfigItem(BaseModel):
    key: str
    value: float
    description: Optional[str]
    stored: bool


class PricingConfigUpdate(BaseModel):
    """가격 설정 수정 요청 (키: N, T, P0, C1, C2, GAMMA, L1, U1, L2, U2)"""
    values: Dict[str, float]


class RecalculateResponse(BaseModel):
    updated_teams: int
    run_at: datetime


class SchedulerStatus(BaseModel):
    running: bool
    interval: float
    cycles: int
    last_run_at: Optional[datetime]
    last_team_count: int
    last_failures: int


class DeleteUserResponse(BaseModel):
    message: str
    refundedAmount: int


class BatchDeleteRequest(BaseModel):
    """일괄 삭제 요청"""
    userIds: List[int] = Field(min_length=1)


class BatchDeleteDetail(BaseModel):
    userId: int
    refunded: int


class BatchDeleteResponse(BaseModel):
    deletedCount: int
    totalRefund: int
    details: List[BatchDeleteDetail]


class RowUpdate(BaseModel):
    values: Dict[str, Any]


def get_session_factory(request: Request) -> async_sessionmaker:
    """트랜잭션을 직접 여는 작업용 세션 팩토리"""
    return getattr(request.app.state, "session_factory", None) or async_session


def get_price_scheduler(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> PriceScheduler:
    """앱에 등록된 가격 스케줄러 (lifespan 밖에서는 새로 생성해 등록)"""
    scheduler = getattr(request.app.state, "price_scheduler", None)
    if scheduler is None:
        scheduler = PriceScheduler(session_factory)
        request.app.state.price_scheduler = scheduler
    return scheduler


# ============ 가격 ============

@router.post("/prices/recalculate", response_model=RecalculateResponse)
async def recalculate_prices(scheduler: PriceScheduler = Depends(get_price_scheduler)):
    """가격 즉시 재계산"""
    run_at = datetime.utcnow()
    updated = await scheduler.recalculate_prices(run_at)
    await invalidate("prices:*")
    return RecalculateResponse(updated_teams=updated, run_at=run_at)


@router.get("/scheduler", response_model=SchedulerStatus)
async def scheduler_status(scheduler: PriceScheduler = Depends(get_price_scheduler)):
    """가격 스케줄러 실행 통계"""
    return scheduler.status()


@router.get("/pricing-config", response_model=List[PricingConfigItem])
async def read_pricing_config(db: AsyncSession = Depends(get_db)):
    """가격 설정 조회"""
    return await get_pricing_config(db)


@router.put("/pricing-config", response_model=List[PricingConfigItem])
async def write_pricing_config(request: PricingConfigUpdate, db: AsyncSession = Depends(get_db)):
    """가격 설정 수정 (다음 재계산부터 적용)"""
    try:
        return await update_pricing_config(db, request.values)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============ 사용자 ============

@router.delete("/users/{user_id}", response_model=DeleteUserResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """사용자 삭제 및 팀 투자금 환불"""
    result = await UserDeletionService(db).delete_user(user_id)
    await invalidate("leaderboard:*")
    return DeleteUserResponse(
        message=result["message"],
        refundedAmount=result["refunded_amount"],
    )


@router.post("/users/delete", response_model=BatchDeleteResponse)
async def delete_users_batch(
    request: BatchDeleteRequest,
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """사용자 일괄 삭제 (사용자마다 별도 트랜잭션)"""
    result = await delete_users(session_factory, request.userIds)
    await invalidate("leaderboard:*")
    return BatchDeleteResponse(
        deletedCount=result["deleted_count"],
        totalRefund=result["total_refund"],
        details=[
            BatchDeleteDetail(userId=d["user_id"], refunded=d["refunded"])
            for d in result["details"]
        ],
    )


@router.post("/ranks/refresh")
async def refresh_ranks(db: AsyncSession = Depends(get_db)):
    """총자산 기준 순위 재계산"""
    ranked = await portfolio_service.refresh_ranks(db)
    await invalidate("leaderboard:*")
    return {"ranked_users": ranked}


# ============ 테이블 ============

@router.get("/tables")
async def list_tables(db: AsyncSession = Depends(get_db)):
    """테이블 목록"""
    return await admin_tables.list_tables(db)


@router.get("/tables/{table_name}/{row_id}")
async def read_row(table_name: str, row_id: int, db: AsyncSession = Depends(get_db)):
    """행 조회"""
    return await admin_tables.read_row(db, table_name, row_id)


@router.put("/tables/{table_name}/{row_id}")
async def write_row(
    table_name: str,
    row_id: int,
    request: RowUpdate,
    db: AsyncSession = Depends(get_db)
):
    """행 수정"""
    try:
        return await admin_tables.write_row(db, table_name, row_id, request.values)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
