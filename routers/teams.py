"""팀/가격 라우터"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from errors import InvalidTarget
from models.team import Team
from services.price_history import get_price_history, get_latest_prices

router = APIRouter()


class TeamResponse(BaseModel):
    """팀 응답"""
    id: int
    team_name: str
    status: str
    pitch_url: Optional[str]
    money: int
    p0: int
    p: Optional[int]
    current_price: int
    created_at: datetime

    class Config:
        from_attributes = True


class PricePoint(BaseModel):
    price: int
    tick_ts: datetime


class LatestPrice(PricePoint):
    team_id: int
    team_name: str


async def _get_team(db: AsyncSession, team_id: int) -> Team:
    team = await db.get(Team, team_id)
    if not team:
        raise InvalidTarget("팀을 찾을 수 없습니다.", status_code=404)
    return team


@router.get("/teams", response_model=List[TeamResponse])
async def list_teams(db: AsyncSession = Depends(get_db)):
    """전체 팀 목록"""
    result = await db.execute(select(Team).order_by(Team.id))
    return result.scalars().all()


@router.get("/teams/{team_id}", response_model=TeamResponse)
async def get_team(team_id: int, db: AsyncSession = Depends(get_db)):
    """팀 정보"""
    return await _get_team(db, team_id)


@router.get("/teams/{team_id}/prices", response_model=List[PricePoint])
async def get_team_prices(
    team_id: int,
    minutes: int = Query(default=settings.PRICE_HISTORY_WINDOW_MINUTES, ge=1, le=24 * 60),
    db: AsyncSession = Depends(get_db)
):
    """최근 가격 이력 (기본 2시간 30분)"""
    await _get_team(db, team_id)
    return await get_price_history(db, team_id, minutes)


@router.get("/prices", response_model=List[LatestPrice])
async def get_prices(db: AsyncSession = Depends(get_db)):
    """팀별 최신 가격"""
    return await get_latest_prices(db)
