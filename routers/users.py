"""사용자 라우터 (내 정보, 포트폴리오, 투자 내역, 리더보드)"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cache import cached
from config import settings
from database import get_db
from middleware.auth import get_current_user
from models.user import User
from services import portfolio_service

router = APIRouter()


class UserResponse(BaseModel):
    """사용자 응답"""
    id: int
    name: str
    school_number: int
    department: str
    capital: int
    stock_value: int
    total_assets: int
    roi: int
    rank: Optional[int]

    class Config:
        from_attributes = True


class PortfolioItem(BaseModel):
    team_id: int
    team_name: str
    shares: float
    invested_amount: int
    average_price: int
    current_price: int
    current_value: int
    profit_loss: int
    profit_rate: float


class PositionResponse(PortfolioItem):
    amount: int


class PortfolioResponse(BaseModel):
    total_invested: int
    current_value: int
    profit_loss: int
    roi: float
    items: List[PortfolioItem]


class HistoryItem(BaseModel):
    id: int
    team_id: int
    team_name: str
    type: str
    amount: int
    price: int
    shares: float
    created_at: datetime


class LeaderboardEntry(BaseModel):
    name: str
    school_number: int
    department: str
    capital: int
    total_assets: int
    roi: int
    rank: Optional[int]


@router.get("/user", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """현재 사용자 정보"""
    return user


@router.get("/user/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """보유 포지션 전체"""
    return await portfolio_service.get_portfolio(db, user)


@router.get("/user/portfolio/{team_id}", response_model=PositionResponse)
async def get_position(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """특정 팀 포지션"""
    return await portfolio_service.get_position(db, user, team_id)


@router.get("/user/history", response_model=List[HistoryItem])
async def get_history(
    limit: int = Query(default=20),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """투자 내역 (최신순)"""
    return await portfolio_service.get_history(db, user, limit)


@cached("leaderboard", ttl=settings.CACHE_TTL_LEADERBOARD)
async def _leaderboard(db: AsyncSession, page: int, page_size: int) -> list[dict]:
    return await portfolio_service.get_leaderboard(db, page, page_size)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100, alias="pageSize"),
    db: AsyncSession = Depends(get_db)
):
    """리더보드"""
    return await _leaderboard(db, page, page_size)
