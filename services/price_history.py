"""가격 이력 조회 서비스"""
from datetime import datetime, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cache import cached
from config import settings
from models.price import PriceTick
from models.team import Team
from services.price_scheduler import CURRENT_ROUND


@cached("prices:history", ttl=settings.CACHE_TTL_PRICES)
async def get_price_history(db: AsyncSession, team_id: int, minutes: int = None) -> list[dict]:
    """최근 N분 동안의 가격 틱 (시간 오름차순)"""
    if minutes is None:
        minutes = settings.PRICE_HISTORY_WINDOW_MINUTES
    since = datetime.utcnow() - timedelta(minutes=minutes)

    result = await db.execute(
        select(PriceTick.price, PriceTick.tick_ts)
        .where(
            PriceTick.team_id == team_id,
            PriceTick.round == CURRENT_ROUND,
            PriceTick.tick_ts >= since,
        )
        .order_by(PriceTick.tick_ts.asc())
    )

    return [
        {"price": price, "tick_ts": tick_ts.isoformat()}
        for price, tick_ts in result.all()
    ]


@cached("prices:latest", ttl=settings.CACHE_TTL_PRICES)
async def get_latest_prices(db: AsyncSession) -> list[dict]:
    """팀별 최신 가격 틱"""
    latest = (
        select(PriceTick.team_id, func.max(PriceTick.tick_ts).label("tick_ts"))
        .where(PriceTick.round == CURRENT_ROUND)
        .group_by(PriceTick.team_id)
        .subquery()
    )

    result = await db.execute(
        select(Team.id, Team.team_name, PriceTick.price, PriceTick.tick_ts)
        .join(latest, latest.c.team_id == Team.id)
        .join(
            PriceTick,
            (PriceTick.team_id == latest.c.team_id)
            & (PriceTick.tick_ts == latest.c.tick_ts)
            & (PriceTick.round == CURRENT_ROUND),
        )
        .order_by(Team.id)
    )

    return [
        {
            "team_id": team_id,
            "team_name": team_name,
            "price": price,
            "tick_ts": tick_ts.isoformat(),
        }
        for team_id, team_name, price, tick_ts in result.all()
    ]
