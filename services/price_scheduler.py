"""가격 재계산 스케줄러

주기적으로 모든 팀의 가격을 누적 투자금으로부터 다시 계산해
가격 틱(prices)을 기록하고 팀의 현재가(p) 캐시를 갱신한다.
포지션/거래 내역은 읽지도 쓰지도 않는다.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import settings
from models.price import PriceTick
from models.team import Team
from services.pricing import compute_round1_price
from services.pricing_config import load_pricing_params

logger = logging.getLogger(__name__)

CURRENT_ROUND = 1


async def insert_price_tick(db: AsyncSession, team_id: int, round_: int, price: int, tick_ts: datetime) -> bool:
    """가격 틱 삽입. (team_id, round, tick_ts)가 이미 있으면 무시

    Returns:
        True if a row was inserted
    """
    dialect = db.get_bind().dialect.name
    insert_fn = sqlite_insert if dialect == "sqlite" else pg_insert

    stmt = (
        insert_fn(PriceTick)
        .values(team_id=team_id, round=round_, price=price, tick_ts=tick_ts, created_at=datetime.utcnow())
        .on_conflict_do_nothing(index_elements=["team_id", "round", "tick_ts"])
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


class PriceScheduler:
    """가격 재계산 백그라운드 작업

    start()로 주기 실행을 시작하고 stop()으로 취소한다.
    테스트나 관리자 트리거는 recalculate_prices()를 직접 호출한다.
    """

    def __init__(self, session_factory: async_sessionmaker, interval: Optional[float] = None):
        self.session_factory = session_factory
        self.interval = interval if interval is not None else settings.PRICE_RECALC_INTERVAL
        self._task: Optional[asyncio.Task] = None

        # 실행 통계
        self.cycles = 0
        self.last_run_at: Optional[datetime] = None
        self.last_team_count = 0
        self.last_failures = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Price scheduler started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Price scheduler stopped")

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.recalculate_prices()
            except Exception as e:
                logger.error(f"Price recalculation cycle failed: {e}")

    async def recalculate_prices(self, now: Optional[datetime] = None) -> int:
        """모든 팀 가격 재계산 (1 사이클)

        팀별로 독립 트랜잭션을 사용하며, 한 팀의 실패는 다른 팀에 영향을 주지 않는다.

        Returns:
            가격이 갱신된 팀 수
        """
        now = now or datetime.utcnow()
        updated = 0
        failures = 0

        async with self.session_factory() as db:
            params = await load_pricing_params(db)

            result = await db.execute(select(Team.id, Team.money, Team.p0).order_by(Team.id))
            teams = result.all()
            await db.commit()

            for team_id, money, p0 in teams:
                try:
                    base = p0 if p0 is not None else params.P0
                    price = compute_round1_price(money or 0, base, params)

                    await insert_price_tick(db, team_id, CURRENT_ROUND, price, now)
                    await db.execute(
                        update(Team).where(Team.id == team_id).values(p=price)
                    )
                    await db.commit()
                    updated += 1
                except Exception as e:
                    failures += 1
                    await db.rollback()
                    logger.error(f"Price recalculation failed for team {team_id}: {e}")

        self.cycles += 1
        self.last_run_at = now
        self.last_team_count = updated
        self.last_failures = failures

        logger.debug(f"Recalculated prices for {updated}/{len(teams)} teams at {now.isoformat()}")
        return updated

    def status(self) -> dict:
        return {
            "running": self.is_running,
            "interval": self.interval,
            "cycles": self.cycles,
            "last_run_at": self.last_run_at,
            "last_team_count": self.last_team_count,
            "last_failures": self.last_failures,
        }
