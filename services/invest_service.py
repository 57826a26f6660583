"""투자(매수/매도) 처리 서비스

모든 거래는 하나의 트랜잭션으로 처리된다. 사용자 -> 포지션/팀 순으로
행 잠금(SELECT ... FOR UPDATE)을 잡아 같은 사용자/팀에 대한 동시 거래가
중간 상태를 보지 못하게 한다. 어느 단계든 실패하면 전체 롤백.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from errors import (
    InsufficientFunds,
    InsufficientShares,
    InternalConsistency,
    InvalidAmount,
    InvalidPrice,
    InvalidTarget,
    NoHolding,
    Unauthorized,
)
from models.position import UserInvestment
from models.team import Team
from models.trade import InvestmentHistory
from models.user import User
from services.pricing import round_half_up

logger = logging.getLogger(__name__)

# 이 수량 이하로 남은 포지션은 전량 매도로 보고 삭제
DUST_THRESHOLD = Decimal("0.0001")

# 주식 수 저장 정밀도 (Numeric(30, 12))
SHARE_QUANTUM = Decimal("0.000000000001")


def to_shares(amount: int, price: int) -> Decimal:
    """금액 / 가격 -> 주식 수 (매수/매도 모두 같은 정밀도로 계산)"""
    return (Decimal(amount) / Decimal(price)).quantize(SHARE_QUANTUM)


def execution_price(team: Team) -> int:
    """체결 가격: p -> p0 -> 기본값 순"""
    if team.p is not None:
        return team.p
    if team.p0 is not None:
        return team.p0
    return settings.DEFAULT_PRICE


async def update_user_assets(db: AsyncSession, user: User) -> None:
    """보유 주식 평가액/총자산/수익률 전체 재계산

    증분 계산 대신 매 거래마다 모든 포지션을 현재가로 다시 평가한다.
    """
    result = await db.execute(
        select(UserInvestment, Team)
        .join(Team, UserInvestment.team_id == Team.id)
        .where(UserInvestment.user_id == user.id)
        .execution_options(populate_existing=True)
    )

    stock_value = 0
    for investment, team in result.all():
        stock_value += round_half_up(Decimal(str(investment.shares)) * team.current_price)

    total_assets = (user.capital or 0) + stock_value
    initial = settings.INITIAL_CAPITAL
    roi = round_half_up(Decimal(total_assets - initial) / initial * 100) if initial > 0 else 0

    user.stock_value = stock_value
    user.total_assets = total_assets
    user.roi = roi


class InvestService:
    """투자 원장 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _lock_user_by_token(self, token: str) -> User:
        if not token:
            raise Unauthorized("Empty Bearer token")
        result = await self.db.execute(
            select(User).where(User.access_token == token).with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise Unauthorized("Invalid token")
        return user

    async def _lock_team(self, team_id: int) -> Team:
        result = await self.db.execute(
            select(Team).where(Team.id == team_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        team = result.scalar_one_or_none()
        if not team:
            raise InvalidTarget("유효하지 않은 팀입니다.")
        return team

    async def _lock_position(self, user_id: int, team_id: int) -> Optional[UserInvestment]:
        result = await self.db.execute(
            select(UserInvestment)
            .where(UserInvestment.user_id == user_id, UserInvestment.team_id == team_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _validate_amount(amount) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(amount)
        return amount

    async def buy(self, token: str, amount: int, team_id: int) -> dict:
        """매수"""
        try:
            result = await self._buy(token, amount, team_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Buy executed: team={team_id} amount={amount}")
        return result

    async def _buy(self, token: str, amount: int, team_id: int) -> dict:
        amount = self._validate_amount(amount)
        user = await self._lock_user_by_token(token)

        current_capital = user.capital or 0
        if amount > current_capital:
            raise InsufficientFunds(required=amount, available=current_capital)

        team = await self._lock_team(team_id)

        price = execution_price(team)
        if price <= 0:
            raise InvalidPrice(price)

        shares = to_shares(amount, price)

        # 1. 사용자 자본 차감
        user.capital = current_capital - amount

        # 2. 팀 투자금 증가
        team.money = (team.money or 0) + amount

        # 3. 포지션 갱신
        investment = await self._lock_position(user.id, team.id)
        if investment:
            investment.shares = Decimal(str(investment.shares)) + shares
            investment.invested_amount = investment.invested_amount + amount
            investment.average_price = round_half_up(
                Decimal(investment.invested_amount) / investment.shares
            )
        else:
            investment = UserInvestment(
                user_id=user.id,
                team_id=team.id,
                shares=shares,
                invested_amount=amount,
                average_price=price,
            )
            self.db.add(investment)

        # 4. 거래 내역 기록
        self.db.add(InvestmentHistory(
            user_id=user.id,
            team_id=team.id,
            type="buy",
            amount=amount,
            price=price,
            shares=shares,
        ))
        await self.db.flush()

        # 5. 자산 재계산
        await update_user_assets(self.db, user)

        return {
            "amount": amount,
            "status": "success",
            "message": f"투자가 완료되었습니다. ({shares:.4f}주 매수)",
        }

    async def sell(self, token: str, amount: int, team_id: int) -> dict:
        """매도 (amount = 매도할 평가 금액)"""
        try:
            result = await self._sell(token, amount, team_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Sell executed: team={team_id} amount={amount}")
        return result

    async def _sell(self, token: str, amount: int, team_id: int) -> dict:
        amount = self._validate_amount(amount)
        user = await self._lock_user_by_token(token)

        investment = await self._lock_position(user.id, team_id)
        if not investment:
            raise NoHolding(team_id)

        team = await self._lock_team(team_id)

        price = execution_price(team)
        if price <= 0:
            raise InvalidPrice(price)

        shares_to_sell = to_shares(amount, price)
        current_shares = Decimal(str(investment.shares))
        if shares_to_sell > current_shares:
            raise InsufficientShares(held=current_shares, requested=shares_to_sell)

        # 1. 사용자 자본 증가
        user.capital = (user.capital or 0) + amount

        # 2. 팀 투자금 감소
        current_money = team.money or 0
        if current_money < amount:
            logger.error(f"Team {team.id} money {current_money} is less than sell amount {amount}")
            raise InternalConsistency("팀의 투자금이 부족합니다. (시스템 오류)")
        team.money = current_money - amount

        # 3. 포지션 갱신 (원금은 평균 매수가 기준으로 차감)
        remaining = current_shares - shares_to_sell
        deduct = round_half_up(shares_to_sell * investment.average_price)
        investment.shares = remaining
        investment.invested_amount = max(0, investment.invested_amount - deduct)

        if remaining <= DUST_THRESHOLD:
            await self.db.delete(investment)
        else:
            investment.average_price = round_half_up(Decimal(investment.invested_amount) / remaining)

        # 4. 거래 내역 기록
        self.db.add(InvestmentHistory(
            user_id=user.id,
            team_id=team.id,
            type="sell",
            amount=amount,
            price=price,
            shares=shares_to_sell,
        ))
        await self.db.flush()

        # 5. 자산 재계산
        await update_user_assets(self.db, user)

        return {
            "amount": amount,
            "status": "success",
            "message": f"매도가 완료되었습니다. ({shares_to_sell:.4f}주 매도)",
        }
