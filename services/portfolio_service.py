"""포트폴리오/자산 평가 서비스"""
from decimal import Decimal

from sqlalchemy import select, nulls_last
from sqlalchemy.ext.asyncio import AsyncSession

from models.position import UserInvestment
from models.team import Team
from models.trade import InvestmentHistory
from models.user import User
from services.pricing import round_half_up


def _profit_rate(profit_loss: int, invested: int) -> float:
    return (profit_loss / invested) * 100 if invested > 0 else 0.0


def _empty_item(team_id: int, team_name: str, current_price: int) -> dict:
    return {
        "team_id": team_id,
        "team_name": team_name,
        "shares": 0.0,
        "invested_amount": 0,
        "average_price": 0,
        "current_price": current_price,
        "current_value": 0,
        "amount": 0,
        "profit_loss": 0,
        "profit_rate": 0.0,
    }


def valuate(investment: UserInvestment, team: Team) -> dict:
    """포지션 하나를 현재가로 평가"""
    current_price = team.current_price
    shares = Decimal(str(investment.shares))
    current_value = round_half_up(shares * current_price)
    profit_loss = current_value - investment.invested_amount

    return {
        "team_id": team.id,
        "team_name": team.team_name,
        "shares": float(shares),
        "invested_amount": investment.invested_amount,
        "average_price": investment.average_price,
        "current_price": current_price,
        "current_value": current_value,
        "amount": current_value,  # 전량 매도 시 사용할 금액
        "profit_loss": profit_loss,
        "profit_rate": _profit_rate(profit_loss, investment.invested_amount),
    }


async def get_portfolio(db: AsyncSession, user: User) -> dict:
    """보유 포지션 전체 요약"""
    result = await db.execute(
        select(UserInvestment, Team)
        .join(Team, UserInvestment.team_id == Team.id)
        .where(UserInvestment.user_id == user.id)
        .order_by(Team.id)
    )

    items = []
    total_invested = 0
    current_value = 0
    for investment, team in result.all():
        item = valuate(investment, team)
        item.pop("amount")
        items.append(item)
        total_invested += item["invested_amount"]
        current_value += item["current_value"]

    profit_loss = current_value - total_invested
    return {
        "total_invested": total_invested,
        "current_value": current_value,
        "profit_loss": profit_loss,
        "roi": _profit_rate(profit_loss, total_invested),
        "items": items,
    }


async def get_position(db: AsyncSession, user: User, team_id: int) -> dict:
    """특정 팀 보유 주식 조회 (보유하지 않으면 0으로 채운 항목)"""
    team = await db.get(Team, team_id)
    if not team:
        return _empty_item(team_id, "Unknown", 0)

    result = await db.execute(
        select(UserInvestment).where(
            UserInvestment.user_id == user.id,
            UserInvestment.team_id == team_id,
        )
    )
    investment = result.scalar_one_or_none()
    if not investment:
        return _empty_item(team_id, team.team_name, team.current_price)

    return valuate(investment, team)


async def get_history(db: AsyncSession, user: User, limit: int = 20) -> list[dict]:
    """투자 내역 (최신순)"""
    limit = min(100, max(1, limit))
    result = await db.execute(
        select(InvestmentHistory, Team.team_name)
        .outerjoin(Team, InvestmentHistory.team_id == Team.id)
        .where(InvestmentHistory.user_id == user.id)
        .order_by(InvestmentHistory.created_at.desc(), InvestmentHistory.id.desc())
        .limit(limit)
    )

    return [
        {
            "id": h.id,
            "team_id": h.team_id,
            "team_name": team_name or "알 수 없는 팀",
            "type": h.type,
            "amount": h.amount,
            "price": h.price,
            "shares": float(h.shares),
            "created_at": h.created_at,
        }
        for h, team_name in result.all()
    ]


async def get_leaderboard(db: AsyncSession, page: int = 1, page_size: int = 20) -> list[dict]:
    """리더보드 (rank 오름차순, 그 다음 roi 내림차순)"""
    page = max(1, page)
    page_size = min(100, max(1, page_size))

    result = await db.execute(
        select(User)
        .order_by(nulls_last(User.rank.asc()), nulls_last(User.roi.desc()), User.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return [
        {
            "name": u.name,
            "school_number": u.school_number,
            "department": u.department,
            "capital": u.capital,
            "total_assets": u.total_assets,
            "roi": u.roi,
            "rank": u.rank,
        }
        for u in result.scalars().all()
    ]


async def refresh_ranks(db: AsyncSession) -> int:
    """총자산 내림차순으로 순위 재부여 (동점은 같은 순위)

    Returns:
        순위가 부여된 사용자 수
    """
    result = await db.execute(select(User).order_by(User.total_assets.desc(), User.id))
    users = list(result.scalars().all())

    rank = 0
    previous = None
    for position, user in enumerate(users, start=1):
        if user.total_assets != previous:
            rank = position
            previous = user.total_assets
        user.rank = rank

    await db.commit()
    return len(users)
