"""사용자 삭제 및 투자금 환불 서비스"""
import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from errors import InvalidTarget
from models.position import UserInvestment
from models.team import Team
from models.user import User

logger = logging.getLogger(__name__)


class UserDeletionService:
    """사용자 삭제 시 각 팀 투자금에서 해당 사용자의 투자 원금을 차감한다."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def delete_user(self, user_id: int) -> dict:
        """사용자 삭제 (단일 트랜잭션)

        1. 사용자의 모든 포지션 조회
        2. 각 팀의 투자금에서 투자 원금 차감 (하한 0)
        3. 포지션 삭제
        4. 사용자 삭제
        """
        try:
            result = await self._delete_user(user_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result

    async def _delete_user(self, user_id: int) -> dict:
        result = await self.db.execute(
            select(User).where(User.id == user_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise InvalidTarget("사용자를 찾을 수 없습니다.", status_code=404)

        # 팀 행 잠금 순서를 고정해 동시 삭제 간 교착을 막는다
        result = await self.db.execute(
            select(UserInvestment).where(UserInvestment.user_id == user_id)
            .order_by(UserInvestment.team_id)
        )
        investments = list(result.scalars().all())

        total_refund = 0
        for investment in investments:
            result = await self.db.execute(
                select(Team).where(Team.id == investment.team_id).with_for_update()
                .execution_options(populate_existing=True)
            )
            team = result.scalar_one_or_none()
            if not team:
                continue

            team.money = max(0, (team.money or 0) - investment.invested_amount)
            total_refund += investment.invested_amount

        name, school_number = user.name, user.school_number

        await self.db.execute(delete(UserInvestment).where(UserInvestment.user_id == user_id))
        await self.db.execute(delete(User).where(User.id == user_id))

        logger.info(f"User {user_id} deleted, refunded {total_refund} across {len(investments)} teams")

        return {
            "message": f"사용자 {name}({school_number})이 삭제되었습니다.",
            "refunded_amount": total_refund,
        }


async def delete_users(session_factory: async_sessionmaker, user_ids: list[int]) -> dict:
    """여러 사용자 일괄 삭제

    사용자마다 별도 트랜잭션으로 처리하며, 실패한 사용자는 로그만 남기고 건너뛴다.
    """
    details = []
    total_refund = 0
    deleted_count = 0

    for user_id in user_ids:
        try:
            async with session_factory() as db:
                result = await UserDeletionService(db).delete_user(user_id)
        except Exception as e:
            logger.error(f"User {user_id} deletion failed: {e}")
            continue

        details.append({"user_id": user_id, "refunded": result["refunded_amount"]})
        total_refund += result["refunded_amount"]
        deleted_count += 1

    return {
        "deleted_count": deleted_count,
        "total_refund": total_refund,
        "details": details,
    }
