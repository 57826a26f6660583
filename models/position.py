"""포지션(팀별 보유 주식) 모델"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class UserInvestment(Base):
    __tablename__ = "user_investments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("competition_teams.id", ondelete="CASCADE"), nullable=False, index=True)
    shares = Column(Numeric(30, 12), nullable=False, default=Decimal("0"))  # 보유 주식 수
    invested_amount = Column(Integer, nullable=False, default=0)  # 투자 원금
    average_price = Column(Integer, nullable=False, default=0)  # 평균 매수가
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 유니크 제약
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_user_investment_user_team"),
    )

    # 관계
    user = relationship("User", back_populates="investments")
    team = relationship("Team", back_populates="investments")

    def __repr__(self):
        return f"<UserInvestment user={self.user_id} team={self.team_id} shares={self.shares}>"
