"""투자 내역 모델 (불변 기록)"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class InvestmentHistory(Base):
    __tablename__ = "investment_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("competition_teams.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(10), nullable=False)  # buy, sell
    amount = Column(Integer, nullable=False)  # 거래 금액
    price = Column(Integer, nullable=False)  # 체결 가격
    shares = Column(Numeric(30, 12), nullable=False)  # 체결 주식 수
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # 관계
    user = relationship("User", back_populates="history")
    team = relationship("Team")

    def __repr__(self):
        return f"<InvestmentHistory {self.type} team={self.team_id} amount={self.amount} @ {self.price}>"
