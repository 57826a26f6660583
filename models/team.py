"""대회 참가 팀 모델"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.orm import relationship
from database import Base


class Team(Base):
    __tablename__ = "competition_teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_name = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="upcoming")  # upcoming, ongoing, ended
    pitch_url = Column(String(255), nullable=True)
    money = Column(Integer, nullable=False, default=0)  # 누적 순투자금 (하한 0)
    p0 = Column(Integer, nullable=False, default=1000)  # 기준 가격
    p = Column(Integer, nullable=True)  # 현재 가격 캐시 (첫 재계산 전까지 NULL)
    p1 = Column(Integer, nullable=True)  # 2라운드용 예약 컬럼
    p2 = Column(Integer, nullable=True)  # 2라운드용 예약 컬럼
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_competition_teams_status", "status"),
    )

    # 관계
    prices = relationship("PriceTick", back_populates="team", cascade="all, delete-orphan", passive_deletes=True)
    investments = relationship("UserInvestment", back_populates="team", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Team {self.team_name} p={self.p}>"

    @property
    def current_price(self) -> int:
        """거래/평가에 사용할 현재가 (p -> p0 순으로 대체)"""
        if self.p is not None:
            return self.p
        return self.p0 if self.p0 is not None else 0
