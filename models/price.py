"""가격 틱 모델 (append-only 가격 이력)"""
from datetime import datetime
from sqlalchemy import Column, Integer, SmallInteger, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from database import Base


class PriceTick(Base):
    __tablename__ = "prices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("competition_teams.id", ondelete="CASCADE"), nullable=False)
    round = Column(SmallInteger, nullable=False)  # 1 or 2
    price = Column(Integer, nullable=False)
    tick_ts = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("team_id", "round", "tick_ts", name="uq_prices_team_round_tick"),
        Index("idx_prices_team_tick", "team_id", "tick_ts"),
    )

    # 관계
    team = relationship("Team", back_populates="prices")

    def __repr__(self):
        return f"<PriceTick team={self.team_id} r{self.round} {self.price} @ {self.tick_ts}>"
