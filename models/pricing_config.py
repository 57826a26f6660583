"""가격 설정 모델 (key/value)"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric
from database import Base


class PricingConfig(Base):
    __tablename__ = "pricing_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(50), unique=True, nullable=False)
    value = Column(Numeric(18, 6), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PricingConfig {self.key}={self.value}>"
