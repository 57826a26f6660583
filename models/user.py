"""사용자 모델"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(60), unique=True, nullable=False)  # 랜덤 생성 닉네임
    school_number = Column(Integer, unique=True, nullable=False)
    department = Column(String(60), nullable=False)
    password = Column(String(120), nullable=False)  # bcrypt 해시
    access_token = Column(String(512), nullable=True, index=True)  # 단일 Bearer 세션 토큰
    capital = Column(Integer, nullable=False, default=0)  # 현금 잔고 (항상 >= 0)
    stock_value = Column(Integer, nullable=False, default=0)  # 보유 주식 평가액 캐시
    total_assets = Column(Integer, nullable=False, default=0)  # capital + stock_value 캐시
    roi = Column(Integer, nullable=False, default=0)  # 수익률 (%)
    rank = Column(Integer, nullable=True)
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 관계
    investments = relationship("UserInvestment", back_populates="user", cascade="all, delete-orphan")
    history = relationship("InvestmentHistory", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.name} capital={self.capital}>"
