"""회원가입/로그인 서비스"""
import logging
import secrets

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from middleware.auth import create_access_token, hash_password, verify_password
from models.user import User

logger = logging.getLogger(__name__)

ADJECTIVES = [
    "멋진", "빠른", "조용한", "화려한", "용감한", "영리한", "상냥한", "든든한",
    "기쁜", "당당한", "따뜻한", "차분한", "강인한", "정직한", "명랑한", "유쾌한",
    "부지런한", "창의적인", "세심한", "열정적인", "대담한", "신속한", "노련한", "활발한",
    "우아한", "깔끔한", "참신한", "믿음직한", "평온한", "빛나는", "단호한", "활기찬",
]

ANIMALS = [
    "호랑이", "사자", "독수리", "늑대", "표범", "곰", "여우", "수달",
    "돌고래", "펭귄", "부엉이", "매", "치타", "재규어", "코끼리", "기린",
    "고래", "참새", "앵무새", "까치", "두루미", "사슴", "너구리", "해달",
    "문어", "상어", "거북이", "판다", "코알라", "다람쥐", "고양이", "토끼",
]

NAME_ATTEMPTS = 50


def random_name() -> str:
    return f"{secrets.choice(ADJECTIVES)} {secrets.choice(ANIMALS)}"


class AuthService:
    """학번 기반 회원가입/로그인"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def user_exists(self, school_number: int) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.school_number == school_number)
        )
        return result.scalar_one_or_none() is not None

    async def _unique_name(self) -> str:
        """다른 사용자와 겹치지 않는 랜덤 닉네임"""
        for _ in range(NAME_ATTEMPTS):
            candidate = random_name()
            result = await self.db.execute(select(User.id).where(User.name == candidate))
            if result.scalar_one_or_none() is None:
                return candidate
        return f"{random_name()} {secrets.randbelow(9000) + 1000}"

    async def sign_up(self, school_number: int, department: str, password: str) -> str:
        """회원가입 후 액세스 토큰 반환"""
        if await self.user_exists(school_number):
            raise HTTPException(status_code=409, detail="이미 존재하는 학번입니다.")

        user = User(
            name=await self._unique_name(),
            school_number=school_number,
            department=department,
            password=hash_password(password),
            capital=settings.INITIAL_CAPITAL,
            stock_value=0,
            total_assets=settings.INITIAL_CAPITAL,
            roi=0,
        )
        self.db.add(user)
        await self.db.flush()

        user.access_token = create_access_token(user)
        await self.db.commit()

        logger.info(f"User signed up: id={user.id}")
        return user.access_token

    async def sign_in(self, school_number: int, password: str) -> User:
        """비밀번호 확인 후 토큰 재발급 (이전 토큰은 무효)"""
        result = await self.db.execute(
            select(User).where(User.school_number == school_number)
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password):
            raise HTTPException(status_code=401, detail="학번 또는 비밀번호가 올바르지 않습니다.")

        user.access_token = create_access_token(user)
        await self.db.commit()

        logger.info(f"User signed in: id={user.id}")
        return user
