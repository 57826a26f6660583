"""Bearer 토큰 / 관리자 키 인증"""
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Header
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import User


def hash_password(password: str) -> str:
    """bcrypt 해시"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 저장된 값이 bcrypt 해시 형식이 아님
        return False


def create_access_token(user: User) -> str:
    """세션 토큰 발급

    jti를 넣어 같은 초에 재발급해도 토큰이 달라지게 한다.
    """
    payload = {
        "sub": str(user.id),
        "sn": user.school_number,
        "iat": datetime.now(timezone.utc),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def extract_token(authorization: Optional[str]) -> str:
    """Authorization 헤더에서 Bearer 토큰 추출"""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return token.strip()


async def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """요청의 Bearer 토큰 (사용자 조회는 하지 않음)"""
    return extract_token(authorization)


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
) -> User:
    """현재 세션 토큰의 사용자"""
    result = await db.execute(select(User).where(User.access_token == token))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")

    return user


# 관리자 키 헤더
admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)


async def require_admin(admin_key: Optional[str] = Depends(admin_key_header)) -> None:
    """관리자 키 확인 (ADMIN_API_KEY 미설정 시 관리자 API 비활성)"""
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin API is disabled")

    if not admin_key or not secrets.compare_digest(admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(status_code=403, detail="Admin access required")
