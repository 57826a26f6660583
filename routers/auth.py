"""인증 라우터"""
from pydantic import BaseModel, Field

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.auth_service import AuthService

router = APIRouter()


class CheckUserRequest(BaseModel):
    """학번 존재 여부 확인 요청"""
    schoolNumber: int = Field(ge=1)


class SignUpRequest(BaseModel):
    """회원가입 요청"""
    schoolNumber: int = Field(ge=1)
    department: str = Field(min_length=1)
    password: str = Field(min_length=6)


class SignInRequest(BaseModel):
    """로그인 요청"""
    schoolNumber: int = Field(ge=1)
    password: str = Field(min_length=6)


class SignUpResponse(BaseModel):
    accessToken: str


class SignInResponse(BaseModel):
    accessToken: str
    userId: int
    nickname: str


@router.post("/check-user")
async def check_user(request: CheckUserRequest, db: AsyncSession = Depends(get_db)):
    """학번 존재 여부 확인"""
    exists = await AuthService(db).user_exists(request.schoolNumber)
    return {"exists": exists}


@router.post("/signup", response_model=SignUpResponse, status_code=201)
async def sign_up(request: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """회원가입 및 액세스 토큰 발급"""
    token = await AuthService(db).sign_up(
        school_number=request.schoolNumber,
        department=request.department,
        password=request.password,
    )
    return SignUpResponse(accessToken=token)


@router.post("/signin", response_model=SignInResponse)
async def sign_in(request: SignInRequest, db: AsyncSession = Depends(get_db)):
    """로그인 및 액세스 토큰 재발급"""
    user = await AuthService(db).sign_in(request.schoolNumber, request.password)
    return SignInResponse(accessToken=user.access_token, userId=user.id, nickname=user.name)
