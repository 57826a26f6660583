"""팀 코멘트 라우터"""
from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from middleware.auth import get_current_user
from models.user import User
from services.comments_service import CommentsService

router = APIRouter()


class CommentCreate(BaseModel):
    """코멘트 작성 요청"""
    body: str = Field(min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: int
    team_id: int
    author_id: int
    body: str
    created_at: datetime
    updated_at: datetime


class TeamCommentsResponse(BaseModel):
    items: List[CommentResponse]
    count: int
    hasMore: bool
    nextCursor: Optional[str]


class RecentComment(BaseModel):
    id: int
    author_id: int
    author_name: str
    author_department: str
    body: str
    created_at: datetime
    updated_at: datetime


class RecentCommentsResponse(BaseModel):
    comments: List[RecentComment]
    hasMore: bool
    nextCursor: Optional[int]
    totalCount: int


@router.get("/teams/{team_id}/comments", response_model=TeamCommentsResponse)
async def get_team_comments(
    team_id: int,
    limit: Optional[int] = Query(default=None, description="기본 7, 프리뷰 3, 최대 50"),
    cursor: Optional[str] = Query(default=None, description="이전 페이지 nextCursor (ISO 8601)"),
    mode: Optional[Literal["preview", "default"]] = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    """팀 코멘트 목록"""
    return await CommentsService(db).get_team_comments(team_id, limit, cursor, mode)


@router.post("/teams/{team_id}/comments", response_model=CommentResponse, status_code=201)
async def create_team_comment(
    team_id: int,
    request: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """팀 코멘트 작성"""
    return await CommentsService(db).create_team_comment(team_id, user, request.body)


@router.get("/comments", response_model=RecentCommentsResponse)
async def get_recent_comments(
    limit: Optional[int] = Query(default=None, description="기본 10, 최대 50"),
    cursor: Optional[int] = Query(default=None, description="이전 페이지 nextCursor (코멘트 id)"),
    db: AsyncSession = Depends(get_db)
):
    """전체 코멘트 (최신순)"""
    return await CommentsService(db).get_recent_comments(limit, cursor)


@router.post("/comments", response_model=RecentComment, status_code=201)
async def create_global_comment(
    request: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """전체 코멘트 작성"""
    return await CommentsService(db).create_global_comment(user, request.body)
