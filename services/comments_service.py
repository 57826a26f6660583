"""팀 코멘트 서비스"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from errors import InvalidTarget
from models.comment import Comment, GLOBAL_TEAM_ID
from models.team import Team
from models.user import User

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 3
DEFAULT_TEAM_LIMIT = 7
DEFAULT_RECENT_LIMIT = 10
MAX_LIMIT = 50


def resolve_limit(mode: Optional[str] = None, limit: Optional[int] = None,
                  default: int = DEFAULT_TEAM_LIMIT) -> int:
    """조회 개수 결정 (preview 모드는 3개 고정, 그 외 1~50)"""
    if mode == "preview":
        return PREVIEW_LIMIT
    if limit is None:
        limit = default
    return max(1, min(MAX_LIMIT, limit))


def parse_cursor(cursor: Optional[str]) -> Optional[datetime]:
    """ISO 8601 커서를 UTC naive datetime으로 변환 (해석 불가하면 None)"""
    if not cursor:
        return None
    try:
        value = datetime.fromisoformat(cursor.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring invalid comment cursor: {cursor!r}")
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "team_id": comment.team_id,
        "author_id": comment.author_id,
        "body": comment.body,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
    }


class CommentsService:
    """팀 코멘트 조회/작성"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_team(self, team_id: int) -> Team:
        team = await self.db.get(Team, team_id)
        if not team:
            raise InvalidTarget("팀을 찾을 수 없습니다.", status_code=404)
        return team

    async def get_team_comments(
        self,
        team_id: int,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> dict:
        """팀 코멘트 목록 (최신순, created_at 커서)

        가져온 개수가 limit과 같으면 다음 페이지가 있다고 본다.
        """
        limit = resolve_limit(mode, limit)
        await self._require_team(team_id)

        query = (
            select(Comment)
            .where(Comment.team_id == team_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(limit)
        )
        before = parse_cursor(cursor)
        if before is not None:
            query = query.where(Comment.created_at < before)

        result = await self.db.execute(query)
        items = [_to_dict(c) for c in result.scalars().all()]

        return {
            "items": items,
            "count": len(items),
            "hasMore": len(items) == limit,
            "nextCursor": items[-1]["created_at"].isoformat() if items else None,
        }

    async def create_team_comment(self, team_id: int, author: User, body: str) -> dict:
        """팀 코멘트 작성"""
        await self._require_team(team_id)
        return await self._create(team_id, author, body)

    async def create_global_comment(self, author: User, body: str) -> dict:
        """팀 없이 전체 코멘트 작성"""
        comment = await self._create(GLOBAL_TEAM_ID, author, body)
        comment.pop("team_id")
        comment["author_name"] = author.name
        comment["author_department"] = author.department
        return comment

    async def _create(self, team_id: int, author: User, body: str) -> dict:
        comment = Comment(team_id=team_id, author_id=author.id, body=body)
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        logger.info(f"Comment {comment.id} created: team={team_id} author={author.id}")
        return _to_dict(comment)

    async def get_recent_comments(self, limit: Optional[int] = None,
                                  cursor: Optional[int] = None) -> dict:
        """전체 코멘트 (최신순, id 커서, 작성자 정보 포함)"""
        limit = resolve_limit(limit=limit, default=DEFAULT_RECENT_LIMIT)

        query = (
            select(
                Comment.id,
                Comment.author_id,
                Comment.body,
                Comment.created_at,
                Comment.updated_at,
                User.name,
                User.department,
            )
            .outerjoin(User, User.id == Comment.author_id)
            .order_by(Comment.id.desc())
            .limit(limit + 1)
        )
        if cursor:
            query = query.where(Comment.id < cursor)

        rows = (await self.db.execute(query)).all()
        total_count = (await self.db.execute(
            select(func.count()).select_from(Comment)
        )).scalar()

        has_more = len(rows) > limit
        rows = rows[:limit]

        comments = [
            {
                "id": row.id,
                "author_id": row.author_id,
                "author_name": row.name or f"사용자{row.author_id}",
                "author_department": row.department or "미분류",
                "body": row.body,
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            }
            for row in rows
        ]

        return {
            "comments": comments,
            "hasMore": has_more,
            "nextCursor": comments[-1]["id"] if has_more and comments else None,
            "totalCount": total_count,
        }
