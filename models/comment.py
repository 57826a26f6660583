"""팀 코멘트 모델"""
from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, Index
from database import Base

# 팀 없이 남기는 전체 코멘트의 team_id
GLOBAL_TEAM_ID = 0


class Comment(Base):
    __tablename__ = "team_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, nullable=False)  # 0 = 전체 코멘트
    author_id = Column(Integer, nullable=False)  # 작성자 삭제 후에도 코멘트는 남는다
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Comment team={self.team_id} author={self.author_id}>"


# 팀별 최신순 커서 페이지네이션용
Index(
    "idx_team_comments_team_id_created_at",
    Comment.team_id,
    Comment.created_at.desc(),
    Comment.id.desc(),
)
