"""팀 코멘트 테스트"""
from datetime import datetime, timedelta

import pytest

from errors import InvalidTarget
from models.comment import Comment
from services.comments_service import CommentsService, parse_cursor, resolve_limit

BASE_TIME = datetime(2025, 11, 3, 12, 0, 0)


async def _add_comments(db, team_id, author_id, count, start=BASE_TIME):
    comments = [
        Comment(
            team_id=team_id,
            author_id=author_id,
            body=f"comment {i}",
            created_at=start + timedelta(minutes=i),
            updated_at=start + timedelta(minutes=i),
        )
        for i in range(count)
    ]
    db.add_all(comments)
    await db.commit()
    return comments


def test_resolve_limit():
    assert resolve_limit() == 7
    assert resolve_limit(mode="preview", limit=20) == 3
    assert resolve_limit(mode="default", limit=20) == 20
    assert resolve_limit(limit=0) == 1
    assert resolve_limit(limit=500) == 50
    assert resolve_limit(default=10) == 10


def test_parse_cursor():
    assert parse_cursor(None) is None
    assert parse_cursor("not-a-date") is None
    assert parse_cursor("2025-11-03T12:34:56") == datetime(2025, 11, 3, 12, 34, 56)
    assert parse_cursor("2025-11-03T12:34:56.000Z") == datetime(2025, 11, 3, 12, 34, 56)
    assert parse_cursor("2025-11-03T21:34:56+09:00") == datetime(2025, 11, 3, 12, 34, 56)


async def test_team_comments_newest_first_with_cursor(db, user, team):
    await _add_comments(db, team.id, user.id, 5)
    service = CommentsService(db)

    first = await service.get_team_comments(team.id, limit=2)
    assert [c["body"] for c in first["items"]] == ["comment 4", "comment 3"]
    assert first["count"] == 2
    assert first["hasMore"] is True
    assert first["nextCursor"] == (BASE_TIME + timedelta(minutes=3)).isoformat()

    second = await service.get_team_comments(team.id, limit=2, cursor=first["nextCursor"])
    assert [c["body"] for c in second["items"]] == ["comment 2", "comment 1"]

    last = await service.get_team_comments(team.id, limit=2, cursor=second["nextCursor"])
    assert [c["body"] for c in last["items"]] == ["comment 0"]
    assert last["hasMore"] is False


async def test_team_comments_preview_and_other_teams(db, user, make_team):
    a = await make_team(name="A")
    b = await make_team(name="B")
    await _add_comments(db, a.id, user.id, 8)
    await _add_comments(db, b.id, user.id, 1)
    service = CommentsService(db)

    preview = await service.get_team_comments(a.id, limit=20, mode="preview")
    assert preview["count"] == 3

    default = await service.get_team_comments(a.id)
    assert default["count"] == 7
    assert all(c["team_id"] == a.id for c in default["items"])

    other = await service.get_team_comments(b.id, cursor="not-a-date")
    assert other["count"] == 1
    assert other["hasMore"] is False


async def test_team_without_comments(db, team):
    result = await CommentsService(db).get_team_comments(team.id)

    assert result == {"items": [], "count": 0, "hasMore": False, "nextCursor": None}


async def test_unknown_team(db, user):
    service = CommentsService(db)

    with pytest.raises(InvalidTarget) as exc_info:
        await service.get_team_comments(9999)
    assert exc_info.value.status_code == 404

    with pytest.raises(InvalidTarget):
        await service.create_team_comment(9999, user, "hello")


async def test_create_team_comment(db, user, team):
    comment = await CommentsService(db).create_team_comment(team.id, user, "Great work!")

    assert comment["id"] > 0
    assert comment["team_id"] == team.id
    assert comment["author_id"] == user.id
    assert comment["body"] == "Great work!"
    assert comment["created_at"] is not None

    listed = await CommentsService(db).get_team_comments(team.id)
    assert [c["id"] for c in listed["items"]] == [comment["id"]]


async def test_recent_comments_join_author(db, user, make_team):
    team = await make_team()
    await _add_comments(db, team.id, user.id, 1)
    await _add_comments(db, team.id, 9999, 1, start=BASE_TIME + timedelta(hours=1))
    service = CommentsService(db)
    created = await service.create_global_comment(user, "전체 코멘트")

    assert created["author_name"] == user.name
    assert "team_id" not in created

    recent = await service.get_recent_comments()
    assert recent["totalCount"] == 3
    assert recent["hasMore"] is False
    assert recent["nextCursor"] is None

    newest, orphan, oldest = recent["comments"]
    assert newest["id"] == created["id"]
    assert (orphan["author_name"], orphan["author_department"]) == ("사용자9999", "미분류")
    assert (oldest["author_name"], oldest["author_department"]) == (user.name, user.department)


async def test_recent_comments_id_cursor(db, user, make_team):
    a = await make_team(name="A")
    b = await make_team(name="B")
    comments = await _add_comments(db, a.id, user.id, 3)
    comments += await _add_comments(db, b.id, user.id, 2)
    ids = sorted(c.id for c in comments)
    service = CommentsService(db)

    page = await service.get_recent_comments(limit=2)
    assert [c["id"] for c in page["comments"]] == [ids[4], ids[3]]
    assert page["hasMore"] is True
    assert page["nextCursor"] == ids[3]
    assert page["totalCount"] == 5

    page = await service.get_recent_comments(limit=2, cursor=page["nextCursor"])
    assert [c["id"] for c in page["comments"]] == [ids[2], ids[1]]

    page = await service.get_recent_comments(limit=2, cursor=page["nextCursor"])
    assert [c["id"] for c in page["comments"]] == [ids[0]]
    assert page["hasMore"] is False
    assert page["nextCursor"] is None

    assert len((await service.get_recent_comments(limit=0))["comments"]) == 1
