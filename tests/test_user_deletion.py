"""사용자 삭제/환불 테스트"""
import pytest
from sqlalchemy import event, func, select

from errors import InvalidTarget
from models.position import UserInvestment
from models.team import Team
from models.trade import InvestmentHistory
from models.user import User
from services.invest_service import InvestService
from services.user_deletion import UserDeletionService, delete_users


async def test_delete_refunds_team_money(db, session_factory, user, make_team):
    team = await make_team(money=15000)
    await InvestService(db).buy(user.access_token, 5000, team.id)

    result = await UserDeletionService(db).delete_user(user.id)

    assert result["refunded_amount"] == 5000
    async with session_factory() as s:
        assert (await s.get(Team, team.id)).money == 15000
        assert await s.get(User, user.id) is None
        positions = (await s.execute(select(func.count()).select_from(UserInvestment))).scalar()
        assert positions == 0
        history = (await s.execute(select(func.count()).select_from(InvestmentHistory))).scalar()
        assert history == 0


async def test_refund_never_drives_money_negative(db, session_factory, user, make_team):
    team = await make_team()
    await InvestService(db).buy(user.access_token, 5000, team.id)

    async with session_factory() as s:
        t = await s.get(Team, team.id)
        t.money = 1000
        await s.commit()

    result = await UserDeletionService(db).delete_user(user.id)

    assert result["refunded_amount"] == 5000
    async with session_factory() as s:
        assert (await s.get(Team, team.id)).money == 0


async def test_delete_unknown_user(db):
    with pytest.raises(InvalidTarget) as exc_info:
        await UserDeletionService(db).delete_user(9999)
    assert exc_info.value.status_code == 404


async def test_delete_user_without_positions(db, session_factory, user):
    result = await UserDeletionService(db).delete_user(user.id)

    assert result["refunded_amount"] == 0
    async with session_factory() as s:
        assert await s.get(User, user.id) is None


async def test_batch_delete_skips_failures(db, session_factory, make_user, make_team):
    team = await make_team()
    first = await make_user(school_number=1)
    second = await make_user(school_number=2)
    await InvestService(db).buy(first.access_token, 3000, team.id)
    await InvestService(db).buy(second.access_token, 2000, team.id)

    result = await delete_users(session_factory, [first.id, 9999, second.id])

    assert result["deleted_count"] == 2
    assert result["total_refund"] == 5000
    assert result["details"] == [
        {"user_id": first.id, "refunded": 3000},
        {"user_id": second.id, "refunded": 2000},
    ]
    async with session_factory() as s:
        assert (await s.get(Team, team.id)).money == 0


async def test_teams_locked_in_id_order(db, engine, user, make_team):
    first = await make_team(name="A")
    second = await make_team(name="B")
    service = InvestService(db)
    # 포지션 생성 순서를 팀 id 역순으로 만든다
    await service.buy(user.access_token, 2000, second.id)
    await service.buy(user.access_token, 1000, first.id)

    locked = []

    def _record_team_selects(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("SELECT") and "FROM competition_teams" in statement:
            locked.append(parameters[0])

    event.listen(engine.sync_engine, "before_cursor_execute", _record_team_selects)
    try:
        result = await UserDeletionService(db).delete_user(user.id)
    finally:
        event.remove(engine.sync_engine, "before_cursor_execute", _record_team_selects)

    assert result["refunded_amount"] == 3000
    assert locked == [first.id, second.id]
