"""데이터베이스 초기화 스크립트

Usage:
    python init_db.py              # 테이블 생성 + 가격 설정 기본값
    python init_db.py --sample     # 샘플 팀도 생성
"""
import argparse
import asyncio

from sqlalchemy import select, func

from database import engine, async_session, init_db
from models.team import Team
from services.pricing_config import seed_pricing_defaults

SAMPLE_TEAMS = [
    "Team Alpha",
    "Team Bravo",
    "Team Charlie",
    "Team Delta",
    "Team Echo",
    "Team Foxtrot",
]


async def apply_schema():
    """테이블 생성"""
    print("1. Creating tables...")
    await init_db()
    print("   Tables ready")


async def seed_pricing_config():
    """가격 설정 기본값 삽입"""
    print("2. Seeding pricing config...")
    async with async_session() as db:
        inserted = await seed_pricing_defaults(db)
    print(f"   {inserted} keys inserted")


async def create_sample_teams():
    """샘플 팀 생성 (팀이 하나도 없을 때만)"""
    print("3. Creating sample teams...")
    async with async_session() as db:
        count = (await db.execute(select(func.count()).select_from(Team))).scalar()
        if count:
            print(f"   {count} teams already exist")
            return

        for name in SAMPLE_TEAMS:
            db.add(Team(team_name=name, status="ongoing", money=0, p0=1000))
        await db.commit()
    print(f"   {len(SAMPLE_TEAMS)} sample teams created")


async def main(sample: bool):
    print("=" * 50)
    print("Database Initialization")
    print("=" * 50)

    await apply_schema()
    await seed_pricing_config()
    if sample:
        await create_sample_teams()

    await engine.dispose()

    print("=" * 50)
    print("Done!")
    print("=" * 50)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the investment game database")
    parser.add_argument("--sample", action="store_true", help="create sample teams")
    args = parser.parse_args()
    asyncio.run(main(args.sample))
