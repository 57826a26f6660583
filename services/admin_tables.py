"""관리자용 테이블 조회/수정

임의 SQL 대신 ORM 메타데이터에 등록된 테이블만 다루며,
민감 컬럼(비밀번호, 토큰)은 읽기/쓰기 모두 제외한다.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Table, select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from database import Base
from errors import InvalidTarget

logger = logging.getLogger(__name__)

SENSITIVE_COLUMNS = ("password", "access_token")


def _get_table(table_name: str) -> Table:
    table = Base.metadata.tables.get(table_name)
    if table is None:
        raise InvalidTarget(f"존재하지 않는 테이블입니다: {table_name}", status_code=404)
    return table


def _visible_columns(table: Table) -> list:
    return [c for c in table.columns if c.name not in SENSITIVE_COLUMNS]


def _coerce(column, value):
    """JSON 값을 컬럼 타입에 맞게 변환"""
    if value is None:
        return None
    python_type = column.type.python_type
    if python_type is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if python_type is Decimal:
        return Decimal(str(value))
    if python_type is int and isinstance(value, str):
        return int(value)
    return value


async def list_tables(db: AsyncSession) -> list[dict]:
    """등록된 테이블과 행 수"""
    tables = []
    for name in sorted(Base.metadata.tables):
        table = Base.metadata.tables[name]
        result = await db.execute(select(func.count()).select_from(table))
        tables.append({
            "table_name": name,
            "row_count": result.scalar() or 0,
            "columns": [c.name for c in _visible_columns(table)],
        })
    return tables


async def read_row(db: AsyncSession, table_name: str, row_id: int) -> dict:
    """id로 한 행 조회 (민감 컬럼 제외)"""
    table = _get_table(table_name)
    columns = _visible_columns(table)

    result = await db.execute(select(*columns).where(table.c.id == row_id))
    row = result.mappings().one_or_none()
    if row is None:
        raise InvalidTarget(f"{table_name}에 id={row_id} 행이 없습니다.", status_code=404)

    return dict(row)


async def write_row(db: AsyncSession, table_name: str, row_id: int, values: dict) -> dict:
    """id로 한 행의 일부 컬럼 수정

    Raises:
        ValueError: 존재하지 않거나 수정할 수 없는 컬럼
    """
    table = _get_table(table_name)
    writable = {c.name: c for c in _visible_columns(table) if not c.primary_key}

    invalid = sorted(k for k in values if k not in writable)
    if invalid:
        raise ValueError(f"수정할 수 없는 컬럼입니다: {', '.join(invalid)}")
    if not values:
        raise ValueError("수정할 값이 없습니다.")

    coerced = {k: _coerce(writable[k], v) for k, v in values.items()}

    try:
        result = await db.execute(
            update(table).where(table.c.id == row_id).values(**coerced)
        )
        if result.rowcount == 0:
            raise InvalidTarget(f"{table_name}에 id={row_id} 행이 없습니다.", status_code=404)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin updated {table_name} id={row_id} columns={sorted(coerced)}")
    return await read_row(db, table_name, row_id)
