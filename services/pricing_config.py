"""가격 설정 저장소 (pricing_config 테이블)"""
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.pricing_config import PricingConfig
from services.pricing import PricingParams, PRICING_KEYS

logger = logging.getLogger(__name__)

DESCRIPTIONS = {
    "N": "참가자 수",
    "T": "시간 단위",
    "P0": "초기 가격",
    "C1": "자본 1",
    "C2": "자본 2",
    "GAMMA": "압축 계수",
    "L1": "라운드1 하한",
    "U1": "라운드1 상한",
    "L2": "라운드2 하한",
    "U2": "라운드2 상한",
}


async def load_pricing_params(db: AsyncSession) -> PricingParams:
    """저장된 설정으로 기본값을 덮어쓴 파라미터 반환

    테이블이 비어있거나 읽기에 실패하면 프로세스 설정값을 그대로 사용한다.
    """
    defaults = PricingParams.from_settings()
    try:
        result = await db.execute(select(PricingConfig.key, PricingConfig.value))
        rows = {key: value for key, value in result.all()}
    except Exception as e:
        logger.warning(f"Pricing config unavailable, using defaults: {e}")
        await db.rollback()
        return defaults

    if not rows:
        return defaults
    return defaults.override(rows)


async def get_pricing_config(db: AsyncSession) -> list[dict]:
    """설정 목록 조회 (저장되지 않은 키는 기본값으로 표시)"""
    result = await db.execute(select(PricingConfig))
    stored = {row.key: row for row in result.scalars().all()}
    defaults = PricingParams.from_settings()

    items = []
    for key in PRICING_KEYS:
        row = stored.get(key)
        items.append({
            "key": key,
            "value": float(row.value) if row else getattr(defaults, key),
            "description": (row.description if row else None) or DESCRIPTIONS[key],
            "stored": row is not None,
        })
    return items


async def update_pricing_config(db: AsyncSession, values: dict) -> list[dict]:
    """설정값 저장 (없으면 생성)"""
    unknown = [key for key in values if key not in PRICING_KEYS]
    if unknown:
        raise ValueError(f"Unknown pricing keys: {unknown}")

    for key, value in values.items():
        result = await db.execute(select(PricingConfig).where(PricingConfig.key == key))
        row = result.scalar_one_or_none()
        if row:
            row.value = Decimal(str(value))
        else:
            db.add(PricingConfig(key=key, value=Decimal(str(value)), description=DESCRIPTIONS[key]))

    await db.commit()
    logger.info(f"Pricing config updated: {sorted(values)}")
    return await get_pricing_config(db)


async def seed_pricing_defaults(db: AsyncSession) -> int:
    """기본 설정값 삽입 (이미 있는 키는 유지)

    Returns:
        새로 삽입된 키 수
    """
    result = await db.execute(select(PricingConfig.key))
    existing = set(result.scalars().all())
    defaults = PricingParams.from_settings()

    inserted = 0
    for key in PRICING_KEYS:
        if key in existing:
            continue
        db.add(PricingConfig(
            key=key,
            value=Decimal(str(getattr(defaults, key))),
            description=DESCRIPTIONS[key],
        ))
        inserted += 1

    await db.commit()
    return inserted
