"""가격 함수

팀의 누적 투자금(inflow)을 기준가 대비 배수로 변환한다.
상태가 없는 순수 함수만 둔다.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR

from config import settings

# 2라운드 파라미터(C2, L2, U2)는 설정에만 존재하고 스케줄러는 1라운드만 계산한다.
PRICING_KEYS = ("N", "T", "P0", "C1", "C2", "GAMMA", "L1", "U1", "L2", "U2")


def round_half_up(x) -> int:
    """정수 통화 단위 반올림 (.5는 +무한대 방향)"""
    if isinstance(x, Decimal):
        return int((x + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
    return int(math.floor(x + 0.5))


def clip(x: float, lo: float, hi: float) -> float:
    """x를 [lo, hi]로 제한. NaN이면 하한 반환"""
    if math.isnan(x):
        return lo
    return min(max(x, lo), hi)


def root_compress(d: float, gamma: float) -> float:
    """유입 비율을 d^gamma로 압축 (수확 체감)"""
    if d <= 0:
        return 0.0
    return math.pow(d, gamma)


@dataclass(frozen=True)
class PricingParams:
    """가격 함수 파라미터"""
    N: float = 200
    T: float = 6
    P0: float = 1000
    C1: float = 30000
    C2: float = 20000
    GAMMA: float = 0.5
    L1: float = 0.7
    U1: float = 1.5
    L2: float = 0.8
    U2: float = 1.4

    @property
    def E1(self) -> float:
        """1라운드 기대 유입금 정규화 값 (N * C1 / T)"""
        if self.T == 0:
            return 0.0
        return self.N * self.C1 / self.T

    @property
    def E2(self) -> float:
        if self.T == 0:
            return 0.0
        return self.N * self.C2 / self.T

    @classmethod
    def from_settings(cls) -> "PricingParams":
        return cls(**{key: getattr(settings, f"PRICING_{key}") for key in PRICING_KEYS})

    def override(self, values: dict) -> "PricingParams":
        """알려진 키만 덮어쓴 새 파라미터 반환"""
        known = {k: float(v) for k, v in values.items() if k in PRICING_KEYS}
        merged = {key: getattr(self, key) for key in PRICING_KEYS}
        merged.update(known)
        return PricingParams(**merged)

    def as_dict(self) -> dict:
        return {key: getattr(self, key) for key in PRICING_KEYS}


def compute_round1_price(inflow: float, p0: float, params: PricingParams) -> int:
    """1라운드 가격 계산

    d1 = I / E1, r1 = d1^gamma, m1 = clip(r1, L1, U1), p1 = round(p0 * m1)
    E1 <= 0 이면 수요 신호 없음(d1 = 0)으로 처리한다.
    """
    e1 = params.E1
    d1 = float(inflow) / e1 if e1 > 0 else 0.0
    r1 = root_compress(d1, params.GAMMA)
    m1 = clip(r1, params.L1, params.U1)
    return round_half_up(float(p0) * m1)
