"""투자 원장 오류 정의

서비스 계층은 이 예외만 던지고, HTTP 응답 변환은 api.py의 핸들러가 담당한다.
"""
from decimal import Decimal


class LedgerError(Exception):
    """원장 오류 기본 클래스"""

    kind = "LedgerError"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"status": "error", "kind": self.kind, "message": self.message}


class Unauthorized(LedgerError):
    kind = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class InvalidTarget(LedgerError):
    """존재하지 않는 팀/사용자"""

    kind = "InvalidTarget"

    def __init__(self, message: str = "유효하지 않은 팀입니다.", status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidAmount(LedgerError):
    kind = "InvalidAmount"

    def __init__(self, amount):
        super().__init__(f"거래 금액은 양의 정수여야 합니다. (요청: {amount})")
        self.amount = amount


class InsufficientFunds(LedgerError):
    kind = "InsufficientFunds"

    def __init__(self, required: int, available: int):
        super().__init__(f"보유 자본이 부족합니다. (보유: {available}, 필요: {required})")
        self.required = required
        self.available = available


class InsufficientShares(LedgerError):
    kind = "InsufficientShares"

    def __init__(self, held: Decimal, requested: Decimal):
        super().__init__(
            f"보유 주식이 부족합니다. (보유: {held:.4f}주, 매도 시도: {requested:.4f}주)"
        )
        self.held = held
        self.requested = requested


class NoHolding(LedgerError):
    kind = "NoHolding"

    def __init__(self, team_id: int):
        super().__init__("해당 팀에 투자한 내역이 없습니다.")
        self.team_id = team_id


class InvalidPrice(LedgerError):
    kind = "InvalidPrice"

    def __init__(self, price):
        super().__init__(f"유효하지 않은 주가입니다. ({price})")
        self.price = price


class InternalConsistency(LedgerError):
    """이전 버그로 인한 데이터 불일치 (사용자 오류 아님)"""

    kind = "InternalConsistency"
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message)
