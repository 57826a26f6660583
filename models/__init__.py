"""SQLAlchemy 모델"""
from models.user import User
from models.team import Team
from models.price import PriceTick
from models.position import UserInvestment
from models.trade import InvestmentHistory
from models.pricing_config import PricingConfig
from models.comment import Comment

__all__ = [
    "User",
    "Team",
    "PriceTick",
    "UserInvestment",
    "InvestmentHistory",
    "PricingConfig",
    "Comment",
]
