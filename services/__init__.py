"""서비스 패키지"""
from services.invest_service import InvestService
from services.price_scheduler import PriceScheduler
from services.user_deletion import UserDeletionService
from services.auth_service import AuthService
from services.comments_service import CommentsService

__all__ = ["InvestService", "PriceScheduler", "UserDeletionService", "AuthService", "CommentsService"]
