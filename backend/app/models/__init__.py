"""SQLAlchemy models."""

from app.models.community import Comment, Post, PostLike
from app.models.feedback import Feedback
from app.models.payment import PaidService, Purchase
from app.models.product import Product
from app.models.reading import Reading
from app.models.user import User
from app.models.user_settings import UserSettings

__all__ = [
    "User",
    "UserSettings",
    "Reading",
    "PaidService",
    "Purchase",
    "Feedback",
    "Post",
    "Comment",
    "PostLike",
    "Product",
]
