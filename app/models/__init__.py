from app.models.auth_magic_link import AuthMagicLink
from app.models.todo import Todo
from app.models.user import User

__all__ = ["User", "Todo", "AuthMagicLink"]
