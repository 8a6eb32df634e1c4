from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .database import get_db
from .errors import AuthenticationError, PermissionDeniedError
from .models import User


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the ``Authorization: Bearer <token>`` header to a user."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError()

    user = db.query(User).filter(User.api_token == token.strip()).first()
    if user is None:
        raise AuthenticationError()
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError()
    return user
