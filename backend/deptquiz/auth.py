"""
Caller identity for the API.

Token validation happens upstream of this service; by the time a request
arrives here the gateway has put the caller's numeric user id in the
X-User-Id header. These dependencies resolve it to a User and check the
role a router requires.
"""

from typing import Optional
from fastapi import Depends, Header, HTTPException, status

from deptquiz.models.user import User, UserRole
from deptquiz.repository import QuizRepository, get_repository


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    repo: QuizRepository = Depends(get_repository)
) -> User:
    """Resolve the X-User-Id header to a User, 401 when absent or unknown."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="No user identity, authorization denied")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user identity")

    user = repo.get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_role(role: UserRole):
    """Build a dependency that only lets users with the given role through."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )
        return current_user

    return dependency


is_teacher = require_role(UserRole.TEACHER)
is_student = require_role(UserRole.STUDENT)
