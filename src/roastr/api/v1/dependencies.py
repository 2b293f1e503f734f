"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from roastr.core.security import decode_access_token
from roastr.db.session import get_db
from roastr.db.time import utcnow
from roastr.models import UserProfile

# Optional bearer: anonymous callers may read, post anonymously and report.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_clock() -> Callable[[], datetime]:
    """Return the time source used by services; overridden in tests."""
    return utcnow


ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]


@dataclass(frozen=True)
class Caller:
    """Who is making the request, as far as the core needs to know."""

    user: UserProfile | None
    client_address: str | None

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user is not None else None


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Caller:
    """Resolve the optional bearer token into the caller's profile.

    A missing token yields an anonymous caller; a present but invalid one is
    rejected rather than silently downgraded.
    """
    client_address = request.client.host if request.client else None
    if credentials is None:
        return Caller(user=None, client_address=client_address)

    try:
        user_id = decode_access_token(credentials.credentials)
    except (JWTError, ValueError) as err:
        raise _credentials_error() from err

    user = db.get(UserProfile, user_id)
    if user is None:
        raise _credentials_error("User not found")
    return Caller(user=user, client_address=client_address)


CallerDep = Annotated[Caller, Depends(get_caller)]


def get_current_user(caller: CallerDep) -> UserProfile:
    """Require a signed-in caller."""
    if caller.user is None:
        raise _credentials_error("Not authenticated")
    return caller.user


# Type alias for current user dependency
CurrentUserDep = Annotated[UserProfile, Depends(get_current_user)]
