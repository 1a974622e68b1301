"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from numina_social.core.security import InvalidTokenError, decode_access_token
from numina_social.db.session import get_db, get_session_factory
from numina_social.models import User
from numina_social.realtime.registry import ConnectionRegistry
from numina_social.services.messaging import MessagingService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# Factory for handlers that open their own short-lived sessions
SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user_id = decode_access_token(credentials.credentials)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_connection_registry(request: Request) -> ConnectionRegistry:
    """Return the process-wide registry created by the application lifespan."""
    registry: ConnectionRegistry = request.app.state.connection_registry
    return registry


RegistryDep = Annotated[ConnectionRegistry, Depends(get_connection_registry)]


def get_messaging_service(db: SessionDep, registry: RegistryDep) -> MessagingService:
    return MessagingService(db, notifier=registry)


MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]
