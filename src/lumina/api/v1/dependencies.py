"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lumina.core.security import JWTError, decode_subject
from lumina.core.settings import settings
from lumina.db.session import get_db
from lumina.domain import User
from lumina.repositories import ContentStore, HttpContentStore, HybridContentStore, SqlContentStore
from lumina.services.assistant import Assistant, get_assistant
from lumina.services.discourse import DiscourseService
from lumina.services.engagement import EngagementService
from lumina.services.workflow import PublicationWorkflow

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


class _RemoteStoreSingleton:
    """Singleton holder for the remote content store client."""

    _instance: HttpContentStore | None = None

    @classmethod
    def get_instance(cls, base_url: str) -> HttpContentStore:
        if cls._instance is None:
            cls._instance = HttpContentStore.from_url(base_url, timeout=settings.content_store_timeout_seconds)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None


def get_remote_store() -> HttpContentStore | None:
    """Return the shared remote store client, or None when no remote is configured."""
    if not settings.content_store_url:
        return None
    return _RemoteStoreSingleton.get_instance(settings.content_store_url)


def close_remote_store() -> None:
    _RemoteStoreSingleton.reset()


def get_store(db: SessionDep) -> ContentStore:
    """Return the content store bound to the request's session.

    With ``CONTENT_STORE_URL`` configured, reads and writes go to the remote
    backend first and the database serves as its fallback and mirror.
    """
    local = SqlContentStore(db)
    remote = get_remote_store()
    if remote is None:
        return local
    return HybridContentStore(remote, local)


StoreDep = Annotated[ContentStore, Depends(get_store)]


def get_workflow(store: StoreDep) -> PublicationWorkflow:
    return PublicationWorkflow(store, settings.governance)


def get_engagement(store: StoreDep) -> EngagementService:
    return EngagementService(store)


def get_discourse(store: StoreDep) -> DiscourseService:
    return DiscourseService(store)


WorkflowDep = Annotated[PublicationWorkflow, Depends(get_workflow)]
EngagementDep = Annotated[EngagementService, Depends(get_engagement)]
DiscourseDep = Annotated[DiscourseService, Depends(get_discourse)]
AssistantDep = Annotated[Assistant, Depends(get_assistant)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(token: str, store: ContentStore) -> User:
    try:
        subject = decode_subject(token)
    except JWTError as err:
        raise _credentials_error() from err
    if subject is None:
        raise _credentials_error()

    user = store.get_user(subject)
    if user is None:
        raise _credentials_error("User not found")
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    store: StoreDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        store: Content store for the request

    Returns:
        User for the authenticated subject

    Raises:
        HTTPException: If token is invalid or user not found
    """
    return _resolve_user(credentials.credentials, store)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)],
    store: StoreDep,
) -> User | None:
    """Like ``get_current_user`` but anonymous requests yield None."""
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials, store)


# Type aliases for current user dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
