"""Sign-in endpoints — the runtime holds a single session at a time."""

from fastapi import APIRouter, Depends, HTTPException, status

from studio_tracker.application.schemas import LoginRequest, SessionResponse, UserUpdateRequest
from studio_tracker.application.services import SessionStore
from studio_tracker.domain.entities import ROLE_LABELS, ROLE_PERMISSIONS, Session, UserRole
from studio_tracker.infrastructure.dependencies import get_current_session, get_session_store

router = APIRouter(prefix="/session", tags=["Session"])


def to_session_response(session: Session) -> SessionResponse:
    role = session.role if session.role in ROLE_PERMISSIONS else UserRole.USER.value
    return SessionResponse(
        id=session.id,
        email=session.email,
        name=session.name,
        role=session.role,
        role_label=ROLE_LABELS.get(role, role),
        is_admin=session.is_admin,
        permissions=ROLE_PERMISSIONS[role],
    )


@router.get("", response_model=SessionResponse)
async def current_session(
    session: Session = Depends(get_current_session),
) -> SessionResponse:
    """Return the signed-in identity (401 when nobody is signed in)."""
    return to_session_response(session)


@router.post("/login", response_model=SessionResponse)
async def login(
    data: LoginRequest,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    """Sign in against the users collection and attach the live feeds."""
    result = await store.login(data.email, data.password)
    if not result.success or result.session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error)
    return to_session_response(result.session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(store: SessionStore = Depends(get_session_store)) -> None:
    await store.logout()


@router.patch("/user", response_model=SessionResponse)
async def update_user(
    data: UserUpdateRequest,
    store: SessionStore = Depends(get_session_store),
    session: Session = Depends(get_current_session),
) -> SessionResponse:
    """Apply profile changes when they concern the signed-in user; otherwise a no-op."""
    updated = await store.update_user(data.model_dump(exclude_none=True))
    return to_session_response(updated or session)


@router.get("/permissions/{tab}")
async def check_permission(
    tab: str,
    store: SessionStore = Depends(get_session_store),
) -> dict:
    return {"tab": tab, "allowed": store.has_permission(tab)}
