from fastapi import APIRouter, Depends, HTTPException, status
from tenant_access.auth import SessionManager, get_current_manager, get_session_manager
from tenant_access.auth.dependencies import get_gateway, new_session_manager
from tenant_access.auth.jwt import create_identifier_token
from tenant_access.domain.errors import DevLoginDisabledError
from tenant_access.gateway import RecordStoreGateway
from tenant_access.models.auth import LoginRequest, LoginResponse, SessionResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _login_response(manager: SessionManager, status_value: str, reason: str | None = None) -> LoginResponse:
    token = create_identifier_token(manager.identifier, manager.identifier_source) if manager.identifier else None
    return LoginResponse(
        status=status_value,
        reason=reason,
        access_token=token,
        session=SessionResponse.from_manager(manager),
    )


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, gateway: RecordStoreGateway = Depends(get_gateway)):
    """Login with email or nickname. Returns a token carrying the identifier only."""
    manager = new_session_manager(gateway)
    result = await manager.login(data.identifier, data.credential)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.reason,
        )

    return _login_response(manager, result.status.value, result.reason)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(manager: SessionManager = Depends(get_session_manager)):
    """Drop the session. Clients discard their token and `org` parameter."""
    manager.logout()
    return None


@router.get("/session", response_model=SessionResponse)
async def get_session(manager: SessionManager = Depends(get_current_manager)):
    """Rebuild the session from the store for the presented token."""
    return SessionResponse.from_manager(manager)


@router.post("/dev-login", response_model=LoginResponse)
async def dev_login(gateway: RecordStoreGateway = Depends(get_gateway)):
    """Non-production only. Unknown route everywhere else."""
    manager = new_session_manager(gateway)
    try:
        await manager.dev_login()
    except DevLoginDisabledError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    return _login_response(manager, "success")
