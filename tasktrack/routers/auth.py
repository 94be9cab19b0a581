"""Auth endpoints and the bearer-token dependency used by every other router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from tasktrack.config import settings
from tasktrack.database import get_database
from tasktrack.models.user import LoginRequest, TokenResponse, User, UserCreate
from tasktrack.services.auth_service import AuthService
from tasktrack.utils.auth import verify_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Resolve the calling user from the ``Authorization: Bearer`` header.

    Raises:
        HTTPException: 401 when the header is missing or the token is
            invalid or expired
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise _unauthorized("Invalid authentication credentials")


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db=Depends(get_database)):
    """
    Create an account.

    The new user gets a profile named after them and joins the workspace
    team. Returns 400 if the email is taken.
    """
    try:
        return await AuthService(db).register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db=Depends(get_database)):
    """Exchange email and password for a bearer token (401 on bad credentials)."""
    try:
        token = await AuthService(db).login(
            email=credentials.email,
            password=credentials.password,
        )
    except ValueError as e:
        logger.warning("Failed login for %s", credentials.email)
        raise _unauthorized(str(e))

    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_expiration_minutes * 60,
    )


@router.get("/me", response_model=User)
async def me(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """The authenticated user's account; 404 if it was deleted since the token was issued."""
    try:
        return await AuthService(db).get_user_by_id(user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
