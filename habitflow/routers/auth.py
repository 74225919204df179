"""Auth router - accounts, tokens and the current-user dependency."""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from habitflow.database import get_database
from habitflow.models.user import (
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    TokenResponse,
    User,
    UserCreate,
)
from habitflow.services.auth_service import AuthService, IncorrectPasswordError
from habitflow.utils.auth import verify_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Resolve the bearer token to a user ID.

    Raises:
        HTTPException: If the token is missing or invalid (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db=Depends(get_database)):
    """
    Register a new user.

    - Email is stored lower-cased and must be unique (400 otherwise)
    - Password must be at least 6 characters (422 otherwise)
    """
    service = AuthService(db)
    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/login", response_model=TokenResponse)
async def login(login_req: LoginRequest, db=Depends(get_database)):
    """
    Exchange credentials for a bearer token.

    - Unknown email and wrong password both give 401
    """
    service = AuthService(db)
    try:
        token = await service.login(email=login_req.email, password=login_req.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return TokenResponse(access_token=token)


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """The authenticated user, including lifetime stats."""
    service = AuthService(db)
    try:
        return await service.get_user_by_id(user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/profile", response_model=User)
async def update_profile(
    profile: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update name, timezone or preferences.

    - Fields left out of the body are unchanged
    """
    service = AuthService(db)
    try:
        return await service.update_profile(user_id, profile)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/change-password")
async def change_password(
    change: PasswordChange,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Change the password.

    - Returns 401 if current_password is wrong
    """
    service = AuthService(db)
    try:
        await service.change_password(user_id, change)
    except IncorrectPasswordError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Password updated successfully"}
