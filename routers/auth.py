from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging

from database.connection import get_db
from services import auth as auth_service
from schemas.user import UserLogin, UserSignup, UserResponse, LoginResponse, SessionInfo, TokenData
from core.exceptions import BaseCustomException
from core.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def get_token_data(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> TokenData:
    """Validate the bearer token and the session it is bound to."""
    if not credentials or not credentials.credentials:
        raise _unauthorized("Authentication credentials required")

    token_data = auth_service.verify_token(credentials.credentials)
    if token_data is None:
        raise _unauthorized("Could not validate credentials")

    if auth_service.get_active_session(db, token_data.session_id) is None:
        logger.warning(f"Token presented for inactive session: {token_data.email}")
        raise _unauthorized("Session has ended")

    return token_data

def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    db: Session = Depends(get_db)
) -> UserResponse:
    """Get the current authenticated user."""
    user = auth_service.get_user_by_id(db, token_data.user_id)
    if user is None:
        logger.warning(f"Token valid but user not found: {token_data.email}")
        raise _unauthorized("User not found")

    if not user.is_active:
        logger.warning(f"Token valid but user inactive: {token_data.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return UserResponse.from_orm(user)

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(user_data: UserSignup, db: Session = Depends(get_db)):
    """Register a new user."""
    logger.info(f"Signup attempt for email: {user_data.email}")
    try:
        user = auth_service.create_user(db, user_data)
    except BaseCustomException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during signup: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again."
        )

    return success_response(
        data={"user": UserResponse.from_orm(user)},
        message="User created successfully"
    )

@router.post("/login")
def login(user_credentials: UserLogin, db: Session = Depends(get_db)):
    """Login user and return an access token bound to a new session."""
    logger.info(f"Login attempt for email: {user_credentials.email}")
    try:
        user, token, expires_in = auth_service.login(
            db, user_credentials.email, user_credentials.password
        )
    except BaseCustomException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during login: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again."
        )

    payload = LoginResponse(
        user=UserResponse.from_orm(user),
        session=SessionInfo(access_token=token, expires_in=expires_in)
    )
    return success_response(data=payload, message="Login successful")

@router.post("/logout")
def logout(
    token_data: TokenData = Depends(get_token_data),
    db: Session = Depends(get_db)
):
    """Revoke the session behind the presented token."""
    auth_service.revoke_session(db, token_data.session_id)
    logger.info(f"User logged out: {token_data.email}")
    return success_response(message="Successfully logged out")

@router.get("/me")
def get_current_user_info(current_user: UserResponse = Depends(get_current_user)):
    """Get current user information."""
    return success_response(data={"user": current_user}, message="User retrieved successfully")
