from datetime import datetime, timedelta
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from models.user import User
from models.session import UserSession
from schemas.user import TokenData, UserSignup
from core.config import settings
from core.exceptions import AuthenticationError, BusinessLogicError
import logging

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT settings
ALGORITHM = "HS256"
TOKEN_ISSUER = "catalog"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "iss": TOKEN_ISSUER,
        "type": "access"
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

def verify_token(token: str) -> Optional[TokenData]:
    """Decode a JWT; None when it is invalid, expired or missing claims."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        return None

    email = payload.get("sub")
    user_id = payload.get("user_id")
    session_id = payload.get("sid")
    if email is None or user_id is None or session_id is None:
        logger.warning("Token missing required claims")
        return None

    return TokenData(email=email, user_id=user_id, session_id=session_id)

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower().strip()).first()

def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, user_data: UserSignup) -> User:
    """Register a new user; email and username must both be unused."""
    email = user_data.email.lower().strip()

    existing = db.query(User).filter(
        or_(User.email == email, User.username == user_data.username)
    ).first()
    if existing:
        logger.warning(f"Signup attempt with existing email or username: {email}")
        raise BusinessLogicError("Email or username already in use")

    db_user = User(
        email=email,
        username=user_data.username,
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        is_active=True
    )

    try:
        db.add(db_user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating user {email}: {str(e)}")
        raise BusinessLogicError("Email or username already in use")

    db.refresh(db_user)
    logger.info(f"User created successfully: {email}")
    return db_user

def authenticate_user(db: Session, email: str, password: str) -> User:
    """Check credentials and return the active user they belong to."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed authentication attempt for: {email}")
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        logger.warning(f"Authentication attempt with inactive user: {email}")
        raise AuthenticationError("Account is inactive")

    return user

def login(db: Session, email: str, password: str) -> Tuple[User, str, int]:
    """Authenticate, open a session and issue a token bound to it.

    Returns the user, the access token and its lifetime in seconds.
    """
    user = authenticate_user(db, email, password)

    session = UserSession(user_id=user.id, session_lifetime_hours=settings.SESSION_LIFETIME_HOURS)
    user.last_login = datetime.utcnow()
    db.add(session)
    db.commit()
    db.refresh(user)

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        data={"sub": user.email, "user_id": user.id, "sid": session.session_id},
        expires_delta=expires
    )
    logger.info(f"User logged in successfully: {user.email}")
    return user, token, int(expires.total_seconds())

def get_active_session(db: Session, session_id: str) -> Optional[UserSession]:
    session = db.query(UserSession).filter(UserSession.session_id == session_id).first()
    if session is None or not session.is_valid():
        return None
    return session

def revoke_session(db: Session, session_id: str) -> bool:
    """Revoke a session; False if it was already gone."""
    session = db.query(UserSession).filter(UserSession.session_id == session_id).first()
    if session is None or session.is_revoked:
        return False
    session.revoke()
    db.commit()
    logger.info(f"Session revoked for user: {session.user_id}")
    return True
