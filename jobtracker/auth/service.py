"""
Job Tracker - Authentication Service

Core authentication logic including password hashing, JWT handling, and user management.

Features:
- Bcrypt password hashing
- JWT access token creation/validation
- Refresh token management with rotation
- User creation and authentication
"""
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
import secrets
import logging

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from .models import User, RefreshToken
from .schemas import TokenData

logger = logging.getLogger("jobtracker.auth")


class AuthServiceError(Exception):
    """Custom exception for authentication errors."""
    pass


class AuthService:
    """
    Authentication service for user management and JWT handling.

    Provides:
    - Password hashing with bcrypt
    - JWT access/refresh token management
    - User creation and authentication
    """

    def __init__(self):
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=12
        )

    # -------------------------------------------------------------------------
    # Password Hashing
    # -------------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        return self._pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self._pwd_context.verify(plain_password, hashed_password)
        except ValueError as e:
            logger.error(f"Password verification failed: {e}")
            return False

    def password_problems(self, password: str) -> List[str]:
        """Reasons a password is too weak; empty when it is acceptable."""
        checks = [
            (len(password) >= 8, "Password must be at least 8 characters"),
            # bcrypt ignores anything past 72 bytes
            (len(password.encode()) <= 72, "Password must be at most 72 bytes"),
            (any(c.isupper() for c in password), "Password should contain at least one uppercase letter"),
            (any(c.islower() for c in password), "Password should contain at least one lowercase letter"),
            (any(c.isdigit() for c in password), "Password should contain at least one number"),
        ]
        return [message for ok, message in checks if not ok]

    def _require_strong(self, password: str) -> None:
        problems = self.password_problems(password)
        if problems:
            raise AuthServiceError(f"Weak password: {problems[0]}")

    # -------------------------------------------------------------------------
    # JWT Token Management
    # -------------------------------------------------------------------------

    def create_access_token(
        self,
        user: User,
        expires_delta: Optional[timedelta] = None
    ) -> Tuple[str, datetime]:
        """
        Create a JWT access token.

        Returns:
            Tuple of (token_string, expiration_datetime)
        """
        expire = datetime.utcnow() + (
            expires_delta or timedelta(minutes=settings.auth.access_token_expire_minutes)
        )

        payload = {
            "sub": str(user.id),
            "email": user.email,
            "exp": expire,
            "iat": datetime.utcnow(),
            "type": "access"
        }

        token = jwt.encode(
            payload,
            settings.auth.secret_key,
            algorithm=settings.auth.algorithm
        )

        logger.debug(f"Created access token for user {user.id}")
        return token, expire

    def create_refresh_token(self, user: User, db: Session) -> Tuple[str, datetime]:
        """
        Create a refresh token and store it in the database.

        Uses secure random token generation (not JWT) for refresh tokens.
        """
        expire = datetime.utcnow() + timedelta(
            days=settings.auth.refresh_token_expire_days
        )
        token = secrets.token_urlsafe(32)

        db.add(RefreshToken(user_id=user.id, token=token, expires_at=expire))
        db.commit()

        logger.debug(f"Created refresh token for user {user.id}")
        return token, expire

    def verify_access_token(self, token: str) -> Optional[TokenData]:
        """
        Verify and decode an access token.

        Returns:
            TokenData if valid, None if invalid/expired
        """
        try:
            payload = jwt.decode(
                token,
                settings.auth.secret_key,
                algorithms=[settings.auth.algorithm]
            )
        except JWTError as e:
            logger.debug(f"Token verification failed: {e}")
            return None

        if payload.get("type") != "access":
            logger.warning("Token is not an access token")
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            logger.warning("Token missing required claims")
            return None

        return TokenData(
            user_id=int(user_id),
            email=email,
            exp=datetime.fromtimestamp(payload["exp"])
        )

    def verify_refresh_token(self, token: str, db: Session) -> Optional[User]:
        """
        Verify a refresh token and return the associated user.

        Returns:
            User if valid, None if invalid/expired/revoked
        """
        db_token = db.query(RefreshToken).filter(
            RefreshToken.token == token,
            RefreshToken.revoked == False,  # noqa: E712
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not db_token:
            logger.debug("Refresh token not found or expired")
            return None

        user = db.query(User).filter(User.id == db_token.user_id).first()
        if not user or not user.is_active:
            logger.warning(f"Refresh token for unavailable user {db_token.user_id}")
            return None

        return user

    def revoke_refresh_token(self, token: str, db: Session) -> Optional[int]:
        """
        Revoke a refresh token (logout).

        Returns:
            The owning user's id, or None if the token was not found
        """
        db_token = db.query(RefreshToken).filter(
            RefreshToken.token == token
        ).first()

        if not db_token:
            return None

        db_token.revoked = True
        db.commit()
        logger.debug(f"Revoked refresh token for user {db_token.user_id}")
        return db_token.user_id

    def revoke_all_user_tokens(self, user_id: int, db: Session) -> int:
        """Revoke all refresh tokens for a user (logout from all devices)."""
        count = db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked == False  # noqa: E712
        ).update({"revoked": True})

        db.commit()
        logger.info(f"Revoked {count} refresh tokens for user {user_id}")
        return count

    # -------------------------------------------------------------------------
    # User Management
    # -------------------------------------------------------------------------

    def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str],
        db: Session
    ) -> User:
        """
        Create a new user with email/password.

        Raises:
            AuthServiceError: If user already exists or password is weak
        """
        if self.get_user_by_email(email, db):
            raise AuthServiceError("User with this email already exists")

        self._require_strong(password)

        user = User(
            email=email,
            hashed_password=self.hash_password(password),
            name=name,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Created new user: {user.id} ({email})")
        return user

    def authenticate_user(
        self,
        email: str,
        password: str,
        db: Session
    ) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Returns:
            User if credentials valid, None otherwise
        """
        user = self.get_user_by_email(email, db)

        if not user:
            logger.debug(f"User not found: {email}")
            return None

        if not user.hashed_password:
            logger.debug(f"User {email} has no password set")
            return None

        if not self.verify_password(password, user.hashed_password):
            logger.debug(f"Invalid password for user: {email}")
            return None

        if not user.is_active:
            logger.warning(f"Inactive user attempted login: {email}")
            return None

        logger.info(f"User authenticated: {user.id} ({email})")
        return user

    def get_user_by_email(self, email: str, db: Session) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def update_password(self, user: User, new_password: str, db: Session) -> None:
        """
        Set a new password and revoke every refresh token of the user.

        Raises:
            AuthServiceError: If the new password is weak
        """
        self._require_strong(new_password)

        user.hashed_password = self.hash_password(new_password)
        user.updated_at = datetime.utcnow()
        db.commit()

        self.revoke_all_user_tokens(user.id, db)
        logger.info(f"Password updated for user {user.id}")


# Global service instance
auth_service = AuthService()
