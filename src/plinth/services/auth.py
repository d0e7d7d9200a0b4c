"""
Authentication service.

Local email/password accounts (bcrypt hashes), OAuth account linking and
JWT access/refresh token issuance.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session

from plinth.config import settings
from plinth.db.repositories.user import UserRepository
from plinth.exceptions import AuthenticationError, ConflictError
from plinth.models.db import User
from plinth.services.workspaces import WorkspaceService

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash. OAuth-only users never match."""
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _create_token(user: User, token_type: str, expires_delta: timedelta) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user: User) -> str:
    return _create_token(
        user,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user: User) -> str:
    return _create_token(
        user,
        REFRESH_TOKEN_TYPE,
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    """
    Decode and verify a token.

    Args:
        token: Encoded JWT
        expected_type: Required value of the ``type`` claim

    Returns:
        Token payload

    Raises:
        AuthenticationError: If the token is expired, malformed, signed with
            another key, or of the wrong type
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != expected_type:
        raise AuthenticationError(f"Expected a {expected_type} token")
    if not payload.get("sub"):
        raise AuthenticationError("Invalid token")
    return payload


def user_profile(user: User) -> Dict[str, Any]:
    """Public representation of a user."""
    return {
        "id": str(user.id),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "avatar_url": user.avatar_url,
    }


class AuthService:
    """Registers, authenticates and issues tokens for users."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)

    def _token_response(self, user: User) -> Dict[str, Any]:
        return {
            "access_token": create_access_token(user),
            "refresh_token": create_refresh_token(user),
            "token_type": "bearer",
            "user": user_profile(user),
        }

    def register(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a local account and its default workspace.

        Returns:
            Token pair and user profile

        Raises:
            ConflictError: If the email is already registered
        """
        email = email.strip().lower()
        if self.users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = self.users.create(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        WorkspaceService(self.session).create_default_workspace(user)
        logger.info(f"Registered user {user.email}")
        return self._token_response(user)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials are valid, otherwise None."""
        user = self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Raises:
            AuthenticationError: On unknown email or wrong password
        """
        user = self.authenticate(email, password)
        if user is None:
            logger.info(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")
        return self._token_response(user)

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            AuthenticationError: If the token is invalid, is not a refresh
                token, or its user no longer exists
        """
        payload = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        user = self._get_user(payload["sub"])
        if user is None:
            raise AuthenticationError("Invalid refresh token")
        return self._token_response(user)

    def get_user_from_token(self, access_token: str) -> User:
        """
        Raises:
            AuthenticationError: If the token is invalid or its user is gone
        """
        payload = decode_token(access_token, ACCESS_TOKEN_TYPE)
        user = self._get_user(payload["sub"])
        if user is None:
            raise AuthenticationError("User not found")
        return user

    def validate_oauth_user(
        self,
        email: str,
        provider: str,
        provider_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Sign in with an external identity.

        An existing account with the same email gets the identity linked (and
        its avatar filled in if it had none). Otherwise a new passwordless
        account is created together with its default workspace.

        Returns:
            Token pair and user profile
        """
        user = self.users.get_by_oauth(provider, provider_id)
        if user is None:
            user = self.users.get_by_email(email)
            if user is None:
                user = self.users.create(
                    email=email.strip().lower(),
                    first_name=first_name,
                    last_name=last_name,
                    avatar_url=avatar_url,
                )
                WorkspaceService(self.session).create_default_workspace(user)
                logger.info(f"Created user {user.email} from {provider} sign-in")
            self.users.link_oauth_account(user, provider, provider_id)
            logger.info(f"Linked {provider} account to {user.email}")

        if not user.avatar_url and avatar_url:
            user.avatar_url = avatar_url
            self.session.flush()

        return self._token_response(user)

    def get_profile(self, user_id: uuid.UUID | str) -> Optional[Dict[str, Any]]:
        user = self._get_user(user_id)
        return user_profile(user) if user is not None else None

    def _get_user(self, user_id: uuid.UUID | str) -> Optional[User]:
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None
        return self.users.get(user_id)
