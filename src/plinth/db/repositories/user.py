"""
User repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.base import BaseRepository
from plinth.models.db import OAuthAccount, User


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, session: Session):
        super().__init__(User, session)

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address (case-insensitive).

        Args:
            email: Email address

        Returns:
            User instance or None
        """
        return (
            self.session.query(User)
            .filter(User.email == email.strip().lower())
            .first()
        )

    def get_by_oauth(self, provider: str, provider_id: str) -> Optional[User]:
        """
        Get the user linked to an external identity.

        Args:
            provider: OAuth provider name (e.g. 'google')
            provider_id: Account id at the provider

        Returns:
            User instance or None
        """
        return (
            self.session.query(User)
            .join(OAuthAccount, OAuthAccount.user_id == User.id)
            .filter(
                OAuthAccount.provider == provider,
                OAuthAccount.provider_id == provider_id,
            )
            .first()
        )

    def link_oauth_account(
        self, user: User, provider: str, provider_id: str
    ) -> OAuthAccount:
        """Attach an external identity to a user."""
        account = OAuthAccount(
            user_id=user.id, provider=provider, provider_id=provider_id
        )
        self.session.add(account)
        self.session.flush()
        return account
