"""
User service

Account details, credentials, preferences, linked accounts and account
closing, on top of the Kuzu repositories.
"""

import logging
from typing import List, Optional

from ..domain.models import User, LinkedAccount, Theme, Gender, now_utc
from ..infrastructure.kuzu_repositories import (
    KuzuUserRepository, KuzuPostRepository, KuzuSavedPostRepository,
    KuzuSavedSearchRepository, KuzuThreadRepository, KuzuPaymentRepository,
    KuzuLinkedAccountRepository
)
from ..utils.image_processing import delete_stored_file
from .errors import AccountError, NotFoundError

logger = logging.getLogger(__name__)

AUTH_FIELDS = ('email', 'phone')
CLOSED_ACCOUNT_NAME = 'Former member'


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class UserService:
    """User service using the Kuzu repositories."""

    def __init__(self):
        self.user_repo = KuzuUserRepository()
        self.post_repo = KuzuPostRepository()
        self.saved_post_repo = KuzuSavedPostRepository()
        self.saved_search_repo = KuzuSavedSearchRepository()
        self.thread_repo = KuzuThreadRepository()
        self.payment_repo = KuzuPaymentRepository()
        self.linked_repo = KuzuLinkedAccountRepository()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_user_by_id(self, user_id) -> Optional[User]:
        try:
            return self.user_repo.get_by_id(int(user_id))
        except (TypeError, ValueError):
            return None

    def get_user_by_auth_field(self, auth_field: str, value: Optional[str]) -> Optional[User]:
        """Find a user by the login identifier the form selected (email or phone)."""
        value = _clean(value)
        if not value:
            return None
        if auth_field == 'phone':
            return self.user_repo.get_by_phone(value)
        if auth_field == 'email':
            return self.user_repo.get_by_email(value)
        raise AccountError(f'Unknown auth field: {auth_field}')

    # ------------------------------------------------------------------
    # Creation and details
    # ------------------------------------------------------------------
    def _ensure_unique(self, user_id: Optional[int], email: Optional[str],
                       username: Optional[str], phone: Optional[str]) -> None:
        if email:
            other = self.user_repo.get_by_email(email)
            if other and other.id != user_id:
                raise AccountError('Please use a different email address.')
        if username:
            other = self.user_repo.get_by_username(username)
            if other and other.id != user_id:
                raise AccountError('Please use a different username.')
        if phone:
            other = self.user_repo.get_by_phone(phone)
            if other and other.id != user_id:
                raise AccountError('Please use a different phone number.')

    def create_user(self, name: str, email: str, password: Optional[str] = None,
                    username: Optional[str] = None, phone: Optional[str] = None,
                    is_admin: bool = False, two_factor_enabled: bool = False,
                    **extra) -> User:
        email = _clean(email)
        if not email:
            raise AccountError('An email address is required.')
        username, phone = _clean(username), _clean(phone)
        self._ensure_unique(None, email, username, phone)
        user = User(name=name.strip(), email=email, username=username or '', phone=phone,
                    is_admin=is_admin, two_factor_enabled=two_factor_enabled, **extra)
        if password:
            user.set_password(password)
        created = self.user_repo.create(user)
        logger.info(f"Created user {created.id} ({created.email})")
        return created

    def update_details(self, user: User, name: str, email: str, username: Optional[str] = None,
                       phone: Optional[str] = None, phone_hidden: bool = False,
                       gender_id: Optional[int] = None, about: Optional[str] = None) -> User:
        email = _clean(email)
        if not email:
            raise AccountError('An email address is required.')
        username, phone = _clean(username), _clean(phone)
        if gender_id is not None and not Gender.find(gender_id):
            raise AccountError('Please select a valid gender.')
        self._ensure_unique(user.id, email, username, phone)

        user.name = name.strip()
        user.email = email
        user.username = username or ''
        user.phone = phone
        user.phone_hidden = bool(phone_hidden)
        user.gender_id = gender_id
        user.about = _clean(about)
        user.updated_at = now_utc()
        return self.user_repo.update(user)

    def set_photo(self, user: User, photo_path: Optional[str]) -> Optional[str]:
        """Store a new photo path and return the one it replaced."""
        previous = user.photo_path
        user.photo_path = photo_path
        user.updated_at = now_utc()
        self.user_repo.update(user)
        return previous

    # ------------------------------------------------------------------
    # Security
    # ------------------------------------------------------------------
    def change_password(self, user: User, current_password: Optional[str], new_password: str) -> User:
        # Accounts created through a social provider may have no password yet
        if user.has_password and not user.check_password(current_password or ''):
            raise AccountError('Current password is incorrect.')
        if not User.is_password_strong(new_password):
            requirements = '; '.join(User.get_password_requirements())
            raise AccountError(f'Password must meet the following requirements: {requirements}')
        user.set_password(new_password)
        user.updated_at = now_utc()
        self.user_repo.update(user)
        logger.info(f"Password changed for user {user.id}")
        return user

    def set_two_factor(self, user: User, enabled: bool) -> User:
        user.two_factor_enabled = bool(enabled)
        user.updated_at = now_utc()
        return self.user_repo.update(user)

    def record_login(self, user: User) -> User:
        user.last_login_at = now_utc()
        return self.user_repo.update(user)

    def set_banned(self, user: User, banned: bool) -> User:
        user.is_banned = bool(banned)
        user.updated_at = now_utc()
        return self.user_repo.update(user)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------
    def update_preferences(self, user: User, language_code: str, timezone: str,
                           accept_marketing_offers: bool) -> User:
        user.language_code = language_code
        user.timezone = timezone
        user.accept_marketing_offers = bool(accept_marketing_offers)
        user.updated_at = now_utc()
        return self.user_repo.update(user)

    def save_theme(self, user: User, theme: str) -> User:
        if theme not in Theme.values():
            raise AccountError(f'Unknown theme: {theme}')
        user.theme = theme
        return self.user_repo.update(user)

    # ------------------------------------------------------------------
    # Linked accounts
    # ------------------------------------------------------------------
    def list_linked_accounts(self, user: User) -> List[LinkedAccount]:
        return self.linked_repo.list_for_user(user.id)

    def link_account(self, user: User, provider: str, provider_user_id: str) -> LinkedAccount:
        existing = self.linked_repo.find(user.id, provider)
        if existing:
            return existing
        return self.linked_repo.create(LinkedAccount(user_id=user.id, provider=provider,
                                                     provider_user_id=provider_user_id))

    def disconnect_account(self, user: User, provider: str) -> None:
        account = self.linked_repo.find(user.id, provider)
        if account is None:
            raise NotFoundError(f'Your account is not linked to {provider.title()}.')
        remaining = [a for a in self.linked_repo.list_for_user(user.id) if a.id != account.id]
        if not user.has_password and not remaining:
            raise AccountError('Set a password before disconnecting your last linked account, '
                               'otherwise you will not be able to log in.')
        self.linked_repo.delete(account.id)
        logger.info(f"User {user.id} disconnected {provider}")

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------
    def close_account(self, user: User) -> None:
        """Delete the user together with everything the account owns."""
        for post_id in self.post_repo.list_ids_for_user(user.id):
            self.saved_post_repo.delete_for_post(post_id)
        deleted_posts = self.post_repo.delete_for_user(user.id)
        self.saved_post_repo.delete_for_user(user.id)
        self.saved_search_repo.delete_for_user(user.id)
        self.thread_repo.delete_participations_for_user(user.id)
        self.thread_repo.anonymize_messages_for_user(user.id, CLOSED_ACCOUNT_NAME)
        self.payment_repo.delete_for_user(user.id)
        self.linked_repo.delete_for_user(user.id)
        self.user_repo.delete(user.id)
        if user.photo_path:
            delete_stored_file(user.photo_path)
        logger.info(f"Closed account {user.id} ({deleted_posts} posts removed)")
