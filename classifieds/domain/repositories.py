"""
Repository interfaces for the domain layer.

These interfaces define the contracts for data access without coupling to a
specific database. The Kuzu implementations live in
``classifieds.infrastructure.kuzu_repositories``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import (
    User, Post, PostStatus, SavedPost, SavedSearch, Thread, ThreadMessage,
    ThreadParticipant, Package, Payment, LinkedAccount
)


class UserRepository(ABC):
    """Repository interface for User operations."""

    @abstractmethod
    def create(self, user: User) -> User:
        """Create a new user."""

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username (case-insensitive)."""

    @abstractmethod
    def get_by_phone(self, phone: str) -> Optional[User]:
        """Get a user by phone number."""

    @abstractmethod
    def update(self, user: User) -> User:
        """Persist every field of an existing user."""

    @abstractmethod
    def delete(self, user_id: int) -> bool:
        """Delete a user."""

    @abstractmethod
    def count(self) -> int:
        """Count all users."""


class PostRepository(ABC):
    """Repository interface for Post operations."""

    @abstractmethod
    def create(self, post: Post) -> Post:
        """Create a new post."""

    @abstractmethod
    def get_by_id(self, post_id: int) -> Optional[Post]:
        """Get a post by ID."""

    @abstractmethod
    def list_for_user(self, user_id: int, status: PostStatus, limit: int, offset: int = 0) -> List[Post]:
        """List a user's posts in one status, newest first."""

    @abstractmethod
    def count_for_user(self, user_id: int, status: PostStatus) -> int:
        """Count a user's posts in one status."""

    @abstractmethod
    def search(self, keyword: str = "", category: Optional[str] = None,
               city: Optional[str] = None, limit: int = 50) -> List[Post]:
        """Search online posts."""

    @abstractmethod
    def count_search(self, keyword: str = "", category: Optional[str] = None,
                     city: Optional[str] = None) -> int:
        """Count online posts matching a search."""

    @abstractmethod
    def update(self, post: Post) -> Post:
        """Persist every field of an existing post."""

    @abstractmethod
    def delete(self, post_id: int) -> bool:
        """Delete a post."""

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        """Delete all posts of a user, returning how many were removed."""


class SavedPostRepository(ABC):
    """Repository interface for SavedPost operations."""

    @abstractmethod
    def create(self, saved: SavedPost) -> SavedPost:
        """Save a post for a user."""

    @abstractmethod
    def get_by_id(self, saved_id: int) -> Optional[SavedPost]:
        """Get a saved post entry by ID."""

    @abstractmethod
    def find(self, user_id: int, post_id: int) -> Optional[SavedPost]:
        """Find the entry for a user/post pair."""

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int, offset: int = 0) -> List[SavedPost]:
        """List a user's saved posts, newest first."""

    @abstractmethod
    def count_for_user(self, user_id: int) -> int:
        """Count a user's saved posts."""

    @abstractmethod
    def delete(self, saved_id: int) -> bool:
        """Delete a saved post entry."""

    @abstractmethod
    def delete_for_post(self, post_id: int) -> int:
        """Delete every saved entry pointing at a post."""

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        """Delete every saved entry of a user."""


class SavedSearchRepository(ABC):
    """Repository interface for SavedSearch operations."""

    @abstractmethod
    def create(self, search: SavedSearch) -> SavedSearch:
        """Store a search."""

    @abstractmethod
    def get_by_id(self, search_id: int) -> Optional[SavedSearch]:
        """Get a saved search by ID."""

    @abstractmethod
    def find(self, user_id: int, query_string: str) -> Optional[SavedSearch]:
        """Find a user's saved search by its query string."""

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int, offset: int = 0) -> List[SavedSearch]:
        """List a user's saved searches, newest first."""

    @abstractmethod
    def count_for_user(self, user_id: int) -> int:
        """Count a user's saved searches."""

    @abstractmethod
    def update(self, search: SavedSearch) -> SavedSearch:
        """Persist an existing saved search."""

    @abstractmethod
    def delete(self, search_id: int) -> bool:
        """Delete a saved search."""

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        """Delete every saved search of a user."""


class ThreadRepository(ABC):
    """Repository interface for message threads, their messages and participants."""

    @abstractmethod
    def create_thread(self, thread: Thread) -> Thread:
        """Create a thread."""

    @abstractmethod
    def get_thread(self, thread_id: int) -> Optional[Thread]:
        """Get a thread by ID."""

    @abstractmethod
    def update_thread(self, thread: Thread) -> Thread:
        """Persist an existing thread."""

    @abstractmethod
    def add_message(self, message: ThreadMessage) -> ThreadMessage:
        """Append a message to a thread."""

    @abstractmethod
    def list_messages(self, thread_id: int) -> List[ThreadMessage]:
        """List the messages of a thread, oldest first."""

    @abstractmethod
    def add_participant(self, participant: ThreadParticipant) -> ThreadParticipant:
        """Add a participant to a thread."""

    @abstractmethod
    def get_participant(self, thread_id: int, user_id: int) -> Optional[ThreadParticipant]:
        """Get a user's participation in a thread."""

    @abstractmethod
    def list_participants(self, thread_id: int) -> List[ThreadParticipant]:
        """List the participants of a thread."""

    @abstractmethod
    def list_participations(self, user_id: int) -> List[ThreadParticipant]:
        """List the non-deleted participations of a user."""

    @abstractmethod
    def update_participant(self, participant: ThreadParticipant) -> ThreadParticipant:
        """Persist an existing participant."""

    @abstractmethod
    def delete_participations_for_user(self, user_id: int) -> int:
        """Remove a user from every thread."""

    @abstractmethod
    def anonymize_messages_for_user(self, user_id: int, sender_name: str) -> int:
        """Detach a user's messages from them and drop their contact details."""


class PackageRepository(ABC):
    """Repository interface for subscription packages."""

    @abstractmethod
    def create(self, package: Package) -> Package:
        """Create a package."""

    @abstractmethod
    def get_by_id(self, package_id: int) -> Optional[Package]:
        """Get a package by ID."""

    @abstractmethod
    def list_active(self) -> List[Package]:
        """List active packages, cheapest first."""

    @abstractmethod
    def count(self) -> int:
        """Count all packages."""


class PaymentRepository(ABC):
    """Repository interface for payments."""

    @abstractmethod
    def create(self, payment: Payment) -> Payment:
        """Create a payment."""

    @abstractmethod
    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        """Get a payment by ID."""

    @abstractmethod
    def list_for_user(self, user_id: int, payable_type: Optional[str] = None,
                      limit: int = 50, offset: int = 0) -> List[Payment]:
        """List a user's payments, newest first."""

    @abstractmethod
    def count_for_user(self, user_id: int, payable_type: Optional[str] = None) -> int:
        """Count a user's payments."""

    @abstractmethod
    def update(self, payment: Payment) -> Payment:
        """Persist an existing payment."""

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        """Delete every payment of a user."""


class LinkedAccountRepository(ABC):
    """Repository interface for linked social accounts."""

    @abstractmethod
    def create(self, account: LinkedAccount) -> LinkedAccount:
        """Link a provider account."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[LinkedAccount]:
        """List a user's linked accounts."""

    @abstractmethod
    def find(self, user_id: int, provider: str) -> Optional[LinkedAccount]:
        """Find a user's link for one provider."""

    @abstractmethod
    def delete(self, account_id: int) -> bool:
        """Unlink a provider account."""

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        """Unlink every provider of a user."""
