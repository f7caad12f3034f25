"""
Account services package

Service classes over the Kuzu repositories:
- UserService: details, credentials, preferences, linked accounts, closing
- PostService: the user's own listings
- SavedPostService / SavedSearchService: bookmarks and stored searches
- MessagingService: threads, replies and read markers
- SubscriptionService: packages, payments and transactions

Repositories resolve the Kuzu manager from the current Flask application on
every call, so the module-level instances are safe to share across apps.
"""

from .errors import AccountError, NotFoundError
from .user_service import UserService
from .post_service import PostService
from .saved_service import SavedPostService, SavedSearchService
from .messaging_service import MessagingService
from .subscription_service import SubscriptionService


class _LazyService:
    """Lazy service that initializes on first access."""

    def __init__(self, factory):
        self._factory = factory
        self._service = None

    def __getattr__(self, name):
        if self._service is None:
            self._service = self._factory()
        return getattr(self._service, name)


user_service = _LazyService(UserService)
post_service = _LazyService(PostService)
saved_post_service = _LazyService(SavedPostService)
saved_search_service = _LazyService(SavedSearchService)
messaging_service = _LazyService(MessagingService)
subscription_service = _LazyService(SubscriptionService)

__all__ = [
    'AccountError',
    'NotFoundError',
    'UserService',
    'PostService',
    'SavedPostService',
    'SavedSearchService',
    'MessagingService',
    'SubscriptionService',
    'user_service',
    'post_service',
    'saved_post_service',
    'saved_search_service',
    'messaging_service',
    'subscription_service',
]
