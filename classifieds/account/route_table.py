"""
Account area route table.

Every account URL is declared here as data: rule, endpoint, view, methods
and the guard chain that runs before the view. Rules are relative to the
account blueprint prefix (``ACCOUNT_BASE_PATH``, ``/account`` by default).
Id segments use the ``int`` converter, so a non-numeric id never reaches a
view and answers 404.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ..guards import guarded
from . import (
    closing, linked_accounts, messages, overview, posts, preferences, profile,
    saved_posts, saved_searches, security, subscription, transactions
)

ACCOUNT_GUARDS: Tuple[str, ...] = ('auth', 'two_factor', 'banned.user', 'no.http.cache')
PROTECTED: Tuple[str, ...] = ACCOUNT_GUARDS + ('impersonate.protect',)
PUBLIC: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AccountRoute:
    rule: str
    endpoint: str
    view: Callable
    methods: Tuple[str, ...] = ('GET',)
    guards: Tuple[str, ...] = ACCOUNT_GUARDS
    defaults: Optional[Dict[str, Any]] = field(default=None, hash=False)


R = AccountRoute

ROUTES: Tuple[AccountRoute, ...] = (
    # Overview
    R('/overview', 'overview', overview.index),

    # Profile
    R('/profile', 'profile', profile.index),
    R('/profile', 'profile_update', profile.update_details, ('PUT',), PROTECTED),
    R('/profile/photo', 'profile_photo_update', profile.update_photo, ('PUT',), PROTECTED),
    R('/profile/photo/delete', 'profile_photo_delete', profile.delete_photo, ('PUT',), PROTECTED),

    # Security
    R('/security', 'security', security.index),
    R('/security/password', 'security_password', security.change_password, ('PUT',), PROTECTED),
    R('/security/two-factor', 'security_two_factor', security.setup_two_factor, ('PUT',), PROTECTED),

    # Preferences
    R('/preferences', 'preferences', preferences.index),
    R('/preferences', 'preferences_update', preferences.update_preferences, ('PUT',), PROTECTED),
    R('/save-theme-preference', 'save_theme_preference', preferences.save_theme_preference,
      ('POST',), PROTECTED),

    # Linked accounts
    R('/linked-accounts', 'linked_accounts', linked_accounts.index),
    R('/linked-accounts/<provider>/disconnect', 'linked_accounts_disconnect', linked_accounts.disconnect,
      ('GET',), PROTECTED),

    # Closing
    R('/closing', 'closing', closing.show_form),
    R('/closing', 'closing_post', closing.post_form, ('POST',), PROTECTED),

    # Subscription
    R('/subscription', 'subscription', subscription.show_form),
    R('/subscription', 'subscription_post', subscription.post_form, ('POST',)),
    R('/<int:payment_id>/payment/success', 'payment_success', subscription.payment_confirmation,
      ('GET', 'POST')),
    R('/<int:payment_id>/payment/cancel', 'payment_cancel', subscription.payment_cancel),

    # Transactions
    R('/transactions/promotion', 'transactions_promotion', transactions.index,
      defaults={'payable_type': 'promotion'}),
    R('/transactions/subscription', 'transactions_subscription', transactions.index,
      defaults={'payable_type': 'subscription'}),

    # Posts
    R('/posts/list', 'posts_list', posts.online_posts),
    R('/posts/list/<int:post_id>/offline', 'posts_offline', posts.take_post_offline),
    R('/posts/list/<int:post_id>/delete', 'posts_list_confirm_delete', posts.confirm_destroy,
      defaults={'scope': 'list'}),
    R('/posts/list/delete', 'posts_list_delete', posts.destroy, ('POST',),
      defaults={'scope': 'list'}),
    R('/posts/archived', 'posts_archived', posts.archived_posts),
    R('/posts/archived/<int:post_id>/repost', 'posts_repost', posts.repost_post),
    R('/posts/archived/<int:post_id>/delete', 'posts_archived_confirm_delete', posts.confirm_destroy,
      defaults={'scope': 'archived'}),
    R('/posts/archived/delete', 'posts_archived_delete', posts.destroy, ('POST',),
      defaults={'scope': 'archived'}),
    R('/posts/pending-approval', 'posts_pending', posts.pending_approval_posts),
    R('/posts/pending-approval/<int:post_id>/delete', 'posts_pending_confirm_delete', posts.confirm_destroy,
      defaults={'scope': 'pending'}),
    R('/posts/pending-approval/delete', 'posts_pending_delete', posts.destroy, ('POST',),
      defaults={'scope': 'pending'}),

    # Saved posts
    R('/saved-posts/toggle', 'saved_posts_toggle', saved_posts.toggle, ('POST',)),
    R('/saved-posts', 'saved_posts', saved_posts.index),
    R('/saved-posts/<int:saved_id>/delete', 'saved_posts_confirm_delete', saved_posts.confirm_destroy),
    R('/saved-posts/delete', 'saved_posts_delete', saved_posts.destroy, ('POST',)),

    # Saved searches
    R('/saved-searches/store', 'saved_searches_store', saved_searches.store, ('POST',)),
    R('/saved-searches', 'saved_searches', saved_searches.index),
    R('/saved-searches/<int:search_id>', 'saved_searches_show', saved_searches.show),
    R('/saved-searches/<int:search_id>/delete', 'saved_searches_confirm_delete', saved_searches.confirm_destroy),
    R('/saved-searches/delete', 'saved_searches_delete', saved_searches.destroy, ('POST',)),

    # Messages
    R('/messages/check-new', 'messages_check_new', messages.check_new, ('POST',)),
    R('/messages', 'messages', messages.index),
    R('/messages', 'messages_store', messages.store, ('POST',)),
    R('/messages/<int:thread_id>', 'messages_show', messages.show),
    R('/messages/<int:thread_id>', 'messages_update', messages.update, ('PUT',)),
    R('/messages/<int:thread_id>/actions', 'messages_action', messages.actions),
    R('/messages/actions', 'messages_actions', messages.actions, ('POST',)),
    R('/messages/<int:thread_id>/delete', 'messages_confirm_delete', messages.confirm_destroy),
    R('/messages/delete', 'messages_delete', messages.destroy, ('POST',)),

    # Public: contact the author of a post
    R('/messages/posts/<int:post_id>', 'messages_contact_author', messages.store, ('POST',), PUBLIC),
)


def iter_routes() -> Iterator[AccountRoute]:
    return iter(ROUTES)


def register_account_routes(blueprint, routes=ROUTES) -> None:
    """Add every route to the blueprint, wrapped in its guard chain."""
    seen = set()
    for route in routes:
        if route.endpoint in seen:
            raise ValueError(f"Duplicate account endpoint: {route.endpoint}")
        seen.add(route.endpoint)
        view = guarded(route.view, route.guards)
        options = {'defaults': dict(route.defaults)} if route.defaults else {}
        blueprint.add_url_rule(route.rule, endpoint=route.endpoint, view_func=view,
                               methods=list(route.methods), **options)
