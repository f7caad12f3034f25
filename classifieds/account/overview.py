from flask import render_template

from ..domain.models import PostStatus
from ..services import (
    messaging_service, post_service, saved_post_service, saved_search_service, subscription_service
)
from .common import account_user


def index():
    user = account_user()
    stats = {
        'online_posts': post_service.count_posts(user.id, PostStatus.ONLINE),
        'archived_posts': post_service.count_posts(user.id, PostStatus.ARCHIVED),
        'pending_posts': post_service.count_posts(user.id, PostStatus.PENDING),
        'saved_posts': saved_post_service.count_saved(user.id),
        'saved_searches': saved_search_service.count_searches(user.id),
        'unread_threads': messaging_service.count_unread(user.id),
    }
    subscription = subscription_service.current_subscription(user.id)
    return render_template('account/overview.html', title='Overview', stats=stats,
                           subscription=subscription)
