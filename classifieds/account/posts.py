"""
The account's own posts, split into three listings: online ("list"),
archived and pending approval. Deleting goes through a GET confirmation
page that posts to the listing's delete route.
"""

from flask import render_template, request, url_for

from ..domain.models import PostStatus
from ..notifications import respond
from ..services import post_service
from ..utils.http import selected_ids
from .common import account_user, listing_args

SCOPES = {
    'list': {'status': PostStatus.ONLINE, 'endpoint': 'posts_list', 'title': 'My listings'},
    'archived': {'status': PostStatus.ARCHIVED, 'endpoint': 'posts_archived', 'title': 'Archived listings'},
    'pending': {'status': PostStatus.PENDING, 'endpoint': 'posts_pending', 'title': 'Pending approval'},
}


def _listing(scope):
    user = account_user()
    info = SCOPES[scope]
    page, per_page = listing_args()
    posts = post_service.list_posts(user.id, info['status'], page=page, per_page=per_page)
    return render_template('account/posts.html', title=info['title'], scope=scope, posts=posts,
                           delete_endpoint=f"account.{info['endpoint']}_delete")


def online_posts():
    return _listing('list')


def archived_posts():
    return _listing('archived')


def pending_approval_posts():
    return _listing('pending')


def take_post_offline(post_id):
    user = account_user()
    post = post_service.take_offline(user.id, post_id)
    return respond(f'"{post.title}" has been taken offline.', 'success',
                   redirect_to=url_for('account.posts_list'))


def repost_post(post_id):
    user = account_user()
    post = post_service.repost(user.id, post_id)
    return respond(f'"{post.title}" is online again.', 'success',
                   redirect_to=url_for('account.posts_archived'))


def confirm_destroy(scope, post_id):
    """Show what would be deleted; nothing changes until the form is posted."""
    user = account_user()
    info = SCOPES[scope]
    post = post_service.get_user_post(user.id, post_id, info['status'])
    return render_template('account/confirm_delete.html', title='Delete listing',
                           entry_id=post.id, entry_label=post.title,
                           action=url_for(f"account.{info['endpoint']}_delete"),
                           cancel_url=url_for(f"account.{info['endpoint']}"))


def destroy(scope):
    user = account_user()
    info = SCOPES[scope]
    redirect_to = url_for(f"account.{info['endpoint']}")
    ids = selected_ids(request.form)
    if not ids:
        return respond('No listing selected.', 'error', redirect_to=redirect_to, status=400)
    deleted = post_service.delete_posts(user.id, info['status'], ids)
    if not deleted:
        return respond('No listing was deleted.', 'warning', redirect_to=redirect_to, status=404)
    return respond(f'{deleted} listing(s) deleted.', 'success', redirect_to=redirect_to, deleted=deleted)
