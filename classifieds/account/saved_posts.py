from flask import jsonify, render_template, request, url_for

from ..notifications import respond, wants_json
from ..services import saved_post_service
from ..utils.http import parse_ids, selected_ids
from .common import account_user, listing_args, request_data


def toggle():
    """Save or unsave a post; AJAX callers get ``{"saved": bool}``."""
    user = account_user()
    data = request_data()
    ids = parse_ids([data.get('post_id', data.get('post', ''))])
    if not ids:
        return respond('No post selected.', 'error', status=400)
    saved = saved_post_service.toggle(user.id, ids[0])
    message = 'Post saved.' if saved else 'Post removed from your saved posts.'
    if wants_json():
        return jsonify({'success': True, 'saved': saved, 'message': message})
    return respond(message, 'success')


def index():
    user = account_user()
    page, per_page = listing_args()
    entries = saved_post_service.list_saved(user.id, page=page, per_page=per_page)
    return render_template('account/saved_posts.html', title='Saved posts', entries=entries)


def confirm_destroy(saved_id):
    user = account_user()
    entry = saved_post_service.get_user_entry(user.id, saved_id)
    label = entry.post.title if entry.post else f'Saved post #{entry.id}'
    return render_template('account/confirm_delete.html', title='Remove saved post',
                           entry_id=entry.id, entry_label=label,
                           action=url_for('account.saved_posts_delete'),
                           cancel_url=url_for('account.saved_posts'))


def destroy():
    user = account_user()
    redirect_to = url_for('account.saved_posts')
    ids = selected_ids(request.form)
    if not ids:
        return respond('No saved post selected.', 'error', redirect_to=redirect_to, status=400)
    deleted = saved_post_service.delete_entries(user.id, ids)
    if not deleted:
        return respond('No saved post was removed.', 'warning', redirect_to=redirect_to, status=404)
    return respond(f'{deleted} saved post(s) removed.', 'success', redirect_to=redirect_to, deleted=deleted)
