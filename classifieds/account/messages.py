"""
Message threads.

``store`` serves two routes: the account inbox form (post id in the form
data) and the public contact form on a post (post id in the URL), which
guests may use after giving their name and email address.
"""

from flask import jsonify, render_template, request, url_for
from flask_login import current_user

from ..forms import ContactAuthorForm, ReplyForm
from ..notifications import respond
from ..services import AccountError, NotFoundError, messaging_service
from ..services.messaging_service import THREAD_FILTERS
from ..utils.http import parse_ids, selected_ids
from .common import account_user, first_form_error, listing_args


def check_new():
    user = account_user()
    return jsonify({'success': True, 'count': messaging_service.count_unread(user.id)})


def index():
    user = account_user()
    thread_filter = request.args.get('filter')
    if thread_filter not in THREAD_FILTERS:
        thread_filter = None
    page, per_page = listing_args()
    threads = messaging_service.list_threads(user.id, thread_filter, page=page, per_page=per_page)
    return render_template('account/messages.html', title='Messages', threads=threads,
                           thread_filter=thread_filter, filters=THREAD_FILTERS,
                           unread_count=messaging_service.count_unread(user.id))


def store(post_id=None):
    form = ContactAuthorForm()
    if post_id is None:
        ids = parse_ids([request.form.get('post_id', '')])
        post_id = ids[0] if ids else None
    fallback = request.referrer or url_for('main.index')
    if post_id is None:
        return respond('No post selected.', 'error', redirect_to=fallback, status=400)
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=fallback, status=400)

    sender = account_user() if current_user.is_authenticated else None
    try:
        thread = messaging_service.contact_author(post_id, form.body.data, sender=sender,
                                                  name=form.name.data, email=form.email.data,
                                                  phone=form.phone.data)
    except NotFoundError:
        raise
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=fallback, status=400)

    redirect_to = url_for('account.messages_show', thread_id=thread.id) if sender else fallback
    return respond('Your message has been sent.', 'success', redirect_to=redirect_to,
                   status=201, thread_id=thread.id)


def show(thread_id):
    user = account_user()
    thread = messaging_service.open_thread(user.id, thread_id)
    return render_template('account/message.html', title=thread.subject, thread=thread, form=ReplyForm())


def update(thread_id):
    """Reply to a thread."""
    user = account_user()
    messaging_service.get_user_thread(user.id, thread_id)
    form = ReplyForm()
    redirect_to = url_for('account.messages_show', thread_id=thread_id)
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    try:
        messaging_service.reply(user, thread_id, form.body.data)
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)
    return respond('Your reply has been sent.', 'success', redirect_to=redirect_to)


def actions(thread_id=None):
    """Single action via GET ``{id}/actions?type=``, bulk via POST ``entries``."""
    user = account_user()
    action = request.values.get('type', '')
    redirect_to = url_for('account.messages')
    if thread_id is not None:
        messaging_service.get_user_thread(user.id, thread_id)
        ids = [thread_id]
    else:
        ids = selected_ids(request.form)
        if not ids and action != 'markAllAsRead':
            return respond('No message selected.', 'error', redirect_to=redirect_to, status=400)
    try:
        changed = messaging_service.apply_action(user.id, action, ids)
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)
    return respond(f'{changed} message(s) updated.', 'success', redirect_to=redirect_to, changed=changed)


def confirm_destroy(thread_id):
    user = account_user()
    thread = messaging_service.get_user_thread(user.id, thread_id)
    return render_template('account/confirm_delete.html', title='Delete message',
                           entry_id=thread.id, entry_label=thread.subject,
                           action=url_for('account.messages_delete'),
                           cancel_url=url_for('account.messages'))


def destroy():
    user = account_user()
    redirect_to = url_for('account.messages')
    ids = selected_ids(request.form)
    if not ids:
        return respond('No message selected.', 'error', redirect_to=redirect_to, status=400)
    deleted = messaging_service.delete_threads(user.id, ids)
    if not deleted:
        return respond('No message was deleted.', 'warning', redirect_to=redirect_to, status=404)
    return respond(f'{deleted} message(s) deleted.', 'success', redirect_to=redirect_to, deleted=deleted)
