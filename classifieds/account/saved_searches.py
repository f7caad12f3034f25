from flask import render_template, request, url_for

from ..notifications import respond
from ..services import AccountError, saved_search_service
from ..utils.http import selected_ids
from .common import account_user, listing_args, request_data


def store():
    """Save the search described by a query string (``q``, ``c``, ``l``)."""
    user = account_user()
    data = request_data()
    query_string = str(data.get('query') or request.query_string.decode('utf-8', 'ignore'))
    try:
        search, created = saved_search_service.store(user.id, query_string)
    except AccountError as e:
        return respond(str(e), 'error', status=400)
    message = 'Search saved.' if created else 'This search was already saved.'
    return respond(message, 'success', redirect_to=url_for('account.saved_searches'),
                   search_id=search.id, result_count=search.result_count)


def index():
    user = account_user()
    page, per_page = listing_args()
    searches = saved_search_service.list_searches(user.id, page=page, per_page=per_page)
    return render_template('account/saved_searches.html', title='Saved searches', searches=searches)


def show(search_id):
    user = account_user()
    search = saved_search_service.get_user_search(user.id, search_id)
    posts = saved_search_service.run(search)
    return render_template('account/saved_search.html', title=f'Search: {search.keyword or "all"}',
                           search=search, posts=posts)


def confirm_destroy(search_id):
    user = account_user()
    search = saved_search_service.get_user_search(user.id, search_id)
    return render_template('account/confirm_delete.html', title='Delete saved search',
                           entry_id=search.id, entry_label=search.keyword or search.query_string,
                           action=url_for('account.saved_searches_delete'),
                           cancel_url=url_for('account.saved_searches'))


def destroy():
    user = account_user()
    redirect_to = url_for('account.saved_searches')
    ids = selected_ids(request.form)
    if not ids:
        return respond('No saved search selected.', 'error', redirect_to=redirect_to, status=400)
    deleted = saved_search_service.delete_searches(user.id, ids)
    if not deleted:
        return respond('No saved search was deleted.', 'warning', redirect_to=redirect_to, status=404)
    return respond(f'{deleted} saved search(es) deleted.', 'success', redirect_to=redirect_to, deleted=deleted)
