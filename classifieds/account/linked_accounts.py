from flask import abort, current_app, render_template, url_for

from ..notifications import respond
from ..services import AccountError, user_service
from .common import account_user


def _providers():
    return list(current_app.config.get('SOCIAL_PROVIDERS', []))


def index():
    user = account_user()
    linked = {account.provider: account for account in user_service.list_linked_accounts(user)}
    providers = [{'name': name, 'label': name.title(), 'account': linked.get(name)} for name in _providers()]
    return render_template('account/linked_accounts.html', title='Linked accounts', providers=providers)


def disconnect(provider):
    if provider not in _providers():
        abort(404)
    user = account_user()
    redirect_to = url_for('account.linked_accounts')
    try:
        user_service.disconnect_account(user, provider)
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)
    return respond(f'Your {provider.title()} account has been disconnected.', 'success', redirect_to=redirect_to)
