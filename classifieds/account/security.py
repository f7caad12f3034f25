from flask import render_template, session, url_for

from ..auth import TWO_FACTOR_SESSION_KEY
from ..forms import ChangePasswordForm, TwoFactorSetupForm
from ..notifications import respond
from ..services import AccountError, user_service
from .common import account_user, first_form_error


def index():
    user = account_user()
    return render_template('account/security.html', title='Security',
                           password_form=ChangePasswordForm(),
                           two_factor_form=TwoFactorSetupForm(two_factor_enabled=user.two_factor_enabled),
                           requirements=user.get_password_requirements())


def change_password():
    user = account_user()
    form = ChangePasswordForm()
    redirect_to = url_for('account.security')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    try:
        user_service.change_password(user, form.current_password.data, form.new_password.data)
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)
    return respond('Your password has been changed.', 'success', redirect_to=redirect_to)


def setup_two_factor():
    user = account_user()
    form = TwoFactorSetupForm()
    redirect_to = url_for('account.security')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    enabled = bool(form.two_factor_enabled.data)
    user_service.set_two_factor(user, enabled)
    if enabled:
        # The current session is already trusted
        session[TWO_FACTOR_SESSION_KEY] = True
        return respond('Two-factor authentication is now enabled.', 'success', redirect_to=redirect_to)
    return respond('Two-factor authentication is now disabled.', 'success', redirect_to=redirect_to)
