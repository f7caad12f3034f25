import logging

from flask import flash, redirect, render_template, session, url_for
from flask_login import logout_user

from ..forms import ClosingForm
from ..services import user_service
from .common import account_user

logger = logging.getLogger(__name__)


def show_form():
    return render_template('account/closing.html', title='Close account', form=ClosingForm())


def post_form():
    form = ClosingForm()
    if not form.validate_on_submit() or form.close_account.data != 'yes':
        return redirect(url_for('account.overview'))

    user = account_user()
    user_service.close_account(user)
    session.clear()
    logout_user()
    flash('Your account has been closed.', 'success')
    return redirect(url_for('auth.login'))
