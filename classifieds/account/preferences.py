from flask import jsonify, render_template, url_for

from ..domain.models import Theme
from ..forms import PreferencesForm
from ..notifications import respond
from ..services import AccountError, user_service
from .common import account_user, first_form_error, request_data


def index():
    user = account_user()
    form = PreferencesForm(obj=user)
    return render_template('account/preferences.html', title='Preferences', form=form,
                           themes=Theme.choices())


def update_preferences():
    user = account_user()
    form = PreferencesForm()
    redirect_to = url_for('account.preferences')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    user_service.update_preferences(user, language_code=form.language_code.data,
                                    timezone=form.timezone.data,
                                    accept_marketing_offers=form.accept_marketing_offers.data)
    return respond('Your preferences have been saved.', 'success', redirect_to=redirect_to)


def save_theme_preference():
    """AJAX endpoint storing the light/dark/system choice."""
    user = account_user()
    data = request_data()
    theme = str(data.get('theme') or '').strip().lower()
    try:
        user_service.save_theme(user, theme)
    except AccountError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({'success': True, 'theme': theme})
