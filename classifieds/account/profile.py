import logging

from flask import render_template, url_for

from ..forms import ProfileForm, PhotoForm
from ..notifications import respond
from ..services import AccountError, user_service
from ..utils.image_processing import delete_stored_file, process_avatar_from_filestorage
from .common import account_user, first_form_error

logger = logging.getLogger(__name__)


def index():
    user = account_user()
    form = ProfileForm(obj=user)
    return render_template('account/profile.html', title='Profile', form=form, photo_form=PhotoForm())


def update_details():
    user = account_user()
    form = ProfileForm()
    redirect_to = url_for('account.profile')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    try:
        user_service.update_details(
            user,
            name=form.name.data,
            email=form.email.data,
            username=form.username.data,
            phone=form.phone.data,
            phone_hidden=form.phone_hidden.data,
            gender_id=form.gender_value,
            about=form.about.data,
        )
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)
    return respond('Your details have been updated.', 'success', redirect_to=redirect_to)


def update_photo():
    user = account_user()
    form = PhotoForm()
    redirect_to = url_for('account.profile')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    try:
        photo_path = process_avatar_from_filestorage(form.photo.data)
    except ValueError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)

    previous = user_service.set_photo(user, photo_path)
    if previous and previous != photo_path:
        delete_stored_file(previous)
    return respond('Your photo has been updated.', 'success', redirect_to=redirect_to,
                   photo_url=url_for('main.storage', filename=photo_path))


def delete_photo():
    user = account_user()
    previous = user_service.set_photo(user, None)
    if previous:
        delete_stored_file(previous)
        logger.info(f"User {user.id} removed their photo")
    return respond('Your photo has been removed.', 'success', redirect_to=url_for('account.profile'))
