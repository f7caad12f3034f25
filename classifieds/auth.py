import logging
import secrets
import smtplib
import time
from functools import wraps

from flask import Blueprint, render_template, redirect, url_for, flash, request, session, current_app, abort
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash, generate_password_hash

from .debug_system import debug_auth, debug_route
from .forms import LoginForm, TwoFactorForm
from .mailer import send_mail
from .services import user_service

logger = logging.getLogger(__name__)

auth = Blueprint('auth', __name__)

TWO_FACTOR_SESSION_KEY = 'two_factor_passed'
_CODE_HASH_KEY = 'two_factor_code_hash'
_CODE_EXPIRES_KEY = 'two_factor_code_expires'


def admin_required(f):
    """
    Decorator to require admin privileges for route access
    Usage: @admin_required
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            flash('Please log in to access this page.', 'error')
            return redirect(url_for('auth.login', next=request.url))

        if not current_user.is_admin:
            flash('Access denied. Admin privileges required.', 'error')
            abort(403)

        return f(*args, **kwargs)
    return decorated_function


def _safe_next(default_endpoint='account.overview'):
    next_page = request.args.get('next')
    # Only local paths; "//host" would leave the site
    if not next_page or not next_page.startswith('/') or next_page.startswith('//'):
        return url_for(default_endpoint)
    return next_page


def send_two_factor_code(user) -> None:
    """Email a fresh numeric code and keep only its hash in the session."""
    length = int(current_app.config.get('TWO_FACTOR_CODE_LENGTH', 6))
    ttl = int(current_app.config.get('TWO_FACTOR_CODE_TTL', 600))
    code = ''.join(str(secrets.randbelow(10)) for _ in range(length))
    session[_CODE_HASH_KEY] = generate_password_hash(code)
    session[_CODE_EXPIRES_KEY] = time.time() + ttl
    send_mail(user.email, f"{current_app.config.get('SITE_NAME', 'Classifieds')} verification code",
              f"Your verification code is {code}. It expires in {ttl // 60} minutes.\n")
    debug_auth(f"Two-factor code sent to user {user.id}")


def verify_two_factor_code(code: str) -> bool:
    code_hash = session.get(_CODE_HASH_KEY)
    expires = session.get(_CODE_EXPIRES_KEY, 0)
    if not code_hash or time.time() > float(expires):
        return False
    if not check_password_hash(code_hash, (code or '').strip()):
        return False
    session.pop(_CODE_HASH_KEY, None)
    session.pop(_CODE_EXPIRES_KEY, None)
    return True


@auth.route('/login', methods=['GET', 'POST'])
@debug_route('AUTH')
def login():
    if current_user.is_authenticated:
        return redirect(url_for('account.overview'))

    form = LoginForm()
    if form.validate_on_submit():
        auth_field = form.auth_field.data
        debug_auth(f"Login form submitted using {auth_field}")
        user = user_service.get_user_by_auth_field(auth_field, form.identifier)

        if user is None or not user.check_password(form.password.data):
            debug_auth("Invalid credentials")
            flash(f'Invalid {auth_field} or password', 'error')
            return render_template('auth/login.html', title='Sign In', form=form)

        if not user.is_active:
            flash('Your account has been deactivated. Please contact an administrator.', 'error')
            return redirect(url_for('auth.login'))

        if user.is_banned:
            flash('This account has been banned.', 'error')
            return redirect(url_for('auth.login'))

        session.permanent = bool(form.remember_me.data)
        login_user(user, remember=form.remember_me.data)
        user_service.record_login(user)
        logger.info(f"User {user.id} logged in with {auth_field}")

        if user.two_factor_enabled:
            session[TWO_FACTOR_SESSION_KEY] = False
            try:
                send_two_factor_code(user)
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Could not send two-factor code to user {user.id}: {e}")
                flash('We could not send your verification code. Please try again.', 'error')
            return redirect(url_for('auth.two_factor', next=request.args.get('next')))

        session[TWO_FACTOR_SESSION_KEY] = True
        flash(f'Welcome back, {user.name}!', 'success')
        return redirect(_safe_next())

    return render_template('auth/login.html', title='Sign In', form=form)


@auth.route('/two-factor', methods=['GET', 'POST'])
@login_required
def two_factor():
    if not current_user.two_factor_enabled or session.get(TWO_FACTOR_SESSION_KEY):
        return redirect(_safe_next())

    if request.method == 'GET' and (request.args.get('resend') or not session.get(_CODE_HASH_KEY)):
        try:
            send_two_factor_code(current_user)
            flash('A verification code has been sent to your email address.', 'info')
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Could not send two-factor code to user {current_user.id}: {e}")
            flash('We could not send your verification code. Please try again.', 'error')

    form = TwoFactorForm()
    if form.validate_on_submit():
        if verify_two_factor_code(form.code.data):
            session[TWO_FACTOR_SESSION_KEY] = True
            debug_auth(f"Two-factor passed for user {current_user.id}")
            flash(f'Welcome back, {current_user.name}!', 'success')
            return redirect(_safe_next())
        flash('Invalid or expired verification code.', 'error')

    return render_template('auth/two_factor.html', title='Two-factor verification', form=form)


@auth.route('/logout')
@login_required
def logout():
    name = current_user.name

    # Clear all user session data first
    session.clear()
    logout_user()
    session.permanent = False

    flash(f'Goodbye, {name}!', 'info')
    return redirect(url_for('auth.login'))
