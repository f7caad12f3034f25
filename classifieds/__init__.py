"""
Flask application factory for the classifieds account area.

Kuzu is the only data store; the connection manager lives in
``app.extensions['kuzu_manager']``.
"""

import os
import logging

import click
from flask import Flask, jsonify, redirect, render_template, request, url_for
from flask_login import LoginManager, current_user
from flask_session import Session
from flask_wtf.csrf import CSRFError, CSRFProtect

from config import Config

logger = logging.getLogger(__name__)

login_manager = LoginManager()
csrf = CSRFProtect()
sess = Session()


@login_manager.user_loader
def load_user(user_id):
    """Load user from Kuzu via the user service."""
    from .services import user_service
    return user_service.get_user_by_id(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    """Custom unauthorized handler that returns JSON for AJAX/API requests."""
    from .notifications import notify, wants_json
    if wants_json():
        return jsonify({
            'success': False,
            'error': 'Authentication required',
            'message': 'Please log in to continue.',
        }), 401

    # For web requests, redirect to login page as usual
    notify(login_manager.login_message, login_manager.login_message_category)
    return redirect(url_for('auth.login', next=request.full_path.rstrip('?')))


def _configure_logging(app):
    # Configure Python logging level from LOG_LEVEL (default ERROR)
    log_level_name = str(app.config.get('LOG_LEVEL', 'ERROR')).upper()
    log_level = getattr(logging, log_level_name, logging.ERROR)
    logging.getLogger().setLevel(log_level)
    app.logger.setLevel(log_level)
    logging.getLogger('asyncio').setLevel(logging.INFO)


def _init_database(app):
    from .infrastructure.kuzu_manager import KuzuManager
    from .infrastructure.kuzu_schema import ensure_schema, seed_packages

    manager = KuzuManager(app.config['KUZU_DB_PATH'])
    app.extensions['kuzu_manager'] = manager
    ensure_schema(manager)
    seed_packages(manager, app.config.get('DEFAULT_PACKAGES', []))
    return manager


def _register_error_handlers(app):
    from .notifications import wants_json
    from .services import NotFoundError

    def _error_response(status, title, message):
        if wants_json():
            return jsonify({'success': False, 'error': title, 'message': message}), status
        return render_template('errors/error.html', title=title, status=status, message=message), status

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        """Handle CSRF errors with user-friendly messages."""
        if wants_json():
            from flask_wtf.csrf import generate_csrf
            return jsonify({
                'success': False,
                'error': 'CSRF token missing or invalid',
                'message': 'Please refresh the page and try again. Include X-CSRFToken header for AJAX requests.',
                'csrf_token': generate_csrf()
            }), 400
        from flask import flash
        flash('Security token expired. Please try again.', 'error')
        return redirect(request.referrer or url_for('main.index'))

    @app.errorhandler(400)
    def bad_request(e):
        return _error_response(400, 'Bad request', getattr(e, 'description', str(e)))

    @app.errorhandler(403)
    def forbidden(e):
        return _error_response(403, 'Forbidden', 'You do not have permission to access this page.')

    @app.errorhandler(404)
    def not_found(e):
        return _error_response(404, 'Page not found', 'The page you requested could not be found.')

    @app.errorhandler(NotFoundError)
    def domain_not_found(e):
        return _error_response(404, 'Page not found', str(e))

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error_response(405, 'Method not allowed', 'This action is not available for this address.')


def _register_template_helpers(app):
    from .impersonation import register_template_helpers

    register_template_helpers(app)

    @app.context_processor
    def inject_csrf_token():
        """Make CSRF token available in all templates."""
        from flask_wtf.csrf import generate_csrf
        return dict(csrf_token=generate_csrf)

    @app.context_processor
    def inject_site():
        theme = 'system'
        if current_user.is_authenticated:
            theme = getattr(current_user, 'theme', theme) or theme
        return dict(site_name=app.config.get('SITE_NAME', 'Classifieds'), current_theme=theme)

    @app.context_processor
    def inject_active_link():
        def active_link(*endpoints, css_class='active'):
            """CSS class for sidebar links whose endpoint matches the request."""
            endpoint = request.endpoint or ''
            for candidate in endpoints:
                if endpoint == candidate or (candidate.endswith('*') and endpoint.startswith(candidate[:-1])):
                    return css_class
            return ''
        return dict(active_link=active_link)


def _register_cli(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Create missing Kuzu tables and seed the default packages."""
        from .infrastructure.kuzu_schema import ensure_schema, seed_packages
        manager = app.extensions['kuzu_manager']
        ensure_schema(manager)
        created = seed_packages(manager, app.config.get('DEFAULT_PACKAGES', []))
        click.echo(f"Database ready at {manager.database_path} ({created} packages seeded)")

    @app.cli.command('create-user')
    @click.option('--name', required=True)
    @click.option('--email', required=True)
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option('--admin', is_flag=True, default=False, help='Grant admin privileges')
    def create_user_command(name, email, password, admin):
        """Create a user account."""
        from .domain.models import User
        from .services import AccountError, user_service
        if not User.is_password_strong(password):
            raise click.ClickException('Password must meet the following requirements: '
                                       + '; '.join(User.get_password_requirements()))
        try:
            user = user_service.create_user(name=name, email=email, password=password, is_admin=admin)
        except AccountError as e:
            raise click.ClickException(str(e))
        click.echo(f"Created user {user.id} ({user.email})")

    @app.cli.command('confirm-payment')
    @click.argument('payment_id', type=int)
    def confirm_payment_command(payment_id):
        """Confirm that a pending subscription payment was received."""
        from .services import AccountError, subscription_service
        try:
            payment = subscription_service.confirm_payment(payment_id)
        except AccountError as e:
            raise click.ClickException(str(e))
        click.echo(f"Payment {payment.id} ({payment.transaction_ref}) confirmed, "
                   f"active until {payment.period_end:%Y-%m-%d}")

    @app.cli.command('storage-link')
    @click.option('--document-root', default=None, help='Defaults to DOCUMENT_ROOT')
    @click.option('--force', is_flag=True, default=False, help='Replace a symlink pointing elsewhere')
    @click.option('--html', is_flag=True, default=False, help='Separate lines with <br>')
    def storage_link_command(document_root, force, html):
        """Link public/storage to storage/app/public."""
        from .utils.storage_link import StorageLinkError, link_public_storage, render_failure, render_report
        try:
            result = link_public_storage(document_root or app.config.get('DOCUMENT_ROOT'), force=force)
        except StorageLinkError as e:
            click.echo(render_failure(e, html=html))
            raise SystemExit(1)
        click.echo(render_report(result, html=html))


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Explicitly set the secret key for Flask-Session compatibility
    app.secret_key = app.config['SECRET_KEY']
    if not app.secret_key:
        raise RuntimeError("SECRET_KEY must be set in environment or config")

    _init_database(app)
    app.extensions.setdefault('mail_outbox', [])

    # Initialize extensions
    csrf.init_app(app)
    if app.config.get('SESSION_TYPE'):
        os.makedirs(app.config.get('SESSION_FILE_DIR', ''), exist_ok=True)
        sess.init_app(app)  # Initialize Flask-Session
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'  # type: ignore
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    from .utils.http import MethodOverrideMiddleware
    app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)  # type: ignore[method-assign]

    _register_error_handlers(app)
    _register_template_helpers(app)

    # Register application routes via modular blueprints
    from .routes import bp as main_bp
    from .auth import auth
    from .impersonation import impersonate
    from .account import account

    app.register_blueprint(main_bp)
    app.register_blueprint(auth, url_prefix='/auth')
    app.register_blueprint(impersonate)
    app.register_blueprint(account, url_prefix='/' + app.config['ACCOUNT_BASE_PATH'])

    _register_cli(app)

    logger.info(f"Classifieds app created (account area at /{app.config['ACCOUNT_BASE_PATH']})")
    return app
