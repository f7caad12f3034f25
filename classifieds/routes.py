"""Site-level routes: home redirect, public storage files and health check."""

from flask import Blueprint, current_app, jsonify, redirect, send_from_directory, url_for
from flask_login import current_user

from .infrastructure.kuzu_manager import get_kuzu_manager
from .utils.image_processing import get_public_storage_dir

bp = Blueprint('main', __name__)


@bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(url_for('account.overview'))
    return redirect(url_for('auth.login'))


@bp.route('/storage/<path:filename>')
def storage(filename):
    """Serve files from public storage (avatars and other uploads)."""
    resp = send_from_directory(get_public_storage_dir(), filename)
    resp.headers['Cache-Control'] = 'public, max-age=86400'
    return resp


@bp.route('/health')
def health():
    manager = get_kuzu_manager()
    try:
        manager.scalar("RETURN 1 AS ok", operation="health")
        status, code = 'ok', 200
    except RuntimeError as e:
        current_app.logger.error(f"Health check failed: {e}")
        status, code = 'error', 503
    return jsonify({'status': status, 'database': manager.get_health_status()}), code
