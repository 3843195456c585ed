import logging
import os

from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask, jsonify

from classtrack.config import config_map
from classtrack.extensions import db, login_manager, migrate, csrf

__version__ = '0.3.0'


def create_app(config_name=None):
    """Application factory for creating the Flask app instance.

    Args:
        config_name: Configuration name ('development', 'production' or
                     'testing'). Defaults to FLASK_ENV or 'development'.

    Returns:
        Configured Flask application instance.
    """
    # Load environment variables from the appropriate .env file
    env = config_name or os.environ.get('FLASK_ENV', 'development')
    root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_file = os.path.join(root_dir, f'.env.{env}')
    if os.path.exists(env_file):
        load_dotenv(env_file)

    # Also load a local .env if it exists (overrides the environment-specific one)
    dotenv_path = os.path.join(root_dir, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path, override=True)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)

    config_class = config_map.get(config_name, config_map['development'])
    app.config.from_object(config_class)

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from classtrack.models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Login required'}), 401

    _register_blueprints(app)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok', 'version': __version__})

    if app.config.get('SCHEDULER_ENABLED'):
        _init_scheduler(app)

    with app.app_context():
        db.create_all()
        _cleanup_stale_runs(app)

    return app


def _configure_logging(app):
    """Set up RotatingFileHandler on the root logger."""
    max_bytes = app.config.get('LOG_FILE_MAX_BYTES', 0)
    if not max_bytes:
        return

    log_dir = os.path.join(app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'app.log')
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=app.config.get('LOG_FILE_BACKUP_COUNT', 3),
    )
    handler.setFormatter(logging.Formatter(
        app.config.get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    ))
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level == logging.WARNING:
        root.setLevel(logging.DEBUG)


def _cleanup_stale_runs(app):
    """Mark stale running SweepRuns as failed on startup."""
    from classtrack.models import SweepRun
    try:
        count = SweepRun.cleanup_stale_running()
        if count:
            app.logger.info(f'Cleaned up {count} stale running SweepRun(s)')
    except Exception:
        db.session.rollback()


def _register_blueprints(app):
    """Register all application blueprints."""
    from classtrack.views.auth import auth_bp
    from classtrack.views.submissions import submissions_bp
    from classtrack.views.classes import classes_bp
    from classtrack.views.anti_cheat import anti_cheat_bp

    # JSON API, authenticated by session cookie
    for bp in (auth_bp, submissions_bp, classes_bp, anti_cheat_bp):
        csrf.exempt(bp)

    app.register_blueprint(auth_bp)
    app.register_blueprint(submissions_bp)
    app.register_blueprint(classes_bp)
    app.register_blueprint(anti_cheat_bp)


def _init_scheduler(app):
    """Initialize and start APScheduler for background sweeps."""
    from classtrack.tasks.scheduler import init_scheduler
    init_scheduler(app)
