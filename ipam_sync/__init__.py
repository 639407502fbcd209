"""IPAM Sync Flask Application Factory."""
import logging

from flask import Flask

from ipam_sync.config import FlaskConfig, settings
from ipam_sync.extensions import db, migrate, init_celery


def _configure_logging():
    """Configure the root logger once, from LOG_LEVEL."""
    root = logging.getLogger()
    if root.hasHandlers():
        return

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)-8s - %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def create_app(config_class=FlaskConfig):
    """Create and configure the Flask application."""
    _configure_logging()

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure ProxyFix for Nginx/Reverse Proxy
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(
        app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    init_celery(app)

    # Models must be imported before migrations / create_all see the metadata
    from ipam_sync import models  # noqa: F401

    # Register API blueprint
    from ipam_sync.api import api_bp
    app.register_blueprint(api_bp, url_prefix="/api")

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Register commands
    from ipam_sync.commands import create_user_command, issue_token_command, sync_command
    app.cli.add_command(create_user_command)
    app.cli.add_command(issue_token_command)
    app.cli.add_command(sync_command)

    return app
