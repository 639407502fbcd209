"""IPAM Sync REST API Blueprints."""
import logging

from flask import Blueprint, jsonify

from ipam_sync.core.errors import SyncError

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(SyncError)
def handle_sync_error(error: SyncError):
    if error.status_code >= 500:
        logger.error(f"{error.error_code}: {error.message}")
    return jsonify(error.to_dict()), error.status_code


# Register nested blueprints
from ipam_sync.api.sync import sync_bp
api_bp.register_blueprint(sync_bp, url_prefix="/sync")

from ipam_sync.api.api_connections import api_connections_bp
api_bp.register_blueprint(api_connections_bp, url_prefix="/api-connections")

from ipam_sync.api.google_sheets import google_sheets_bp
api_bp.register_blueprint(google_sheets_bp, url_prefix="/google-sheets")
