"""Google Sheets endpoints - the public sheet-fetch capability."""
import logging

from flask import Blueprint, jsonify, request

from ipam_sync.auth import require_auth
from ipam_sync.sources.sheets import DEFAULT_RANGE, DEFAULT_SHEET, extract_spreadsheet_id, read_public_sheet

logger = logging.getLogger(__name__)

google_sheets_bp = Blueprint("google_sheets", __name__)


@google_sheets_bp.route("/fetch", methods=["POST"])
@require_auth(allow_system=True)
def fetch_public_sheet():
    """Read a link-shared spreadsheet into records keyed by its header row."""
    data = request.get_json(silent=True) or {}

    spreadsheet_url = data.get("spreadsheetUrl")
    if not spreadsheet_url:
        return jsonify({"error": "Spreadsheet URL is required"}), 400
    if not extract_spreadsheet_id(spreadsheet_url):
        return jsonify({"error": "Not a valid Google Sheets URL"}), 400

    spreadsheet_id, records, method = read_public_sheet(
        spreadsheet_url,
        sheet_name=data.get("sheetName") or DEFAULT_SHEET,
        range_notation=data.get("range") or DEFAULT_RANGE,
    )
    logger.debug(f"Spreadsheet {spreadsheet_id}: {len(records)} rows via {method}")

    return jsonify({
        "success": True,
        "data": records,
        "spreadsheetId": spreadsheet_id,
        "method": method,
    })
