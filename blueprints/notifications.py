#===========================================================================
#      TRANSACTIONAL EMAIL ENDPOINT
#===========================================================================
from flask import Blueprint, jsonify, request

from logger import notifications_logger as logger
from utils import admin_required
from workflows.notifications import NotificationError, send_notification

notifications_bp = Blueprint("notifications", __name__, url_prefix="/functions")


@notifications_bp.route("/send-notification", methods=["POST"])
@admin_required
def send_notification_route():
    """
    Body: ``{type, recipientEmail, recipientName, details}``.
    Answers 200 with the provider response merged in, or 500 with the error message.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid or missing JSON body"}), 500

    details = payload.get("details") or {}
    if not isinstance(details, dict):
        return jsonify({"error": "details must be an object"}), 500

    try:
        provider_response = send_notification(
            payload.get("type"),
            payload.get("recipientEmail"),
            payload.get("recipientName"),
            details,
        )
    except NotificationError as e:
        logger.error(f"Error in send-notification: {e}")
        return jsonify({"error": str(e)}), 500

    body = {"success": True}
    if isinstance(provider_response, dict):
        body.update(provider_response)
    return jsonify(body), 200
