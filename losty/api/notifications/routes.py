# losty/api/notifications/routes.py
import logging
from flask import Blueprint, jsonify, Response, current_app, stream_with_context
from flask_jwt_extended import jwt_required, get_jwt_identity

from losty.api.notifications.schemas import NotificationResponseSchema
from losty.services.live_query import LiveQuery, sse_stream

notifications_bp = Blueprint('notifications_bp', __name__)

@notifications_bp.route('', methods=['GET'])
@jwt_required()
def get_notifications():
    """내 알림 목록을 최신순으로 조회합니다."""
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    try:
        notifications = notification_service.get_notifications(user_id)
        return jsonify({"notifications": NotificationResponseSchema(many=True).dump(notifications)}), 200
    except Exception as e:
        logging.error(f"알림 목록 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "NOTIFICATION_FETCH_FAILED", "message": "Failed to load notifications"}), 500


@notifications_bp.route('/unread-count', methods=['GET'])
@jwt_required()
def get_unread_count():
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    try:
        return jsonify({"unread_count": notification_service.count_unread(user_id)}), 200
    except Exception as e:
        logging.error(f"읽지 않은 알림 수 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "NOTIFICATION_FETCH_FAILED", "message": "Failed to load unread count"}), 500


@notifications_bp.route('/unread-count/stream', methods=['GET'])
@jwt_required()
def stream_unread_count():
    """읽지 않은 알림 수 실시간 스트림(SSE). 'unread_count' 이벤트로 개수를 보냅니다."""
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    live_query = LiveQuery(notification_service.unread_query(user_id), lambda doc: doc.id)
    render = lambda ids: {"unread_count": len(ids)}
    heartbeat = current_app.config.get('LIVE_STREAM_HEARTBEAT_SECONDS', 15)
    return Response(
        stream_with_context(sse_stream(live_query, "unread_count", render, heartbeat)),
        mimetype='text/event-stream'
    )


@notifications_bp.route('/<string:notification_id>/read', methods=['POST'])
@jwt_required()
def mark_notification_as_read(notification_id: str):
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    try:
        notification_service.mark_as_read(user_id, notification_id)
        return jsonify({"message": "Notification marked as read."}), 200
    except ValueError as e:
        return jsonify({"error_code": "NOTIFICATION_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"알림 읽음 처리 중 오류 발생 (notification_id: {notification_id}): {e}", exc_info=True)
        return jsonify({"error_code": "NOTIFICATION_UPDATE_FAILED", "message": "An unknown error occurred."}), 500


@notifications_bp.route('/read-all', methods=['POST'])
@jwt_required()
def mark_all_as_read():
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    try:
        updated = notification_service.mark_all_as_read(user_id)
        return jsonify({"message": "All notifications marked as read.", "updated_count": updated}), 200
    except Exception as e:
        logging.error(f"전체 알림 읽음 처리 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "NOTIFICATION_UPDATE_FAILED", "message": "An unknown error occurred."}), 500
