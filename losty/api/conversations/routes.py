# losty/api/conversations/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app, stream_with_context
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from losty.api.conversations.schemas import (
    ConversationCreateSchema, MessageCreateSchema, ConversationResponseSchema, MessageResponseSchema
)
from losty.models.message import Message
from losty.services.live_query import LiveQuery, sse_stream

conversations_bp = Blueprint('conversations_bp', __name__)

def _error_response(e: Exception, fallback_code: str, log_message: str):
    """대화방 API 공통 예외 처리"""
    if isinstance(e, ValidationError):
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    if isinstance(e, PermissionError):
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    if isinstance(e, LookupError):
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    if isinstance(e, ValueError):
        return jsonify({"error_code": "INVALID_REQUEST", "message": str(e)}), 400
    logging.error(f"{log_message}: {e}", exc_info=True)
    return jsonify({"error_code": fallback_code, "message": "An unknown error occurred."}), 500


@conversations_bp.route('', methods=['GET'])
@jwt_required()
def get_conversations():
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        conversations = conversation_service.get_conversations(user_id)
        return jsonify({"conversations": ConversationResponseSchema(many=True).dump(conversations)}), 200
    except Exception as e:
        return _error_response(e, "CONVERSATION_FETCH_FAILED", f"대화방 목록 조회 중 오류 발생 (user_id: {user_id})")


@conversations_bp.route('', methods=['POST'])
@jwt_required()
def get_or_create_conversation():
    """게시물 작성자와의 대화방을 반환합니다. 없으면 새로 만듭니다."""
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        data = ConversationCreateSchema().load(request.get_json() or {})
        conversation = conversation_service.get_or_create_conversation(user_id, data['post_id'])
        return jsonify(ConversationResponseSchema().dump(conversation)), 200
    except Exception as e:
        return _error_response(e, "CONVERSATION_CREATION_FAILED", f"대화방 생성 중 오류 발생 (user_id: {user_id})")


@conversations_bp.route('/<string:conversation_id>/messages', methods=['GET'])
@jwt_required()
def get_messages(conversation_id: str):
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        messages = conversation_service.get_messages(conversation_id, user_id)
        return jsonify({"messages": MessageResponseSchema(many=True).dump(messages)}), 200
    except Exception as e:
        return _error_response(e, "MESSAGE_FETCH_FAILED", f"메시지 조회 중 오류 발생 (conversation_id: {conversation_id})")


@conversations_bp.route('/<string:conversation_id>/messages/stream', methods=['GET'])
@jwt_required()
def stream_messages(conversation_id: str):
    """대화방 메시지 실시간 스트림(SSE). 변경될 때마다 'messages' 이벤트로 전체 목록을 보냅니다."""
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        conversation_service.get_conversation(conversation_id, user_id)
    except Exception as e:
        return _error_response(e, "MESSAGE_FETCH_FAILED", f"메시지 스트림 시작 중 오류 발생 (conversation_id: {conversation_id})")

    live_query = LiveQuery(
        conversation_service.messages_query(conversation_id),
        lambda doc: Message.from_dict(doc.to_dict(), doc.id)
    )
    render = lambda messages: MessageResponseSchema(many=True).dump(messages)
    heartbeat = current_app.config.get('LIVE_STREAM_HEARTBEAT_SECONDS', 15)
    return Response(
        stream_with_context(sse_stream(live_query, "messages", render, heartbeat)),
        mimetype='text/event-stream'
    )


@conversations_bp.route('/<string:conversation_id>/messages', methods=['POST'])
@jwt_required()
def send_message(conversation_id: str):
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        data = MessageCreateSchema().load(request.get_json() or {})
        message = conversation_service.send_message(conversation_id, user_id, data['text'])
        return jsonify(MessageResponseSchema().dump(message)), 201
    except Exception as e:
        return _error_response(e, "MESSAGE_SEND_FAILED", f"메시지 전송 중 오류 발생 (conversation_id: {conversation_id})")


@conversations_bp.route('/<string:conversation_id>/read', methods=['POST'])
@jwt_required()
def mark_conversation_read(conversation_id: str):
    conversation_service = current_app.services['conversations']
    user_id = get_jwt_identity()
    try:
        updated = conversation_service.mark_conversation_read(conversation_id, user_id)
        return jsonify({"message": "Conversation marked as read.", "updated_count": updated}), 200
    except Exception as e:
        return _error_response(e, "CONVERSATION_UPDATE_FAILED", f"읽음 처리 중 오류 발생 (conversation_id: {conversation_id})")
