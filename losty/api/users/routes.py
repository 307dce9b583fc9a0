# losty/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from losty.api.users.schemas import (
    UserProfileResponseSchema, UserPublicResponseSchema,
    DisplayNameUpdateSchema, ProfileImageUpdateSchema
)

users_bp = Blueprint('users_bp', __name__)

@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    """현재 로그인된 사용자의 프로필을 조회합니다."""
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        profile = user_service.get_user_profile(user_id)
        if not profile:
            return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
        return jsonify(UserProfileResponseSchema().dump(profile)), 200
    except Exception as e:
        logging.error(f"프로필 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "PROFILE_FETCH_FAILED", "message": "프로필 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/<string:user_id>', methods=['GET'])
@jwt_required()
def get_user_public_profile(user_id: str):
    """특정 사용자의 공개 프로필(표시 이름, 사진)을 조회합니다."""
    user_service = current_app.services['users']
    try:
        profile = user_service.get_user_profile(user_id)
        if not profile:
            return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
        return jsonify(UserPublicResponseSchema().dump(profile)), 200
    except Exception as e:
        logging.error(f"사용자 프로필 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "PROFILE_FETCH_FAILED", "message": "프로필 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/<string:user_id>/name', methods=['GET'])
@jwt_required()
def get_user_name(user_id: str):
    """대화 상대 등 다른 사용자의 표시 이름만 조회합니다. 없으면 "User"."""
    user_service = current_app.services['users']
    return jsonify({"user_id": user_id, "display_name": user_service.get_user_name(user_id)}), 200


@users_bp.route('/me/display-name', methods=['PATCH'])
@jwt_required()
def update_my_display_name():
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = DisplayNameUpdateSchema().load(request.get_json() or {})
        profile = user_service.update_display_name(user_id, data['display_name'].strip())
        return jsonify(UserProfileResponseSchema().dump(profile)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"이름 변경 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "Failed to update name"}), 500


@users_bp.route('/me/profile-image', methods=['PATCH'])
@jwt_required()
def update_my_profile_image():
    """
    Pre-signed URL로 업로드한 프로필 사진을 현재 사용자에게 연결합니다.
    """
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = ProfileImageUpdateSchema().load(request.get_json() or {})
        profile = user_service.update_profile_image(user_id, data['file_path'])
        return jsonify(UserProfileResponseSchema().dump(profile)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FILE_PATH", "message": str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "FILE_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"프로필 이미지 업데이트 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "프로필 이미지 업데이트 중 서버 오류가 발생했습니다."}), 500
