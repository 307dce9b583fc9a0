# losty/api/uploads/routes.py

import logging
from flask import request, jsonify, Blueprint, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import Schema, fields, validate, ValidationError

uploads_bp = Blueprint('uploads', __name__)

class UploadUrlRequestSchema(Schema):
    """업로드 URL 발급 요청 스키마"""
    upload_type = fields.Str(required=True, validate=validate.OneOf(["post_image", "profile_picture"]))
    filename = fields.Str(required=True)
    content_type = fields.Str(required=True, validate=validate.Regexp(r"^image/", error="이미지 파일만 업로드할 수 있습니다."))


@uploads_bp.route('/url', methods=['POST'])
@jwt_required()
def get_upload_url():
    """
    게시물 이미지/프로필 사진 업로드를 위한 Pre-signed URL을 발급합니다.
    클라이언트는 받은 URL로 직접 PUT 업로드한 뒤, file_path를 게시물 작성 API 등에 전달합니다.
    """
    user_id = get_jwt_identity()
    storage_service = current_app.services['storage']

    try:
        data = UploadUrlRequestSchema().load(request.get_json() or {})
    except ValidationError as err:
        logging.warning(f"URL 발급 요청 실패 (잘못된 파라미터): {err.messages}")
        return jsonify({"error_code": "INVALID_PARAMETERS", "details": err.messages}), 400

    try:
        url_info = storage_service.generate_upload_url(
            user_id, data['upload_type'], data['filename'], data['content_type']
        )
        return jsonify(url_info), 200
    except ValueError as e:
        return jsonify({"error_code": "INVALID_UPLOAD_TYPE", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"Pre-signed URL 생성 중 서버 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "URL_GENERATION_FAILED", "message": "URL 생성 중 서버 오류가 발생했습니다."}), 500
