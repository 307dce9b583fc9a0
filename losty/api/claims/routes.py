# losty/api/claims/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from losty.api.claims.schemas import ClaimCreateSchema, ClaimDecisionSchema, ClaimResponseSchema

claims_bp = Blueprint('claims_bp', __name__)

@claims_bp.route('', methods=['POST'])
@jwt_required()
def create_claim():
    """다른 사용자의 게시물에 '내 물건' 요청을 보냅니다."""
    claim_service = current_app.services['claims']
    user_id = get_jwt_identity()
    try:
        data = ClaimCreateSchema().load(request.get_json() or {})
        claim = claim_service.create_claim(user_id, data['post_id'])
        return jsonify({
            "message": "Claim request sent!",
            "claim": ClaimResponseSchema().dump(claim)
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except LookupError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "CLAIM_NOT_ALLOWED", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"클레임 생성 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CLAIM_CREATION_FAILED", "message": "An unknown error occurred."}), 500


@claims_bp.route('/mine', methods=['GET'])
@jwt_required()
def get_my_claims():
    claim_service = current_app.services['claims']
    user_id = get_jwt_identity()
    try:
        claims = claim_service.get_my_claims(user_id)
        return jsonify({"claims": ClaimResponseSchema(many=True).dump(claims)}), 200
    except Exception as e:
        logging.error(f"내 클레임 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CLAIM_FETCH_FAILED", "message": "Failed to load claims"}), 500


@claims_bp.route('/received', methods=['GET'])
@jwt_required()
def get_claims_for_my_posts():
    """내 게시물에 들어온 클레임 목록"""
    claim_service = current_app.services['claims']
    user_id = get_jwt_identity()
    try:
        claims = claim_service.get_claims_for_my_posts(user_id)
        return jsonify({"claims": ClaimResponseSchema(many=True).dump(claims)}), 200
    except Exception as e:
        logging.error(f"받은 클레임 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CLAIM_FETCH_FAILED", "message": "Failed to load claims"}), 500


def _decide_claim(claim_id: str, approve: bool):
    claim_service = current_app.services['claims']
    user_id = get_jwt_identity()
    try:
        data = ClaimDecisionSchema().load(request.get_json(silent=True) or {})
        if approve:
            claim = claim_service.approve_claim(claim_id, user_id, data['notification_id'])
        else:
            claim = claim_service.reject_claim(claim_id, user_id, data['notification_id'])
        return jsonify(ClaimResponseSchema().dump(claim)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except LookupError as e:
        return jsonify({"error_code": "CLAIM_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "CLAIM_ALREADY_DECIDED", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"클레임 처리 중 오류 발생 (claim_id: {claim_id}, approve: {approve}): {e}", exc_info=True)
        return jsonify({"error_code": "CLAIM_DECISION_FAILED", "message": "An unknown error occurred."}), 500


@claims_bp.route('/<string:claim_id>/approve', methods=['POST'])
@jwt_required()
def approve_claim(claim_id: str):
    """[게시물 작성자 전용] 클레임을 승인합니다. 같은 게시물의 다른 대기 중 클레임은 거절됩니다."""
    return _decide_claim(claim_id, approve=True)


@claims_bp.route('/<string:claim_id>/reject', methods=['POST'])
@jwt_required()
def reject_claim(claim_id: str):
    """[게시물 작성자 전용] 클레임을 거절합니다."""
    return _decide_claim(claim_id, approve=False)
