# losty/api/bookmarks/routes.py
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from losty.api.bookmarks.schemas import BookmarkToggleResponseSchema, BookmarkListResponseSchema

bookmarks_bp = Blueprint('bookmarks_bp', __name__)

@bookmarks_bp.route('', methods=['GET'])
@jwt_required()
def get_bookmarks():
    bookmark_service = current_app.services['bookmarks']
    user_id = get_jwt_identity()
    try:
        post_ids = bookmark_service.get_bookmarked_post_ids(user_id)
        return jsonify(BookmarkListResponseSchema().dump({"post_ids": post_ids})), 200
    except Exception as e:
        logging.error(f"북마크 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "BOOKMARK_FETCH_FAILED", "message": "Failed to load bookmarks"}), 500


@bookmarks_bp.route('/<string:post_id>', methods=['POST'])
@jwt_required()
def toggle_bookmark(post_id: str):
    """북마크를 토글합니다. 응답의 bookmarked 값이 변경 후 상태입니다."""
    bookmark_service = current_app.services['bookmarks']
    user_id = get_jwt_identity()
    try:
        bookmarked = bookmark_service.toggle_bookmark(user_id, post_id)
        return jsonify(BookmarkToggleResponseSchema().dump({"post_id": post_id, "bookmarked": bookmarked})), 200
    except Exception as e:
        logging.error(f"북마크 변경 중 오류 발생 (user_id: {user_id}, post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "BOOKMARK_UPDATE_FAILED", "message": "An unknown error occurred."}), 500
