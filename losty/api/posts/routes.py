# losty/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app, stream_with_context
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from losty.api.posts.schemas import (
    PostCreateSchema, PostUpdateSchema, PostFeedQuerySchema, PostResponseSchema
)
from losty.models.post import Post
from losty.services.live_query import LiveQuery, sse_stream

posts_bp = Blueprint('posts_bp', __name__)

@posts_bp.route('', methods=['GET'])
@jwt_required()
def get_feed():
    """active 상태인 게시글 피드를 최신순으로 조회합니다. (?type=LOST|FOUND)"""
    post_service = current_app.services['posts']
    try:
        params = PostFeedQuerySchema().load(request.args)
        posts = post_service.get_feed(params['type'])
        return jsonify({"posts": PostResponseSchema(many=True).dump(posts)}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"게시글 피드 조회 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "FEED_FETCH_FAILED", "message": "Failed to load posts"}), 500


@posts_bp.route('/stream', methods=['GET'])
@jwt_required()
def stream_feed():
    """
    게시글 피드 실시간 스트림(SSE).
    Firestore 변경이 생길 때마다 'feed' 이벤트로 전체 피드를 다시 보냅니다.
    """
    post_service = current_app.services['posts']
    try:
        params = PostFeedQuerySchema().load(request.args)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    post_type = params['type']
    live_query = LiveQuery(post_service.feed_query(), lambda doc: Post.from_dict(doc.to_dict(), doc.id))
    render = lambda posts: PostResponseSchema(many=True).dump(post_service.filter_feed(posts, post_type))
    heartbeat = current_app.config.get('LIVE_STREAM_HEARTBEAT_SECONDS', 15)
    return Response(
        stream_with_context(sse_stream(live_query, "feed", render, heartbeat)),
        mimetype='text/event-stream'
    )


@posts_bp.route('/mine', methods=['GET'])
@jwt_required()
def get_my_posts():
    """내가 작성한 게시글 전체(claimed 포함)를 조회합니다."""
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        posts = post_service.get_posts_by_author(user_id)
        return jsonify({"posts": PostResponseSchema(many=True).dump(posts)}), 200
    except Exception as e:
        logging.error(f"내 게시글 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FEED_FETCH_FAILED", "message": "Failed to load my posts"}), 500


@posts_bp.route('/<string:post_id>', methods=['GET'])
@jwt_required()
def get_post(post_id: str):
    post_service = current_app.services['posts']
    try:
        post = post_service.get_post(post_id)
        if not post:
            return jsonify({"error_code": "POST_NOT_FOUND", "message": "Post not found."}), 404
        return jsonify(PostResponseSchema().dump(post)), 200
    except Exception as e:
        logging.error(f"게시글 조회 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "POST_FETCH_FAILED", "message": "An unknown error occurred."}), 500


@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    """
    새 게시글을 작성합니다.
    - file_paths: /api/uploads/url 로 발급받아 업로드한 'post_images/{uid}/...' 경로 목록
    """
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        data = PostCreateSchema().load(request.get_json() or {})
        new_post = post_service.create_post(
            user_id,
            title=data['title'],
            description=data['description'],
            category=data['category'],
            location=data['location'],
            file_paths=data['file_paths'],
            post_type=data['type']
        )
        return jsonify(PostResponseSchema().dump(new_post)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FILE_PATH", "message": str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "FILE_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 작성 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "POST_CREATION_FAILED", "message": "An unknown error occurred."}), 500


@posts_bp.route('/<string:post_id>', methods=['PATCH'])
@jwt_required()
def update_post(post_id: str):
    """[작성자 전용] 게시글 내용을 수정합니다."""
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        updates = PostUpdateSchema().load(request.get_json() or {})
        updated_post = post_service.update_post(post_id, user_id, updates)
        return jsonify(PostResponseSchema().dump(updated_post)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 수정 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "POST_UPDATE_FAILED", "message": "An unknown error occurred."}), 500


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """[작성자 전용] 게시글과 첨부 이미지를 삭제합니다."""
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        post_service.delete_post(post_id, user_id)
        return Response(status=204)
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 삭제 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "POST_DELETION_FAILED", "message": "An unknown error occurred."}), 500
