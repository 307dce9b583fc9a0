# losty/api/posts/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from losty.models.post import PostStatus, PostType

# --- API 요청 스키마 ---

class PostCreateSchema(Schema):
    """POST /api/posts 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    category = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    location = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    type = fields.Enum(PostType, by_value=True, load_default=PostType.LOST)
    file_paths = fields.List(fields.Str(), load_default=list)

class PostUpdateSchema(Schema):
    """PATCH /api/posts/{post_id} 요청 본문. 전달된 필드만 수정합니다."""
    title = fields.Str(validate=validate.Length(min=1, max=100))
    description = fields.Str(validate=validate.Length(min=1, max=2000))
    category = fields.Str(validate=validate.Length(min=1, max=50))
    location = fields.Str(validate=validate.Length(min=1, max=200))

class PostFeedQuerySchema(Schema):
    """GET /api/posts 쿼리 파라미터"""
    class Meta:
        unknown = EXCLUDE

    type = fields.Enum(PostType, by_value=True, load_default=None)

# --- API 응답 스키마 ---

class PostResponseSchema(Schema):
    """게시글 응답 JSON 형식을 정의합니다."""
    post_id = fields.Str(dump_only=True)
    title = fields.Str(required=True)
    description = fields.Str(required=True)
    category = fields.Str(required=True)
    location = fields.Str(required=True)
    image_urls = fields.List(fields.Str(), required=True)
    author_id = fields.Str(required=True)
    author_name = fields.Str(required=True)
    author_image_url = fields.Str(required=True)
    status = fields.Enum(PostStatus, by_value=True)
    type = fields.Enum(PostType, by_value=True)
    created_at = fields.DateTime(required=True)
