# losty/api/users/schemas.py
from marshmallow import Schema, fields, validate, ValidationError

def _not_blank(value: str):
    if not value or not value.strip():
        raise ValidationError("Name cannot be empty.")

class UserProfileResponseSchema(Schema):
    """
    GET /api/users/me
    로그인한 사용자 본인의 프로필 응답 스키마.
    """
    uid = fields.Str(required=True, dump_only=True)
    display_name = fields.Str(required=True)
    email = fields.Str(required=True)
    photo_url = fields.Str(required=True)
    phone_number = fields.Str(required=True)

class UserPublicResponseSchema(Schema):
    """
    GET /api/users/{user_id}
    다른 사용자에게 보여줄 공개 정보만 포함합니다. (email, phone_number 제외)
    """
    uid = fields.Str(required=True, dump_only=True)
    display_name = fields.Str(required=True)
    photo_url = fields.Str(required=True)

class DisplayNameUpdateSchema(Schema):
    """PATCH /api/users/me/display-name 요청 본문"""
    display_name = fields.Str(required=True, validate=[validate.Length(min=1, max=50), _not_blank])

class ProfileImageUpdateSchema(Schema):
    """PATCH /api/users/me/profile-image 요청 본문"""
    file_path = fields.Str(required=True, error_messages={"required": "'file_path' 필드가 필요합니다."})
