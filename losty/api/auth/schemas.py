# losty/api/auth/schemas.py
from marshmallow import Schema, fields, validate, ValidationError

def _not_blank(value: str):
    if not value or not value.strip():
        raise ValidationError("Please fill in all fields.")

class RegisterSchema(Schema):
    """회원가입 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True, error_messages={"invalid": "Please enter a valid email address."})
    full_name = fields.Str(required=True, validate=_not_blank)
    username = fields.Str(required=True, validate=_not_blank)
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters.")
    )
    phone_number = fields.Str(load_default="")

class LoginSchema(Schema):
    """로그인 요청 스키마. credential에는 이메일 또는 전화번호가 올 수 있습니다."""
    credential = fields.Str(required=True, validate=_not_blank)
    password = fields.Str(required=True, load_only=True, validate=_not_blank)

class GoogleSignInSchema(Schema):
    """Google 로그인 요청 스키마"""
    id_token = fields.Str(
        required=True,
        metadata={"description": "클라이언트에서 받은 Google ID 토큰"}
    )

class PasswordResetSchema(Schema):
    email = fields.Email(required=True, error_messages={"invalid": "Please enter a valid email address."})

class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
