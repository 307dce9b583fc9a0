# losty/api/conversations/schemas.py
from marshmallow import Schema, fields, validate

class ConversationCreateSchema(Schema):
    """POST /api/conversations 요청 본문. 게시물 작성자와의 대화방을 찾거나 만듭니다."""
    post_id = fields.Str(required=True, validate=validate.Length(min=1))

class MessageCreateSchema(Schema):
    text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))

class ConversationResponseSchema(Schema):
    conversation_id = fields.Str(dump_only=True)
    post_id = fields.Str()
    post_title = fields.Str()
    post_image_url = fields.Str()
    participant1_id = fields.Str()
    participant1_name = fields.Str()
    participant2_id = fields.Str()
    participant2_name = fields.Str()
    participants = fields.List(fields.Str())
    last_message = fields.Str()
    last_message_time = fields.DateTime()
    unread_count = fields.Int()

class MessageResponseSchema(Schema):
    message_id = fields.Str(dump_only=True)
    conversation_id = fields.Str()
    sender_id = fields.Str()
    sender_name = fields.Str()
    text = fields.Str()
    read = fields.Bool()
    timestamp = fields.DateTime()
