# losty/api/notifications/schemas.py
from marshmallow import Schema, fields

from losty.models.notification import NotificationType

class NotificationResponseSchema(Schema):
    """알림 응답 JSON 형식"""
    notification_id = fields.Str(dump_only=True)
    type = fields.Enum(NotificationType, by_value=True)
    from_user_id = fields.Str()
    from_user_name = fields.Str()
    message = fields.Str()
    post_id = fields.Str()
    claim_id = fields.Str()
    is_read = fields.Bool()
    timestamp = fields.DateTime()
