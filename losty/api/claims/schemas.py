# losty/api/claims/schemas.py
from marshmallow import Schema, fields, validate

from losty.models.claim import ClaimStatus

class ClaimCreateSchema(Schema):
    """POST /api/claims 요청 본문"""
    post_id = fields.Str(required=True, validate=validate.Length(min=1))

class ClaimDecisionSchema(Schema):
    """승인/거절 요청 본문. 알림 화면에서 처리한 경우 해당 알림 ID를 함께 보냅니다."""
    notification_id = fields.Str(load_default=None, allow_none=True)

class ClaimResponseSchema(Schema):
    claim_id = fields.Str(dump_only=True)
    post_id = fields.Str()
    post_title = fields.Str()
    post_owner_id = fields.Str()
    claimer_id = fields.Str()
    claimer_name = fields.Str()
    status = fields.Enum(ClaimStatus, by_value=True)
    claimed_at = fields.DateTime()
