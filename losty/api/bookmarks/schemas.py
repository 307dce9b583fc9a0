# losty/api/bookmarks/schemas.py
from marshmallow import Schema, fields

class BookmarkToggleResponseSchema(Schema):
    post_id = fields.Str()
    bookmarked = fields.Bool()

class BookmarkListResponseSchema(Schema):
    post_ids = fields.List(fields.Str())
