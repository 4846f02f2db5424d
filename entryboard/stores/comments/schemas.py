# entryboard/stores/comments/schemas.py
from marshmallow import Schema, fields, validate

class CommentCreateSchema(Schema):
    """
    add_comment / add_reply 입력의 유효성을 검사합니다.
    작성자, 작성 시각, 익명 여부는 스토어가 채우므로 입력으로 받지 않습니다.
    """
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))
    parentId = fields.Str(allow_none=True, load_default=None)

class CommentEditSchema(Schema):
    """edit_comment 입력의 유효성을 검사합니다."""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))
