# entryboard/stores/entries/schemas.py
from marshmallow import Schema, fields, validate

class EntryCreateSchema(Schema):
    """
    add_entry 입력의 유효성을 검사합니다.
    id를 생략하면 스토어가 `<promptId>T<epochMillis>` 형식으로 만듭니다.
    """
    id = fields.Str(validate=validate.Length(min=1))
    promptId = fields.Str(required=True, validate=validate.Length(min=1))
    slug = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200, error="제목은 1~200자 사이여야 합니다."))
    description = fields.Str(load_default='', validate=validate.Length(max=5000))
    image = fields.URL(allow_none=True, load_default=None)

class EntryEditSchema(Schema):
    """
    edit_entry 입력의 유효성을 검사합니다.
    version은 수정 전에 읽은 버전이며, 원격 버전과 다르면 VersionConflict가 발생합니다.
    """
    id = fields.Str(required=True, validate=validate.Length(min=1))
    slug = fields.Str(validate=validate.Length(min=1, max=200))
    title = fields.Str(validate=validate.Length(min=1, max=200, error="제목은 1~200자 사이여야 합니다."))
    description = fields.Str(validate=validate.Length(max=5000))
    image = fields.URL(allow_none=True)
    version = fields.Int(validate=validate.Range(min=1))
