# entryboard/stores/users/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError, RAISE

ROLES = ('Admin', 'User')

class ProfileUpdateSchema(Schema):
    """
    update_profile 입력의 유효성을 검사합니다.
    role 등 정의되지 않은 필드는 거부됩니다. (권한 변경은 update_role만 가능)
    """
    class Meta:
        unknown = RAISE

    displayName = fields.Str(validate=validate.Length(min=1, max=100, error="이름은 1~100자 사이여야 합니다."))
    photoURL = fields.URL(allow_none=True)

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("변경할 프로필 필드가 없습니다.")

class RoleUpdateSchema(Schema):
    """update_role 입력의 유효성을 검사합니다."""
    uid = fields.Str(required=True, validate=validate.Length(min=1))
    role = fields.Str(required=True, validate=validate.OneOf(ROLES))
