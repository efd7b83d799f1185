from marshmallow import EXCLUDE, Schema, fields, validate


class NoteIn(Schema):
    class Meta:
        # id, device_id, is_deleted... envoyés par le client sont ignorés
        unknown = EXCLUDE

    title = fields.String(required=True, validate=validate.Length(max=500))
    content = fields.String(required=True)
    is_pinned = fields.Boolean()
    tags = fields.List(fields.String(validate=validate.Length(max=100)), allow_none=True)
    color = fields.String(validate=validate.Length(min=1, max=32))


class NoteOut(Schema):
    id = fields.Integer(required=True)
    title = fields.String(required=True)
    content = fields.String(required=True)
    is_pinned = fields.Boolean(required=True)
    tags = fields.List(fields.String(), required=True)
    color = fields.String(required=True)
    device_id = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)
    is_deleted = fields.Boolean(required=True)
