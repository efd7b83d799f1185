from marshmallow import EXCLUDE, Schema, fields, validate


class AttachmentIn(Schema):
    class Meta:
        unknown = EXCLUDE

    file_path = fields.String(required=True, validate=validate.Length(min=1))
    file_type = fields.String(required=True, validate=validate.Length(min=1, max=255))
    file_name = fields.String(required=True, validate=validate.Length(min=1))


class AttachmentOut(Schema):
    id = fields.Integer(required=True)
    note_id = fields.Integer(required=True)
    device_id = fields.String(required=True)
    file_path = fields.String(required=True)
    file_type = fields.String(required=True)
    file_name = fields.String(required=True)
    created_at = fields.DateTime(required=True)


class UploadOut(Schema):
    url = fields.String(required=True)
    filename = fields.String(required=True)
