from marshmallow import EXCLUDE, Schema, fields, validate

ROLES = ("user", "assistant", "system")


class ChatMessage(Schema):
    class Meta:
        unknown = EXCLUDE

    role = fields.String(required=True, validate=validate.OneOf(ROLES))
    content = fields.String(required=True)


class ChatIn(Schema):
    class Meta:
        # note_id vient de l'URL, device_id de la note
        unknown = EXCLUDE

    messages = fields.List(fields.Nested(ChatMessage), required=True)


class ChatOut(Schema):
    id = fields.Integer(required=True)
    note_id = fields.Integer(required=True)
    device_id = fields.String(required=True)
    messages = fields.List(fields.Nested(ChatMessage), required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)
