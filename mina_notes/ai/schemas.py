from marshmallow import EXCLUDE, Schema, fields, validate, validates_schema, ValidationError

from mina_notes.chats.schemas import ChatMessage


class ChatRequest(Schema):
    class Meta:
        unknown = EXCLUDE

    messages = fields.List(fields.Nested(ChatMessage), required=True)


class GenerateRequest(Schema):
    class Meta:
        unknown = EXCLUDE

    prompt = fields.String(validate=validate.Length(min=1))
    messages = fields.List(fields.Nested(ChatMessage), load_default=list)

    @validates_schema
    def _needs_input(self, data, **kwargs):
        if not data.get("prompt") and not data.get("messages"):
            raise ValidationError("Provide a prompt or messages.", "prompt")


class NoteRef(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.Integer(required=True)


class DashboardChatRequest(Schema):
    class Meta:
        unknown = EXCLUDE

    messages = fields.List(fields.Nested(ChatMessage), required=True)
    # sous-ensemble facultatif de notes choisi par le client
    notes = fields.List(fields.Nested(NoteRef), load_default=None, allow_none=True)


class AssistantMessage(Schema):
    role = fields.String(required=True)
    content = fields.String(required=True)


class ReferencedNote(Schema):
    id = fields.Integer(required=True)
    title = fields.String(required=True)
    createdAt = fields.String(required=True)
    excerpt = fields.String(required=True)
    confidence = fields.Float(required=True)


class ChatResponse(Schema):
    message = fields.Nested(AssistantMessage, required=True)


class DashboardChatResponse(ChatResponse):
    referencedNotes = fields.List(fields.Nested(ReferencedNote), required=True)
