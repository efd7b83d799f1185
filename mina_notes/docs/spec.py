# mina_notes/docs/spec.py
from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from marshmallow import Schema, fields

from mina_notes.notes.schemas import NoteIn, NoteOut
from mina_notes.chats.schemas import ChatIn, ChatOut
from mina_notes.attachments.schemas import AttachmentIn, AttachmentOut, UploadOut
from mina_notes.ai.schemas import (
    ChatRequest, ChatResponse, DashboardChatRequest, DashboardChatResponse, GenerateRequest,
)


class MessageSchema(Schema):
    message = fields.String()


def _ref(name: str):
    return {"$ref": f"#/components/schemas/{name}"}


def _json(name: str, many: bool = False):
    schema = {"type": "array", "items": _ref(name)} if many else _ref(name)
    return {"content": {"application/json": {"schema": schema}}}


def _id_param(name: str):
    return {"in": "path", "name": name, "required": True, "schema": {"type": "integer"}}


_NOT_FOUND = {"description": "Not found (or owned by another device)", **_json("Message")}
_BAD_REQUEST = {"description": "Missing x-device-id or invalid body", **_json("Message")}


def build_spec():
    spec = APISpec(
        title="Mina Notes API",
        version="1.0.0",
        openapi_version="3.0.3",
        info={"description": "Device-scoped notes, attachments and AI chats"},
        plugins=[MarshmallowPlugin()],
    )

    # L'identité appareil sert de jeton porteur
    spec.components.security_scheme(
        "deviceId",
        {"type": "apiKey", "in": "header", "name": "x-device-id"},
    )

    spec.components.schema("NoteIn", schema=NoteIn)
    spec.components.schema("NoteOut", schema=NoteOut)
    spec.components.schema("ChatIn", schema=ChatIn)
    spec.components.schema("ChatOut", schema=ChatOut)
    spec.components.schema("AttachmentIn", schema=AttachmentIn)
    spec.components.schema("AttachmentOut", schema=AttachmentOut)
    spec.components.schema("UploadOut", schema=UploadOut)
    spec.components.schema("ChatRequest", schema=ChatRequest)
    spec.components.schema("GenerateRequest", schema=GenerateRequest)
    spec.components.schema("DashboardChatRequest", schema=DashboardChatRequest)
    spec.components.schema("ChatResponse", schema=ChatResponse)
    spec.components.schema("DashboardChatResponse", schema=DashboardChatResponse)
    spec.components.schema("Message", schema=MessageSchema)

    secured = [{"deviceId": []}]

    # ---- NOTES ----
    spec.path(
        path="/api/notes",
        operations={
            "get": {
                "summary": "List the device's notes (most recently updated first)",
                "security": secured,
                "responses": {"200": _json("NoteOut", many=True), "400": _BAD_REQUEST},
            },
            "post": {
                "summary": "Create note",
                "security": secured,
                "requestBody": {"required": True, **_json("NoteIn")},
                "responses": {"201": _json("NoteOut"), "400": _BAD_REQUEST},
            },
        },
    )

    spec.path(
        path="/api/notes/{id}",
        operations={
            "get": {
                "summary": "Get note by id",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"200": _json("NoteOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
            "put": {
                "summary": "Partially update note (last writer wins)",
                "security": secured,
                "parameters": [_id_param("id")],
                "requestBody": {"required": True, **_json("NoteIn")},
                "responses": {"200": _json("NoteOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
            "delete": {
                "summary": "Soft-delete note",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"204": {"description": "No content"}, "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
        },
    )

    # ---- UPLOADS & ATTACHMENTS ----
    spec.path(
        path="/api/upload",
        operations={
            "post": {
                "summary": "Upload an image (JPEG, PNG, GIF, WEBP; 5 MB max)",
                "security": secured,
                "requestBody": {
                    "required": True,
                    "content": {"multipart/form-data": {"schema": {
                        "type": "object",
                        "properties": {"image": {"type": "string", "format": "binary"}},
                    }}},
                },
                "responses": {"200": _json("UploadOut"), "400": _BAD_REQUEST, "413": _json("Message")},
            }
        },
    )

    spec.path(
        path="/api/notes/{noteId}/attachments",
        operations={
            "get": {
                "summary": "List attachments of a note",
                "security": secured,
                "parameters": [_id_param("noteId")],
                "responses": {"200": _json("AttachmentOut", many=True), "400": _BAD_REQUEST},
            },
            "post": {
                "summary": "Bind a file uploaded by this device (or an external URL) to a note",
                "security": secured,
                "parameters": [_id_param("noteId")],
                "requestBody": {"required": True, **_json("AttachmentIn")},
                "responses": {"201": _json("AttachmentOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
        },
    )

    spec.path(
        path="/api/attachments/{id}",
        operations={
            "get": {
                "summary": "Get attachment",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"200": _json("AttachmentOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
            "delete": {
                "summary": "Delete attachment row, and its file when this device uploaded it",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"204": {"description": "No content"}, "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
        },
    )

    # ---- AI CHATS ----
    spec.path(
        path="/api/notes/{noteId}/ai-chats",
        operations={
            "get": {
                "summary": "List chat threads of a note (newest first)",
                "security": secured,
                "parameters": [_id_param("noteId")],
                "responses": {"200": _json("ChatOut", many=True), "400": _BAD_REQUEST},
            },
            "post": {
                "summary": "Create chat thread",
                "security": secured,
                "parameters": [_id_param("noteId")],
                "requestBody": {"required": True, **_json("ChatIn")},
                "responses": {"201": _json("ChatOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
        },
    )

    spec.path(
        path="/api/ai-chats/{id}",
        operations={
            "get": {
                "summary": "Get chat thread",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"200": _json("ChatOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
            "put": {
                "summary": "Replace the whole message history",
                "security": secured,
                "parameters": [_id_param("id")],
                "requestBody": {"required": True, **_json("ChatIn")},
                "responses": {"200": _json("ChatOut"), "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
            "delete": {
                "summary": "Delete chat thread",
                "security": secured,
                "parameters": [_id_param("id")],
                "responses": {"204": {"description": "No content"}, "400": _BAD_REQUEST, "404": _NOT_FOUND},
            },
        },
    )

    # ---- AI ----
    upstream = {"description": "AI provider failure", **_json("Message")}
    spec.path(
        path="/api/ai/chat",
        operations={
            "post": {
                "summary": "Free chat with the assistant",
                "security": secured,
                "requestBody": {"required": True, **_json("ChatRequest")},
                "responses": {"200": _json("ChatResponse"), "500": upstream},
            }
        },
    )

    spec.path(
        path="/api/notes/{noteId}/ai/generate",
        operations={
            "post": {
                "summary": "Single-turn completion scoped to one note",
                "security": secured,
                "parameters": [_id_param("noteId")],
                "requestBody": {"required": True, **_json("GenerateRequest")},
                "responses": {"200": _json("ChatResponse"), "400": _BAD_REQUEST, "404": _NOT_FOUND, "500": upstream},
            }
        },
    )

    spec.path(
        path="/api/ai/dashboard-chat",
        operations={
            "post": {
                "summary": "Search and chat across all of the device's notes",
                "security": secured,
                "requestBody": {"required": True, **_json("DashboardChatRequest")},
                "responses": {"200": _json("DashboardChatResponse"), "500": upstream},
            }
        },
    )

    return spec.to_dict()
