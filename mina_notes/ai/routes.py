import logging

from flask import Blueprint, current_app, request, jsonify

from mina_notes.extensions import limiter
from mina_notes.common.device import current_device_id
from mina_notes.notes import service as notes_service
from mina_notes.ai import prompts
from mina_notes.ai.provider import get_text_generator
from mina_notes.ai.schemas import (
    ChatRequest, ChatResponse, DashboardChatRequest, DashboardChatResponse, GenerateRequest,
)

bp = Blueprint("ai", __name__)
log = logging.getLogger("mina_notes.ai")

chat_request = ChatRequest()
generate_request = GenerateRequest()
dashboard_request = DashboardChatRequest()
chat_response = ChatResponse()
dashboard_response = DashboardChatResponse()


def _ai_limit():
    return current_app.config.get("RATELIMIT_AI", "30/minute")


def _reply(text: str) -> dict:
    return {"role": "assistant", "content": text}


@bp.post("/ai/chat")
@limiter.limit(_ai_limit)
def chat():
    data = chat_request.load(request.get_json(silent=True) or {})
    text = get_text_generator().generate(data["messages"])
    return jsonify(chat_response.dump({"message": _reply(text)})), 200


@bp.post("/notes/<note_id>/ai/generate")
@limiter.limit(_ai_limit)
def generate(note_id):
    note = notes_service.get_note(notes_service.parse_note_id(note_id), current_device_id())
    data = generate_request.load(request.get_json(silent=True) or {})
    messages = prompts.note_messages(note, data.get("prompt"), data["messages"])
    text = get_text_generator().generate(messages)
    return jsonify(chat_response.dump({"message": _reply(text)})), 200


@bp.post("/ai/dashboard-chat")
@limiter.limit(_ai_limit)
def dashboard_chat():
    data = dashboard_request.load(request.get_json(silent=True) or {})
    notes = notes_service.list_notes(current_device_id())

    if data.get("notes") is not None:
        # uniquement les notes de l'appareil parmi celles envoyées
        wanted = {n["id"] for n in data["notes"]}
        notes = [n for n in notes if n.id in wanted]

    log.debug("dashboard_chat_context", extra={"note_count": len(notes)})
    text = get_text_generator().generate(prompts.dashboard_messages(notes, data["messages"]))

    body = {
        "message": _reply(prompts.strip_references(text)),
        "referencedNotes": prompts.referenced_notes(text, notes),
    }
    return jsonify(dashboard_response.dump(body)), 200
