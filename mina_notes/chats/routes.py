from flask import Blueprint, request, jsonify
from mina_notes.common.device import current_device_id
from mina_notes.common.errors import NotFoundError
from mina_notes.chats import service
from mina_notes.chats.schemas import ChatIn, ChatOut
from mina_notes.notes.service import parse_note_id

bp = Blueprint("chats", __name__)

chat_in = ChatIn()
chat_out = ChatOut()
chat_out_many = ChatOut(many=True)


@bp.get("/notes/<note_id>/ai-chats")
def list_chats(note_id):
    chats = service.list_chats(parse_note_id(note_id), current_device_id())
    return jsonify(chat_out_many.dump(chats)), 200


@bp.post("/notes/<note_id>/ai-chats")
def create_chat(note_id):
    note_id = parse_note_id(note_id)
    payload = request.get_json(silent=True) or {}
    data = chat_in.load(payload)
    chat = service.create_chat(note_id, current_device_id(), data["messages"])
    return jsonify(chat_out.dump(chat)), 201


@bp.get("/ai-chats/<chat_id>")
def get_chat(chat_id):
    chat = service.get_chat(service.parse_chat_id(chat_id), current_device_id())
    return jsonify(chat_out.dump(chat)), 200


@bp.put("/ai-chats/<chat_id>")
def update_chat(chat_id):
    chat_id = service.parse_chat_id(chat_id)
    payload = request.get_json(silent=True) or {}
    data = chat_in.load(payload)
    chat = service.update_chat(chat_id, current_device_id(), data["messages"])
    return jsonify(chat_out.dump(chat)), 200


@bp.delete("/ai-chats/<chat_id>")
def delete_chat(chat_id):
    if not service.delete_chat(service.parse_chat_id(chat_id), current_device_id()):
        raise NotFoundError(service.CHAT_NOT_FOUND)
    return ("", 204)
