from flask import Blueprint, current_app, request, jsonify
from mina_notes.extensions import limiter
from mina_notes.common.device import current_device_id
from mina_notes.common.errors import BadRequestError, NotFoundError
from mina_notes.notes import service
from mina_notes.notes.schemas import NoteIn, NoteOut

bp = Blueprint("notes", __name__)

# Rate limit par défaut sur tout le blueprint Notes
limiter.limit(lambda: current_app.config.get("RATELIMIT_NOTES", "120/minute"))(bp)

note_in = NoteIn()
note_in_partial = NoteIn(partial=True)
note_out = NoteOut()
note_out_many = NoteOut(many=True)


@bp.get("")
def list_notes():
    # pas de pagination: volume borné par appareil
    notes = service.list_notes(current_device_id())
    return jsonify(note_out_many.dump(notes)), 200


@bp.get("/<note_id>")
def get_note(note_id):
    note = service.get_note(service.parse_note_id(note_id), current_device_id())
    return jsonify(note_out.dump(note)), 200


@bp.post("")
def create_note():
    payload = request.get_json(silent=True) or {}
    data = note_in.load(payload)
    note = service.create_note(
        current_device_id(),
        data.pop("title"),
        data.pop("content"),
        **data,
    )
    return jsonify(note_out.dump(note)), 201


@bp.put("/<note_id>")
def update_note(note_id):
    note_id = service.parse_note_id(note_id)
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BadRequestError("Request body must be a JSON object.")
    data = note_in_partial.load(payload)
    note = service.update_note(note_id, current_device_id(), data)
    return jsonify(note_out.dump(note)), 200


@bp.delete("/<note_id>")
def delete_note(note_id):
    if not service.delete_note(service.parse_note_id(note_id), current_device_id()):
        raise NotFoundError(service.NOTE_NOT_FOUND)
    return ("", 204)
