from flask import Blueprint, current_app, request, jsonify, send_from_directory
from mina_notes.common.device import current_device_id
from mina_notes.common.errors import NotFoundError
from mina_notes.attachments import service
from mina_notes.attachments.schemas import AttachmentIn, AttachmentOut, UploadOut
from mina_notes.notes.service import parse_note_id

bp = Blueprint("attachments", __name__)
files_bp = Blueprint("uploads", __name__)

attachment_in = AttachmentIn()
attachment_out = AttachmentOut()
attachment_out_many = AttachmentOut(many=True)
upload_out = UploadOut()


@bp.post("/upload")
def upload():
    result = service.save_upload(
        request.files.get("image"),
        current_app.config["UPLOAD_FOLDER"],
        current_app.config["ALLOWED_UPLOAD_TYPES"],
        current_device_id(),
    )
    return jsonify(upload_out.dump(result)), 200


@bp.post("/notes/<note_id>/attachments")
def create_attachment(note_id):
    note_id = parse_note_id(note_id)
    payload = request.get_json(silent=True) or {}
    data = attachment_in.load(payload)
    attachment = service.create_attachment(note_id, current_device_id(), **data)
    return jsonify(attachment_out.dump(attachment)), 201


@bp.get("/notes/<note_id>/attachments")
def list_attachments(note_id):
    attachments = service.list_attachments(parse_note_id(note_id), current_device_id())
    return jsonify(attachment_out_many.dump(attachments)), 200


@bp.get("/attachments/<attachment_id>")
def get_attachment(attachment_id):
    attachment = service.get_attachment(service.parse_attachment_id(attachment_id), current_device_id())
    return jsonify(attachment_out.dump(attachment)), 200


@bp.delete("/attachments/<attachment_id>")
def delete_attachment(attachment_id):
    deleted = service.delete_attachment(
        service.parse_attachment_id(attachment_id),
        current_device_id(),
        current_app.config["UPLOAD_FOLDER"],
    )
    if not deleted:
        raise NotFoundError(service.ATTACHMENT_NOT_FOUND)
    return ("", 204)


@files_bp.get("/uploads/<path:filename>")
def serve_upload(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
