import logging
import os
import secrets
import time
from urllib.parse import urlsplit

from werkzeug.utils import secure_filename

from mina_notes.extensions import db
from mina_notes.attachments.models import Attachment, Upload
from mina_notes.notes.models import Note
from mina_notes.notes.service import get_note
from mina_notes.common.errors import BadRequestError, NotFoundError
from mina_notes.common.utils import parse_id, utcnow

log = logging.getLogger("mina_notes.attachments")

ATTACHMENT_NOT_FOUND = "Attachment not found"
INVALID_ATTACHMENT_ID = "Invalid attachment ID"
UNKNOWN_UPLOAD = "Unknown upload"
UPLOAD_URL_PREFIX = "/uploads/"


def parse_attachment_id(value) -> int:
    return parse_id(value, INVALID_ATTACHMENT_ID)


def _owned(device_id: str, include_deleted_notes: bool = False):
    q = (
        db.session.query(Attachment)
        .join(Note, Attachment.note_id == Note.id)
        .filter(Note.device_id == device_id)
    )
    if not include_deleted_notes:
        q = q.filter(Note.is_deleted.is_(False))
    return q


def list_attachments(note_id: int, device_id: str) -> list[Attachment]:
    return (
        _owned(device_id)
        .filter(Attachment.note_id == note_id)
        .order_by(Attachment.created_at.desc(), Attachment.id.desc())
        .all()
    )


def get_attachment(attachment_id: int, device_id: str) -> Attachment:
    attachment = _owned(device_id).filter(Attachment.id == attachment_id).first()
    if attachment is None:
        raise NotFoundError(ATTACHMENT_NOT_FOUND)
    return attachment


def upload_name(file_path: str) -> str | None:
    """Nom du fichier d'upload désigné par ``file_path`` (``/uploads/x.png`` ou URL absolue).

    ``None`` pour tout autre chemin: référence externe, jamais effacée du disque.
    """
    path = urlsplit(file_path or "").path
    if not path.startswith(UPLOAD_URL_PREFIX):
        return None
    name = os.path.basename(path.rstrip("/"))
    if not name or name in (".", ".."):
        return None
    return name


def find_upload(name: str, device_id: str) -> Upload | None:
    return (
        db.session.query(Upload)
        .filter(Upload.filename == name, Upload.device_id == device_id)
        .first()
    )


def create_attachment(note_id: int, device_id: str, file_path: str, file_type: str, file_name: str) -> Attachment:
    note = get_note(note_id, device_id)

    # un upload ne se rattache qu'aux notes de l'appareil qui l'a envoyé
    name = upload_name(file_path)
    if name is not None and find_upload(name, device_id) is None:
        raise BadRequestError(UNKNOWN_UPLOAD)

    attachment = Attachment(
        note_id=note.id,
        device_id=note.device_id,
        file_path=file_path,
        file_type=file_type,
        file_name=file_name,
        created_at=utcnow(),
    )
    db.session.add(attachment)
    db.session.commit()
    return attachment


def resolve_upload_path(file_path: str, upload_folder: str) -> str | None:
    """Ramène un chemin stocké (``/uploads/x.png``, absolu...) dans le dossier d'upload."""
    name = os.path.basename((file_path or "").replace("\\", "/").rstrip("/"))
    if not name or name in (".", ".."):
        return None
    return os.path.join(upload_folder, name)


def remove_file(path: str | None) -> bool:
    if not path:
        return False
    try:
        os.remove(path)
    except FileNotFoundError:
        log.warning("attachment_file_missing", extra={"file_path": path})
        return False
    except OSError as e:
        log.warning("attachment_file_unlink_failed", extra={"file_path": path, "error": str(e)})
        return False
    return True


def _releasable_upload(attachment: Attachment, device_id: str) -> Upload | None:
    # upload du même appareil, plus référencé par aucune autre pièce jointe
    name = upload_name(attachment.file_path)
    if name is None:
        return None
    upload = find_upload(name, device_id)
    if upload is None:
        return None
    still_used = (
        db.session.query(Attachment.id)
        .filter(
            Attachment.id != attachment.id,
            Attachment.device_id == device_id,
            Attachment.file_path.endswith(f"/{name}", autoescape=True),
        )
        .first()
    )
    return None if still_used else upload


def delete_attachment(attachment_id: int, device_id: str, upload_folder: str) -> bool:
    """Supprime la ligne puis tente d'effacer le fichier.

    La ligne fait foi: un échec côté disque laisse un fichier orphelin,
    jamais une référence orpheline. Seul un upload de l'appareil lui-même
    est effacé; la suppression reste possible après celle de la note.
    """
    attachment = (
        _owned(device_id, include_deleted_notes=True)
        .filter(Attachment.id == attachment_id)
        .first()
    )
    if attachment is None:
        return False

    path = None
    upload = _releasable_upload(attachment, device_id)
    if upload is not None:
        path = resolve_upload_path(upload.filename, upload_folder)
        db.session.delete(upload)
    db.session.delete(attachment)
    db.session.commit()

    remove_file(path)
    return True


def generate_upload_name(original_name: str) -> str:
    # horodatage ms + suffixe aléatoire: unique sans verrou
    ext = os.path.splitext(secure_filename(original_name or ""))[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def save_upload(file_storage, upload_folder: str, allowed_types, device_id: str) -> dict:
    if file_storage is None or not file_storage.filename:
        raise BadRequestError("No file uploaded")
    if file_storage.mimetype not in allowed_types:
        raise BadRequestError("Invalid file type. Only JPEG, PNG, GIF, and WEBP are allowed.")

    os.makedirs(upload_folder, exist_ok=True)
    filename = generate_upload_name(file_storage.filename)
    file_storage.save(os.path.join(upload_folder, filename))

    db.session.add(Upload(
        filename=filename,
        device_id=device_id,
        mimetype=file_storage.mimetype,
        created_at=utcnow(),
    ))
    db.session.commit()

    log.info("upload_saved", extra={"upload_name": filename, "mimetype": file_storage.mimetype})
    return {"url": f"{UPLOAD_URL_PREFIX}{filename}", "filename": filename}
