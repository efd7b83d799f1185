"""Dépôt de notes, cloisonné par appareil.

Politique de concurrence: dernier écrivain gagnant. Aucun numéro de version,
aucune détection de conflit; deux mises à jour concurrentes du même champ
s'écrasent et la dernière validée l'emporte.
"""
from mina_notes.extensions import db
from mina_notes.notes.models import Note
from mina_notes.common.errors import BadRequestError, NotFoundError
from mina_notes.common.utils import next_timestamp, parse_id, utcnow

UPDATABLE_FIELDS = ("title", "content", "is_pinned", "tags", "color")

NOTE_NOT_FOUND = "Note not found"
INVALID_NOTE_ID = "Invalid note ID"


def parse_note_id(value) -> int:
    return parse_id(value, INVALID_NOTE_ID)


def _visible(device_id: str):
    return db.session.query(Note).filter(Note.device_id == device_id, Note.is_deleted.is_(False))


def list_notes(device_id: str) -> list[Note]:
    return _visible(device_id).order_by(Note.updated_at.desc(), Note.id.desc()).all()


def find_note(note_id: int, device_id: str) -> Note | None:
    return _visible(device_id).filter(Note.id == note_id).first()


def get_note(note_id: int, device_id: str) -> Note:
    note = find_note(note_id, device_id)
    if note is None:
        raise NotFoundError(NOTE_NOT_FOUND)
    return note


def create_note(device_id: str, title: str, content: str, **metadata) -> Note:
    if not isinstance(title, str) or not isinstance(content, str):
        raise BadRequestError("Title and content are required.")

    now = utcnow()
    note = Note(
        title=title,
        content=content,
        device_id=device_id,
        is_pinned=bool(metadata.get("is_pinned") or False),
        tags=list(metadata.get("tags") or []),
        color=metadata.get("color") or "#ffffff",
        created_at=now,
        updated_at=now,
        # jamais créée supprimée, quoi qu'envoie le client
        is_deleted=False,
    )
    db.session.add(note)
    db.session.commit()
    return note


def apply_fields(note: Note, fields: dict) -> Note:
    """Copie les champs modifiables présents dans ``fields``.

    Seuls ces attributs deviennent sales: l'UPDATE émis ne porte que sur eux
    (plus ``updated_at``), les autres colonnes ne sont jamais réécrites.
    """
    for name in UPDATABLE_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if name == "tags":
            value = list(value or [])
        setattr(note, name, value)

    note.updated_at = next_timestamp(note.updated_at)
    return note


def update_note(note_id: int, device_id: str, fields: dict) -> Note:
    note = apply_fields(get_note(note_id, device_id), fields)
    db.session.commit()
    return note


def delete_note(note_id: int, device_id: str) -> bool:
    note = (
        db.session.query(Note)
        .filter(Note.id == note_id, Note.device_id == device_id)
        .first()
    )
    if note is None:
        return False
    note.is_deleted = True
    note.updated_at = next_timestamp(note.updated_at)
    db.session.commit()
    return True
