from mina_notes.extensions import db
from mina_notes.chats.models import AiChat
from mina_notes.notes.models import Note
from mina_notes.notes.service import get_note
from mina_notes.common.errors import NotFoundError
from mina_notes.common.utils import next_timestamp, parse_id, utcnow

CHAT_NOT_FOUND = "AI chat not found"
INVALID_CHAT_ID = "Invalid chat ID"


def parse_chat_id(value) -> int:
    return parse_id(value, INVALID_CHAT_ID)


def _owned(device_id: str, include_deleted_notes: bool = False):
    # la propriété se vérifie par la note parente, jamais par ai_chats.device_id
    q = (
        db.session.query(AiChat)
        .join(Note, AiChat.note_id == Note.id)
        .filter(Note.device_id == device_id)
    )
    if not include_deleted_notes:
        q = q.filter(Note.is_deleted.is_(False))
    return q


def list_chats(note_id: int, device_id: str) -> list[AiChat]:
    return (
        _owned(device_id)
        .filter(AiChat.note_id == note_id)
        .order_by(AiChat.created_at.desc(), AiChat.id.desc())
        .all()
    )


def get_chat(chat_id: int, device_id: str) -> AiChat:
    chat = _owned(device_id).filter(AiChat.id == chat_id).first()
    if chat is None:
        raise NotFoundError(CHAT_NOT_FOUND)
    return chat


def create_chat(note_id: int, device_id: str, messages: list[dict]) -> AiChat:
    note = get_note(note_id, device_id)
    now = utcnow()
    chat = AiChat(
        note_id=note.id,
        device_id=note.device_id,
        messages=[dict(m) for m in messages],
        created_at=now,
        updated_at=now,
    )
    db.session.add(chat)
    db.session.commit()
    return chat


def update_chat(chat_id: int, device_id: str, messages: list[dict]) -> AiChat:
    """Remplace tout l'historique: l'appelant renvoie la conversation complète."""
    chat = get_chat(chat_id, device_id)
    chat.messages = [dict(m) for m in messages]
    chat.updated_at = next_timestamp(chat.updated_at)
    db.session.commit()
    return chat


def delete_chat(chat_id: int, device_id: str) -> bool:
    # reste possible après suppression (logique) de la note
    chat = _owned(device_id, include_deleted_notes=True).filter(AiChat.id == chat_id).first()
    if chat is None:
        return False
    db.session.delete(chat)
    db.session.commit()
    return True
