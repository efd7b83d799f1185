from sqlalchemy import ForeignKey
from mina_notes.extensions import db
from mina_notes.common.utils import utcnow
from mina_notes.notes.models import JsonType


class AiChat(db.Model):
    __tablename__ = "ai_chats"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    note_id = db.Column(db.Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    note = db.relationship("Note", back_populates="ai_chats")

    # copié depuis la note; l'accès passe toujours par la jointure sur notes
    device_id = db.Column(db.String(128), nullable=False)
    # [{"role": "user" | "assistant" | "system", "content": "..."}]
    messages = db.Column(JsonType, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
