from sqlalchemy.dialects.postgresql import JSONB
from mina_notes.extensions import db
from mina_notes.common.utils import utcnow

# JSON portable, JSONB sous PostgreSQL
JsonType = db.JSON().with_variant(JSONB(), "postgresql")


class Note(db.Model):
    __tablename__ = "notes"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)  # markup riche (HTML)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    tags = db.Column(JsonType, nullable=False, default=list)
    color = db.Column(db.String(32), nullable=False, default="#ffffff")

    # identifiant opaque généré par le client, pas un compte
    device_id = db.Column(db.String(128), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    # suppression logique: la ligne reste en base
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    ai_chats = db.relationship(
        "AiChat", back_populates="note", cascade="all, delete-orphan", lazy="select"
    )
    attachments = db.relationship(
        "Attachment", back_populates="note", cascade="all, delete-orphan", lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Note {self.id} device={self.device_id!r} deleted={self.is_deleted}>"
