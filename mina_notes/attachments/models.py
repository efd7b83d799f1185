from sqlalchemy import ForeignKey
from mina_notes.extensions import db
from mina_notes.common.utils import utcnow


class Attachment(db.Model):
    __tablename__ = "attachments"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    note_id = db.Column(db.Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    note = db.relationship("Note", back_populates="attachments")

    device_id = db.Column(db.String(128), nullable=False)
    file_path = db.Column(db.Text, nullable=False)  # chemin local (ou URL /uploads/...)
    file_type = db.Column(db.String(255), nullable=False)  # type MIME
    file_name = db.Column(db.Text, nullable=False)  # nom d'origine

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)


class Upload(db.Model):
    """Fichier reçu par /api/upload et l'appareil qui l'a envoyé."""

    __tablename__ = "uploads"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    filename = db.Column(db.String(255), unique=True, nullable=False)  # nom généré sur disque
    device_id = db.Column(db.String(128), nullable=False, index=True)
    mimetype = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
