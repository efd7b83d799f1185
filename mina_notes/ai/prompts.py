import html
import re
from datetime import datetime

from mina_notes.common.utils import as_utc

NOTE_ASSISTANT_PROMPT = (
    "You are Mina, a helpful AI assistant for a note-taking app. Be concise and helpful."
)

DASHBOARD_PROMPT = """You are Mina, a helpful AI assistant for a note-taking app called PurpleNotes.
Your job is to help users find and retrieve information from their notes.
When users ask about their notes, search through the provided context to find relevant information.
Always provide note references with ID, title, and date when answering questions about notes.
If a user asks about a specific topic (like "chicken soup recipes"), search for those keywords in the notes.
If asked to locate a specific note, scan the provided notes context and return IDs of the most relevant matches.
Format your note references with note ID and brief excerpt from the content.
Do not fabricate notes or content that isn't actually present in the context.
"""

CONTEXT_CONTENT_LIMIT = 1000
EXCERPT_LIMIT = 120

_TAG_RE = re.compile(r"<[^>]*>")
_REF_RE = re.compile(r"\[ID: (\d+)\]")


def html_to_text(markup: str | None) -> str:
    return html.unescape(_TAG_RE.sub("", markup or "")).replace("\xa0", " ").strip()


def truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _iso(value: datetime | None) -> str:
    value = as_utc(value)
    return value.isoformat() if value else ""


def note_context(notes) -> str:
    lines = ["USER'S NOTES CONTEXT:", ""]
    for i, note in enumerate(notes, start=1):
        lines.append(f"Note #{i} [ID: {note.id}]")
        lines.append(f"Title: {note.title or 'Untitled'}")
        lines.append(f"Created: {_iso(note.created_at)}")
        lines.append(f"Updated: {_iso(note.updated_at)}")
        lines.append(f"Content: {truncate(html_to_text(note.content), CONTEXT_CONTENT_LIMIT)}")
    return "\n".join(lines) + "\n"


def dashboard_messages(notes, messages: list[dict]) -> list[dict]:
    # le prompt système passe en premier tour "user" côté Gemini
    system = {"role": "system", "content": DASHBOARD_PROMPT + note_context(notes)}
    return [system] + [m for m in messages if m.get("role") != "system"]


def note_messages(note, prompt: str | None, history: list[dict]) -> list[dict]:
    system = {
        "role": "system",
        "content": (
            f"{NOTE_ASSISTANT_PROMPT}\n"
            f"The user is working on the note titled \"{note.title or 'Untitled'}\".\n"
            f"Current note content:\n{truncate(html_to_text(note.content), CONTEXT_CONTENT_LIMIT * 4)}"
        ),
    }
    out = [system] + [m for m in history if m.get("role") != "system"]
    if prompt:
        out.append({"role": "user", "content": prompt})
    return out


def referenced_ids(text: str) -> list[int]:
    seen = []
    for match in _REF_RE.finditer(text or ""):
        note_id = int(match.group(1))
        if note_id not in seen:
            seen.append(note_id)
    return seen


def strip_references(text: str) -> str:
    return _REF_RE.sub("", text or "")


def referenced_notes(text: str, notes) -> list[dict]:
    by_id = {n.id: n for n in notes}
    refs = []
    for note_id in referenced_ids(text):
        note = by_id.get(note_id)
        if note is None:
            # l'IA a cité une note hors contexte: ignorée
            continue
        refs.append({
            "id": note.id,
            "title": note.title or "Untitled",
            "createdAt": _iso(note.created_at),
            "excerpt": truncate(html_to_text(note.content), EXCERPT_LIMIT),
            "confidence": 1,
        })
    return refs
