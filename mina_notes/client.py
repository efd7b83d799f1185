"""Client HTTP pour l'API Mina Notes.

La session (identifiant appareil + jeton éventuel) est un objet explicite passé
à la construction du client: pas d'état global partagé par le processus.
Aucune relance automatique; toute réponse non-2xx lève ``ClientError``.
"""
import uuid
from dataclasses import dataclass

import httpx

from mina_notes.common.device import DEVICE_HEADER


@dataclass(frozen=True)
class DeviceSession:
    device_id: str
    token: str | None = None

    @classmethod
    def new(cls) -> "DeviceSession":
        return cls(device_id=str(uuid.uuid4()))

    def with_token(self, token: str | None) -> "DeviceSession":
        return DeviceSession(device_id=self.device_id, token=token)

    def headers(self) -> dict:
        headers = {DEVICE_HEADER: self.device_id}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


class ClientError(Exception):
    def __init__(self, status_code: int, message: str, body=None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


class NotesClient:
    def __init__(self, base_url: str, session: DeviceSession, transport: httpx.BaseTransport | None = None, timeout: float = 30.0):
        self.session = session
        self._http = httpx.Client(
            base_url=base_url,
            headers=session.headers(),
            transport=transport,
            timeout=timeout,
        )

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, url: str, **kwargs):
        resp = self._http.request(method, url, **kwargs)
        if resp.status_code >= 400:
            try:
                body = resp.json()
                message = (body.get("message") if isinstance(body, dict) else None) or resp.reason_phrase
            except ValueError:
                body = resp.text
                message = resp.text or resp.reason_phrase
            raise ClientError(resp.status_code, message, body)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # --- notes
    def list_notes(self) -> list[dict]:
        return self._request("GET", "/api/notes")

    def get_note(self, note_id: int) -> dict:
        return self._request("GET", f"/api/notes/{note_id}")

    def create_note(self, title: str, content: str, **metadata) -> dict:
        return self._request("POST", "/api/notes", json={"title": title, "content": content, **metadata})

    def update_note(self, note_id: int, **fields) -> dict:
        return self._request("PUT", f"/api/notes/{note_id}", json=fields)

    def delete_note(self, note_id: int) -> None:
        self._request("DELETE", f"/api/notes/{note_id}")

    # --- uploads & attachments
    def upload_image(self, filename: str, data: bytes, content_type: str) -> dict:
        return self._request("POST", "/api/upload", files={"image": (filename, data, content_type)})

    def list_attachments(self, note_id: int) -> list[dict]:
        return self._request("GET", f"/api/notes/{note_id}/attachments")

    def create_attachment(self, note_id: int, file_path: str, file_type: str, file_name: str) -> dict:
        payload = {"file_path": file_path, "file_type": file_type, "file_name": file_name}
        return self._request("POST", f"/api/notes/{note_id}/attachments", json=payload)

    def get_attachment(self, attachment_id: int) -> dict:
        return self._request("GET", f"/api/attachments/{attachment_id}")

    def delete_attachment(self, attachment_id: int) -> None:
        self._request("DELETE", f"/api/attachments/{attachment_id}")

    # --- ai chats
    def list_chats(self, note_id: int) -> list[dict]:
        return self._request("GET", f"/api/notes/{note_id}/ai-chats")

    def create_chat(self, note_id: int, messages: list[dict]) -> dict:
        return self._request("POST", f"/api/notes/{note_id}/ai-chats", json={"messages": messages})

    def get_chat(self, chat_id: int) -> dict:
        return self._request("GET", f"/api/ai-chats/{chat_id}")

    def update_chat(self, chat_id: int, messages: list[dict]) -> dict:
        return self._request("PUT", f"/api/ai-chats/{chat_id}", json={"messages": messages})

    def delete_chat(self, chat_id: int) -> None:
        self._request("DELETE", f"/api/ai-chats/{chat_id}")

    # --- ai
    def chat(self, messages: list[dict]) -> dict:
        return self._request("POST", "/api/ai/chat", json={"messages": messages})

    def generate(self, note_id: int, prompt: str, messages: list[dict] | None = None) -> dict:
        return self._request(
            "POST", f"/api/notes/{note_id}/ai/generate", json={"prompt": prompt, "messages": messages or []}
        )

    def dashboard_chat(self, messages: list[dict], note_ids: list[int] | None = None) -> dict:
        payload = {"messages": messages}
        if note_ids is not None:
            payload["notes"] = [{"id": i} for i in note_ids]
        return self._request("POST", "/api/ai/dashboard-chat", json=payload)
