# tests/test_attachments.py
import io
import logging

from mina_notes.extensions import db
from mina_notes.notes.models import Note
from mina_notes.attachments.models import Attachment, Upload
from mina_notes.attachments.service import generate_upload_name, resolve_upload_path, upload_name

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _h(device_id):
    return {"x-device-id": device_id}


def _upload(client, data=PNG, name="pic.png", mimetype="image/png", device_id="dev1"):
    return client.post(
        "/api/upload",
        headers=_h(device_id),
        data={"image": (io.BytesIO(data), name, mimetype)},
        content_type="multipart/form-data",
    )


def test_upload_stores_file_and_serves_it(client, upload_dir):
    r = _upload(client)
    assert r.status_code == 200
    body = r.get_json()
    assert body["url"] == f"/uploads/{body['filename']}"
    assert body["filename"].endswith(".png")
    assert (upload_dir / body["filename"]).read_bytes() == PNG

    r = client.get(body["url"])
    assert r.status_code == 200
    assert r.data == PNG


def test_upload_rejects_other_types(client, upload_dir):
    r = _upload(client, data=b"hello", name="notes.txt", mimetype="text/plain")
    assert r.status_code == 400
    assert "Invalid file type" in r.get_json()["message"]
    assert list(upload_dir.iterdir()) == []


def test_upload_without_file(client):
    r = client.post("/api/upload", headers=_h("dev1"), data={}, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.get_json()["message"] == "No file uploaded"


def test_upload_too_large(client):
    r = _upload(client, data=b"\x00" * (5 * 1024 * 1024 + 1))
    assert r.status_code == 413


def test_generated_names_are_unique():
    names = {generate_upload_name("photo.JPG") for _ in range(200)}
    assert len(names) == 200
    assert all(n.endswith(".jpg") for n in names)


def test_bind_list_and_get_attachment(client, make_note):
    note = make_note()
    up = _upload(client).get_json()
    r = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    })
    assert r.status_code == 201
    att = r.get_json()
    assert att["note_id"] == note["id"]
    assert att["device_id"] == "dev1"

    r = client.get(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"))
    assert [a["id"] for a in r.get_json()] == [att["id"]]

    r = client.get(f"/api/attachments/{att['id']}", headers=_h("dev1"))
    assert r.status_code == 200
    assert r.get_json()["file_name"] == "pic.png"


def test_bind_requires_fields(client, make_note):
    note = make_note()
    r = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={"file_path": "/uploads/x.png"})
    assert r.status_code == 400


def test_bind_to_foreign_note_is_404(client, make_note):
    note = make_note("dev1")
    r = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev2"), json={
        "file_path": "/uploads/x.png", "file_type": "image/png", "file_name": "x.png",
    })
    assert r.status_code == 404


def test_attachments_are_device_scoped(client, make_note):
    note = make_note("dev1")
    att = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": "https://cdn.example.com/x.png", "file_type": "image/png", "file_name": "x.png",
    }).get_json()

    assert client.get(f"/api/notes/{note['id']}/attachments", headers=_h("dev2")).get_json() == []
    assert client.get(f"/api/attachments/{att['id']}", headers=_h("dev2")).status_code == 404
    assert client.delete(f"/api/attachments/{att['id']}", headers=_h("dev2")).status_code == 404


def test_delete_removes_row_and_file(app, client, make_note, upload_dir):
    note = make_note()
    up = _upload(client).get_json()
    att = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    }).get_json()

    r = client.delete(f"/api/attachments/{att['id']}", headers=_h("dev1"))
    assert r.status_code == 204
    assert not (upload_dir / up["filename"]).exists()
    with app.app_context():
        assert db.session.get(Attachment, att["id"]) is None


def test_delete_with_missing_file_still_removes_row(app, client, make_note, upload_dir, caplog):
    note = make_note()
    up = _upload(client).get_json()
    (upload_dir / up["filename"]).unlink()
    att = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "gone.png",
    }).get_json()

    with caplog.at_level(logging.WARNING, logger="mina_notes.attachments"):
        r = client.delete(f"/api/attachments/{att['id']}", headers=_h("dev1"))
    assert r.status_code == 204
    assert any(rec.getMessage() == "attachment_file_missing" for rec in caplog.records)
    with app.app_context():
        assert db.session.get(Attachment, att["id"]) is None

    # seconde suppression: plus de ligne
    assert client.delete(f"/api/attachments/{att['id']}", headers=_h("dev1")).status_code == 404


def test_delete_never_touches_files_outside_upload_dir(client, make_note, tmp_path):
    outside = tmp_path / "keep-me.png"
    outside.write_bytes(PNG)
    note = make_note()
    att = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": str(outside), "file_type": "image/png", "file_name": "keep-me.png",
    }).get_json()

    assert client.delete(f"/api/attachments/{att['id']}", headers=_h("dev1")).status_code == 204
    assert outside.exists()


def test_upload_is_recorded_for_its_device(app, client):
    up = _upload(client, device_id="dev7").get_json()
    with app.app_context():
        row = db.session.query(Upload).filter_by(filename=up["filename"]).one()
        assert row.device_id == "dev7"
        assert row.mimetype == "image/png"


def test_cannot_bind_another_devices_upload(client, make_note, upload_dir):
    up = _upload(client, device_id="dev1").get_json()
    note2 = make_note("dev2")
    r = client.post(f"/api/notes/{note2['id']}/attachments", headers=_h("dev2"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    })
    assert r.status_code == 400
    assert r.get_json()["message"] == "Unknown upload"
    # même sous forme d'URL absolue
    r = client.post(f"/api/notes/{note2['id']}/attachments", headers=_h("dev2"), json={
        "file_path": f"https://mina.example.com{up['url']}", "file_type": "image/png", "file_name": "pic.png",
    })
    assert r.status_code == 400
    assert (upload_dir / up["filename"]).exists()


def test_bind_unknown_upload_is_rejected(client, make_note):
    note = make_note()
    r = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": "/uploads/never-sent.png", "file_type": "image/png", "file_name": "x.png",
    })
    assert r.status_code == 400


def test_deleting_foreign_reference_never_removes_owner_file(app, client, make_note, upload_dir):
    # dev1 envoie une image et l'utilise dans sa note
    up = _upload(client, device_id="dev1").get_json()
    note1 = make_note("dev1")
    client.post(f"/api/notes/{note1['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    })

    # ligne dev2 pointant sur le fichier de dev1, insérée hors API
    note2 = make_note("dev2")
    with app.app_context():
        row = Attachment(note_id=note2["id"], device_id="dev2", file_path=up["url"],
                         file_type="image/png", file_name="pic.png")
        db.session.add(row)
        db.session.commit()
        foreign_id = row.id

    r = client.delete(f"/api/attachments/{foreign_id}", headers=_h("dev2"))
    assert r.status_code == 204
    assert (upload_dir / up["filename"]).exists()
    with app.app_context():
        assert db.session.query(Upload).filter_by(filename=up["filename"]).count() == 1


def test_shared_upload_kept_until_last_attachment_deleted(client, make_note, upload_dir):
    up = _upload(client).get_json()
    note_a, note_b = make_note(), make_note(title="Other")
    ids = [
        client.post(f"/api/notes/{n['id']}/attachments", headers=_h("dev1"), json={
            "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
        }).get_json()["id"]
        for n in (note_a, note_b)
    ]

    assert client.delete(f"/api/attachments/{ids[0]}", headers=_h("dev1")).status_code == 204
    assert (upload_dir / up["filename"]).exists()
    assert client.delete(f"/api/attachments/{ids[1]}", headers=_h("dev1")).status_code == 204
    assert not (upload_dir / up["filename"]).exists()


def test_attachment_deletable_after_note_soft_delete(app, client, make_note, upload_dir):
    note = make_note()
    up = _upload(client).get_json()
    att = client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    }).get_json()
    client.delete(f"/api/notes/{note['id']}", headers=_h("dev1"))

    # masquée en lecture, mais toujours supprimable par son appareil
    assert client.get(f"/api/attachments/{att['id']}", headers=_h("dev1")).status_code == 404
    assert client.delete(f"/api/attachments/{att['id']}", headers=_h("dev2")).status_code == 404
    assert client.delete(f"/api/attachments/{att['id']}", headers=_h("dev1")).status_code == 204
    assert not (upload_dir / up["filename"]).exists()
    with app.app_context():
        assert db.session.get(Attachment, att["id"]) is None


def test_malformed_attachment_ids_are_400(client):
    r = client.get("/api/attachments/abc", headers=_h("dev1"))
    assert r.status_code == 400
    assert r.get_json() == {"message": "Invalid attachment ID"}
    assert client.delete("/api/attachments/abc", headers=_h("dev1")).status_code == 400
    r = client.get("/api/notes/abc/attachments", headers=_h("dev1"))
    assert r.get_json() == {"message": "Invalid note ID"}


def test_soft_deleting_note_keeps_attachment_files(client, make_note, upload_dir):
    note = make_note()
    up = _upload(client).get_json()
    client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": up["url"], "file_type": "image/png", "file_name": "pic.png",
    })
    client.delete(f"/api/notes/{note['id']}", headers=_h("dev1"))
    assert (upload_dir / up["filename"]).exists()


def test_attachments_cascade_with_note_row(app, client, make_note):
    note = make_note()
    client.post(f"/api/notes/{note['id']}/attachments", headers=_h("dev1"), json={
        "file_path": "https://cdn.example.com/x.png", "file_type": "image/png", "file_name": "x.png",
    })
    with app.app_context():
        db.session.delete(db.session.get(Note, note["id"]))
        db.session.commit()
        assert db.session.query(Attachment).count() == 0


def test_resolve_upload_path():
    assert resolve_upload_path("/uploads/a.png", "/srv/up") == "/srv/up/a.png"
    assert resolve_upload_path("../../etc/passwd", "/srv/up") == "/srv/up/passwd"
    assert resolve_upload_path("", "/srv/up") is None
    assert resolve_upload_path("/uploads/..", "/srv/up") is None


def test_upload_name():
    assert upload_name("/uploads/a.png") == "a.png"
    assert upload_name("https://mina.example.com/uploads/a.png?v=1") == "a.png"
    assert upload_name("/uploads/..") is None
    assert upload_name("/tmp/uploads/a.png") is None
    assert upload_name("https://cdn.example.com/a.png") is None
    assert upload_name("") is None
