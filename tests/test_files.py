# tests/test_files.py
import os

from conftest import API, create_project
from shankai.config.settings import settings
from shankai.models.file import ProjectFile


def _blobs(storage):
    return os.listdir(storage.root)


def test_upload_list_and_delete(client, alice, storage, db):
    project = create_project(client, alice)
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("report.PDF", b"%PDF-1.4 fake", "application/pdf")},
        headers=alice,
    )
    assert resp.status_code == 201
    uploaded = resp.json()["file"]
    assert uploaded["original_name"] == "report.PDF"
    assert uploaded["mime_type"] == "application/pdf"
    assert uploaded["size"] == len(b"%PDF-1.4 fake")
    assert uploaded["filename"].endswith(".pdf")
    assert "path" not in uploaded
    assert _blobs(storage) == [uploaded["filename"]]

    resp = client.get(f"{API}/files/{project['id']}", headers=alice)
    assert [f["id"] for f in resp.json()["files"]] == [uploaded["id"]]

    resp = client.delete(f"{API}/files/{project['id']}/{uploaded['id']}", headers=alice)
    assert resp.status_code == 200
    assert db.query(ProjectFile).count() == 0
    assert _blobs(storage) == []


def test_disallowed_type_is_rejected_without_side_effects(client, alice, storage, db):
    project = create_project(client, alice)
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("tool.exe", b"MZ....", "application/x-msdownload")},
        headers=alice,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "File type not allowed"
    assert db.query(ProjectFile).count() == 0
    assert _blobs(storage) == []


def test_mime_parameters_are_ignored(client, alice, storage):
    project = create_project(client, alice)
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("a.txt", b"hello", "text/plain; charset=utf-8")},
        headers=alice,
    )
    assert resp.status_code == 201
    assert resp.json()["file"]["mime_type"] == "text/plain"


def test_oversized_upload_is_rejected(client, alice, storage, db, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 8)
    project = create_project(client, alice)
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("big.txt", b"0123456789", "text/plain")},
        headers=alice,
    )
    assert resp.status_code == 400
    assert db.query(ProjectFile).count() == 0
    assert _blobs(storage) == []


def test_missing_file_field(client, alice, storage):
    project = create_project(client, alice)
    resp = client.post(f"{API}/files/{project['id']}", headers=alice)
    assert resp.status_code == 400


def test_files_are_scoped_to_owner(client, alice, bob, storage, db):
    project = create_project(client, alice)
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("a.txt", b"hello", "text/plain")},
        headers=alice,
    )
    file_id = resp.json()["file"]["id"]

    assert client.get(f"{API}/files/{project['id']}", headers=bob).status_code == 404
    resp = client.post(
        f"{API}/files/{project['id']}",
        files={"file": ("b.txt", b"hi", "text/plain")},
        headers=bob,
    )
    assert resp.status_code == 404
    resp = client.delete(f"{API}/files/{project['id']}/{file_id}", headers=bob)
    assert resp.status_code == 404
    assert db.query(ProjectFile).count() == 1
    assert len(_blobs(storage)) == 1


def test_file_must_belong_to_the_project(client, alice, storage):
    p = create_project(client, alice, name="P")
    q = create_project(client, alice, name="Q")
    resp = client.post(
        f"{API}/files/{p['id']}",
        files={"file": ("a.txt", b"hello", "text/plain")},
        headers=alice,
    )
    file_id = resp.json()["file"]["id"]
    resp = client.delete(f"{API}/files/{q['id']}/{file_id}", headers=alice)
    assert resp.status_code == 404
    assert resp.json()["error"] == "File not found"
