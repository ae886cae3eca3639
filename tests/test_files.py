"""Private file uploads: durable keys, signed URLs"""

from app.models import UserFile


def test_upload_stores_object_and_returns_signed_url(client, maid, storage, db):
    response = client.post(
        "/files",
        files={"file": ("../../My CV (final).pdf", b"%PDF-1.4 resume", "application/pdf")},
        headers=maid.headers,
    )
    assert response.status_code == 201
    data = response.json()

    assert data["key"].startswith(f"user-files/{maid.id}/")
    assert data["key"].endswith(".pdf")
    assert data["fileName"] == "My CV final.pdf"
    assert data["size"] == len(b"%PDF-1.4 resume")
    assert data["url"] == f"https://files.test/{data['key']}?expires=900"
    assert storage.objects[data["key"]] == (b"%PDF-1.4 resume", "application/pdf")

    stored = db.query(UserFile).filter(UserFile.id == data["id"]).one()
    assert stored.owner_id == maid.id
    assert stored.key == data["key"]


def test_disallowed_type_is_refused(client, maid, storage):
    response = client.post("/files", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=maid.headers)
    assert response.status_code == 400
    assert storage.objects == {}


def test_empty_file_is_refused(client, maid):
    response = client.post("/files", files={"file": ("blank.png", b"", "image/png")}, headers=maid.headers)
    assert response.status_code == 400


def test_fresh_url_for_owner_only(client, maid, maid2):
    upload = client.post("/files", files={"file": ("p.webp", b"RIFF....WEBP", "image/webp")}, headers=maid.headers).json()

    response = client.get(f"/files/{upload['id']}/url", headers=maid.headers)
    assert response.status_code == 200
    assert response.json()["url"].startswith(f"https://files.test/{upload['key']}")

    assert client.get(f"/files/{upload['id']}/url", headers=maid2.headers).status_code == 404


def test_upload_requires_authentication(client):
    response = client.post("/files", files={"file": ("p.png", b"png", "image/png")})
    assert response.status_code == 401
