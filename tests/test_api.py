import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.config import settings
from app.database import enable_sqlite_foreign_keys, get_session
from app.db import models  # noqa: F401
from app.dependencies import get_storage
from app.infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository
from app.infrastructure.storage import LocalStorageAdapter
from app.main import app
from app.utils import hash_password
from fakes import PASSWORD, make_image_bytes


@pytest.fixture
def client(tmp_path):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    storage = LocalStorageAdapter(str(tmp_path), "http://testserver", settings.SECRET_KEY, settings.ALGORITHM)
    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_storage] = lambda: storage

    with Session(engine) as session:
        SqlAccountRepository(session).create("ops@farm.test", hash_password(PASSWORD), "ADMIN")

    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, email, password=PASSWORD):
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def create_client(client, admin, email):
    res = client.post("/api/admin/clients", json={"email": email, "password": PASSWORD}, headers=admin)
    assert res.status_code == 200, res.text
    return res.json()["client"]


def upload(client, admin, email, data=None, filename="field.png", content_type="image/png"):
    data = data if data is not None else make_image_bytes("PNG", size=(400, 300))
    return client.post(
        "/api/images/upload",
        files={"file": (filename, data, content_type)},
        data={"clientEmail": email},
        headers=admin,
    )


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


def test_login_failure_uses_error_envelope(client):
    res = client.post("/api/auth/login", json={"email": "ops@farm.test", "password": "Wr0ng!Pass"})
    assert res.status_code == 401
    assert res.json() == {"success": False, "data": None, "error": "Invalid email or password"}


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/images").status_code == 401
    assert client.get("/api/admin/clients").status_code == 401


def test_me_returns_account(client):
    admin = login(client, "ops@farm.test")
    res = client.get("/api/auth/me", headers=admin)
    assert res.status_code == 200
    assert res.json()["account"]["role"] == "ADMIN"


def test_admin_uploads_image_for_client(client, tmp_path):
    admin = login(client, "ops@farm.test")
    grower = create_client(client, admin, "grower@farm.test")

    res = upload(client, admin, "grower@farm.test")

    assert res.status_code == 200, res.text
    image = res.json()["image"]
    assert image["clientId"] == grower["id"]
    assert image["clientEmail"] == "grower@farm.test"
    assert image["url"].startswith("http://testserver/uploads/originals/")
    assert image["thumbnailUrl"].startswith("http://testserver/uploads/thumbnails/")
    assert image["optimizedUrl"] is None
    assert image["metadata"]["dimensions"] == "400x300"
    assert image["metadata"]["processingStatus"] == "completed"
    assert image["validation"]["isValid"] is True
    assert (tmp_path / "originals" / grower["id"]).is_dir()


def test_upload_validation_errors(client):
    admin = login(client, "ops@farm.test")
    create_client(client, admin, "grower@farm.test")

    res = upload(client, admin, "grower@farm.test", data=b"GIF89a", filename="field.gif", content_type="image/gif")
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid file type. Only TIFF, PNG, and JPEG files are allowed."

    res = client.post("/api/images/upload", data={"clientEmail": "grower@farm.test"}, headers=admin)
    assert res.status_code == 400
    assert res.json()["error"] == "No file uploaded"

    res = upload(client, admin, "missing@farm.test")
    assert res.status_code == 404
    assert res.json()["error"] == "Client not found"


def test_clients_cannot_upload(client):
    admin = login(client, "ops@farm.test")
    create_client(client, admin, "grower@farm.test")
    grower = login(client, "grower@farm.test")
    res = upload(client, grower, "grower@farm.test")
    assert res.status_code == 403
    assert res.json()["error"] == "Admin access required"


def test_direct_upload_stores_original_only(client):
    admin = login(client, "ops@farm.test")
    grower = create_client(client, admin, "grower@farm.test")
    res = client.post(
        "/api/images",
        files={"file": ("field.png", make_image_bytes(), "image/png")},
        data={"clientId": grower["id"]},
        headers=admin,
    )
    assert res.status_code == 200, res.text
    image = res.json()["image"]
    assert image["thumbnailUrl"] is None
    assert image["metadata"]["dimensions"] is None


def test_image_access_is_scoped_to_owner(client):
    admin = login(client, "ops@farm.test")
    create_client(client, admin, "alice@farm.test")
    create_client(client, admin, "bob@farm.test")
    image_id = upload(client, admin, "alice@farm.test").json()["image"]["id"]
    alice = login(client, "alice@farm.test")
    bob = login(client, "bob@farm.test")

    assert [i["id"] for i in client.get("/api/images", headers=alice).json()["images"]] == [image_id]
    assert client.get("/api/images", headers=bob).json()["images"] == []
    assert client.get(f"/api/images/{image_id}", headers=alice).status_code == 200
    assert client.get(f"/api/images/{image_id}", headers=bob).status_code == 403
    assert client.delete(f"/api/images/{image_id}", headers=bob).status_code == 403
    assert client.get("/api/images/missing", headers=alice).status_code == 404


def test_update_and_delete_image(client):
    admin = login(client, "ops@farm.test")
    create_client(client, admin, "grower@farm.test")
    image_id = upload(client, admin, "grower@farm.test").json()["image"]["id"]

    res = client.put(f"/api/images/{image_id}", json={"title": "North field", "imageType": "GNDVI"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["image"]["title"] == "North field"
    assert res.json()["image"]["imageType"] == "GNDVI"

    res = client.put(f"/api/images/{image_id}", json={"imageType": "RGB"}, headers=admin)
    assert res.status_code == 400

    res = client.delete(f"/api/images/{image_id}", headers=admin)
    assert res.status_code == 200
    assert res.json()["deletedImageId"] == image_id
    assert client.get(f"/api/images/{image_id}", headers=admin).status_code == 404


def test_signed_url_downloads_local_file(client):
    admin = login(client, "ops@farm.test")
    create_client(client, admin, "grower@farm.test")
    data = make_image_bytes()
    image = upload(client, admin, "grower@farm.test", data=data).json()["image"]
    grower = login(client, "grower@farm.test")

    res = client.post("/api/images/signed-url", json={"url": image["url"]}, headers=grower)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["expiresIn"] == 3600

    download = client.get(body["signedUrl"])
    assert download.status_code == 200
    assert download.content == data

    assert client.get("/api/images/local/not-a-token").status_code == 401
    res = client.post("/api/images/signed-url", json={}, headers=grower)
    assert res.status_code == 400


def test_admin_client_management(client):
    admin = login(client, "ops@farm.test")
    grower = create_client(client, admin, "grower@farm.test")
    upload(client, admin, "grower@farm.test")
    upload(client, admin, "grower@farm.test")

    clients = client.get("/api/admin/clients", headers=admin).json()["clients"]
    assert [(c["email"], c["imageCount"]) for c in clients] == [("grower@farm.test", 2)]

    res = client.get(f"/api/admin/clients/{grower['id']}/images", headers=admin)
    assert res.status_code == 200
    assert len(res.json()["images"]) == 2

    res = client.post("/api/admin/clients", json={"email": "grower@farm.test", "password": PASSWORD}, headers=admin)
    assert res.status_code == 400
    assert res.json()["error"] == "User with this email already exists"

    res = client.delete(f"/api/admin/clients/{grower['id']}", headers=admin)
    assert res.status_code == 200
    assert client.get("/api/admin/clients", headers=admin).json()["clients"] == []
    assert client.get("/api/images", headers=admin).json()["images"] == []


def test_admin_accounts(client):
    admin = login(client, "ops@farm.test")
    res = client.post("/api/admin/admins", json={"email": "second@farm.test", "password": PASSWORD}, headers=admin)
    assert res.status_code == 200
    assert res.json()["admin"]["role"] == "ADMIN"
    emails = {a["email"] for a in client.get("/api/admin/admins", headers=admin).json()["admins"]}
    assert emails == {"ops@farm.test", "second@farm.test"}


def test_change_password(client):
    admin = login(client, "ops@farm.test")
    res = client.put(
        "/api/user/password",
        json={"currentPassword": PASSWORD, "newPassword": "N3w!Harvest#q"},
        headers=admin,
    )
    assert res.status_code == 200
    login(client, "ops@farm.test", "N3w!Harvest#q")

    res = client.put(
        "/api/user/password",
        json={"currentPassword": PASSWORD, "newPassword": "weak"},
        headers=admin,
    )
    assert res.status_code == 400
    assert res.json()["details"]


def test_client_listing_honours_limit_and_offset(client):
    admin = login(client, "ops@farm.test")
    grower = create_client(client, admin, "grower@farm.test")
    for _ in range(3):
        upload(client, admin, "grower@farm.test")
    headers = login(client, "grower@farm.test")

    assert len(client.get("/api/images?limit=2", headers=headers).json()["images"]) == 2
    assert len(client.get("/api/images?limit=2&offset=2", headers=headers).json()["images"]) == 1
    res = client.get(f"/api/images?clientId={grower['id']}&limit=1", headers=admin)
    assert len(res.json()["images"]) == 1
