import hashlib
import hmac
import itertools
import os
import tempfile

UPLOAD_DIR = tempfile.mkdtemp(prefix="storefront-tests-")

# settings are read at import time
os.environ.update({
    "ENV": "test",
    "DATABASE_URI": "sqlite://",
    "SECRET_KEY": "test-jwt-secret",
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": "rzp_test_secret",
    "STORAGE_BACKEND": "disk",
    "UPLOAD_DIR": UPLOAD_DIR,
    "LOG_LEVEL": "WARNING",
})

import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

import storefront.models  # noqa: E402,F401
from storefront.database import engine  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models.book import Book  # noqa: E402
from storefront.models.user import User  # noqa: E402
from storefront.services.payment_gateway import RazorpayGateway, get_payment_gateway  # noqa: E402
from storefront.services.storage import DiskStorage, get_storage  # noqa: E402

GATEWAY_SECRET = "rzp_test_secret"
PDF_BYTES = b"%PDF-1.4\n% storefront test\n%%EOF\n"


class FakeS3:
    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.presigned = []

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body
        self.content_types[Key] = ContentType

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.presigned.append((operation, Params, ExpiresIn))
        return f"https://signed.example/{Params['Key']}?expires={ExpiresIn}"

    def get_object(self, Bucket, Key):
        raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)


def sign(gateway_order_id: str, gateway_payment_id: str, secret: str = GATEWAY_SECRET) -> str:
    body = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


@pytest.fixture(autouse=True)
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def storage(tmp_path):
    backend = DiskStorage(str(tmp_path / "uploads"))
    app.dependency_overrides[get_storage] = lambda: backend
    return backend


@pytest.fixture
def gateway_calls():
    return []


@pytest.fixture
def gateway(monkeypatch, gateway_calls):
    backend = RazorpayGateway("rzp_test_key", GATEWAY_SECRET, currency="INR", timeout=3)
    counter = itertools.count(1)

    def fake_create(data=None, **kwargs):
        gateway_calls.append({"data": data, "kwargs": kwargs})
        return {
            "id": f"order_test{next(counter):04d}",
            "amount": data["amount"],
            "currency": data["currency"],
            "status": "created",
        }

    monkeypatch.setattr(backend.client.order, "create", fake_create)
    app.dependency_overrides[get_payment_gateway] = lambda: backend
    return backend


@pytest.fixture
def client(storage, gateway):
    with TestClient(app) as c:
        yield c


def register(client, email="reader@example.com", name="Reader", password="secret123"):
    res = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    body = res.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


def promote(user_id: int):
    with Session(engine) as session:
        user = session.get(User, user_id)
        user.role = "admin"
        session.add(user)
        session.commit()


def add_book(storage, title="Deep Work", price=500, description="Rules for focused success") -> int:
    pdf_ref = storage.put("pdfs/deep-work.pdf", PDF_BYTES, "application/pdf")
    thumb_ref = storage.put("thumbnails/deep-work.png", b"\x89PNG", "image/png")
    with Session(engine) as session:
        book = Book(
            title=title,
            description=description,
            price=price,
            thumbnail_ref=thumb_ref,
            pdf_ref=pdf_ref,
        )
        session.add(book)
        session.commit()
        session.refresh(book)
        return book.id


@pytest.fixture
def user_headers(client):
    headers, _ = register(client)
    return headers


@pytest.fixture
def admin_headers(client):
    headers, user = register(client, email="admin@example.com", name="Admin")
    promote(user["id"])
    return headers


@pytest.fixture
def book_id(storage):
    return add_book(storage)
