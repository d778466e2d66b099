from sqlalchemy.exc import OperationalError

from storefront.database import get_session
from storefront.main import app


def _database_down():
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_database_outage_is_service_unavailable(client, user_headers):
    app.dependency_overrides[get_session] = _database_down

    for res in (
        client.get("/books"),
        client.post("/payments/create-order", json={"itemId": 1}, headers=user_headers),
    ):
        assert res.status_code == 503
        assert res.json() == {"message": "Database unavailable. Please try again later."}

