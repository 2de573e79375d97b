from datetime import datetime, timezone

from sqlalchemy import update

from backoffice.models.product import Product
from backoffice.models.user import User
from backoffice.core.security import verify_password


def test_create_user_hashes_password_and_hides_it(test_context, admin_headers):
    client, session_local = test_context

    res = client.post(
        "/api/users",
        json={"name": "Ada", "email": "Ada@Example.com", "password": "correct-horse"},
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["email"] == "ada@example.com"
    assert body["role"] == "user"
    assert "password" not in body
    assert "hashedPassword" not in body

    with session_local() as db:
        user = db.get(User, body["id"])
        assert verify_password("correct-horse", user.hashed_password)

    duplicate = client.post(
        "/api/users",
        json={"name": "Ada 2", "email": "ada@example.com", "password": "correct-horse"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error"]["message"] == "Email already registered"

    missing = client.post("/api/users", json={"email": "x@example.com"}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"]["message"] == "Name, email, and password are required"

    listed = client.get("/api/users", headers=admin_headers).json()
    assert [row["email"] for row in listed] == ["ada@example.com"]


def test_dashboard_stats_counts_and_date_range(test_context, admin_headers):
    client, session_local = test_context
    for name in ("Old", "New"):
        res = client.post("/api/products", json={"name": name, "price": 1}, headers=admin_headers)
        assert res.status_code == 201, res.text
    client.post("/api/categories", json={"name": "Stuff"}, headers=admin_headers)

    with session_local() as db:
        db.execute(
            update(Product)
            .where(Product.name == "Old")
            .values(created_at=datetime(2024, 1, 15, 18, 30, tzinfo=timezone.utc))
        )
        db.commit()

    res = client.get("/api/dashboard/stats", headers=admin_headers)
    assert res.status_code == 200, res.text
    stats = res.json()
    assert stats["products"] == 2
    assert stats["categories"] == 1
    assert stats["adminUsers"] == 1
    assert stats["customers"] == 0
    assert stats["orders"] == 0
    assert stats["dateRange"] == {"startDate": None, "endDate": None}

    # The end date covers the whole day.
    ranged = client.get(
        "/api/dashboard/stats?startDate=2024-01-01&endDate=2024-01-15",
        headers=admin_headers,
    ).json()
    assert ranged["products"] == 1
    assert ranged["categories"] == 0
    assert ranged["dateRange"] == {"startDate": "2024-01-01", "endDate": "2024-01-15"}

    inverted = client.get(
        "/api/dashboard/stats?startDate=2024-02-01&endDate=2024-01-01",
        headers=admin_headers,
    )
    assert inverted.status_code == 400
