"""
Tests for the public catalog and health endpoints.
"""


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_catalog_is_public(client, make_item):
    first = make_item("mug", "4.50", "ceramic")
    second = make_item("pen", "1.25")

    response = client.get("/items")

    assert response.status_code == 200
    body = response.json()
    assert [i["id"] for i in body] == [first.id, second.id]
    assert body[0] == {
        "id": first.id,
        "name": "mug",
        "desc": "ceramic",
        "price": 4.5,
        "created_at": body[0]["created_at"],
    }


def test_unknown_item(client):
    response = client.get("/items/404")

    assert response.status_code == 400
    assert response.json() == {"error": "Item 404 not found"}


def test_unknown_route(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_out_of_range_item_id(client):
    for raw_id in ("0", "99999999999999999999"):
        response = client.get(f"/items/{raw_id}")

        assert response.status_code == 400
        assert "error" in response.json()
