from io import BytesIO

import pytest
from openpyxl import load_workbook


@pytest.fixture()
def catalog(client):
    collection = client.post("/menu-collections", json={"name": "Main Menu"}).json()
    rice = client.post(
        "/menu-items",
        json={"name": "Fried Rice", "price": 10000, "category": "Food", "menuCollectionId": collection["id"]},
    ).json()
    noodles = client.post(
        "/menu-items",
        json={"name": "Beef Noodles", "price": 20000, "category": "Food", "menuCollectionId": collection["id"]},
    ).json()
    return collection, rice, noodles


@pytest.fixture()
def table_id(client):
    response = client.post("/tables", json={"name": "T1", "type": "regular"})
    assert response.status_code == 201
    return response.json()["id"]


def open_order(client, table_id, *lines):
    order = client.post("/orders", json={"tableId": table_id, "tableName": "T1", "status": "active", "total": 0})
    assert order.status_code == 201
    order = order.json()
    for menu_item_id, quantity in lines:
        response = client.post(
            f"/orders/{order['id']}/items", json={"menuItemId": menu_item_id, "quantity": quantity}
        )
        assert response.status_code == 201
        order = response.json()
    return order


def table_status(client, table_id):
    return next(t["status"] for t in client.get("/tables").json() if t["id"] == table_id)


def test_tables_endpoints(client, table_id):
    assert client.get("/tables").json() == [
        {"id": table_id, "name": "T1", "type": "regular", "status": "available"}
    ]
    assert client.put(f"/tables/{table_id}/status", json={"status": "reserved"}).json()["status"] == "reserved"
    assert client.put(f"/tables/{table_id}/status", json={"status": "dirty"}).status_code == 422
    assert client.delete(f"/tables/{table_id}").status_code == 409
    client.put(f"/tables/{table_id}/status", json={"status": "available"})
    assert client.delete(f"/tables/{table_id}").json() == {"ok": True}
    assert client.delete(f"/tables/{table_id}").status_code == 404
    assert client.post("/tables", json={"name": "   ", "type": "regular"}).status_code == 400


def test_menu_endpoints(client, catalog):
    collection, rice, _ = catalog
    assert rice["menuCollectionId"] == collection["id"]
    assert rice["available"] is True

    found = client.get("/menu-items", params={"searchTerm": "noodle"}).json()
    assert [item["name"] for item in found] == ["Beef Noodles"]
    by_collection = client.get("/menu-items", params={"collectionId": collection["id"], "category": "Food"})
    assert len(by_collection.json()) == 2

    updated = client.put(f"/menu-items/{rice['id']}", json={"price": 11000})
    assert updated.json()["price"] == 11000
    assert client.get(f"/menu-items/{rice['id']}").json()["name"] == "Fried Rice"

    assert client.delete(f"/menu-collections/{collection['id']}").status_code == 409
    assert client.post("/menu-collections", json={"name": "Main Menu"}).status_code == 409
    renamed = client.put(f"/menu-collections/{collection['id']}", json={"isActive": False})
    assert renamed.json()["isActive"] is False
    assert client.get("/menu-collections/999").status_code == 404


def test_order_flow_and_full_checkout(client, catalog, table_id):
    _, rice, noodles = catalog
    assert client.get(f"/tables/{table_id}/active-order").json() is None

    order = open_order(client, table_id, (rice["id"], 1), (noodles["id"], 1))
    assert order["total"] == 30000
    assert order["status"] == "active"
    assert table_status(client, table_id) == "occupied"

    noodles_line = order["items"][1]
    item = client.put(f"/order-items/{noodles_line['id']}", json={"quantity": 3, "note": "less salt"}).json()
    assert item["totalPrice"] == 60000
    assert item["note"] == "less salt"

    active = client.get(f"/tables/{table_id}/active-order").json()
    assert active["id"] == order["id"]
    assert active["total"] == 70000
    assert len(active["items"]) == 2

    noted = client.put(f"/orders/{order['id']}/note", json={"note": "window seat"})
    assert noted.json()["note"] == "window seat"

    done = client.put(
        f"/orders/{order['id']}/complete", json={"paymentMethod": "Cash", "discountAmount": 5000}
    )
    assert done.status_code == 200
    assert done.json()["status"] == "completed"
    assert table_status(client, table_id) == "available"

    (bill,) = client.get("/bills").json()
    assert bill["totalAmount"] == 65000
    assert bill["discountAmount"] == 5000
    items = client.get(f"/bills/{bill['id']}/items").json()
    assert [i["menuItemName"] for i in items] == ["Fried Rice", "Beef Noodles"]
    assert client.get("/revenue/daily").json() == {"revenue": 65000}
    assert client.get("/revenue/by-table").json() == [
        {"tableName": "T1", "orderCount": 1, "revenue": 65000}
    ]


def test_duplicate_order_for_table(client, table_id):
    open_order(client, table_id)
    response = client.post("/orders", json={"tableId": table_id})
    assert response.status_code == 409
    assert len(client.get("/orders").json()) == 1


def test_remove_item(client, catalog, table_id):
    _, rice, noodles = catalog
    order = open_order(client, table_id, (rice["id"], 2), (noodles["id"], 1))
    removed = client.delete(f"/order-items/{order['items'][1]['id']}")
    assert removed.status_code == 200
    assert removed.json()["total"] == 20000
    assert client.delete("/order-items/999").status_code == 404
    assert len(client.get(f"/orders/{order['id']}/items").json()) == 1


def test_partial_payment_endpoint(client, catalog, table_id):
    _, rice, noodles = catalog
    order = open_order(client, table_id, (rice["id"], 2), (noodles["id"], 1))
    a, b = (line["id"] for line in order["items"])
    url = f"/orders/{order['id']}/partial-payment"

    rejected = client.post(
        url,
        json={
            "itemsToPay": [{"orderItemId": a, "quantity": 5}],
            "paymentMethod": "Cash",
            "partialDiscountAmount": 0,
        },
    )
    assert rejected.status_code == 400
    assert client.get("/bills").json() == []

    first = client.post(
        url,
        json={"itemsToPay": [{"orderItemId": a, "quantity": 1}], "paymentMethod": "Cash", "partialDiscountAmount": 0},
    ).json()
    assert first["status"] == "active"
    assert first["total"] == 30000

    second = client.post(
        url,
        json={
            "itemsToPay": [{"orderItemId": a, "quantity": 1}, {"orderItemId": b, "quantity": 1}],
            "paymentMethod": "Transfer",
            "partialDiscountAmount": 0,
        },
    ).json()
    assert second["status"] == "completed"
    assert second["items"] == []
    assert table_status(client, table_id) == "available"
    assert [bill["totalAmount"] for bill in client.get("/bills").json()] == [10000, 30000]


def test_cancel_endpoint(client, catalog, table_id):
    _, rice, noodles = catalog
    order = open_order(client, table_id, (rice["id"], 1), (noodles["id"], 1), (rice["id"], 1))
    cancelled = client.put(f"/orders/{order['id']}/cancel", json={"tableId": table_id})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["total"] == 0
    assert client.get(f"/orders/{order['id']}/items").json() == []
    assert table_status(client, table_id) == "available"
    assert client.put(f"/orders/{order['id']}/cancel").json()["status"] == "cancelled"
    assert client.put("/orders/999/cancel", json={"tableId": table_id}).status_code == 404


def test_bad_payment_requests(client, catalog, table_id):
    order = open_order(client, table_id, (catalog[1]["id"], 1))
    url = f"/orders/{order['id']}/complete"
    assert client.put(url, json={"paymentMethod": "Gold", "discountAmount": 0}).status_code == 400
    assert client.put(url, json={"paymentMethod": "Cash", "discountAmount": -5}).status_code == 400
    assert client.put("/orders/999/complete", json={"paymentMethod": "Cash"}).status_code == 404


def test_bad_dates(client):
    assert client.get("/revenue/daily", params={"date": "not-a-date"}).status_code == 400
    assert client.get("/bills", params={"startDate": "31/12/2024"}).status_code == 400


def test_export_bills(client, catalog, table_id):
    order = open_order(client, table_id, (catalog[1]["id"], 1))
    client.put(f"/orders/{order['id']}/complete", json={"paymentMethod": "Card", "discountAmount": 0})
    response = client.get("/reports/export-bills")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "attachment" in response.headers["content-disposition"]
    rows = list(load_workbook(BytesIO(response.content)).active.iter_rows(values_only=True))
    assert len(rows) == 2
    assert rows[1][3] == "Card"
