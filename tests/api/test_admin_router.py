"""
Admin API Tests

Token check, promo code management, cart and order views, offer plans and pack sizes.
"""

from decimal import Decimal

import pytest

import config
from utils.user_token import issue_user_token

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}

ORDER_REQUEST = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "country": "Germany",
    "state": "Berlin",
    "city": "Berlin",
    "phone": "4930123456",
    "shipping_address": "Unter den Linden 1",
    "zip_code": "10117",
}


def user_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {issue_user_token(user_id, config.USER_TOKEN_SECRET)}"}


class TestAdminToken:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"X-Admin-Token": "wrong"}])
    async def test_rejected(self, client, headers):
        response = await client.get("/admin/promo-codes", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"status": False, "message": "Unauthorized", "details": {}}


class TestAdminPromoCodes:

    @pytest.mark.asyncio
    async def test_create_with_alias_type(self, client):
        response = await client.post("/admin/promo-codes", headers=ADMIN_HEADERS, json={
            "code": "SPRING", "discount": "15", "type": "percentage",
            "start_date": "2025-03-01T00:00:00", "end_date": "2025-05-31T23:59:59"
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["type"] == "Percantage"
        assert data["status"] == "Active"

    @pytest.mark.asyncio
    async def test_create_unknown_type(self, client):
        response = await client.post("/admin/promo-codes", headers=ADMIN_HEADERS, json={
            "code": "ODD", "discount": "15", "type": "bogo",
            "start_date": "2025-03-01T00:00:00", "end_date": "2025-05-31T23:59:59"
        })

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate(self, client, promo_codes):
        response = await client.post("/admin/promo-codes", headers=ADMIN_HEADERS, json={
            "code": "TENOFF", "discount": "5", "type": "Amount",
            "start_date": "2025-03-01T00:00:00", "end_date": "2025-05-31T23:59:59"
        })

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_list_update_toggle_delete(self, client, promo_codes):
        response = await client.get("/admin/promo-codes", headers=ADMIN_HEADERS, params={"search": "flat"})
        assert response.json()["data"]["total"] == 1

        promocode_id = promo_codes["FLAT30"]
        response = await client.patch(f"/admin/promo-codes/{promocode_id}", headers=ADMIN_HEADERS,
                                      json={"discount": "35", "code": None})
        assert response.status_code == 200
        assert Decimal(str(response.json()["data"]["discount"])) == Decimal("35")
        assert response.json()["data"]["code"] == "FLAT30"

        response = await client.post(f"/admin/promo-codes/{promocode_id}/toggle", headers=ADMIN_HEADERS)
        assert response.json()["data"]["status"] == "InActive"

        response = await client.delete(f"/admin/promo-codes/{promocode_id}", headers=ADMIN_HEADERS)
        assert response.status_code == 200

        response = await client.get(f"/admin/promo-codes/{promocode_id}", headers=ADMIN_HEADERS)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_reversed_window(self, client, promo_codes):
        response = await client.patch(f"/admin/promo-codes/{promo_codes['TENOFF']}", headers=ADMIN_HEADERS,
                                      json={"end_date": "2023-01-01T00:00:00"})

        assert response.status_code == 400


class TestAdminCartsAndOrders:

    @pytest.mark.asyncio
    async def test_cart_list_and_detail(self, client, catalog):
        await client.post("/api/cart", headers=user_headers(catalog["user_id"]), json={
            "email": "jane@example.com",
            "items": [{"product_id": catalog["products"]["percent"],
                       "packsize_id": catalog["pack_sizes"]["percent"], "quantity": 2}]
        })

        response = await client.get("/admin/carts", headers=ADMIN_HEADERS)
        carts = response.json()["data"]["items"]
        assert len(carts) == 1

        response = await client.get(f"/admin/carts/{carts[0]['id']}", headers=ADMIN_HEADERS)
        data = response.json()["data"]
        assert data["cart"]["user_id"] == catalog["user_id"]
        assert Decimal(str(data["pricing"]["total"])) == Decimal("90")

    @pytest.mark.asyncio
    async def test_order_admin_flow(self, client, catalog):
        response = await client.post("/api/orders", headers=user_headers(catalog["user_id"]), json={
            **ORDER_REQUEST,
            "items": [{"product_id": catalog["products"]["fixed"],
                       "packsize_id": catalog["pack_sizes"]["fixed"], "quantity": 1}]
        })
        order_id = response.json()["data"]["id"]

        response = await client.get("/admin/orders", headers=ADMIN_HEADERS,
                                    params={"column": "total_amount", "order": "asc"})
        assert response.json()["data"]["total"] == 1

        response = await client.patch(f"/admin/orders/{order_id}/status", headers=ADMIN_HEADERS,
                                      json={"status": "Confirmed"})
        assert response.json()["data"]["status"] == "Confirmed"

        response = await client.patch(f"/admin/orders/{order_id}/payment-status", headers=ADMIN_HEADERS,
                                      json={"payment_status": "Paid"})
        assert response.status_code == 200
        assert response.json()["data"]["payment_status"] == "Paid"

        response = await client.get(f"/admin/orders/{order_id}/items", headers=ADMIN_HEADERS)
        assert len(response.json()["data"]) == 1

        response = await client.delete(f"/admin/pack-sizes/{catalog['pack_sizes']['fixed']}", headers=ADMIN_HEADERS)
        assert response.status_code == 409

        response = await client.delete(f"/admin/pack-sizes/{catalog['pack_sizes']['plain']}", headers=ADMIN_HEADERS)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_order(self, client):
        response = await client.get("/admin/orders/404", headers=ADMIN_HEADERS)

        assert response.status_code == 404


class TestAdminOfferPlans:

    @pytest.mark.asyncio
    async def test_create_with_alias_type(self, client):
        response = await client.post("/admin/offer-plans", headers=ADMIN_HEADERS,
                                     json={"discount": "12.5", "type": "percentage"})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["type"] == "Percantage"
        assert data["status"] == "Active"
        assert data["sort_order"] == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"discount": "10", "type": "bogo"},
        {"discount": "0", "type": "fixed"},
        {"discount": "-5", "type": "Amount"},
    ])
    async def test_create_invalid(self, client, payload):
        response = await client.post("/admin/offer-plans", headers=ADMIN_HEADERS, json=payload)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_filtered_by_status(self, client, catalog):
        response = await client.get("/admin/offer-plans", headers=ADMIN_HEADERS)
        assert response.json()["data"]["total"] == 3

        response = await client.get("/admin/offer-plans", headers=ADMIN_HEADERS, params={"status": "InActive"})
        data = response.json()["data"]
        assert data["total"] == 1
        assert Decimal(str(data["items"][0]["discount"])) == Decimal("50")

    @pytest.mark.asyncio
    async def test_update_and_toggle_reprice_cart(self, client, catalog):
        headers = user_headers(catalog["user_id"])
        await client.post("/api/cart", headers=headers, json={"items": [
            {"product_id": catalog["products"]["inactive"],
             "packsize_id": catalog["pack_sizes"]["inactive"], "quantity": 1}
        ]})
        response = await client.get("/api/cart", headers=headers)
        assert Decimal(str(response.json()["data"]["total"])) == Decimal("40")

        response = await client.get("/admin/offer-plans", headers=ADMIN_HEADERS, params={"status": "InActive"})
        offer_plan_id = response.json()["data"]["items"][0]["id"]

        response = await client.patch(f"/admin/offer-plans/{offer_plan_id}", headers=ADMIN_HEADERS,
                                      json={"discount": "25", "type": "fixed"})
        assert response.status_code == 200
        assert response.json()["data"]["type"] == "Amount"
        assert response.json()["data"]["status"] == "InActive"

        response = await client.post(f"/admin/offer-plans/{offer_plan_id}/toggle", headers=ADMIN_HEADERS)
        assert response.json()["data"]["status"] == "Active"

        response = await client.get("/api/cart", headers=headers)
        assert Decimal(str(response.json()["data"]["total"])) == Decimal("15")

    @pytest.mark.asyncio
    async def test_unknown_offer_plan(self, client):
        response = await client.get("/admin/offer-plans/404", headers=ADMIN_HEADERS)
        assert response.status_code == 404

        response = await client.post("/admin/offer-plans/404/toggle", headers=ADMIN_HEADERS)
        assert response.status_code == 404


class TestAdminPackSizes:

    @pytest.mark.asyncio
    async def test_create_and_reprice(self, client, catalog):
        response = await client.post("/admin/pack-sizes", headers=ADMIN_HEADERS, json={
            "product_id": catalog["products"]["plain"], "size": 3, "price": "270.00"
        })
        assert response.status_code == 201
        packsize_id = response.json()["data"]["id"]

        headers = user_headers(catalog["user_id"])
        await client.post("/api/cart", headers=headers, json={"items": [
            {"product_id": catalog["products"]["plain"], "packsize_id": packsize_id, "quantity": 1}
        ]})

        response = await client.patch(f"/admin/pack-sizes/{packsize_id}", headers=ADMIN_HEADERS,
                                      json={"price": "250.00"})
        assert response.status_code == 200
        assert Decimal(str(response.json()["data"]["price"])) == Decimal("250")
        assert response.json()["data"]["size"] == 3

        response = await client.get("/api/cart", headers=headers)
        assert Decimal(str(response.json()["data"]["total"])) == Decimal("250")

    @pytest.mark.asyncio
    async def test_create_for_unknown_product(self, client, catalog):
        response = await client.post("/admin/pack-sizes", headers=ADMIN_HEADERS,
                                     json={"product_id": 9999, "price": "10.00"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"price": "-1"}, {"size": 0}])
    async def test_update_invalid(self, client, catalog, payload):
        response = await client.patch(f"/admin/pack-sizes/{catalog['pack_sizes']['plain']}",
                                      headers=ADMIN_HEADERS, json=payload)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_unknown(self, client):
        response = await client.patch("/admin/pack-sizes/9999", headers=ADMIN_HEADERS, json={"price": "1.00"})

        assert response.status_code == 404
