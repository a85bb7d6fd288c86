"""API tests for customer credit endpoints."""

from decimal import Decimal
from uuid import uuid4


class TestCustomerCreditsAPI:
    def test_deposit_and_get(self, client, customer):
        response = client.post(
            "/v1/customer_credits/",
            json={"customer_id": str(customer.id), "amount": "25.00"},
        )
        assert response.status_code == 201
        credit = response.json()
        assert credit["status"] == "available"
        assert credit["notes"] == "Manual deposit"

        detail = client.get(f"/v1/customer_credits/{credit['id']}")
        assert detail.status_code == 200
        assert detail.json()["usages"] == []
        assert Decimal(detail.json()["expected_balance"]) == Decimal("25.00")

    def test_get_unknown_credit(self, client):
        assert client.get(f"/v1/customer_credits/{uuid4()}").status_code == 404

    def test_apply_credit(self, client, customer, make_credit, make_invoice):
        credit = make_credit(customer, "30.00")
        invoice = make_invoice(customer, "20.00")

        response = client.post(
            "/v1/customer_credits/apply",
            json={
                "customer_id": str(customer.id),
                "allocations": [{"invoice_id": str(invoice.id), "amount": "20.00"}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_applied"]) == Decimal("20.00")
        assert Decimal(data["remaining_credit"]) == Decimal("10.00")
        assert data["applications"][0]["resulting_status"] == "paid"
        assert data["applications"][0]["draws"][0]["credit_id"] == str(credit.id)

        detail = client.get(f"/v1/customer_credits/{credit.id}").json()
        assert len(detail["usages"]) == 1
        assert Decimal(detail["current_balance"]) == Decimal(detail["expected_balance"])

    def test_apply_more_than_available(self, client, customer, make_credit, make_invoice):
        make_credit(customer, "5.00")
        invoice = make_invoice(customer, "20.00")

        response = client.post(
            "/v1/customer_credits/apply",
            json={
                "customer_id": str(customer.id),
                "allocations": [{"invoice_id": str(invoice.id), "amount": "20.00"}],
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_CREDIT"

    def test_apply_to_foreign_invoice(
        self, client, customer, customer2, make_credit, make_invoice
    ):
        make_credit(customer, "50.00")
        invoice = make_invoice(customer2, "20.00")

        response = client.post(
            "/v1/customer_credits/apply",
            json={
                "customer_id": str(customer.id),
                "allocations": [{"invoice_id": str(invoice.id), "amount": "20.00"}],
            },
        )

        assert response.status_code == 403
        assert response.json()["code"] == "CROSS_TENANT"

    def test_apply_nothing(self, client, customer, make_credit, make_invoice):
        make_credit(customer, "50.00")
        invoice = make_invoice(customer, "20.00")

        response = client.post(
            "/v1/customer_credits/apply",
            json={
                "customer_id": str(customer.id),
                "allocations": [{"invoice_id": str(invoice.id), "amount": "0"}],
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_list_by_status(self, client, customer, make_credit):
        make_credit(customer, "5.00")
        response = client.get("/v1/customer_credits/", params={"status": "available"})
        assert response.status_code == 200
        assert len(response.json()) == 1
        assert client.get("/v1/customer_credits/", params={"status": "used"}).json() == []

    def test_customer_credit_summary(self, client, customer, make_credit):
        make_credit(customer, "5.00")
        make_credit(customer, "7.50")

        response = client.get(f"/v1/customers/{customer.id}/credit")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_available"]) == Decimal("12.50")
        assert len(data["credits"]) == 2

    def test_customer_credit_unknown_customer(self, client):
        assert client.get(f"/v1/customers/{uuid4()}/credit").status_code == 404
