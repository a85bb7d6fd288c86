"""API tests for notification endpoints."""

from uuid import uuid4


class TestNotificationsAPI:
    def test_excess_payment_notification_lifecycle(
        self, client, customer, make_invoice, make_payment
    ):
        invoice = make_invoice(customer, "10.00")
        payment = make_payment(customer, "15.00")
        client.post(
            f"/v1/payment_records/{payment.id}/allocate",
            json={"invoices": [{"invoice_id": str(invoice.id)}]},
        )

        listed = client.get(
            "/v1/notifications/", params={"notification_type": "excess_payment"}
        ).json()
        assert len(listed) == 1
        assert listed[0]["title"] == "Excess Payment: $5.00"
        assert listed[0]["action_reference"].startswith("credit:")

        dismissed = client.post(f"/v1/notifications/{listed[0]['id']}/dismiss")
        assert dismissed.status_code == 200
        assert dismissed.json()["is_dismissed"] is True
        assert client.get("/v1/notifications/").json() == []
        assert len(client.get("/v1/notifications/", params={"include_dismissed": True}).json()) == 1

    def test_dismiss_unknown(self, client):
        assert client.post(f"/v1/notifications/{uuid4()}/dismiss").status_code == 404
