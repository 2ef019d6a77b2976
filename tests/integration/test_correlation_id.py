import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )

    def test_correlation_id_on_api_responses(self, api_client_with_correlation):
        client, cid = api_client_with_correlation
        response = client.get("/api/v1/products/")
        assert response["X-Request-ID"] == cid

    def test_correlation_id_in_order_logs(self, auth_client, make_product, caplog):
        product = make_product()
        payload = {
            "kind": "individual",
            "price": "10.00",
            "status": "new",
            "service_mode": "pickup",
            "phone": "+7 916 555-01-02",
            "name": "Anna",
            "lines": [{"product_id": str(product.id), "quantity": 1}],
        }
        custom_id = "order-correlation-789"
        with caplog.at_level(logging.INFO):
            auth_client.post(
                "/api/v1/orders/", payload, format="json", HTTP_X_REQUEST_ID=custom_id
            )
        messages = [record.getMessage() for record in caplog.records]
        placed = [message for message in messages if "order.placed" in message]
        assert placed
        assert all(custom_id in message for message in placed)
