from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert "error" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    # Wrong JSON type for a field is a 400 validation failure, not a 422
    response = client.post("/api/send-verification-code", json={"phoneNumber": ["not", "a", "string"]})
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    from app.core.exceptions import CodeNotFoundError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise CodeNotFoundError()

    response = client.get("/test-custom-error")
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "NO_CODE_FOUND"
    assert data["error"] == "No verification code found"


def test_unhandled_exception_is_generic():
    @app.get("/test-unhandled-error")
    def trigger_unhandled_error():
        raise RuntimeError("secret database password in message")

    safe_client = TestClient(app, raise_server_exceptions=False)
    response = safe_client.get("/test-unhandled-error")
    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "INTERNAL_ERROR"
    assert data["error"] == "Internal server error"
    assert "secret" not in response.text
