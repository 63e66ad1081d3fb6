def test_health(client):
    response = client.get("/health", headers={"X-Organization-ID": ""})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_openapi_declares_bearer_auth(client):
    schema = client.get("/openapi.json").json()

    assert schema["info"]["title"] == "Ledger Core API"
    assert "BearerAuth" in schema["components"]["securitySchemes"]
