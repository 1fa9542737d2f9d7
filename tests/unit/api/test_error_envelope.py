from httpx import AsyncClient


class TestErrorEnvelope:
    """Errors raised by routing itself use the same body as route errors."""

    async def test_unknown_path(self, anonymous_client: AsyncClient):
        response = await anonymous_client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    async def test_wrong_method(self, anonymous_client: AsyncClient):
        response = await anonymous_client.delete("/api/v1/health")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}

    async def test_route_error_still_uses_envelope(self, anonymous_client: AsyncClient):
        response = await anonymous_client.post(
            "/api/v1/tokens/consume", json={"action": "chat"}
        )

        assert response.status_code == 401
        assert "error" in response.json()
