from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.middleware import RequestSizeLimitMiddleware


def build_app(max_bytes):
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=max_bytes)

    @app.post("/echo")
    def echo(payload: dict) -> dict:
        return payload

    return app


def test_oversized_body_is_rejected():
    client = TestClient(build_app(max_bytes=16))
    response = client.post("/echo", json={"roster": "x" * 64})

    assert response.status_code == 413
    assert response.json()["details"]["max_bytes"] == 16


def test_small_body_passes_through():
    client = TestClient(build_app(max_bytes=1024))
    response = client.post("/echo", json={"roster": "ok"})

    assert response.status_code == 200
    assert response.json() == {"roster": "ok"}
