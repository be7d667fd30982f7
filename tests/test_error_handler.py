import json

from src.api import serverless
from src.error_handler import ErrorHandler


def test_handle_exception_returns_cors_envelope():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"flow": "verify"}, origin="https://intake.acme.example")

    assert out.status == 500
    assert "internal error" in json.loads(out.body)["message"].lower()
    assert "boom" not in out.body
    assert out.headers["Access-Control-Allow-Origin"] == "https://intake.acme.example"


def test_serverless_handler_reports_failures_with_cors(monkeypatch):
    def explode(event, context):
        raise RuntimeError("adapter failure")

    monkeypatch.setattr(serverless, "asgi_handler", explode)

    out = serverless.handler({"headers": {"origin": "https://intake.acme.example"}}, None)

    assert out["statusCode"] == 500
    assert out["headers"]["Access-Control-Allow-Origin"] == "https://intake.acme.example"
    assert "message" in json.loads(out["body"])
