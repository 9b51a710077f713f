import json
import logging

import httpx
import pytest

from deeptrust.core.config import HuggingFaceConfig, LovableConfig
from tests.conftest import HF_MODEL, JPEG_BYTES, PNG_BASE64, gateway_json, gateway_reply

ENDPOINT = "/api/v1/analyze-image"


def huggingface_answer(ai_score: float):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "images.example.com":
            return httpx.Response(200, content=JPEG_BYTES)
        return httpx.Response(
            200,
            json=[
                {"label": "artificial", "score": ai_score},
                {"label": "human", "score": 1 - ai_score},
            ],
        )

    return handler


def fixed_status(status_code: int, **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return handler


def unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected upstream call to {request.url}")


def test_analyze_base64_with_huggingface(app_client):
    client = app_client(huggingface_answer(0.93))

    response = client.post(ENDPOINT, json={"imageBase64": f"data:image/png;base64,{PNG_BASE64}"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"confidence", "verdict", "signals", "summary"}
    assert body["verdict"] == "AI_GENERATED"
    assert body["confidence"] == pytest.approx(93.0)
    assert body["signals"][0] == {
        "name": "AI Pattern Detection",
        "detected": True,
        "severity": "high",
        "description": "org/detector detected 93.0% AI-generated characteristics",
    }
    assert body["summary"].endswith("this image is ai generated. Confidence: 93.0%")


def test_analyze_url_with_huggingface(app_client):
    client = app_client(huggingface_answer(0.1))

    response = client.post(ENDPOINT, json={"imageUrl": "https://images.example.com/photo.jpg"})

    assert response.status_code == 200
    assert response.json()["verdict"] == "REAL"


def test_analysis_log_names_image_source_without_query(app_client, caplog):
    client = app_client(huggingface_answer(0.1))
    caplog.set_level(logging.INFO, logger="deeptrust")

    client.post(ENDPOINT, json={"imageUrl": "https://images.example.com/photo.jpg?sig=s3cr3t"})

    started = [json.loads(r.getMessage()) for r in caplog.records if "analysis_started" in r.getMessage()]
    assert started[0]["source"] == "url"
    assert started[0]["source_url"] == "https://images.example.com/photo.jpg"
    assert "s3cr3t" not in caplog.text


def test_analyze_with_gateway(app_client):
    report = {
        "aiProbability": 0.6,
        "signals": [{"name": "Texture", "detected": True, "severity": "medium", "description": "Waxy skin"}],
        "summary": "Some generator artifacts are visible.",
    }
    client = app_client(fixed_status(200, json=gateway_json(report)), inference_provider="lovable")

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == 200
    body = response.json()
    assert body["verdict"] == "LIKELY_AI"
    assert body["confidence"] == pytest.approx(60.0)
    assert [s["name"] for s in body["signals"]] == ["AI Pattern Detection", "Authenticity Score", "Texture"]
    assert body["summary"] == "Some generator artifacts are visible."


@pytest.mark.parametrize("payload", [{}, {"imageUrl": "", "imageBase64": ""}, {"imageUrl": None}])
def test_missing_image_is_400(app_client, payload):
    client = app_client(unreachable)

    response = client.post(ENDPOINT, json=payload)

    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "code": 400,
        "error": "Please provide imageBase64 or imageUrl",
    }


def test_missing_image_is_400_even_without_credentials(app_client):
    client = app_client(unreachable, inference_provider="lovable", lovable=LovableConfig(api_key=None))

    response = client.post(ENDPOINT, json={})

    assert response.status_code == 400


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": {"imageUrl": 42}},
    ],
)
def test_malformed_request_body_is_400(app_client, kwargs):
    client = app_client(unreachable)

    response = client.post(ENDPOINT, **kwargs)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_invalid_base64_is_400(app_client):
    client = app_client(unreachable)

    response = client.post(ENDPOINT, json={"imageBase64": "@@not-base64@@"})

    assert response.status_code == 400
    assert "base64" in response.json()["error"]


def test_unfetchable_url_is_400(app_client):
    client = app_client(fixed_status(404))

    response = client.post(ENDPOINT, json={"imageUrl": "https://images.example.com/gone.jpg"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Failed to fetch image from URL")


@pytest.mark.parametrize("provider", ["huggingface", "lovable"])
@pytest.mark.parametrize("status_code", [402, 429])
def test_upstream_quota_statuses_are_surfaced(app_client, provider, status_code):
    client = app_client(fixed_status(status_code, json={"error": "quota"}), inference_provider=provider)

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == status_code
    assert response.json()["code"] == status_code
    assert response.json()["error"]


def test_upstream_server_error_is_500(app_client):
    client = app_client(fixed_status(500, text="internal failure"))

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == 500
    assert response.json()["error"] == "Hugging Face API error (500): internal failure"


@pytest.mark.parametrize("provider", ["huggingface", "lovable"])
def test_malformed_upstream_json_is_parse_error(app_client, provider):
    client = app_client(fixed_status(200, text="{not json"), inference_provider=provider)

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to parse analysis response"


@pytest.mark.parametrize(
    ("provider", "answer"),
    [
        ("huggingface", {"text": '[{"label": "artificial", "score": NaN}]'}),
        ("lovable", {"json": gateway_reply('{"aiProbability": Infinity}')}),
    ],
)
def test_non_finite_upstream_score_is_parse_error(app_client, provider, answer):
    client = app_client(fixed_status(200, **answer), inference_provider=provider)

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == 500
    assert response.json() == {"status": "error", "code": 500, "error": "Failed to parse analysis response"}


def test_missing_credentials_is_500(app_client):
    client = app_client(unreachable, huggingface=HuggingFaceConfig(token=None, model=HF_MODEL))

    response = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert response.status_code == 500
    assert response.json()["error"] == "Hugging Face API key is not configured"


def test_cors_preflight(app_client):
    client = app_client(unreachable)

    response = client.options(
        ENDPOINT,
        headers={
            "Origin": "https://deeptrust.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_headers_on_errors(app_client):
    client = app_client(unreachable)

    response = client.post(ENDPOINT, json={}, headers={"Origin": "https://deeptrust.example"})

    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"


def test_request_id_is_echoed_or_generated(app_client):
    client = app_client(huggingface_answer(0.5))

    echoed = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64}, headers={"X-Request-ID": "abc-123"})
    generated = client.post(ENDPOINT, json={"imageBase64": PNG_BASE64})

    assert echoed.headers["x-request-id"] == "abc-123"
    assert generated.headers["x-request-id"]
    assert generated.json()["verdict"] == "UNCERTAIN"
