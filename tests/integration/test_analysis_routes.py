import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient

from app import app
from common.config.settings import get_settings
from common.logger import logger
from core.domain.prediction_defaults import MANDATORY_DISCLAIMER, get_default_prediction
from presentation.api.middleware.security import limiter
from presentation.api.routes.analysis import get_llm_client

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
EXTRACTED = '{"instrument": "EURUSD", "timeframe": "1h"}'

STRATEGY = {
    "primarySignal": {"title": "Range support", "description": "Price keeps bouncing off 1.08."},
    "conflictingSignals": [{"title": "Low volume", "description": "Bounces come on thin volume."}],
    "actionPlan": [
        {"step": 1, "instruction": "Wait for a retest of 1.08.", "rationale": "Better entry."},
        {"step": 2, "instruction": "Place the stop below 1.075.", "rationale": "Invalidates the range."},
        {"step": 3, "instruction": "Take profit near 1.09.", "rationale": "Range resistance."},
    ],
    "psychologicalBriefing": {
        "title": "Let the setup come to you",
        "advice": "Do not chase the middle of the range.",
        "islamicPrinciple": {"name": "Sabr (Patience)", "application": "Wait for your level."},
    },
}

QUESTION = {
    "id": "q1",
    "questionText": "What does a hammer after a downtrend suggest?",
    "options": [{"value": "a", "text": "Bullish reversal"}, {"value": "b", "text": "Continuation"}, {"value": "c", "text": "Nothing"}],
    "correctAnswer": "a",
    "explanation": "Buyers rejected lower prices.",
}


class TestAnalysisRoutes:
    """API tests with the LLM client replaced by a mock"""

    @pytest.fixture
    def mock_llm(self):
        mock_client = MagicMock()
        app.dependency_overrides[get_llm_client] = lambda: mock_client
        limiter.enabled = False
        yield mock_client
        app.dependency_overrides.clear()
        limiter.enabled = True

    @pytest.fixture
    def http(self):
        return TestClient(app)

    def test_health(self, http):
        assert http.get("/health").json() == {"status": "ok"}

    def test_analyze_chart_upload(self, http, mock_llm):
        mock_llm.complete_json.side_effect = [
            {"isTradingChart": True, "imageQualitySufficient": True, "extractedData": EXTRACTED},
            {"trendPrediction": "sideways", "confidence": 0.55, "explanationSummary": "Range between 1.08 and 1.09."},
        ]

        response = http.post(
            "/api/v1/analysis/chart",
            files={"file": ("eurusd.png", PNG_BYTES, "image/png")},
            data={"user_level": "beginner"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["chartFileName"] == "eurusd.png"
        assert body["extractedData"] == EXTRACTED
        assert body["prediction"]["trendPrediction"] == "sideways"
        assert body["prediction"]["confidence"] == 0.55
        assert MANDATORY_DISCLAIMER in body["prediction"]["fullScientificAnalysis"]

        image_uri = mock_llm.complete_json.call_args_list[0].kwargs["image_data_uri"]
        assert image_uri.startswith("data:image/png;base64,")
        assert "User Trading Experience: beginner" in mock_llm.complete_json.call_args_list[1].args[0]

    def test_not_a_chart_returns_422(self, http, mock_llm):
        mock_llm.complete_json.return_value = {
            "isTradingChart": False, "extractedData": None, "warningMessage": "Not a trading chart.",
        }
        response = http.post("/api/v1/analysis/chart", files={"file": ("cat.jpg", PNG_BYTES, "image/jpeg")})
        assert response.status_code == 422
        assert response.json() == {"error": "Invalid image", "detail": "Not a trading chart."}

    def test_extraction_outage_returns_503(self, http, mock_llm):
        mock_llm.complete_json.return_value = None
        response = http.post("/api/v1/analysis/chart", files={"file": ("btc.png", PNG_BYTES, "image/png")})
        assert response.status_code == 503
        assert response.json()["error"] == "Chart data extraction is unavailable"

    def test_unsupported_file_type(self, http, mock_llm):
        response = http.post("/api/v1/analysis/chart", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 415
        mock_llm.complete_json.assert_not_called()

    def test_empty_upload(self, http, mock_llm):
        response = http.post("/api/v1/analysis/chart", files={"file": ("empty.png", b"", "image/png")})
        assert response.status_code == 400

    def test_oversized_upload(self, http, mock_llm):
        with patch("presentation.api.routes.analysis.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(max_upload_bytes=16)
            response = http.post("/api/v1/analysis/chart", files={"file": ("big.png", PNG_BYTES, "image/png")})
        assert response.status_code == 413

    def test_invalid_user_level(self, http, mock_llm):
        response = http.post(
            "/api/v1/analysis/chart",
            files={"file": ("btc.png", PNG_BYTES, "image/png")},
            data={"user_level": "guru"},
        )
        assert response.status_code == 422

    def test_predict(self, http, mock_llm):
        mock_llm.complete_json.return_value = {"trendPrediction": "up", "confidence": 1.5, "riskLevel": "low"}
        response = http.post("/api/v1/analysis/predict", json={"extractedData": EXTRACTED, "userLevel": "advanced"})
        assert response.status_code == 200
        body = response.json()
        assert body["trendPrediction"] == "up"
        assert body["confidence"] == 0.1
        assert body["riskLevel"] == "low"

    def test_predict_rejects_blank_data(self, http, mock_llm):
        response = http.post("/api/v1/analysis/predict", json={"extractedData": "  "})
        assert response.status_code == 422

    def test_reconcile_null(self, http):
        response = http.post("/api/v1/analysis/reconcile", content="null", headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        assert response.json() == get_default_prediction()

    def test_reconcile_candidate(self, http):
        response = http.post("/api/v1/analysis/reconcile", json={
            "suggestedEntryPoints": ["150.00", ""],
            "trendAnalysis": {"candleCountBasis": 5.9},
            "explanationSummary": "z" * 300,
        })
        body = response.json()
        assert body["suggestedEntryPoints"] == get_default_prediction()["suggestedEntryPoints"]
        assert body["trendAnalysis"]["candleCountBasis"] == 5
        assert body["explanationSummary"] == "z" * 250

    def test_translate(self, http, mock_llm):
        mock_llm.complete_json.return_value = {"translatedText": "El mercado sube."}
        response = http.post("/api/v1/translate", json={"textToTranslate": "The market is up.", "targetLanguageCode": "es"})
        assert response.status_code == 200
        assert response.json() == {"translatedText": "El mercado sube."}

    def test_unconfigured_llm_returns_503(self, http):
        limiter.enabled = False
        try:
            with patch("presentation.api.routes.analysis.LLMClient", side_effect=ValueError("LLM API Key and URL must be set")):
                response = http.post("/api/v1/analysis/predict", json={"extractedData": EXTRACTED})
        finally:
            limiter.enabled = True
        assert response.status_code == 503
        assert response.json()["error"] == "AI service is not configured"

    def test_metrics_endpoint(self, http):
        http.get("/health")
        response = http.get("/metrics")
        assert response.status_code == 200
        assert "api_requests_total" in response.text

    def test_reconcile_oversized_integers(self, http):
        body = '{"confidence": 1' + '0' * 400 + ', "opportunityScore": 0.4, "trendAnalysis": {"candleCountBasis": 1' + '0' * 400 + '}}'
        response = http.post("/api/v1/analysis/reconcile", content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        result = response.json()
        assert result["confidence"] == get_default_prediction()["confidence"]
        assert result["opportunityScore"] == 0.4
        assert result["trendAnalysis"]["candleCountBasis"] == get_default_prediction()["trendAnalysis"]["candleCountBasis"]

    def test_strategy_session(self, http, mock_llm):
        mock_llm.complete_json.return_value = STRATEGY
        response = http.post("/api/v1/analysis/strategy", json=get_default_prediction())
        assert response.status_code == 200
        body = response.json()
        assert body["psychologicalBriefing"]["islamicPrinciple"]["name"] == "Sabr (Patience)"
        assert [s["step"] for s in body["actionPlan"]] == [1, 2, 3]
        assert MANDATORY_DISCLAIMER in mock_llm.complete_json.call_args.args[0]

    def test_strategy_session_malformed_answer_returns_503(self, http, mock_llm):
        mock_llm.complete_json.return_value = {**STRATEGY, "actionPlan": STRATEGY["actionPlan"][:1]}
        response = http.post("/api/v1/analysis/strategy", json=get_default_prediction())
        assert response.status_code == 503
        assert response.json()["error"] == "Strategy session is unavailable"

    def test_strategy_session_rejects_invalid_prediction(self, http, mock_llm):
        response = http.post("/api/v1/analysis/strategy", json={**get_default_prediction(), "confidence": 2})
        assert response.status_code == 422
        mock_llm.complete_json.assert_not_called()

    def test_quiz(self, http, mock_llm):
        mock_llm.complete_json.return_value = {"questions": [QUESTION, {**QUESTION, "id": "q2", "correctAnswer": "z"}]}
        response = http.post("/api/v1/training/quiz", json={"topic": "Candlestick Patterns", "numQuestions": 2})
        assert response.status_code == 200
        questions = response.json()["questions"]
        assert [q["id"] for q in questions] == ["q1"]
        assert "Candlestick Patterns" in mock_llm.complete_json.call_args.args[0]

    def test_quiz_validates_request(self, http, mock_llm):
        response = http.post("/api/v1/training/quiz", json={"topic": "Risk", "numQuestions": 11})
        assert response.status_code == 422
        mock_llm.complete_json.assert_not_called()

    def test_quiz_outage_returns_503(self, http, mock_llm):
        mock_llm.complete_json.return_value = None
        response = http.post("/api/v1/training/quiz", json={"topic": "Risk"})
        assert response.status_code == 503

    def test_rate_limit(self, http):
        mock_client = MagicMock()
        mock_client.complete_json.return_value = None
        app.dependency_overrides[get_llm_client] = lambda: mock_client
        limit = int(get_settings().analysis_rate_limit.split("/")[0])
        limiter.reset()
        try:
            statuses = [
                http.post("/api/v1/analysis/predict", json={"extractedData": EXTRACTED}).status_code
                for _ in range(limit + 1)
            ]
        finally:
            limiter.reset()
            app.dependency_overrides.clear()
        assert statuses[:limit] == [200] * limit
        assert statuses[-1] == 429

    def test_reconcile_is_not_rate_limited(self, http):
        limit = int(get_settings().analysis_rate_limit.split("/")[0])
        limiter.reset()
        try:
            statuses = {http.post("/api/v1/analysis/reconcile", json={}).status_code for _ in range(limit + 1)}
        finally:
            limiter.reset()
        assert statuses == {200}

    def test_startup_keeps_log_handlers(self):
        handlers = list(logger.handlers)
        with TestClient(app) as http:
            assert http.get("/health").status_code == 200
        assert logger.handlers == handlers
        assert all(a is b for a, b in zip(logger.handlers, handlers))
