"""Tests for the HTTP API."""

import logging

import pytest
from fastapi.testclient import TestClient

from contexto.api import build_session, create_app
from contexto.config import Config
from contexto.errors import CorpusFormatError
from contexto.session import GameSession

from .conftest import FakeProvider


@pytest.fixture
def config(fruit_corpus) -> Config:
    return Config(
        corpus_path=fruit_corpus,
        provider="deterministic",
        embed_dimensions=3,
        secret_word="apple",
        top_k=2,
    )


@pytest.fixture
def client(fruit_store, fake_provider, config) -> TestClient:
    session = GameSession(fruit_store, fake_provider, "apple", top_k=2)
    return TestClient(create_app(config, session=session))


class TestGuess:
    def test_corpus_word(self, client) -> None:
        response = client.post("/guess", json={"word": "car"})
        assert response.status_code == 200
        data = response.json()
        assert data["word"] == "car"
        assert data["position"] == 3
        assert data["similarity"] == pytest.approx(0.1, abs=1e-6)
        assert data["in_corpus"] is True
        assert [n["word"] for n in data["top"]] == ["apple", "fruit"]
        assert [n["rank"] for n in data["top"]] == [1, 2]

    def test_secret(self, client) -> None:
        data = client.post("/guess", json={"word": " Apple"}).json()
        assert data["position"] == 1
        assert data["similarity"] == 1.0

    def test_top_query_param(self, client) -> None:
        data = client.post("/guess?top=3", json={"word": "fruit"}).json()
        assert len(data["top"]) == 3
        data = client.post("/guess?top=0", json={"word": "fruit"}).json()
        assert data["top"] == []

    def test_negative_top_rejected(self, client) -> None:
        response = client.post("/guess?top=-1", json={"word": "fruit"})
        assert response.status_code == 422

    @pytest.mark.parametrize("body", [{"word": ""}, {"word": "   "}, {}])
    def test_missing_word(self, client, body) -> None:
        response = client.post("/guess", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "No word"}

    def test_provider_failure(self, client) -> None:
        response = client.post("/guess", json={"word": "banana"})
        assert response.status_code == 502
        assert "error" in response.json()

    def test_unrelated_value_error_is_not_a_client_error(self, client, monkeypatch) -> None:
        session = client.app.state.session

        def broken(word, top_k=None):
            raise ValueError("internal bug")

        monkeypatch.setattr(session, "evaluate_guess", broken)
        client = TestClient(client.app, raise_server_exceptions=False)
        response = client.post("/guess", json={"word": "car"})
        assert response.status_code == 500

    def test_dimension_mismatch(self, fruit_store, config) -> None:
        provider = FakeProvider({"pear": [1.0, 0.0]})
        session = GameSession(fruit_store, provider, "apple")
        client = TestClient(create_app(config, session=session))

        response = client.post("/guess", json={"word": "pear"})
        assert response.status_code == 500
        assert "Dimension mismatch" in response.json()["error"]

        # the server keeps working afterwards
        assert client.post("/guess", json={"word": "car"}).status_code == 200


class TestHealth:
    def test_root(self, client) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.text

    def test_health(self, client) -> None:
        data = client.get("/health").json()
        assert data == {
            "status": "ok",
            "words": 3,
            "dimension": 3,
            "provider": "deterministic",
            "model": "text-embedding-3-large",
            "mode": "corpus",
        }


class TestStartup:
    def test_lifespan_loads_corpus(self, config) -> None:
        with TestClient(create_app(config)) as client:
            data = client.post("/guess", json={"word": "car"}).json()
            assert data["position"] == 3

    def test_unknown_word_with_offline_provider(self, config) -> None:
        with TestClient(create_app(config)) as client:
            response = client.post("/guess", json={"word": "banana"})
            assert response.status_code == 200
            assert response.json()["in_corpus"] is False
            assert 1 <= response.json()["position"] <= 3

    def test_health_reports_offline_model(self, config) -> None:
        with TestClient(create_app(config)) as client:
            data = client.get("/health").json()
            assert data["provider"] == "deterministic"
            assert data["model"] == "trigram-hash-3"

    def test_build_session_fails_on_bad_corpus(self, write_jsonl, config) -> None:
        config.corpus_path = write_jsonl(["not json"], name="broken.jsonl")
        with pytest.raises(CorpusFormatError):
            build_session(config)

    def test_build_session_fails_on_missing_corpus(self, tmp_path, config) -> None:
        config.corpus_path = tmp_path / "missing.jsonl"
        with pytest.raises(CorpusFormatError):
            build_session(config)

    def test_word_of_day_when_no_secret(self, config, caplog) -> None:
        config.secret_word = None
        with caplog.at_level(logging.INFO, logger="contexto.api"):
            session = build_session(config)
        assert session.secret_word in {"apple", "fruit", "car"}
        assert "fixed until restart" in caplog.text

    def test_mode_from_config(self, config) -> None:
        config.feedback_mode = "reciprocal"
        session = build_session(config)
        assert session.mode.value == "reciprocal"
