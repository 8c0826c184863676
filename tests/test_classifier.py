"""Tests for the incident motivation classifier. The Gemini call is patched out."""

import asyncio
import threading

import pytest

import classifier
from classifier import analyze_incidents, classify_articles, parse_classification
from models import NewsArticle, RecentIncident

ARTICLES = [NewsArticle(title="Shooting at rally", description="d", content="c")]


@pytest.fixture
def gemini(monkeypatch):
    """Enable the classifier with a fake model; returns the list of prompts sent."""
    prompts = []

    def fake_generate(prompt):
        prompts.append(prompt)
        return '{"type": "left-wing-extremism", "confidence": 0.82}'

    monkeypatch.setattr(classifier, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(classifier, "_generate", fake_generate)
    return prompts


# ── parse_classification ─────────────────────────────────────────


class TestParseClassification:
    def test_plain_json(self):
        result = parse_classification('{"type": "non-political", "confidence": 0.9}')
        assert result.type == "non-political"
        assert result.confidence == 0.9

    def test_json_wrapped_in_markdown(self):
        result = parse_classification('```json\n{"type": "Right-Wing-Extremism", "confidence": 0.6}\n```')
        assert result.type == "right-wing-extremism"

    def test_unknown_label(self):
        assert parse_classification('{"type": "aliens", "confidence": 0.9}').type == "unknown"

    def test_confidence_clamped_and_defaulted(self):
        assert parse_classification('{"type": "unknown", "confidence": 4}').confidence == 1.0
        assert parse_classification('{"type": "unknown"}').confidence == 0.7
        assert parse_classification('{"type": "unknown", "confidence": "high"}').confidence == 0.7

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_classification("not json at all")


# ── classify_articles ────────────────────────────────────────────


class TestClassifyArticles:
    def test_no_articles(self, gemini):
        result = classify_articles([])
        assert (result.type, result.confidence) == ("unknown", 0.0)
        assert gemini == []

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(classifier, "GEMINI_API_KEY", "")
        result = classify_articles(ARTICLES)
        assert result.type == "unknown"
        assert result.error == "GEMINI_API_KEY not set"

    def test_classifies_and_caches(self, gemini):
        first = classify_articles(ARTICLES)
        second = classify_articles(ARTICLES)

        assert first.type == "left-wing-extremism"
        assert first.confidence == 0.82
        assert second == first
        assert len(gemini) == 1
        assert "Shooting at rally" in gemini[0]

    def test_model_error(self, monkeypatch):
        def boom(prompt):
            raise RuntimeError("quota")

        monkeypatch.setattr(classifier, "GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(classifier, "_generate", boom)
        result = classify_articles(ARTICLES)

        assert result.type == "error"
        assert result.confidence == 0.0
        assert result.error == "quota"


# ── analyze_incidents ────────────────────────────────────────────


class FakeNews:
    def __init__(self, articles=None, error=None):
        self.articles = articles or []
        self.error = error
        self.queries = []

    async def get_articles(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.articles


def _incident(**kwargs):
    fields = {"id": "1", "date": "October 17, 2026", "state": "Texas", "city": "Houston"}
    fields.update(kwargs)
    return RecentIncident(**fields)


def test_analyze_incidents_attaches_analysis(gemini):
    news = FakeNews(articles=ARTICLES)
    original = _incident()
    [analyzed] = asyncio.run(analyze_incidents([original], news=news))

    assert news.queries == ["Houston Texas shooting October 17, 2026"]
    assert analyzed.analysis.type == "left-wing-extremism"
    assert analyzed.city == "Houston"
    assert original.analysis.type == "unknown"


def test_analyze_incidents_news_failure(gemini):
    news = FakeNews(error=RuntimeError("all providers down"))
    [analyzed] = asyncio.run(analyze_incidents([_incident()], news=news))

    assert analyzed.analysis.type == "error"
    assert analyzed.analysis.error == "all providers down"


def test_classification_runs_off_the_event_loop_thread(monkeypatch):
    threads = []

    def fake_generate(prompt):
        threads.append(threading.get_ident())
        return '{"type": "non-political", "confidence": 0.9}'

    monkeypatch.setattr(classifier, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(classifier, "_generate", fake_generate)

    async def analyze():
        loop_thread = threading.get_ident()
        [analyzed] = await analyze_incidents([_incident()], news=FakeNews(articles=ARTICLES))
        return loop_thread, analyzed

    loop_thread, analyzed = asyncio.run(analyze())
    assert analyzed.analysis.type == "non-political"
    assert threads and threads[0] != loop_thread
