"""Clearly Politics Backend — Political-motivation classification of incidents.

News coverage of each recent incident is sent to Gemini, which labels the
likely motivation. Classification is best-effort: with no API key, no
articles, or any model error the incident keeps an ``unknown``/``error``
label with zero confidence.
"""

import asyncio
import hashlib
import json
import logging
import threading
from typing import Optional

from cachetools import LRUCache

from config import GEMINI_API_KEY, MOTIVATION_TYPES
from models import IncidentAnalysis, NewsArticle, RecentIncident
from news_service import MultiNewsService

logger = logging.getLogger("clearly.classifier")

_CLASSIFY_CACHE = LRUCache(maxsize=256)
_CLASSIFY_CACHE_LOCK = threading.Lock()

# Used when the model omits a confidence value
DEFAULT_CONFIDENCE = 0.7


def _build_prompt(text: str) -> str:
    labels = ", ".join(MOTIVATION_TYPES)
    return f"""Analyze this news content for political motivation and extremist indicators.

Classify the incident as exactly one of: {labels}.

Return ONLY valid JSON (no markdown):
{{"type": "<label>", "confidence": <float 0-1>}}

Content:
{text}"""


def _generate(prompt: str) -> str:
    import google.generativeai as genai
    genai.configure(api_key=GEMINI_API_KEY)
    model = genai.GenerativeModel("gemini-2.0-flash")
    result = model.generate_content(
        prompt,
        generation_config=genai.types.GenerationConfig(
            response_mime_type="application/json",
        ),
    )
    return result.text.strip()


def parse_classification(text: str) -> IncidentAnalysis:
    """Parse the model's JSON reply. Unknown labels map to ``unknown``."""
    start_idx = text.find("{")
    end_idx = text.rfind("}")
    if start_idx != -1 and end_idx != -1:
        text = text[start_idx:end_idx + 1]

    parsed = json.loads(text)
    label = str(parsed.get("type", "unknown")).strip().lower()
    if label not in MOTIVATION_TYPES:
        logger.info(f"Classifier returned unexpected label '{label}'")
        label = "unknown"

    try:
        confidence = float(parsed.get("confidence", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    return IncidentAnalysis(type=label, confidence=max(0.0, min(1.0, confidence)))


def combine_articles(articles: list[NewsArticle]) -> str:
    return "\n\n".join(
        f"Title: {a.title}\nDescription: {a.description}\nContent: {a.content}"
        for a in articles
    )


def classify_articles(articles: list[NewsArticle]) -> IncidentAnalysis:
    if not articles:
        return IncidentAnalysis(type="unknown", confidence=0.0)
    if not GEMINI_API_KEY:
        return IncidentAnalysis(type="unknown", confidence=0.0, error="GEMINI_API_KEY not set")

    text = combine_articles(articles)
    cache_key = hashlib.sha256(text.encode("utf-8")).hexdigest()
    with _CLASSIFY_CACHE_LOCK:
        if cache_key in _CLASSIFY_CACHE:
            return _CLASSIFY_CACHE[cache_key]

    try:
        analysis = parse_classification(_generate(_build_prompt(text)))
    except Exception as e:
        logger.warning(f"Gemini classification error: {e}")
        return IncidentAnalysis(type="error", confidence=0.0, error=str(e))

    with _CLASSIFY_CACHE_LOCK:
        _CLASSIFY_CACHE[cache_key] = analysis
    return analysis


async def analyze_incidents(
    incidents: list[RecentIncident],
    news: Optional[MultiNewsService] = None,
) -> list[RecentIncident]:
    """Attach a motivation analysis to each incident from its news coverage."""
    news = news or MultiNewsService()
    analyzed = []
    for incident in incidents:
        query = f"{incident.city} {incident.state} shooting {incident.date}".strip()
        try:
            articles = await news.get_articles(query)
            analysis = await asyncio.to_thread(classify_articles, articles)
        except Exception as e:
            logger.warning(f"Error analyzing incident {incident.id}: {e}")
            analysis = IncidentAnalysis(type="error", confidence=0.0, error=str(e))
        analyzed.append(incident.model_copy(update={"analysis": analysis}))
    return analyzed
