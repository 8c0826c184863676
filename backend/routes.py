"""Clearly Politics Backend — FastAPI Routes"""

import json
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import LATEST_PATH
from aggregator import DataProcessor
from models import (
    PoliticsRequest, CorrelationRequest, TrendRequest,
    PoliticsBreakdown, CorrelationResult, TrendSummary, StateProfile,
)
from reference_data import DEFAULT_TABLES, STATE_NAMES

logger = logging.getLogger("clearly")

# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="Clearly Politics API", version="1.1.0")

_allowed_origins = [
    f"http://localhost:{p}" for p in range(3000, 3010)
] + [
    f"http://localhost:{p}" for p in range(8000, 8010)
] + [
    f"http://127.0.0.1:{p}" for p in range(3000, 3010)
] + [
    f"http://127.0.0.1:{p}" for p in range(8000, 8010)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

processor = DataProcessor(DEFAULT_TABLES)


# ─────────────────────────── Health ─────────────────────────────

@app.get("/api/health")
async def health():
    return {"status": "ok", "snapshotAvailable": LATEST_PATH.exists()}


# ─────────────────────────── Snapshot ───────────────────────────

@app.get("/api/data/latest")
async def get_latest_snapshot():
    """The processed snapshot written by collect_data.py."""
    if not LATEST_PATH.exists():
        raise HTTPException(status_code=404, detail="No processed data yet. Run collect_data.py first.")
    try:
        with open(LATEST_PATH) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read snapshot {LATEST_PATH}: {e}")
        raise HTTPException(status_code=500, detail="Processed data is unreadable")


# ─────────────────────────── On-demand aggregates ───────────────

@app.post("/api/aggregate/politics", response_model=PoliticsBreakdown)
async def aggregate_politics(req: PoliticsRequest):
    return processor.process_by_politics(req.stateBreakdown)


@app.post("/api/aggregate/correlation", response_model=CorrelationResult)
async def aggregate_correlation(req: CorrelationRequest):
    return processor.process_gun_law_correlation(req.stateBreakdown, req.lawScores)


@app.post("/api/aggregate/trends", response_model=TrendSummary)
async def aggregate_trends(req: TrendRequest):
    return processor.process_monthly_trends(req.data, window=req.window)


# ─────────────────────────── Reference data ─────────────────────

@app.get("/api/states/{state_code}", response_model=StateProfile)
async def get_state_profile(state_code: str):
    code = state_code.upper()
    if code not in STATE_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown state code '{state_code}'")
    return StateProfile(
        stateCode=code,
        name=STATE_NAMES[code],
        population=DEFAULT_TABLES.population_of(code),
        political=processor.get_state_politics(code),
        lawScore=DEFAULT_TABLES.law_scores.get(code),
    )
