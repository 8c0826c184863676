"""Clearly Politics Backend — Pydantic Models"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PoliticalCategory(str, Enum):
    RED = "red"
    BLUE = "blue"
    SWING = "swing"


# ─────────────────────────── Inputs ─────────────────────────────

class StateRecord(BaseModel):
    stateCode: str
    incidents: int = Field(ge=0)

    @field_validator("stateCode")
    @classmethod
    def normalise_state_code(cls, v: str) -> str:
        return v.strip().upper()


class MonthlyRecord(BaseModel):
    month: str  # "Jan", "Feb", ...
    incidents: int = Field(ge=0)
    year: Optional[int] = None


# ─────────────────────────── Aggregates ─────────────────────────

class CategoryAggregate(BaseModel):
    incidents: int = 0
    population: int = 0
    rate: float = 0.0  # per 100k residents


class PoliticsBreakdown(BaseModel):
    red: CategoryAggregate = Field(default_factory=CategoryAggregate)
    blue: CategoryAggregate = Field(default_factory=CategoryAggregate)
    swing: CategoryAggregate = Field(default_factory=CategoryAggregate)


class CorrelationPoint(BaseModel):
    stateCode: str
    lawScore: float
    violenceRate: float
    political: str = "unknown"


class CorrelationResult(BaseModel):
    points: list[CorrelationPoint]
    coefficient: float = Field(ge=-1.0, le=1.0)
    strength: str  # very-weak, weak, moderate, strong
    direction: str  # positive, negative
    description: str = ""


class TrendRecord(MonthlyRecord):
    growthRate: float = 0.0  # percent vs previous month
    movingAverage: float = 0.0


class TrendSummary(BaseModel):
    data: list[TrendRecord]
    totalIncidents: int
    averageMonthly: int
    trend: str  # increasing, decreasing, stable, insufficient data


class IdeologyShare(BaseModel):
    category: str
    incidents: int
    percentage: float


class IdeologyBreakdown(BaseModel):
    data: list[IdeologyShare]
    total: int
    timeframe: str = ""


class MassShootingAggregate(BaseModel):
    population: int = 0
    massShootings: int = 0


class MassShootingsByPolitics(BaseModel):
    red: MassShootingAggregate = Field(default_factory=MassShootingAggregate)
    blue: MassShootingAggregate = Field(default_factory=MassShootingAggregate)
    swing: MassShootingAggregate = Field(default_factory=MassShootingAggregate)


class SummaryStats(BaseModel):
    keyFindings: list[str]
    redVsBlueRatio: Optional[float] = None
    politicalViolenceSkew: Optional[float] = None
    lastUpdated: str


# ─────────────────────────── News & incidents ───────────────────

class NewsArticle(BaseModel):
    title: str = ""
    description: str = ""
    content: str = ""
    url: str = ""
    publishedAt: str = ""
    source: str = ""


class IncidentAnalysis(BaseModel):
    type: str = "unknown"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    error: Optional[str] = None


class RecentIncident(BaseModel):
    id: str
    date: str
    state: str = ""
    city: str = ""
    killed: int = 0
    injured: int = 0
    sourceUrl: str = ""
    analysis: IncidentAnalysis = Field(default_factory=IncidentAnalysis)


# ─────────────────────────── Historical GVA ─────────────────────

class Casualties(BaseModel):
    killed: int = 0
    injured: int = 0
    childrenKilled: int = 0
    teensKilled: int = 0
    childrenInjured: int = 0


class Location(BaseModel):
    lat: Optional[float] = None
    lon: Optional[float] = None


class HistoricalIncident(BaseModel):
    id: str
    date: Optional[str] = None  # ISO date when parseable
    state: str = ""
    city: str = ""
    address: str = ""
    venue: Optional[str] = None
    location: Location = Field(default_factory=Location)
    casualties: Casualties = Field(default_factory=Casualties)
    characteristics: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    year: Optional[int] = None


class IncidentTally(BaseModel):
    incidents: int = 0
    killed: int = 0
    injured: int = 0


class HistoricalStatistics(BaseModel):
    total: int = 0
    byState: dict[str, IncidentTally] = Field(default_factory=dict)
    byYear: dict[str, IncidentTally] = Field(default_factory=dict)
    byCharacteristic: dict[str, int] = Field(default_factory=dict)
    totalCasualties: Casualties = Field(default_factory=Casualties)


class HistoricalGVAData(BaseModel):
    incidents: list[HistoricalIncident]
    statistics: HistoricalStatistics
    lastUpdated: str
    source: str = "Gun Violence Archive Historical Data"


# ─────────────────────────── API requests ───────────────────────

class PoliticsRequest(BaseModel):
    stateBreakdown: list[StateRecord]


class CorrelationRequest(BaseModel):
    stateBreakdown: list[StateRecord]
    lawScores: Optional[dict[str, float]] = None  # defaults to the static scorecard


class TrendRequest(BaseModel):
    data: list[MonthlyRecord]
    window: int = Field(default=3, ge=1, le=12)


class StateProfile(BaseModel):
    stateCode: str
    name: str
    population: int
    political: str
    lawScore: Optional[float] = None
