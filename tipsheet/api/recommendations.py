"""Recommendations API: read the current snapshot, trigger cycles."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from tipsheet.recommendations.service import RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> RecommendationService:
    """FastAPI dependency resolving the app's recommendation service."""
    service = getattr(request.app.state, "recommendation_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Recommendation service not initialized")
    return service


@router.get("")
async def list_recommendations(
    venue: Optional[str] = None,
    category: Optional[str] = None,
    risk_tier: Optional[str] = None,
    min_confidence: Optional[float] = Query(default=None, ge=0),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    service: RecommendationService = Depends(get_service),
):
    """Current recommendations, strongest first."""
    recs = service.get_recommendations(
        venue=venue,
        category=category,
        risk_tier=risk_tier,
        min_confidence=min_confidence,
        limit=limit,
    )
    return [r.to_dict() for r in recs]


@router.get("/race/{race_id}")
async def race_recommendations(
    race_id: str,
    category: Optional[str] = None,
    risk_tier: Optional[str] = None,
    min_confidence: Optional[float] = Query(default=None, ge=0),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    service: RecommendationService = Depends(get_service),
):
    """Recommendations for a race's venue, adjusted for its conditions."""
    recs = await service.get_recommendation_for_race(
        race_id,
        category=category,
        risk_tier=risk_tier,
        min_confidence=min_confidence,
        limit=limit,
    )
    if recs is None:
        raise HTTPException(status_code=404, detail=f"Race not found: {race_id}")
    return [r.to_dict() for r in recs]


@router.get("/actors/top")
async def top_actors(
    limit: int = Query(default=10, ge=1, le=100),
    service: RecommendationService = Depends(get_service),
):
    """Most profitable actors from the last successful cycle."""
    return [p.to_dict() for p in service.get_top_actors(limit)]


@router.get("/consensus")
async def consensus_strategies(service: RecommendationService = Depends(get_service)):
    """Recommended strategy texts shared by the top actors."""
    return service.get_consensus_strategies()


@router.post("/cycle")
async def run_cycle(service: RecommendationService = Depends(get_service)):
    """Run an aggregation cycle now and report the outcome."""
    result = await service.run_cycle()
    return result.to_dict()


@router.get("/cycle/last")
async def last_cycle(service: RecommendationService = Depends(get_service)):
    """Outcome of the most recent cycle."""
    if service.last_cycle is None:
        return {"status": "never_run"}
    return service.last_cycle.to_dict()


@router.get("/{venue}/{category}/{risk_tier}")
async def get_strategy(
    venue: str,
    category: str,
    risk_tier: str,
    service: RecommendationService = Depends(get_service),
):
    """Exact strategy lookup."""
    rec = service.get_strategy(venue, category, risk_tier)
    if rec is None:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return rec.to_dict()
