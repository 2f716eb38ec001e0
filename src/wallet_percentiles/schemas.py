from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class AnalyzeWalletsRequest(BaseModel):
    addresses: List[str] = Field(..., min_length=1)


class MetricComparisonOut(BaseModel):
    value: float
    percentile: float


class WalletResult(BaseModel):
    address: str
    metrics: Optional[Dict[str, Union[int, float, str]]] = None
    comparisons: Optional[Dict[str, MetricComparisonOut]] = None
    error: Optional[str] = None


class AnalyzeWalletsResponse(BaseModel):
    results: List[WalletResult]


class MetricSummary(BaseModel):
    count: int
    min: float
    median: float
    max: float


class PercentilesResponse(BaseModel):
    built_at: datetime
    sample_size: int
    metrics: Dict[str, MetricSummary]


class ErrorResponse(BaseModel):
    error: str
