from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .analyzer import WalletAnalyzer
from .models import PopulationSnapshot
from .orchestrator import compare_wallet
from .percentiles import summarize
from .schemas import (
    AnalyzeWalletsRequest,
    AnalyzeWalletsResponse,
    ErrorResponse,
    PercentilesResponse,
    WalletResult,
)

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input. Please provide an array of wallet addresses."


def create_app(analyzer: WalletAnalyzer, snapshot: PopulationSnapshot) -> FastAPI:
    """Build the scoring API around an analyzer and a fixed population snapshot."""

    app = FastAPI(title="Wallet Percentiles API")
    app.state.analyzer = analyzer
    app.state.snapshot = snapshot

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": INVALID_INPUT_MESSAGE})

    @app.post(
        "/analyze-wallets",
        response_model=AnalyzeWalletsResponse,
        response_model_exclude_none=True,
        responses={400: {"model": ErrorResponse}},
    )
    def analyze_wallets(req: AnalyzeWalletsRequest) -> AnalyzeWalletsResponse:
        results: List[WalletResult] = []
        for address in req.addresses:
            results.append(
                WalletResult(**compare_wallet(address, app.state.analyzer, app.state.snapshot))
            )
        return AnalyzeWalletsResponse(results=results)

    @app.get("/percentiles", response_model=PercentilesResponse)
    def percentiles() -> PercentilesResponse:
        snap: PopulationSnapshot = app.state.snapshot
        return PercentilesResponse(
            built_at=snap.built_at,
            sample_size=snap.sample_size,
            metrics=summarize(snap),
        )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "wallets": app.state.snapshot.sample_size}

    return app
