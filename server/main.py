"""FastAPI server exposing a read-only API over a competition report."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from arena.env_utils import getenv_any
from arena.errors import ArenaError
from catchthecat.replay import replay_match
from server.report_store import ReportStore
from server.schemas import HighScore, MatchPage, MatchSummary, ReplayFrameModel, ReplayResponse

logger = logging.getLogger(__name__)

app = FastAPI(title="Catch-the-Cat Competition API", version="0.1.0")
store = ReportStore(path=Path(getenv_any("CATCHTHECAT_REPORT_PATH", default="competition_report.json")))

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _load(fn, *args: Any) -> Any:
    try:
        return fn(*args)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ArenaError as exc:
        logger.error("Could not decode report %s: %s", store.path, exc)
        raise HTTPException(status_code=500, detail=exc.to_dict()) from exc


@app.get("/api/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok"}


@app.get("/api/report")
def get_report() -> dict[str, Any]:
    """Return the stored compact report document."""
    return _load(store.document)


@app.get("/api/high-scores")
def get_high_scores() -> list[HighScore]:
    """Return per-user scores ranked by total score."""
    report = _load(store.report)
    return [HighScore(rank=rank, **score.to_dict()) for rank, score in enumerate(report.ranked(), start=1)]


@app.get("/api/matches")
def list_matches(
    username1: str | None = Query(default=None),
    username2: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=200),
) -> MatchPage:
    """List matches involving one user, or between two users."""
    selected = _load(store.filter_matches, username1, username2)
    pages = max(1, math.ceil(len(selected) / per_page))
    if page > pages:
        raise HTTPException(status_code=404, detail=f"Page {page} out of range (1..{pages}).")
    start = (page - 1) * per_page
    summaries = [
        MatchSummary(
            index=index,
            cat=match.cat,
            catcher=match.catcher,
            moves=match.move_count,
            cat_move_score=match.cat_move_score,
            catcher_move_score=match.catcher_move_score,
            cat_time_score=match.cat_time_score,
            catcher_time_score=match.catcher_time_score,
            error=match.failure.error if match.failure is not None else None,
        )
        for index, match in selected[start : start + per_page]
    ]
    return MatchPage(total=len(selected), page=page, per_page=per_page, matches=summaries)


@app.get("/api/matches/{index}/replay")
def get_replay(index: int) -> ReplayResponse:
    """Re-derive every board state of one match from its initial state."""
    try:
        match = _load(store.match, index)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown match index: {index}") from exc

    try:
        frames = replay_match(match)
    except ArenaError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc
    side = math.isqrt(match.area)
    return ReplayResponse(
        index=index,
        cat=match.cat,
        catcher=match.catcher,
        side=side,
        frames=[ReplayFrameModel(**frame.to_dict()) for frame in frames],
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.main:app", host="0.0.0.0", port=8000, reload=True)
