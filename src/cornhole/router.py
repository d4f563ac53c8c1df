import logging, random
from pathlib import Path
from typing import Optional
from fastapi import APIRouter, Form, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_session, StateORM
from cornhole.controller import TournamentController
from cornhole.exceptions import (
    ScoreValidationError, SetupError, StructuralInconsistency, UnknownReference,
)
from cornhole.functions import round_name
from cornhole.models import TARGETS, Tournament

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
STATE_KEYS = ("players", "groups", "mode", "stage", "rounds", "champion", "target")

router = APIRouter(prefix='/cornhole', tags=['Cornhole'])
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def get_rng() -> random.Random:
    return random.Random()


async def _load_tournament(session: AsyncSession) -> Tournament:
    """Rebuild the Tournament from its key-value rows; missing keys take defaults."""
    result = await session.execute(select(StateORM))
    data = {row.key: row.value for row in result.scalars()}
    return Tournament.from_dict(data)


async def _save_tournament(session: AsyncSession, t: Tournament):
    data = t.to_dict()
    for key in STATE_KEYS:
        await session.merge(StateORM(key=key, value=data[key]))
    await session.commit()


async def _controller(session: AsyncSession, rng: random.Random) -> TournamentController:
    return TournamentController(await _load_tournament(session), rng=rng)


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, SetupError):
        return HTTPException(status_code=400, detail={"message": exc.message, "missing": exc.missing})
    if isinstance(exc, ScoreValidationError):
        return HTTPException(status_code=400, detail=exc.message)
    if isinstance(exc, UnknownReference):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=409, detail=str(exc))


def _redirect():
    return RedirectResponse("/cornhole/", status_code=303)

# Routes

@router.get("/", response_class=HTMLResponse)
async def index(request: Request, session: AsyncSession = Depends(get_session)):
    ctl = await _controller(session, get_rng())
    t = ctl.tournament
    return templates.TemplateResponse(request, f"cornhole/{t.stage}.html", {
        "tournament": t,
        "players": t.players_index(),
        "standings": ctl.standings(),
        "progress": ctl.progress(),
        "podium": ctl.podium(),
        "round_name": round_name,
        "targets": TARGETS,
    })

@router.get("/bracket", response_class=HTMLResponse)
async def bracket_view(request: Request, session: AsyncSession = Depends(get_session)):
    t = await _load_tournament(session)
    return templates.TemplateResponse(request, "cornhole/bracket.html", {
        "tournament": t,
        "players": t.players_index(),
        "round_name": round_name,
    })

@router.get("/state")
async def state(session: AsyncSession = Depends(get_session)):
    ctl = await _controller(session, get_rng())
    return JSONResponse(ctl.snapshot())

@router.post("/setup")
async def setup_tournament(
    mode: str = Form("groups"),
    target: int = Form(21),
    count: Optional[int] = Form(None),
    player_names: str = Form(""),
    session: AsyncSession = Depends(get_session),
    rng: random.Random = Depends(get_rng),
):
    names = player_names.split("\n")
    if count is None:
        names = [n for n in names if n.strip()]
    ctl = await _controller(session, rng)
    try:
        ctl.setup(names, mode, target, count)
    except SetupError as e:
        logger.info(f"Setup rejected: {e.message}")
        raise _to_http(e)

    await _save_tournament(session, ctl.tournament)
    return _redirect()

@router.post("/groups/{group_name}/score")
async def submit_group_score(
    group_name: str,
    match_id: str = Form(...),
    score_a: Optional[int] = Form(None),
    score_b: Optional[int] = Form(None),
    session: AsyncSession = Depends(get_session),
):
    ctl = await _controller(session, get_rng())
    try:
        ctl.submit_score(group_name, match_id, score_a, score_b)
    except (ScoreValidationError, StructuralInconsistency, UnknownReference) as e:
        raise _to_http(e)

    await _save_tournament(session, ctl.tournament)
    return _redirect()

@router.post("/rounds/{round_index}/score")
async def submit_knockout_score(
    round_index: int,
    match_id: str = Form(...),
    score_a: Optional[int] = Form(None),
    score_b: Optional[int] = Form(None),
    session: AsyncSession = Depends(get_session),
):
    ctl = await _controller(session, get_rng())
    try:
        ctl.submit_score(round_index, match_id, score_a, score_b)
    except (ScoreValidationError, StructuralInconsistency, UnknownReference) as e:
        raise _to_http(e)

    await _save_tournament(session, ctl.tournament)
    return _redirect()

@router.post("/advance")
async def advance_to_knockout(session: AsyncSession = Depends(get_session)):
    ctl = await _controller(session, get_rng())
    try:
        ctl.advance_to_knockout()
    except StructuralInconsistency as e:
        raise _to_http(e)

    await _save_tournament(session, ctl.tournament)
    return _redirect()

@router.post("/reset")
async def reset_tournament(session: AsyncSession = Depends(get_session)):
    ctl = await _controller(session, get_rng())
    ctl.reset()
    await _save_tournament(session, ctl.tournament)
    return _redirect()
