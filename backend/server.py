import argparse
import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, conint

from actions import action_from_dict
from session import GameSession

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="One Person Left", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Request/Response Models ----------

class NewGameRequest(BaseModel):
    seed: Optional[str] = Field(None, description="RNG seed; the default seed when omitted")


class ActionRequest(BaseModel):
    type: str = Field(..., description="SET_AUTOMATION, HIRE, FIRE, DEPLOY_AGENT, AUTOMATE_ROLE or ADVANCE_TICK")
    role: Optional[str] = None
    level: Optional[float] = None
    count: Optional[float] = None
    agentType: Optional[str] = None
    agentId: Optional[str] = None


class TickRequest(BaseModel):
    weeks: conint(ge=1, le=52) = 1


class LoadRequest(BaseModel):
    token: str


class ShareResponse(BaseModel):
    token: str


class LoadResponse(BaseModel):
    restored: bool
    state: Dict[str, Any]


# One player per process; requests are applied in arrival order
manager = GameSession()

# ---------- API Endpoints ----------

@app.post("/game")
def new_game(req: NewGameRequest) -> Dict[str, Any]:
    try:
        manager.reset(req.seed)
    except ValueError as e:
        logger.warning(f"Rejected seed {req.seed!r}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return manager.snapshot()


@app.get("/game")
def current_game() -> Dict[str, Any]:
    return manager.snapshot()


@app.get("/game/metrics")
def game_metrics() -> Dict[str, Any]:
    return manager.metrics()


@app.post("/game/actions")
def apply_action(req: ActionRequest) -> Dict[str, Any]:
    payload = {key: value for key, value in req.model_dump().items() if value is not None}
    try:
        action = action_from_dict(payload)
    except ValueError as e:
        logger.warning(f"Rejected action {payload}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    manager.dispatch(action)
    return manager.snapshot()


@app.post("/game/tick")
def advance(req: TickRequest) -> Dict[str, Any]:
    manager.advance(req.weeks)
    return manager.snapshot()


@app.get("/game/share", response_model=ShareResponse)
def share() -> ShareResponse:
    return ShareResponse(token=manager.share_token())


@app.post("/game/load", response_model=LoadResponse)
def load(req: LoadRequest) -> LoadResponse:
    restored = manager.load_token(req.token)
    return LoadResponse(restored=restored, state=manager.snapshot())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Serve the One Person Left simulation API.")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument("--seed", type=str, default=None, help="Seed for the initial game")
    args = parser.parse_args()

    if args.seed is not None:
        manager.reset(args.seed)
    logger.info(f"Serving on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
