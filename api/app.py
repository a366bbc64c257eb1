"""HTTP API entrypoint for driving a theater from a web UI."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from infra.logger import configure_from_settings, get_logger
from infra.settings import load_settings
from runtime.runner import TickRunner
from sim.scenario import Scenario

# Configure logging before any runner is created.
configure_from_settings(load_settings())

log = get_logger(__name__)

app = FastAPI()
runner: TickRunner | None = None


# Allow the browser-based control panel (served from file:// or other origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class StartRequest(BaseModel):
    scenario: dict
    world: dict | None = None
    verbose: bool = False


class StepRequest(BaseModel):
    injections: dict | None = None


@app.post("/start")
def start(request: StartRequest):
    global runner
    try:
        scenario = Scenario.from_dict(request.scenario)
        runner = TickRunner(scenario, world=request.world, verbose=request.verbose)
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(400, f"Invalid scenario: {exc}") from exc
    return {"success": True, "tick": runner.tick}


@app.post("/step")
def step(request: StepRequest):
    if runner is None:
        raise HTTPException(400, "No active game")
    try:
        return runner.step(request.injections).to_dict()
    except RuntimeError as exc:
        raise HTTPException(400, str(exc)) from exc


@app.post("/stop")
def stop():
    global runner

    if runner is None:
        raise HTTPException(400, "No active game")

    outcome = runner.abort_episode()
    runner = None
    return {"success": True, "message": "Game aborted", "outcome": outcome}


@app.get("/status")
def status():
    if runner is None:
        return {"active": False}
    return {"active": True, "tick": runner.tick, "step": runner.step_count, "done": runner.done}
