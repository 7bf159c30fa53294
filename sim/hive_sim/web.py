"""
Hive Economy Simulator - Web API
==================================
FastAPI server for running scenarios and inspecting route timing.

Usage:
    python -m hive_sim.web
    python cli.py web [--port 8080]
"""

from dataclasses import asdict
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from hive_sim.arc import arc_length, compute_timing
from hive_sim.constants import (
    ARC_SEGMENTS, DEFAULT_ARC_ALTITUDE, DEFAULT_CARRIER_SPEED, DEFAULT_TICK_SECONDS,
)
from hive_sim.engine import SimulationEngine
from hive_sim.errors import SimError
from hive_sim.io import load_scenario, save_scenario, scenario_from_dict, scenario_to_dict
from hive_sim.models import Scenario, SimResult, Vec3

# Paths
DATA_DIR = Path(__file__).parent.parent / "data"
SCENARIOS_DIR = DATA_DIR / "scenarios"

app = FastAPI(title="Hive Economy Simulator")


# ---------------------------------------------------------------------------
# Pydantic models for request/response
# ---------------------------------------------------------------------------

class SimulateRequest(BaseModel):
    scenario: Optional[dict] = None
    filename: Optional[str] = None
    duration: float = 300.0
    dt: float = DEFAULT_TICK_SECONDS
    strict: bool = True


class CompareRequest(BaseModel):
    filenames: list[str] = []
    scenarios: list[dict] = []
    duration: float = 300.0
    dt: float = DEFAULT_TICK_SECONDS


class RouteTimingRequest(BaseModel):
    producer: list[float]
    hub: list[float] = [0.0, 0.0, 0.0]
    altitude: float = DEFAULT_ARC_ALTITUDE
    speed: float = DEFAULT_CARRIER_SPEED
    speed_modifier: float = 1.0
    allocated: int = 1
    segments: int = ARC_SEGMENTS


class SaveRequest(BaseModel):
    scenario: dict
    filename: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _scenario_path(filename: str) -> Path:
    if "/" in filename or "\\" in filename or filename.startswith("."):
        raise HTTPException(400, f"Invalid filename: {filename}")
    return SCENARIOS_DIR / filename


def _load(filename: str) -> Scenario:
    filepath = _scenario_path(filename)
    if not filepath.exists():
        raise HTTPException(404, f"Scenario not found: {filename}")
    try:
        return load_scenario(str(filepath))
    except SimError as e:
        raise HTTPException(400, f"Invalid scenario {filename}: {e}")


def _parse(data: dict) -> Scenario:
    try:
        return scenario_from_dict(data)
    except SimError as e:
        raise HTTPException(400, f"Invalid scenario: {e}")


def _run(sc: Scenario, duration: float, dt: float, strict: bool = True) -> SimResult:
    try:
        return SimulationEngine(sc, strict=strict).run(duration, dt)
    except SimError as e:
        raise HTTPException(400, f"Simulation error: {e}")


def _result_to_dict(result: SimResult) -> dict:
    """Convert SimResult to JSON-serializable dict."""
    data = asdict(result)
    data["completion_log"] = [
        {"time": t, "recipe_id": rid, "value": v} for t, rid, v in result.completion_log
    ]
    data["season_log"] = [{"time": t, "season": s} for t, s in result.season_log]
    data["total_deliveries"] = result.total_deliveries
    data["total_discarded"] = result.total_discarded
    return data


# ---------------------------------------------------------------------------
# API Endpoints
# ---------------------------------------------------------------------------

@app.get("/api/scenarios")
def api_scenarios():
    """List saved YAML scenarios."""
    files = []
    if SCENARIOS_DIR.exists():
        for f in sorted(SCENARIOS_DIR.glob("*.yaml")):
            files.append({"filename": f.name, "stem": f.stem})
    return {"scenarios": files}


@app.get("/api/scenarios/{filename}")
def api_scenario_detail(filename: str):
    return scenario_to_dict(_load(filename))


@app.post("/api/simulate")
def api_simulate(req: SimulateRequest):
    """Run a scenario and return the result."""
    if req.filename:
        sc = _load(req.filename)
    elif req.scenario is not None:
        sc = _parse(req.scenario)
    else:
        raise HTTPException(400, "Provide either scenario or filename")
    if req.duration <= 0 or req.dt <= 0:
        raise HTTPException(400, "duration and dt must be positive")
    return _result_to_dict(_run(sc, req.duration, req.dt, req.strict))


@app.post("/api/compare")
def api_compare(req: CompareRequest):
    """Simulate several scenarios and return all results."""
    scenarios = [_parse(d) for d in req.scenarios] + [_load(f) for f in req.filenames]
    return {"results": [_result_to_dict(_run(sc, req.duration, req.dt)) for sc in scenarios]}


@app.post("/api/route-timing")
def api_route_timing(req: RouteTimingRequest):
    """Arc length, trip times and spawn cadence for a single route."""
    try:
        length = arc_length(Vec3.from_seq(req.producer), Vec3.from_seq(req.hub),
                            req.altitude, req.segments)
        timing = compute_timing(length, req.speed, req.allocated, req.speed_modifier)
    except SimError as e:
        raise HTTPException(400, str(e))
    return asdict(timing)


@app.post("/api/save")
def api_save(req: SaveRequest):
    """Save a scenario to YAML."""
    filename = req.filename
    if not filename.endswith(".yaml"):
        filename += ".yaml"
    filepath = _scenario_path(filename)
    sc = _parse(req.scenario)
    SCENARIOS_DIR.mkdir(parents=True, exist_ok=True)
    save_scenario(sc, str(filepath))
    return {"saved": filename}


def start_server(port: int = 8080):
    """Start the uvicorn server."""
    print(f"Starting Hive Economy Simulator at http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    start_server()
