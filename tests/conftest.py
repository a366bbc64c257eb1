from pathlib import Path
import sys

# Add repository root to sys.path so tests can import local modules without installation.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from infra.settings import TacticsSettings
from sim.core.types import Team
from sim.entities import make_unit
from sim.utils.id_generator import reset_entity_ids
from sim.world import WorldState


@pytest.fixture(autouse=True)
def fresh_ids():
    reset_entity_ids()
    yield


@pytest.fixture
def world():
    return WorldState(width=30, height=30, seed=1)


@pytest.fixture
def spawn(world):
    """Place a unit in the world: spawn(team, pos, role, **unit_kwargs)."""

    def _spawn(team: Team, pos, role, **kwargs):
        unit = make_unit(team, pos, role, **kwargs)
        world.add_entity(unit)
        return unit

    return _spawn


@pytest.fixture
def settings():
    return TacticsSettings()
