from __future__ import annotations

from typing import Any, Dict, List, Optional

from policies import create_policy_from_spec
from policies.factory import PreparedPolicy
from sim import TheaterEnv
from sim.core.types import BodyPart, Team
from sim.environment import StepInfo
from sim.scenario import Scenario
from sim.world import WorldState
from infra.settings import load_settings
from .events import IRREVERSIBLE_SEVERITIES, extract_events

from infra.logger import get_logger
from .frame import Frame

log = get_logger(__name__)

WEAPON_PARTS = (BodyPart.ATTACK, BodyPart.RANGED_ATTACK, BodyPart.WORK)


class TickRunner:
    """
    Step-by-step theater runner that returns UI-friendly frames.

    Both teams' policies see the same world snapshot; their intents are
    merged and resolved by the environment in one tick.
    """

    def __init__(
        self,
        scenario: Scenario,
        world: WorldState | Dict[str, Any] | None = None,
        verbose: bool = False,
    ):
        self.scenario = scenario.clone()
        self.verbose = verbose

        self.settings = load_settings()
        self.env = TheaterEnv(verbose=verbose)
        self._state = self.env.reset(scenario=self.scenario, world=world)

        self._policies: Dict[Team, PreparedPolicy] = {
            team: self._policy_from_scenario(self.scenario, team) for team in Team
        }

        self._done = False
        self._step_count = 0
        self._last_info: StepInfo | None = None
        self.outcome: Optional[Dict[str, Any]] = None

        log.info("TickRunner initialized for scenario seed=%s", self.scenario.seed)

    # ------------------------------------------------------------------#
    # Core API
    # ------------------------------------------------------------------#
    def step(self, injections: Optional[Dict[str, Any]] = None) -> Frame:
        """
        Run one tick and return the frame the policies acted on.

        Args:
            injections: Per-team extra keyword arguments for the policies,
                e.g. {"blue": {...}, "red": {...}}

        Raises:
            RuntimeError: If the episode is already over
        """
        if self._done:
            raise RuntimeError("Episode is over; start a new game")

        injections = injections or {}

        # --------------------------------------------------
        # 1. Snapshot world BEFORE actions
        # --------------------------------------------------
        world_before = self._state["world"].clone()

        # --------------------------------------------------
        # 2. Get intents from both policies
        # --------------------------------------------------
        merged_actions: Dict[int, List[Any]] = {}
        metadata: Dict[str, Any] = {}
        for team, prepared in self._policies.items():
            key = team.name.lower()
            actions, meta = prepared.act(self._state, self._last_info, injections.get(key))
            merged_actions.update(actions)
            metadata[key] = meta

        # --------------------------------------------------
        # 3. Resolve the tick
        # --------------------------------------------------
        self._state, self._done, self._last_info = self.env.step(merged_actions)
        self._step_count += 1

        # --------------------------------------------------
        # 4. Extract NEGATIVE events
        # --------------------------------------------------
        current_world: WorldState = self._state["world"]
        events: List[Dict[str, Any]] = []
        for team in Team:
            events.extend(extract_events(
                prev_world=world_before,
                world=current_world,
                team=team,
                expired=self._last_info.expired,
            ))
        for event in events:
            if event.get("severity") in IRREVERSIBLE_SEVERITIES:
                log.warning("Negative event detected: %s", event)
            else:
                log.info("Event: %s", event)

        # --------------------------------------------------
        # 5. Handle terminal state
        # --------------------------------------------------
        if self._done:
            self.outcome = {
                "type": "END_OF_EPISODE",
                "result": self._last_info.result.value,
                "reason": current_world.game_over_reason,
            }
            log.info("Episode finished at tick %d: %s", self.tick, self.outcome)

        return Frame(
            world=world_before,
            actions=merged_actions,
            action_metadata=metadata,
            step_info=self._last_info,
            done=self._done,
            events=events,
        )

    def abort_episode(self) -> Dict[str, Any]:
        """
        Stop the episode early, e.g. when the UI closes the game.

        Returns the recorded outcome.
        """
        if self._done:
            return self.outcome or {}

        outcome = self._evaluate_early_termination() or {
            "type": "MANUAL_ABORT",
            "result": "INCOMPLETE",
            "reason": "USER_TERMINATED",
        }
        self._done = True
        self.outcome = outcome
        log.info("Episode aborted at tick %d: %s", self.tick, outcome)
        return outcome

    # ------------------------------------------------------------------#
    # Helpers
    # ------------------------------------------------------------------#
    @property
    def tick(self) -> int:
        world: WorldState = self._state["world"]
        return world.tick

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def done(self) -> bool:
        return self._done

    @property
    def world(self) -> WorldState:
        return self._state["world"]

    def _policy_from_scenario(self, scenario: Scenario, team: Team) -> PreparedPolicy:
        spec = scenario.policy_for(team)
        if spec is None:
            raise ValueError(f"No PolicySpec found for team {team}")
        return create_policy_from_spec(spec, self.settings)

    # --------------------------------------------------
    # Early termination evaluation
    # --------------------------------------------------
    def _evaluate_early_termination(self) -> dict | None:
        world = self.world

        def armed(team: Team) -> bool:
            if any(s.is_defense for s in world.structures(team)):
                return True
            return any(
                u.get_active_bodyparts(part) > 0
                for u in world.units(team)
                for part in WEAPON_PARTS
            )

        blue_armed, red_armed = armed(Team.BLUE), armed(Team.RED)

        # Case 1: both exhausted
        if not blue_armed and not red_armed:
            return {
                "type": "EARLY_TIE",
                "result": "TIE",
                "reason": "NO_ARMED_FORCES_REMAIN",
            }

        # Case 2: blue collapsed
        if not blue_armed:
            return {
                "type": "STRATEGIC_COLLAPSE",
                "result": "LOSS",
                "reason": "BLUE_NO_OFFENSIVE_CAPABILITY",
            }

        # Case 3: red collapsed
        if not red_armed:
            return {
                "type": "STRATEGIC_COLLAPSE",
                "result": "WIN",
                "reason": "RED_NO_OFFENSIVE_CAPABILITY",
            }

        return None
