from __future__ import annotations

import argparse
import json
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from klondike.Core import GameConfig
from klondike.Interface import Interface
from explorer.moves import DEFAULT_POLICY, MOVE_KINDS, MovePolicy, Transition, generate_transitions
from explorer.settings_store import LOG_LEVELS, load_settings
from explorer.state import KlondikeState, build_initial_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExploreLimits:
    """Optional early-stop bounds; ``None`` means unbounded."""

    max_states: Optional[int] = None
    max_expanded: Optional[int] = None
    max_seconds: Optional[float] = None
    # Emit an INFO progress record every this many expansions (0 disables).
    progress_every: int = 0


@dataclass(slots=True)
class ExploreResult:
    status: str
    stop_reason: str
    expanded_nodes: int
    generated_nodes: int
    unique_states: int
    duplicate_states_skipped: int
    max_frontier: int
    max_depth: int
    pending: int
    elapsed_ms: float
    by_kind: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "stop_reason": self.stop_reason,
            "expanded_nodes": self.expanded_nodes,
            "generated_nodes": self.generated_nodes,
            "unique_states": self.unique_states,
            "duplicate_states_skipped": self.duplicate_states_skipped,
            "max_frontier": self.max_frontier,
            "max_depth": self.max_depth,
            "pending": self.pending,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "by_kind": dict(self.by_kind),
        }


class Explorer:
    """
    Breadth-first enumeration of every state reachable from one initial state.

    ``visited`` is the single record of what has been discovered; a state is
    expanded at most once.
    """

    def __init__(self, initial_state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY):
        self.initial_state = initial_state
        self.policy = policy
        self.visited: set[KlondikeState] = {initial_state}
        self.frontier: deque[tuple[int, KlondikeState]] = deque([(0, initial_state)])
        self.interfaces: list[Interface] = []

        self.expanded_nodes = 0
        self.generated_nodes = 0
        self.duplicate_states_skipped = 0
        self.max_frontier = 1
        self.max_depth = 0
        self.by_kind = {kind: 0 for kind in MOVE_KINDS}
        self.elapsed_ms = 0.0

    def register_interface(self, interface: Interface):
        self.interfaces.append(interface)
        interface.explorer = self

    @property
    def exhausted(self) -> bool:
        return not self.frontier

    def add_state(self, transition: Transition, depth: int) -> bool:
        """Insert the transition's state unless it was already discovered."""
        self.generated_nodes += 1
        state = transition.state
        if state in self.visited:
            self.duplicate_states_skipped += 1
            logger.debug("Duplicate state via %s", transition.move.to_notation())
            for interface in self.interfaces:
                interface.onDuplicate(transition)
            return False

        self.visited.add(state)
        self.frontier.append((depth, state))
        self.by_kind[transition.move.kind] += 1
        if depth > self.max_depth:
            self.max_depth = depth
        for interface in self.interfaces:
            interface.onDiscover(transition, depth)
        return True

    def expand_next(self) -> int:
        depth, state = self.frontier.popleft()
        self.expanded_nodes += 1
        new_states = 0
        for tr in generate_transitions(state, self.policy):
            if self.add_state(tr, depth + 1):
                new_states += 1
        if len(self.frontier) > self.max_frontier:
            self.max_frontier = len(self.frontier)
        return new_states

    def _stop_reason(self, limits: ExploreLimits, started: float) -> Optional[str]:
        if limits.max_states is not None and len(self.visited) >= limits.max_states:
            return "max_states"
        if limits.max_expanded is not None and self.expanded_nodes >= limits.max_expanded:
            return "max_expanded"
        if limits.max_seconds is not None and (time.perf_counter() - started) >= limits.max_seconds:
            return "max_seconds"
        return None

    def run(self, limits: ExploreLimits = ExploreLimits()) -> ExploreResult:
        """Drain the frontier, or stop early when a limit is hit."""

        started = time.perf_counter()
        if self.expanded_nodes == 0:
            for interface in self.interfaces:
                interface.onStart(self.initial_state)
        logger.info("Exploring from %d known state(s), %d pending", len(self.visited), len(self.frontier))

        stop_reason = None
        while self.frontier:
            stop_reason = self._stop_reason(limits, started)
            if stop_reason is not None:
                break
            self.expand_next()
            if limits.progress_every and self.expanded_nodes % limits.progress_every == 0:
                logger.info(
                    "expanded=%d unique=%d pending=%d duplicates=%d",
                    self.expanded_nodes,
                    len(self.visited),
                    len(self.frontier),
                    self.duplicate_states_skipped,
                )

        self.elapsed_ms += (time.perf_counter() - started) * 1000.0
        if stop_reason is None:
            result = self.result("exhausted", "frontier_empty")
        else:
            result = self.result("stopped", stop_reason)
        logger.info(
            "Exploration %s (%s): %d unique states, %d duplicates",
            result.status,
            result.stop_reason,
            result.unique_states,
            result.duplicate_states_skipped,
        )
        for interface in self.interfaces:
            interface.onFinish(result)
        return result

    def result(self, status: str, stop_reason: str) -> ExploreResult:
        return ExploreResult(
            status=status,
            stop_reason=stop_reason,
            expanded_nodes=self.expanded_nodes,
            generated_nodes=self.generated_nodes,
            unique_states=len(self.visited),
            duplicate_states_skipped=self.duplicate_states_skipped,
            max_frontier=self.max_frontier,
            max_depth=self.max_depth,
            pending=len(self.frontier),
            elapsed_ms=self.elapsed_ms,
            by_kind=dict(self.by_kind),
        )


def _optional(raw: str, cast):
    return cast(raw) if raw != "" else None


def limits_from_settings(settings: dict) -> ExploreLimits:
    return ExploreLimits(
        max_states=_optional(settings["max_states"], int),
        max_expanded=_optional(settings["max_expanded"], int),
        max_seconds=_optional(settings["max_seconds"], float),
    )


def policy_from_settings(settings: dict) -> MovePolicy:
    return MovePolicy(
        draw_group=int(settings["draw_group"]),
        strict_runs=settings["strict_runs"] == "true",
    )


def explore(
    initial_state: KlondikeState,
    limits: ExploreLimits = ExploreLimits(),
    policy: MovePolicy = DEFAULT_POLICY,
    interfaces: Iterable[Interface] = (),
) -> tuple[ExploreResult, frozenset[KlondikeState]]:
    explorer = Explorer(initial_state, policy=policy)
    for interface in interfaces:
        explorer.register_interface(interface)
    result = explorer.run(limits)
    return result, frozenset(explorer.visited)


def explore_seed(
    seed: Optional[int],
    limits: ExploreLimits = ExploreLimits(),
    policy: MovePolicy = DEFAULT_POLICY,
) -> ExploreResult:
    state = build_initial_state(GameConfig(seed=seed).initDeck())
    result, _ = explore(state, limits=limits, policy=policy)
    return result


def dump_states(states: Iterable[KlondikeState], path: Path) -> int:
    count = 0
    with path.open("w", encoding="utf-8") as f:
        for state in states:
            f.write(f"# state {count}\n")
            f.writelines(line + "\n" for line in state.to_lines())
            f.write("\n")
            count += 1
    return count


def load_states(path: Path) -> list[KlondikeState]:
    """Read back a file written by ``dump_states``; blank lines separate states."""
    states: list[KlondikeState] = []
    block: list[str] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                block.append(line)
                continue
            if any(not row.startswith("#") for row in block):
                states.append(KlondikeState.from_lines(block))
            block = []
    if any(not row.startswith("#") for row in block):
        states.append(KlondikeState.from_lines(block))
    return states


def draw_group_arg(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid draw group: {text!r}") from exc
    if value < 1:
        raise argparse.ArgumentTypeError(f"draw group must be at least 1, got {value}")
    return value


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enumerate every Klondike state reachable from one deal.")
    parser.add_argument("--config", type=str, default="", help="Optional settings .ini file.")
    parser.add_argument("--seed", type=int, default=None, help="Shuffle seed for the deal.")
    parser.add_argument("--game-code", type=str, default=None, help="Encoded 52-card deck; overrides the seed.")
    parser.add_argument("--start-from", type=str, default="", help="Start from a state in a --dump file; overrides the deal.")
    parser.add_argument("--start-index", type=int, default=0, help="Which state of the --start-from file to use.")
    parser.add_argument("--max-states", type=int, default=None, help="Stop once this many states are known.")
    parser.add_argument("--max-expanded", type=int, default=None, help="Stop after expanding this many states.")
    parser.add_argument("--max-seconds", type=float, default=None, help="Stop after this many seconds.")
    parser.add_argument("--draw-group", type=draw_group_arg, default=None, help="Draw pile group size (3 = draw-three).")
    parser.add_argument("--strict-runs", action="store_true", help="Validate moved tableau runs.")
    parser.add_argument("--progress-every", type=int, default=10_000, help="Log progress every N expansions.")
    parser.add_argument("--dump", type=str, default="", help="Write every visited state to this file.")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Logging level.")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print json output.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = _parse_args(argv)
    settings = load_settings(Path(args.config) if args.config else None)
    logging.basicConfig(level=args.log_level or settings["log_level"])

    seed = args.seed
    if seed is None and settings["seed"] != "":
        seed = int(settings["seed"])

    base_limits = limits_from_settings(settings)
    limits = ExploreLimits(
        max_states=args.max_states if args.max_states is not None else base_limits.max_states,
        max_expanded=args.max_expanded if args.max_expanded is not None else base_limits.max_expanded,
        max_seconds=args.max_seconds if args.max_seconds is not None else base_limits.max_seconds,
        progress_every=args.progress_every,
    )
    base_policy = policy_from_settings(settings)
    policy = MovePolicy(
        draw_group=args.draw_group if args.draw_group is not None else base_policy.draw_group,
        strict_runs=args.strict_runs or base_policy.strict_runs,
    )

    if args.start_from:
        states = load_states(Path(args.start_from).expanduser())
        if not 0 <= args.start_index < len(states):
            raise SystemExit(f"--start-index {args.start_index} out of range: {len(states)} state(s) in {args.start_from}")
        state = states[args.start_index]
    else:
        state = build_initial_state(GameConfig(seed=seed, gameCode=args.game_code).initDeck())
    explorer = Explorer(state, policy=policy)
    result = explorer.run(limits)

    payload = result.to_dict()
    payload["seed"] = seed
    if args.start_from:
        payload["start_from"] = args.start_from
        payload["start_index"] = args.start_index
    if args.dump:
        payload["dumped_states"] = dump_states(explorer.visited, Path(args.dump).expanduser())

    if args.pretty:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(payload, ensure_ascii=False))


if __name__ == "__main__":
    main()
