from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from klondike.Core import Card, acceptsOnFoundation, acceptsOnTableau, stackable
from explorer.state import KlondikeState, Pile, Piles, with_pile

DRAW_TO_TABLEAU = "DRAW_TO_TABLEAU"
DRAW_TO_FOUNDATION = "DRAW_TO_FOUNDATION"
TABLEAU_TO_TABLEAU = "TABLEAU_TO_TABLEAU"
TABLEAU_TO_FOUNDATION = "TABLEAU_TO_FOUNDATION"

MOVE_KINDS = (DRAW_TO_TABLEAU, DRAW_TO_FOUNDATION, TABLEAU_TO_TABLEAU, TABLEAU_TO_FOUNDATION)


@dataclass(frozen=True, slots=True)
class Move:
    """A single move in explorer notation."""

    kind: str
    # Draw pile index for draw moves, column index for tableau moves.
    src: int = -1
    # Start of the moved run inside the source face-up pile.
    src_idx: int = -1
    # Column index, or suit index for foundation moves.
    dest: int = -1
    moved_len: int = 1
    flipped: bool = False

    def to_notation(self) -> str:
        flip = "+flip" if self.flipped else ""
        if self.kind == DRAW_TO_TABLEAU:
            return f"D{self.src}->T{self.dest}"
        if self.kind == DRAW_TO_FOUNDATION:
            return f"D{self.src}->F{self.dest}"
        if self.kind == TABLEAU_TO_FOUNDATION:
            return f"T{self.src}->F{self.dest}{flip}"
        return f"T{self.src}:{self.src_idx}->T{self.dest},len={self.moved_len}{flip}"


@dataclass(frozen=True, slots=True)
class Transition:
    move: Move
    state: KlondikeState


@dataclass(frozen=True, slots=True)
class MovePolicy:
    # Cards are turned from the draw pile in groups of this size (3 = draw-three).
    draw_group: int = 3
    # Re-check that a moved tableau run alternates colour and descends.
    strict_runs: bool = False

    def __post_init__(self):
        if self.draw_group < 1:
            raise ValueError(f"draw_group must be at least 1, got {self.draw_group}")


DEFAULT_POLICY = MovePolicy()


def _top(pile: Pile):
    return pile[-1] if pile else None


def available_draw_indices(size: int, group: int = 3) -> tuple[int, ...]:
    """Return draw pile indices that can be played: every ``group``-th card plus the last one."""
    if group < 1:
        raise ValueError(f"draw group must be at least 1, got {group}")
    if size <= 0:
        return ()
    indices = list(range(group - 1, size, group))
    if not indices or indices[-1] != size - 1:
        indices.append(size - 1)
    return tuple(indices)


def _is_valid_run(pile: Pile, start: int) -> bool:
    for i in range(start + 1, len(pile)):
        if not stackable(pile[i], pile[i - 1]):
            return False
    return True


def _take_from_column(state: KlondikeState, col: int, start: int) -> tuple[Piles, Piles, bool]:
    """Cut the face-up pile of ``col`` at ``start``, flipping a face-down card if it empties."""
    up = with_pile(state.tableau_up, col, state.tableau_up[col][:start])
    down = state.tableau_down
    hidden = down[col]
    if not up[col] and hidden:
        up = with_pile(up, col, (hidden[-1],))
        down = with_pile(down, col, hidden[:-1])
        return up, down, True
    return up, down, False


def _without_index(pile: Pile, idx: int) -> Pile:
    return pile[:idx] + pile[idx + 1:]


def draw_to_tableau(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[Transition]:
    out: list[Transition] = []
    deck = state.draw_pile
    for i in available_draw_indices(len(deck), policy.draw_group):
        card = deck[i]
        for j, put_stack in enumerate(state.tableau_up):
            if not acceptsOnTableau(card, _top(put_stack)):
                continue
            new_state = KlondikeState(
                draw_pile=_without_index(deck, i),
                foundations=state.foundations,
                tableau_up=with_pile(state.tableau_up, j, put_stack + (card,)),
                tableau_down=state.tableau_down,
            )
            out.append(Transition(Move(kind=DRAW_TO_TABLEAU, src=i, dest=j), new_state))
    return out


def draw_to_foundation(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[Transition]:
    out: list[Transition] = []
    deck = state.draw_pile
    for i in available_draw_indices(len(deck), policy.draw_group):
        card = deck[i]
        put_stack = state.foundations[card.suit]
        if not acceptsOnFoundation(card, _top(put_stack)):
            continue
        new_state = KlondikeState(
            draw_pile=_without_index(deck, i),
            foundations=with_pile(state.foundations, card.suit, put_stack + (card,)),
            tableau_up=state.tableau_up,
            tableau_down=state.tableau_down,
        )
        out.append(Transition(Move(kind=DRAW_TO_FOUNDATION, src=i, dest=card.suit), new_state))
    return out


def tableau_to_tableau(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[Transition]:
    out: list[Transition] = []
    columns = state.tableau_up
    for i, take_stack in enumerate(columns):
        for k in range(len(take_stack)):
            if policy.strict_runs and not _is_valid_run(take_stack, k):
                continue
            run = take_stack[k:]
            for j, put_stack in enumerate(columns):
                if j == i:
                    continue
                if not acceptsOnTableau(run[0], _top(put_stack)):
                    continue
                up, down, flipped = _take_from_column(state, i, k)
                up = with_pile(up, j, put_stack + run)
                new_state = KlondikeState(
                    draw_pile=state.draw_pile,
                    foundations=state.foundations,
                    tableau_up=up,
                    tableau_down=down,
                )
                move = Move(kind=TABLEAU_TO_TABLEAU, src=i, src_idx=k, dest=j, moved_len=len(run), flipped=flipped)
                out.append(Transition(move, new_state))
    return out


def tableau_to_foundation(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[Transition]:
    out: list[Transition] = []
    for i, take_stack in enumerate(state.tableau_up):
        if not take_stack:
            continue
        card: Card = take_stack[-1]
        put_stack = state.foundations[card.suit]
        if not acceptsOnFoundation(card, _top(put_stack)):
            continue
        up, down, flipped = _take_from_column(state, i, len(take_stack) - 1)
        new_state = KlondikeState(
            draw_pile=state.draw_pile,
            foundations=with_pile(state.foundations, card.suit, put_stack + (card,)),
            tableau_up=up,
            tableau_down=down,
        )
        move = Move(kind=TABLEAU_TO_FOUNDATION, src=i, src_idx=len(take_stack) - 1, dest=card.suit, flipped=flipped)
        out.append(Transition(move, new_state))
    return out


MOVE_GENERATORS: tuple[tuple[str, Callable[[KlondikeState, MovePolicy], list[Transition]]], ...] = (
    (DRAW_TO_TABLEAU, draw_to_tableau),
    (DRAW_TO_FOUNDATION, draw_to_foundation),
    (TABLEAU_TO_TABLEAU, tableau_to_tableau),
    (TABLEAU_TO_FOUNDATION, tableau_to_foundation),
)


def generate_transitions(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[Transition]:
    """Every state reachable from ``state`` by exactly one legal move, tagged with that move."""
    transitions: list[Transition] = []
    for _, generator in MOVE_GENERATORS:
        transitions.extend(generator(state, policy))
    return transitions


def successors(state: KlondikeState, policy: MovePolicy = DEFAULT_POLICY) -> list[KlondikeState]:
    return [tr.state for tr in generate_transitions(state, policy)]
