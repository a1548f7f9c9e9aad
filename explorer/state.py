from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from klondike.Core import (
    ACE,
    KING,
    SUIT_COUNT,
    TABLEAU_COUNT,
    Card,
    checkDeck,
    decodeStack,
    encodeStack,
    fullDeck,
)

Pile = tuple[Card, ...]
Piles = tuple[Pile, ...]


@dataclass(frozen=True, slots=True)
class KlondikeState:
    """Immutable snapshot of every card's location.

    Equality and hash are structural over the four fields and sensitive to the
    order of cards inside every pile.
    """

    # Cards not dealt to the tableau; drawn positions are computed by index.
    draw_pile: Pile
    # One pile per suit (index = suit), built up from the Ace.
    foundations: Piles
    # Face-up part of each column; the last card is the exposed top.
    tableau_up: Piles
    # Face-down part of each column; the last card is the next to flip.
    tableau_down: Piles

    def all_cards(self) -> Iterator[Card]:
        yield from self.draw_pile
        for group in (self.foundations, self.tableau_up, self.tableau_down):
            for pile in group:
                yield from pile

    def foundation_total(self) -> int:
        return sum(len(pile) for pile in self.foundations)

    def to_lines(self) -> list[str]:
        lines = [encodeStack(self.draw_pile)]
        for group in (self.foundations, self.tableau_up, self.tableau_down):
            lines.extend(encodeStack(pile) for pile in group)
        return lines

    @staticmethod
    def from_lines(lines: Iterable[str]) -> KlondikeState:
        def lineFilter(s: str):
            return s.strip() != "" and not s.startswith("#")

        rows = [line.strip() for line in lines if lineFilter(line)]
        expected = 1 + SUIT_COUNT + 2 * TABLEAU_COUNT
        if len(rows) != expected:
            raise ValueError(f"state needs {expected} pile lines, got {len(rows)}")
        piles = [tuple(decodeStack(row)) for row in rows]
        up_start = 1 + SUIT_COUNT
        down_start = up_start + TABLEAU_COUNT
        return KlondikeState(
            draw_pile=piles[0],
            foundations=tuple(piles[1:up_start]),
            tableau_up=tuple(piles[up_start:down_start]),
            tableau_down=tuple(piles[down_start:]),
        )


def with_pile(piles: Piles, idx: int, pile: Pile) -> Piles:
    """Return ``piles`` with slot ``idx`` replaced; the other piles are shared."""
    return piles[:idx] + (pile,) + piles[idx + 1:]


def empty_piles(count: int) -> Piles:
    return tuple(() for _ in range(count))


def build_initial_state(cards: Sequence[Card]) -> KlondikeState:
    """Deal seven columns with 0..6 face-down cards and one face-up card each."""

    checkDeck(cards)
    remaining = list(cards)
    up: list[Pile] = []
    down: list[Pile] = []
    for i in range(TABLEAU_COUNT):
        down.append(tuple(remaining.pop() for _ in range(i)))
        up.append((remaining.pop(),))

    return KlondikeState(
        draw_pile=tuple(remaining),
        foundations=empty_piles(SUIT_COUNT),
        tableau_up=tuple(up),
        tableau_down=tuple(down),
    )


def invariant_violations(state: KlondikeState) -> list[str]:
    problems: list[str] = []

    if len(state.foundations) != SUIT_COUNT:
        problems.append(f"expected {SUIT_COUNT} foundations, got {len(state.foundations)}")
    if len(state.tableau_up) != TABLEAU_COUNT or len(state.tableau_down) != TABLEAU_COUNT:
        problems.append(
            f"expected {TABLEAU_COUNT} columns, got {len(state.tableau_up)} up / {len(state.tableau_down)} down"
        )

    counts = Counter(state.all_cards())
    for card, n in sorted(counts.items(), key=lambda kv: kv[0].id):
        if n > 1:
            problems.append(f"card {card.code()} appears {n} times")
    for card in fullDeck():
        if card not in counts:
            problems.append(f"card {card.code()} is missing")
    extra = [card for card in counts if not (0 <= card.suit < SUIT_COUNT and ACE <= card.rank <= KING)]
    for card in extra:
        problems.append(f"card {card.code()} is not a standard card")

    for suit, pile in enumerate(state.foundations):
        expected = tuple(Card(suit, rank) for rank in range(ACE, len(pile) + 1))
        if pile != expected:
            problems.append(f"foundation {suit} is not a gapless run from the Ace")

    return problems
