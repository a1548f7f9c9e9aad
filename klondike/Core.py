import random
from dataclasses import dataclass

SUIT_COUNT = 4
NUM_PER_SUIT = 13
DECK_SIZE = SUIT_COUNT * NUM_PER_SUIT
TABLEAU_COUNT = 7
ACE = 1
KING = 13


def lastOf(lst):
    return lst[len(lst) - 1]


@dataclass(frozen=True, slots=True)
class Card:
    suit: int
    rank: int

    SUITS = "♠♥♣♦"
    NUMS = ("A ", "2 ", "3 ", "4 ", "5 ", "6 ", "7 ", "8 ", "9 ", "10", "J ", "Q ", "K ")

    def __str__(self):
        return f"{self.suit}, {self.rank}"

    def __repr__(self):
        return f"Card({self.suit}, {self.rank})"

    @property
    def id(self):
        return self.suit * NUM_PER_SUIT + self.rank - 1

    def gameStr(self):
        return Card.SUITS[self.suit] + Card.NUMS[self.rank - 1]

    def code(self):
        return f"{self.suit} {self.rank}"

    def color(self):
        if self.suit % 2 == 0:
            return "black"
        else:
            return "red"

    def stackableOn(self, upper):
        """Can this card go on top of ``upper`` in a tableau column?"""
        return self.suit % 2 != upper.suit % 2 and self.rank == upper.rank - 1

    def canPlaceOn(self, top):
        """Can this card go on top of ``top`` in a foundation?"""
        return self.suit == top.suit and self.rank == top.rank + 1

    @staticmethod
    def fromId(id):
        return Card(id // NUM_PER_SUIT, id % NUM_PER_SUIT + 1)

    @staticmethod
    def fromCode(code: str):
        parts = code.split()
        if len(parts) != 2:
            raise ValueError(f"bad card code: {code!r}")
        try:
            suit, rank = int(parts[0]), int(parts[1])
        except ValueError as exc:
            raise ValueError(f"bad card code: {code!r}") from exc
        if not (0 <= suit < SUIT_COUNT and ACE <= rank <= KING):
            raise ValueError(f"card out of range: {code!r}")
        return Card(suit, rank)


def stackable(lower: Card, upper: Card) -> bool:
    return lower.stackableOn(upper)


def canPlaceOnFoundation(card: Card, top: Card) -> bool:
    return card.canPlaceOn(top)


def acceptsOnTableau(card: Card, top) -> bool:
    """``top`` is None for an empty column, which only takes a King."""
    if top is None:
        return card.rank == KING
    return stackable(card, top)


def acceptsOnFoundation(card: Card, top) -> bool:
    """``top`` is None for an empty foundation, which only takes an Ace."""
    if top is None:
        return card.rank == ACE
    return canPlaceOnFoundation(card, top)


def fullDeck():
    return [Card(suit, rank) for suit in range(SUIT_COUNT) for rank in range(ACE, KING + 1)]


def initCards(seed=None):
    lst = fullDeck()
    random.Random(seed).shuffle(lst)
    return lst


def checkDeck(cards):
    if len(cards) != DECK_SIZE:
        raise ValueError(f"deck must hold {DECK_SIZE} cards, got {len(cards)}")
    seen = set(cards)
    if len(seen) != DECK_SIZE:
        raise ValueError("deck contains duplicate cards")
    if seen != set(fullDeck()):
        raise ValueError("deck contains cards outside the standard 52")


def decodeStack(code: str):
    code = code.strip()
    if code == "empty":
        return []
    return [Card.fromCode(s) for s in code.split(",")]


def encodeStack(base):
    if len(base) == 0:
        return "empty"
    return ",".join(card.code() for card in base)


class GameConfig:
    def __init__(self, seed=None, gameCode=None):
        self.seed = seed
        # An encoded deck overrides the seed.
        self.gameCode = gameCode

    def initDeck(self):
        if self.gameCode is not None:
            cards = decodeStack(self.gameCode)
            checkDeck(cards)
            return cards
        return initCards(self.seed)
