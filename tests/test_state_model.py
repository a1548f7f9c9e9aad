import dataclasses
import unittest

from klondike.Core import Card, fullDeck, initCards
from explorer.state import KlondikeState, build_initial_state, invariant_violations, with_pile


def make_state(draw=(), foundations=None, up=None, down=None):
    foundations = foundations or {}
    up = up or {}
    down = down or {}
    return KlondikeState(
        draw_pile=tuple(draw),
        foundations=tuple(tuple(foundations.get(s, ())) for s in range(4)),
        tableau_up=tuple(tuple(up.get(c, ())) for c in range(7)),
        tableau_down=tuple(tuple(down.get(c, ())) for c in range(7)),
    )


class InitialDealTestCase(unittest.TestCase):
    def test_deal_is_triangular_with_one_up_card(self):
        state = build_initial_state(initCards(42))
        self.assertEqual([0, 1, 2, 3, 4, 5, 6], [len(p) for p in state.tableau_down])
        self.assertEqual([1] * 7, [len(p) for p in state.tableau_up])
        self.assertEqual(24, len(state.draw_pile))
        self.assertEqual(0, state.foundation_total())
        self.assertEqual([], invariant_violations(state))

    def test_deal_pops_from_the_end_of_the_deck(self):
        deck = fullDeck()
        state = build_initial_state(deck)
        self.assertEqual((deck[-1],), state.tableau_up[0])
        self.assertEqual((deck[-2],), state.tableau_down[1])
        self.assertEqual((deck[-3],), state.tableau_up[1])
        self.assertEqual(tuple(deck[:24]), state.draw_pile)

    def test_deal_rejects_incomplete_deck(self):
        with self.assertRaises(ValueError):
            build_initial_state(fullDeck()[1:])


class StateEqualityTestCase(unittest.TestCase):
    def test_equal_structure_means_equal_state(self):
        a = make_state(draw=[Card(0, 1), Card(1, 2)], up={0: [Card(2, 13)]})
        b = make_state(draw=[Card(0, 1), Card(1, 2)], up={0: [Card(2, 13)]})
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertEqual(1, len({a, b}))

    def test_order_inside_pile_matters(self):
        a = make_state(draw=[Card(0, 1), Card(1, 2)])
        b = make_state(draw=[Card(1, 2), Card(0, 1)])
        self.assertNotEqual(a, b)

    def test_same_cards_in_other_column_is_a_different_state(self):
        a = make_state(up={0: [Card(2, 13)]})
        b = make_state(up={1: [Card(2, 13)]})
        self.assertNotEqual(a, b)

    def test_state_is_frozen(self):
        state = make_state()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            state.draw_pile = (Card(0, 1),)

    def test_with_pile_shares_untouched_piles(self):
        state = build_initial_state(initCards(3))
        replaced = with_pile(state.tableau_up, 2, ())
        self.assertEqual((), replaced[2])
        self.assertIs(state.tableau_up[0], replaced[0])
        self.assertIs(state.tableau_up[6], replaced[6])
        self.assertEqual(1, len(state.tableau_up[2]))


class InvariantTestCase(unittest.TestCase):
    def test_reports_missing_and_duplicate_cards(self):
        problems = invariant_violations(make_state(draw=[Card(0, 1), Card(0, 1)]))
        self.assertTrue(any("appears 2 times" in p for p in problems))
        self.assertTrue(any("missing" in p for p in problems))

    def test_reports_foundation_gap(self):
        deck = fullDeck()
        rest = [c for c in deck if c not in (Card(1, 1), Card(1, 3))]
        state = make_state(draw=rest, foundations={1: [Card(1, 1), Card(1, 3)]})
        problems = invariant_violations(state)
        self.assertEqual(["foundation 1 is not a gapless run from the Ace"], problems)


class StateLinesTestCase(unittest.TestCase):
    def test_lines_restore_the_same_state(self):
        state = build_initial_state(initCards(11))
        lines = ["# saved"] + state.to_lines() + [""]
        self.assertEqual(state, KlondikeState.from_lines(lines))

    def test_wrong_line_count_raises(self):
        with self.assertRaises(ValueError):
            KlondikeState.from_lines(["empty", "empty"])

    def test_malformed_empty_marker_raises(self):
        lines = build_initial_state(initCards(11)).to_lines()
        lines[1] = "empty, 0 1"
        with self.assertRaises(ValueError):
            KlondikeState.from_lines(lines)


if __name__ == "__main__":
    unittest.main()
