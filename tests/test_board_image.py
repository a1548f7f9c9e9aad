import tempfile
import unittest
from pathlib import Path

from PIL import Image, ImageDraw

from klondike.Core import Card, initCards
from explorer.engine import Explorer, ExploreLimits
from explorer.state import KlondikeState, build_initial_state
from render.board_image import (
    CARD_H,
    CARD_W,
    SUIT_COLORS,
    SnapshotInterface,
    board_size,
    draw_card,
    get_font,
    render_state,
    save_state_image,
)


class BoardImageTestCase(unittest.TestCase):
    def setUp(self):
        self.state = build_initial_state(initCards(31))

    def test_render_matches_board_size(self):
        img = render_state(self.state)
        self.assertEqual(board_size(self.state), img.size)
        self.assertEqual("RGB", img.mode)

    def test_deeper_columns_make_taller_board(self):
        empty = KlondikeState(
            draw_pile=(),
            foundations=((), (), (), ()),
            tableau_up=((),) * 7,
            tableau_down=((),) * 7,
        )
        width, height = board_size(self.state)
        self.assertEqual(524, width)
        self.assertEqual((524, 16 * 3 + 84 * 2), board_size(empty))
        self.assertEqual(16 * 3 + 84 * 2 + 6 * 10, height)

    def test_save_writes_png(self):
        with tempfile.TemporaryDirectory() as td:
            path = save_state_image(self.state, Path(td) / "out" / "board.png")
            self.assertTrue(path.exists())
            with Image.open(path) as img:
                self.assertEqual("PNG", img.format)

    def test_card_centre_is_painted_in_suit_colour(self):
        for suit in range(4):
            img = Image.new("RGB", (CARD_W + 1, CARD_H + 1), (0, 0, 0))
            draw_card(ImageDraw.Draw(img), 0, 0, Card(suit, 7), get_font(14))
            self.assertEqual(SUIT_COLORS[suit], img.getpixel((CARD_W // 2, CARD_H // 2 + 8)))

    def test_hidden_card_shows_back(self):
        img = Image.new("RGB", (CARD_W + 1, CARD_H + 1), (0, 0, 0))
        draw_card(ImageDraw.Draw(img), 0, 0, None, get_font(14), hidden=True)
        self.assertEqual((49, 93, 138), img.getpixel((CARD_W // 2, CARD_H // 2)))


class SnapshotInterfaceTestCase(unittest.TestCase):
    def test_snapshot_limit_is_respected(self):
        state = build_initial_state(initCards(8))
        with tempfile.TemporaryDirectory() as td:
            ui = SnapshotInterface(td, limit=3)
            explorer = Explorer(state)
            explorer.register_interface(ui)
            explorer.run(ExploreLimits(max_expanded=5))

            self.assertLessEqual(len(ui.saved), 3)
            self.assertEqual("state_0000_start.png", ui.saved[0].name)
            for path in ui.saved:
                self.assertTrue(path.exists())
            self.assertEqual(len(ui.saved), len(list(Path(td).glob("*.png"))))


if __name__ == "__main__":
    unittest.main()
