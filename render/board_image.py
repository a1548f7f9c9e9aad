import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from klondike.Core import SUIT_COUNT, TABLEAU_COUNT
from klondike.Interface import Interface

logger = logging.getLogger(__name__)

CARD_W, CARD_H = 60, 84
GAP = 12
MARGIN = 16
DOWN_STEP = 10
UP_STEP = 22
RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

TABLE_COLOR = (27, 67, 50)
CARD_FRONT = (250, 250, 245)
CARD_BACK = (49, 93, 138)
CARD_BORDER = (30, 30, 30)
SLOT_OUTLINE = (120, 160, 140)

SUIT_COLORS = {0: (35, 35, 45), 1: (190, 40, 40), 2: (35, 35, 45), 3: (190, 40, 40)}
# Corner pip is a fifth of the card width, the centre pip under half.
SMALL_PIP = CARD_W // 5
LARGE_PIP = CARD_W * 2 // 5

_fonts = {}


def get_font(size):
    if size in _fonts:
        return _fonts[size]
    font = None
    for name in ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf"):
        try:
            font = ImageFont.truetype(name, size=size)
            break
        except OSError:
            continue
    if font is None:
        font = ImageFont.load_default()
    _fonts[size] = font
    return font


def _lobes(draw, cx, cy, s, fill, up):
    # Two round lobes side by side, above (up) or below the centre line.
    r = s // 4
    top = cy - 2 * r if up else cy
    draw.ellipse((cx - 2 * r, top, cx, top + 2 * r), fill=fill)
    draw.ellipse((cx, top, cx + 2 * r, top + 2 * r), fill=fill)


def _stem(draw, cx, cy, s, fill):
    half = max(1, s // 10)
    draw.polygon([(cx - half, cy), (cx + half, cy), (cx + 2 * half, cy + s // 2), (cx - 2 * half, cy + s // 2)], fill=fill)


def draw_heart(draw, cx, cy, s, fill):
    _lobes(draw, cx, cy + s // 8, s, fill, up=True)
    draw.polygon([(cx - s // 2, cy), (cx + s // 2, cy), (cx, cy + s // 2)], fill=fill)


def draw_diamond(draw, cx, cy, s, fill):
    w = s * 2 // 5
    draw.polygon([(cx, cy - s // 2), (cx + w, cy), (cx, cy + s // 2), (cx - w, cy)], fill=fill)


def draw_club(draw, cx, cy, s, fill):
    r = s // 5
    for dx, dy in ((0, -r), (-r, r // 2), (r, r // 2)):
        draw.ellipse((cx + dx - r, cy + dy - r, cx + dx + r, cy + dy + r), fill=fill)
    _stem(draw, cx, cy, s, fill)


def draw_spade(draw, cx, cy, s, fill):
    draw.polygon([(cx, cy - s // 2), (cx + s // 2, cy + s // 8), (cx - s // 2, cy + s // 8)], fill=fill)
    _lobes(draw, cx, cy - s // 8, s, fill, up=False)
    _stem(draw, cx, cy, s, fill)


SUIT_PAINTERS = (draw_spade, draw_heart, draw_club, draw_diamond)


def draw_card(draw, x, y, card, font, hidden=False):
    if hidden:
        draw.rounded_rectangle((x, y, x + CARD_W, y + CARD_H), radius=5, fill=CARD_BACK, outline=CARD_BORDER)
        draw.rounded_rectangle((x + 5, y + 5, x + CARD_W - 5, y + CARD_H - 5), radius=3, outline=(200, 215, 235))
        return
    draw.rounded_rectangle((x, y, x + CARD_W, y + CARD_H), radius=5, fill=CARD_FRONT, outline=CARD_BORDER)
    color = SUIT_COLORS[card.suit]
    paint = SUIT_PAINTERS[card.suit]
    draw.text((x + 5, y + 3), RANKS[card.rank - 1], fill=color, font=font)
    paint(draw, x + CARD_W - SMALL_PIP, y + SMALL_PIP, SMALL_PIP, color)
    paint(draw, x + CARD_W // 2, y + CARD_H // 2 + SMALL_PIP // 2, LARGE_PIP, color)


def draw_slot(draw, x, y):
    draw.rounded_rectangle((x, y, x + CARD_W, y + CARD_H), radius=5, outline=SLOT_OUTLINE, width=2)


def board_size(state):
    tallest = 0
    for down, up in zip(state.tableau_down, state.tableau_up):
        height = len(down) * DOWN_STEP + max(0, len(up) - 1) * UP_STEP
        tallest = max(tallest, height)
    width = MARGIN * 2 + TABLEAU_COUNT * CARD_W + (TABLEAU_COUNT - 1) * GAP
    height = MARGIN * 3 + CARD_H * 2 + tallest
    return width, height


def render_state(state):
    """Draw foundations and draw pile on the top row, the tableau below."""
    img = Image.new("RGB", board_size(state), TABLE_COLOR)
    draw = ImageDraw.Draw(img)
    font = get_font(14)

    y = MARGIN
    x = MARGIN
    if state.draw_pile:
        draw_card(draw, x, y, state.draw_pile[-1], font)
        draw.text((x, y + CARD_H + 2), str(len(state.draw_pile)), fill=(230, 230, 230), font=get_font(10))
    else:
        draw_slot(draw, x, y)

    for suit in range(SUIT_COUNT):
        fx = MARGIN + (TABLEAU_COUNT - SUIT_COUNT + suit) * (CARD_W + GAP)
        pile = state.foundations[suit]
        if pile:
            draw_card(draw, fx, y, pile[-1], font)
        else:
            draw_slot(draw, fx, y)

    top = MARGIN * 2 + CARD_H
    for col, (down, up) in enumerate(zip(state.tableau_down, state.tableau_up)):
        cx = MARGIN + col * (CARD_W + GAP)
        cy = top
        if not down and not up:
            draw_slot(draw, cx, cy)
            continue
        for _ in down:
            draw_card(draw, cx, cy, None, font, hidden=True)
            cy += DOWN_STEP
        for card in up:
            draw_card(draw, cx, cy, card, font)
            cy += UP_STEP
    return img


def save_state_image(state, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_state(state).save(path, "PNG")
    return path


class SnapshotInterface(Interface):
    """Saves a PNG of the start state and of the first discovered states."""

    def __init__(self, out_dir, limit=20):
        super().__init__()
        self.out_dir = Path(out_dir)
        self.limit = limit
        self.saved = []

    def _save(self, state, name):
        if len(self.saved) >= self.limit:
            return
        path = save_state_image(state, self.out_dir / name)
        self.saved.append(path)
        logger.debug("Saved snapshot %s", path)

    def onStart(self, state):
        self._save(state, "state_0000_start.png")

    def onDiscover(self, transition, depth):
        index = len(self.saved)
        self._save(transition.state, f"state_{index:04d}_d{depth}.png")
