import argparse
import logging
import sys
from pathlib import Path

from klondike.Core import GameConfig, lastOf
from klondike.Interface import Interface

HIDDEN = "---"
BLANK = "   "


def formatState(state):
    lines = []
    tops = []
    for pile in state.foundations:
        tops.append(lastOf(pile).gameStr() if pile else BLANK)
    lines.append(f"Foundations: {'  '.join(tops)}    Done: {state.foundation_total()}")
    lines.append(f"Draw ({len(state.draw_pile)}): " + " ".join(c.gameStr() for c in state.draw_pile))
    lines.append("----0----1----2----3----4----5----6---")
    columns = []
    for down, up in zip(state.tableau_down, state.tableau_up):
        columns.append([HIDDEN] * len(down) + [c.gameStr() for c in up])
    i = 0
    while True:
        has = False
        line = str(i) + ": "
        for column in columns:
            if len(column) <= i:
                line += "     "
                continue
            has = True
            line += column[i]
            line += "  "
        if not has:
            break
        lines.append(line.rstrip())
        i += 1
    return "\n".join(lines)


class CommandLineInterface(Interface):

    def __init__(self, out=None, showDuplicates=False):
        super().__init__()
        self.out = out if out is not None else sys.stdout
        self.showDuplicates = showDuplicates

    def printState(self, state):
        print(formatState(state), file=self.out)
        print(file=self.out)

    def onStart(self, state):
        print("Exploration started!", file=self.out)
        self.printState(state)

    def onDiscover(self, transition, depth):
        print(f"[{depth}] {transition.move.to_notation()}", file=self.out)
        self.printState(transition.state)

    def onDuplicate(self, transition):
        if not self.showDuplicates:
            return
        print(f"Duplicate state ({transition.move.to_notation()})", file=self.out)
        self.printState(transition.state)

    def onFinish(self, result):
        print(
            f"{result.status}: {result.unique_states} states, "
            f"{result.duplicate_states_skipped} duplicates, {result.pending} pending",
            file=self.out,
        )


def main():
    from explorer.engine import ExploreLimits, Explorer
    from explorer.state import build_initial_state
    from render.board_image import SnapshotInterface

    parser = argparse.ArgumentParser(description="Print every state reachable from a Klondike deal.")
    parser.add_argument("--seed", type=int, default=None, help="Shuffle seed for the deal.")
    parser.add_argument("--max-states", type=int, default=200, help="Stop once this many states are known (0 = no limit).")
    parser.add_argument("--duplicates", action="store_true", help="Also print duplicate states.")
    parser.add_argument("--snapshot-dir", type=str, default="", help="Save PNG snapshots of discovered states here.")
    parser.add_argument("--snapshot-limit", type=int, default=20, help="Maximum number of snapshots.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    state = build_initial_state(GameConfig(seed=args.seed).initDeck())
    explorer = Explorer(state)
    explorer.register_interface(CommandLineInterface(showDuplicates=args.duplicates))
    if args.snapshot_dir:
        explorer.register_interface(SnapshotInterface(Path(args.snapshot_dir), limit=args.snapshot_limit))
    explorer.run(ExploreLimits(max_states=args.max_states or None))


if __name__ == '__main__':
    main()
