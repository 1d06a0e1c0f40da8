# cli_driver.py
# This file is intended to be run to play the tile merge game on the CLI

from typing import List
import argparse
import logging

from adapters import JsonFileBestScoreStore
from config import load_config
from controller import GameController
from core import GameProgressState, InvalidConfig, InvalidDirection
from session import Events

COMMANDS = "W/A/S/D move, U undo, M magic merge, K keep playing, N new game, Q quit"


class ConsoleRenderer:
    """Render sink that prints the board after every committed change."""

    def render(self, grid: List[List[int]], score: int, best_score: int, events: Events) -> None:
        display_board_state(grid, score, best_score)

    def show_message(self, won: bool) -> None:
        print("YOU WON! Press K to keep playing." if won else "GAME OVER! Press U to undo or N for a new game.")

    def hide_message(self) -> None:
        pass


def main(argv=None):
    parser = argparse.ArgumentParser(description="Tile merge puzzle (2048) on the console")
    parser.add_argument('--size', type=int, default=4, help="Board dimension N")
    parser.add_argument('--win-tile', type=int, default=2048,
                        help="Tile that wins the game (e.g. 32 for a quick test)")
    parser.add_argument('--best-score-file', default="best_score.json",
                        help="Where the best score is kept between runs")
    parser.add_argument('--log-level', default="WARNING",
                        help="Logging level (DEBUG, INFO, WARNING, ...)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        # Messages are printed as soon as they happen on the console
        config = load_config(size=args.size, win_tile=args.win_tile,
                             win_message_delay=0, over_message_delay=0)
    except InvalidConfig as e:
        parser.error(str(e))

    game = GameController(ConsoleRenderer(), config, JsonFileBestScoreStore(args.best_score_file))
    print(COMMANDS)

    # Game loop
    while True:
        state = game.state
        print(f"Undos left: {state.undo_budget}  Magic merges left: {state.merge_budget}")
        command = input("Enter command: ").strip().upper()

        if command == 'Q':
            print("Quitting game.")
            break
        elif command == 'U':
            if not game.undo().changed:
                print("Nothing to undo.")
        elif command == 'M':
            if not game.activate_power_up().merged:
                print("Magic merge not used: nothing to merge or none left.")
        elif command == 'K':
            if not game.set_keep_playing().cleared:
                print("Keep playing is only available right after a win.")
        elif command == 'N':
            game.new_game()
        else:
            try:
                events = game.press_key(command)
            except InvalidDirection:
                print(f"Invalid input. Use {COMMANDS}.")
                continue
            if not events.changed:
                if game.progress == GameProgressState.GAME_WON:
                    print("You already won. Press K to keep playing or N for a new game.")
                else:
                    print("Move did not change the board. Try a different direction.")

    game.close()
    print(f"\nFinal score: {game.state.score}  Best: {game.best_score}")


# --- Display Function ---
def display_board_state(board: List[List[int]], score: int, best_score: int):
    """Prints the board and scores to the console."""
    print(f"\nScore: {score}  Best: {best_score}")
    for row in board:
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (len(board) * 8))


if __name__ == "__main__":
    main()
