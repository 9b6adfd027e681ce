"""CLI move recommender for 3x3 tic-tac-toe."""

from __future__ import annotations

import argparse
import random
from typing import List, Optional

from ttt_board import X, key_to_board, pretty_print, side_to_move
from ttt_player import UNLIMITED_DEPTH, Player
from ttt_telemetry import TelemetrySink, ThreadedTCPSink, parse_host_port


def outcome_message(winner: Optional[str]) -> str:
    if winner is None:
        return "Game over. Draw."
    return f"Game over. {winner.upper()} wins."


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Tic-tac-toe minimax move recommender")
    parser.add_argument(
        "board",
        nargs="?",
        default="." * 9,
        help="9 cells left-to-right, top-to-bottom using x, o and . (default: empty board)",
    )
    parser.add_argument(
        "--turn",
        choices=["x", "o", "auto"],
        default="auto",
        help="side to move; auto infers it from the mark counts (default: auto)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=UNLIMITED_DEPTH,
        help="search depth limit in plies, -1 for the full game tree (default: -1)",
    )
    parser.add_argument("--seed", type=int, default=None, help="seed for tie-breaking between equal moves")
    parser.add_argument("--explain", action="store_true", help="print the score of every candidate move")
    parser.add_argument(
        "--telemetry",
        default=None,
        metavar="HOST:PORT",
        help="stream search events as JSON lines to HOST:PORT",
    )
    args = parser.parse_args(argv)

    board = key_to_board(args.board)
    if board is None:
        print("board must be 9 characters of x, o or . (for example: x...o....)")
        return 2
    if args.max_depth != UNLIMITED_DEPTH and args.max_depth < 1:
        print("--max-depth must be -1 or a positive number")
        return 2

    sink: Optional[TelemetrySink] = None
    if args.telemetry is not None:
        address = parse_host_port(args.telemetry)
        if address is None:
            print("--telemetry must look like HOST:PORT")
            return 2
        sink = ThreadedTCPSink(*address)

    try:
        print(pretty_print(board))
        print()

        outcome = board.is_terminal()
        if outcome:
            print(outcome_message(outcome.winner))
            return 0

        turn = side_to_move(board) if args.turn == "auto" else args.turn
        rng = random.Random(args.seed) if args.seed is not None else None
        player = Player(max_depth=args.max_depth, rng=rng, telemetry_sink=sink)
        move = player.get_best_move(board, maximizing=(turn == X))
        result = player.last_result

        status = "full search" if args.max_depth == UNLIMITED_DEPTH else f"depth {args.max_depth}"
        score = result.score if result is not None else 0
        print(f"Recommended: {turn.upper()} plays cell {move} (score: {score:+d}, {status})")
        if args.explain and result is not None:
            scores_str = ", ".join(f"{index}:{value:+d}" for index, value in result.root_scores)
            print(f"Scores: {scores_str}")
            if len(result.tied_moves) > 1:
                print(f"Tied: {', '.join(str(index) for index in result.tied_moves)}")
            print(f"Search: nodes={result.nodes} max_ply={result.max_ply} elapsed_ms={result.elapsed_ms}")
        return 0
    finally:
        if sink is not None:
            sink.close()


if __name__ == "__main__":
    raise SystemExit(main())
