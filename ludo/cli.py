"""
Ludo CLI - Command-line interface for the server.

Usage:
    ludo serve [--host HOST] [--port PORT]     Run the WebSocket server
    ludo simulate [--bots N] [--seed S]        Play an all-bot game headless
"""

from __future__ import annotations
from dataclasses import dataclass
import argparse
import random
import sys

from .config import Settings, configure_logging


@dataclass
class SimulationResult:
    session_id: str
    winner: str | None
    moves: int
    rolls: int
    steps: int


def simulate_game(
    variant: str = "classic",
    bots: int = 4,
    seed: int | None = None,
    policy: str = "greedy",
    max_steps: int = 200_000,
) -> SimulationResult:
    """
    Play a game between bots with zero delays.

    Deterministic for a given seed.
    """
    from .bots import BotDecision, BotPolicy, create_policy
    from .engine_core.board import get_layout
    from .session import ManualScheduler, Session, SessionConfig

    rng = random.Random(seed)
    counts = {"rolls": 0, "moves": 0}

    def dice() -> int:
        counts["rolls"] += 1
        return rng.randint(1, 6)

    class CountingPolicy(BotPolicy):
        def __init__(self, inner: BotPolicy):
            self.inner = inner

        def select_move(self, color, die, board, layout) -> BotDecision:
            decision = self.inner.select_move(color, die, board, layout)
            if decision.token_index is not None:
                counts["moves"] += 1
            return decision

    scheduler = ManualScheduler()
    session = Session(
        "sim",
        SessionConfig(layout=get_layout(variant), seat_count=bots),
        scheduler=scheduler,
        policy=CountingPolicy(create_policy(policy, seed=seed)),
        dice=dice,
    )
    for _ in range(bots):
        session.add_bot()

    steps = scheduler.run_all(max_steps=max_steps)
    return SimulationResult(
        session_id=session.session_id,
        winner=session.winner,
        moves=counts["moves"],
        rolls=counts["rolls"],
        steps=steps,
    )


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Ludo Arena - multiplayer Ludo server",
        prog="ludo",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket server")
    serve_parser.add_argument("--host", help="Bind address (default: LUDO_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port (default: LUDO_PORT)")

    sim_parser = subparsers.add_parser("simulate", help="Play an all-bot game")
    sim_parser.add_argument("--variant", default="classic", choices=["classic", "trio"])
    sim_parser.add_argument("--bots", type=int, default=4, help="Number of bots (2-4)")
    sim_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    sim_parser.add_argument("--policy", default="greedy", help="greedy, first or random")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the server with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    uvicorn.run(
        "ludo.api.app:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


def cmd_simulate(args):
    """Play a headless bot game and print the result."""
    configure_logging("WARNING")
    try:
        result = simulate_game(
            variant=args.variant,
            bots=args.bots,
            seed=args.seed,
            policy=args.policy,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Variant: {args.variant}, bots: {args.bots}, seed: {args.seed}")
    print(f"Rolls: {result.rolls}")
    print(f"Moves: {result.moves}")
    if result.winner:
        print(f"Winner: {result.winner}")
    else:
        print("No winner (step limit reached)")
        sys.exit(2)


if __name__ == "__main__":
    main()
