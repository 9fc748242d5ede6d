"""
Headless player-vs-opponent match on a simulated clock.

The player is driven through KeyboardPolicy with a scripted key sequence, the
opponent by a random or torch policy. Banners and timer are printed to the
console.
"""

import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import logging

from firefighter.config import MatchConfig
from firefighter.game import GameManager, GameState
from firefighter.layouts import build_standard_arena
from firefighter_rl.policies import KeyboardPolicy, RandomPolicy, TorchPolicy


class ConsoleView:
    """GameView printing to stdout."""

    def __init__(self):
        self.timer = -1.0
        self.player = 0.0
        self.opponent = 0.0

    def show_banner(self, text):
        if text:
            print(f"  >>> {text}")

    def show_button(self, text):
        print(f"  [ {text} ]")

    def hide_button(self):
        pass

    def set_timer(self, time_remaining):
        self.timer = time_remaining

    def set_player_progress(self, fraction):
        self.player = fraction

    def set_opponent_progress(self, fraction):
        self.opponent = fraction


# (seconds into play, keys held from then on)
KEY_SCRIPT = [
    (0.0, ["w"]),
    (3.0, ["w", "right"]),
    (4.0, ["w"]),
    (8.0, ["a", "left"]),
    (9.0, ["w"]),
]


def main(checkpoint=None, game_timer=20.0):
    logging.basicConfig(level=logging.WARNING)

    env = build_standard_arena({"training_mode": False})
    env.seed(0)
    player = env.agents["player"]
    opponent = env.agents["opponent"]

    keyboard = KeyboardPolicy(player)
    player.policy = keyboard
    opponent.policy = TorchPolicy.load(checkpoint) if checkpoint else RandomPolicy(seed=0)

    view = ConsoleView()
    game = GameManager(env, view, MatchConfig(game_timer=game_timer))

    print("=" * 70)
    print("FIREFIGHTER MATCH")
    print("=" * 70)

    now = 0.0
    game.start(now)
    game.button_clicked(now)

    play_started = None
    script = list(KEY_SCRIPT)
    last_report = -1
    while game.state != GameState.GAMEOVER:
        if game.state == GameState.PLAYING:
            if play_started is None:
                play_started = now
            while script and now - play_started >= script[0][0]:
                keyboard.set_keys(script.pop(0)[1])

        game.step(now)
        now += env.fixed_dt

        if game.state == GameState.PLAYING and int(view.timer) != last_report:
            last_report = int(view.timer)
            if last_report % 5 == 0:
                print(f"  time left {view.timer:5.1f}s  player {view.player:.0%}  opponent {view.opponent:.0%}")

    print(f"\nWinner: {game.winner}")
    print(f"  player fires:   {player.fires_extinguished:.2f}")
    print(f"  opponent fires: {opponent.fires_extinguished:.2f}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
