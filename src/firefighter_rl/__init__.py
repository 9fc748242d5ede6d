"""
Learning-side helpers for the firefighter arena.

- FirefighterParallelEnv: PettingZoo parallel API over ArenaEnvironment
- KeyboardPolicy / RandomPolicy / TorchPolicy: decision providers
- ExperimentLogger: CSV / TensorBoard / plot logging of episodes
"""

from .logging_utils import ExperimentLogger
from .parallel_env import FirefighterParallelEnv, env, parallel_env
from .policies import ActorNetwork, KeyboardPolicy, RandomPolicy, TorchPolicy

__all__ = [
    "FirefighterParallelEnv",
    "env",
    "parallel_env",
    "ActorNetwork",
    "KeyboardPolicy",
    "RandomPolicy",
    "TorchPolicy",
    "ExperimentLogger",
]
