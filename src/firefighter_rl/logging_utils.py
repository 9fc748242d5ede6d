"""
Experiment logging utilities for firefighter matches.

This module provides:
1. CSV logging of per-episode metrics for every agent
2. Optional TensorBoard integration
3. Plotting of episode curves for analysis
"""

import os
import csv
from typing import Dict, List, Optional
from datetime import datetime

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

try:
    from torch.utils.tensorboard import SummaryWriter
    TENSORBOARD_AVAILABLE = True
except ImportError:
    TENSORBOARD_AVAILABLE = False


EPISODE_FIELDS = [
    'episode',
    'agent',
    'return',
    'fires_extinguished',
    'episode_length',
    'elapsed_seconds',
    'fires_burning',
    'fire_health',
    'winner',
]


class ExperimentLogger:
    """
    Logs episode metrics to CSV and optionally TensorBoard.

    One row is written per agent per episode, so curves can be compared
    between the player and the opponent.
    """

    def __init__(
        self,
        log_dir: str,
        experiment_name: str,
        use_tensorboard: bool = False,
    ):
        """
        Initialize experiment logger.

        Args:
            log_dir: Base directory for logs (e.g., "logs/")
            experiment_name: Name of experiment (e.g., "random_vs_random")
            use_tensorboard: Whether to use TensorBoard logging
        """
        self.log_dir = log_dir
        self.experiment_name = experiment_name
        self.use_tensorboard = use_tensorboard

        # Create log directory
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.exp_dir = os.path.join(log_dir, f"{experiment_name}_{timestamp}")
        os.makedirs(self.exp_dir, exist_ok=True)

        self.episode_csv_path = os.path.join(self.exp_dir, "episode_metrics.csv")
        self._init_episode_csv()

        # TensorBoard writer
        self.tb_writer = None
        if use_tensorboard and TENSORBOARD_AVAILABLE:
            tb_dir = os.path.join(self.exp_dir, "tensorboard")
            self.tb_writer = SummaryWriter(tb_dir)

        print(f"📊 Experiment logger initialized: {self.exp_dir}")

    def _init_episode_csv(self):
        """Initialize episode metrics CSV with headers."""
        with open(self.episode_csv_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(EPISODE_FIELDS)

    def log_episode(
        self,
        episode: int,
        statistics: Dict,
        returns: Dict[str, float],
        winner: Optional[str] = None,
    ):
        """
        Log the metrics of one finished episode.

        Args:
            episode: Episode number
            statistics: Dict from ArenaEnvironment.get_statistics()
            returns: Summed reward of each agent over the episode
            winner: Name of the winning agent, if the match had one
        """
        agent_stats = statistics.get('agents', {})
        with open(self.episode_csv_path, 'a', newline='') as f:
            writer = csv.writer(f)
            for name, agent in agent_stats.items():
                writer.writerow([
                    episode,
                    name,
                    returns.get(name, 0.0),
                    agent.get('fires_extinguished', 0.0),
                    statistics.get('time_step', 0),
                    statistics.get('elapsed_seconds', 0.0),
                    statistics.get('fires_burning', 0),
                    statistics.get('fire_health', 0.0),
                    winner or '',
                ])

        # Write to TensorBoard
        if self.tb_writer:
            for name, agent in agent_stats.items():
                self.tb_writer.add_scalar(f'Return/{name}', returns.get(name, 0.0), episode)
                self.tb_writer.add_scalar(f'Fires/{name}', agent.get('fires_extinguished', 0.0), episode)
            self.tb_writer.add_scalar('Episode/length', statistics.get('time_step', 0), episode)
            self.tb_writer.add_scalar('Episode/fire_health', statistics.get('fire_health', 0.0), episode)

    def read_episodes(self) -> List[Dict[str, str]]:
        with open(self.episode_csv_path, 'r') as f:
            return list(csv.DictReader(f))

    def close(self):
        """Close logger and save final plots."""
        if self.tb_writer:
            self.tb_writer.close()

        # Generate final plots
        self.plot_episode_curves()
        print(f"✅ Logs saved to: {self.exp_dir}")

    def plot_episode_curves(self) -> Optional[str]:
        """
        Generate per-agent return and fires-extinguished curves from the CSV.

        Returns:
            Path of the saved figure, or None when nothing was logged
        """
        rows = self.read_episodes()
        if not rows:
            return None

        by_agent: Dict[str, List[Dict[str, str]]] = {}
        for row in rows:
            by_agent.setdefault(row['agent'], []).append(row)

        fig, axes = plt.subplots(1, 2, figsize=(12, 4))
        fig.suptitle(f'Episode Curves: {self.experiment_name}', fontsize=14, fontweight='bold')

        for name, agent_rows in by_agent.items():
            episodes = [int(r['episode']) for r in agent_rows]
            axes[0].plot(episodes, [float(r['return']) for r in agent_rows], linewidth=2, label=name)
            axes[1].plot(episodes, [float(r['fires_extinguished']) for r in agent_rows], linewidth=2, label=name)

        # Plot 1: Returns
        axes[0].set_xlabel('Episode')
        axes[0].set_ylabel('Return')
        axes[0].set_title('Episode Return')
        axes[0].grid(True, alpha=0.3)
        axes[0].legend()

        # Plot 2: Fires extinguished
        axes[1].set_xlabel('Episode')
        axes[1].set_ylabel('Fires Extinguished')
        axes[1].set_title('Extinguishing Performance')
        axes[1].grid(True, alpha=0.3)
        axes[1].legend()

        plt.tight_layout()
        plot_path = os.path.join(self.exp_dir, 'episode_curves.png')
        plt.savefig(plot_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"📈 Episode curves saved to: {plot_path}")
        return plot_path
