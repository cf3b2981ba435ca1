"""
Visualization for AP activation search runs

Plots GA convergence curves and per-algorithm comparison bars from search
results and trial summaries.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Any, Dict, List, Optional, Sequence


ALGORITHM_COLORS = {
    "bitstring_ga": "tab:blue",
    "probabilistic_ga": "tab:orange",
    "greedy": "tab:green",
    "local_search": "tab:red",
    "random": "tab:gray",
}


def plot_convergence(
    results: Sequence[Any],
    required_coverage: Optional[float] = None,
    ax: Optional[plt.Axes] = None,
    save_path: Optional[str] = None,
    title: str = "GA convergence"
) -> plt.Figure:
    """
    Plot best-so-far and population-max coverage per generation.

    Args:
        results: Search results carrying a per-generation `history`
        required_coverage: Draw the target as a horizontal line
        ax: Axes to draw on (a new figure is created if None)
        save_path: Optional path to save the figure
        title: Axes title

    Returns:
        The matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 5))
    else:
        fig = ax.figure

    for result in results:
        if not result.history:
            continue
        generations = [stats.generation for stats in result.history]
        best = [100 * stats.best_so_far for stats in result.history]
        population_max = [100 * stats.max_fitness for stats in result.history]
        color = ALGORITHM_COLORS.get(result.algorithm, "black")

        ax.plot(generations, best, color=color, linewidth=1.5, alpha=0.8)
        ax.plot(generations, population_max, color=color, linewidth=0.8,
                linestyle=':', alpha=0.5)

    # One legend entry per algorithm
    seen = []
    for result in results:
        if result.history and result.algorithm not in seen:
            seen.append(result.algorithm)
            ax.plot([], [], color=ALGORITHM_COLORS.get(result.algorithm, "black"),
                    label=result.algorithm)

    if required_coverage is not None:
        ax.axhline(100 * required_coverage, color="purple", linestyle="--",
                   linewidth=1, label="required coverage")

    ax.set_xlabel("Generation")
    ax.set_ylabel("Coverage (%)")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    if seen or required_coverage is not None:
        ax.legend(loc="lower right")

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    return fig


def plot_comparison(
    summary: Dict[str, Dict[str, float]],
    save_path: Optional[str] = None,
    title: str = "Algorithm comparison"
) -> plt.Figure:
    """
    Bar charts of success rate and mean evaluations per algorithm.

    Args:
        summary: Output of summarize_trials (algorithm -> statistics)
        save_path: Optional path to save the figure
        title: Figure title

    Returns:
        The matplotlib figure
    """
    names: List[str] = list(summary.keys())
    colors = [ALGORITHM_COLORS.get(name, "black") for name in names]
    positions = np.arange(len(names))

    fig, (ax_success, ax_evals) = plt.subplots(1, 2, figsize=(12, 4.5))

    success = [100 * summary[name]["success_rate"] for name in names]
    ax_success.bar(positions, success, color=colors)
    ax_success.set_ylabel("Success rate (%)")
    ax_success.set_ylim(0, 105)

    evaluations = [summary[name]["avg_evaluations"] for name in names]
    errors = [summary[name]["std_evaluations"] for name in names]
    ax_evals.bar(positions, evaluations, yerr=errors, color=colors, capsize=4)
    ax_evals.set_ylabel("Oracle evaluations")

    for ax in (ax_success, ax_evals):
        ax.set_xticks(positions)
        ax.set_xticklabels(names, rotation=20, ha='right')
        ax.grid(True, axis='y', alpha=0.3)

    fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    return fig
