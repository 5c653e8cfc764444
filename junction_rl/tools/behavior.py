import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from junction_rl.core import SimulationRunner


def analyze_behavior(topology, config, seeds=(0, 1, 2)):
    """
    Runs simulations and returns phase-choice and per-road traffic stats.
    """
    phase_counts = {p: 0 for p in range(topology.phase_count)}
    road_counts = {r: [] for r in topology.incoming_roads}

    for seed in seeds:
        runner = SimulationRunner(topology, config, seed=seed)
        runner.run(max_ticks=config.max_steps if config.max_steps > 0 else 1000)
        for state in runner.history:
            phase_counts[state.current_phase] += 1
            for road, count in state.road_traffic.items():
                road_counts[road].append(count)

    # 1. Phase Distribution Data
    total = sum(phase_counts.values())
    phase_data = []
    for phase, count in phase_counts.items():
        pct = (count / total) * 100 if total > 0 else 0
        phase_data.append({"Phase": topology.phase_name(phase), "Count": count, "Percentage": pct})
    df_phases = pd.DataFrame(phase_data)

    # 2. Per-road traffic (fairness check)
    df_roads = pd.DataFrame([
        {"Road": road, "Avg Vehicles": np.mean(counts) if counts else 0.0,
         "Max Vehicles": max(counts) if counts else 0}
        for road, counts in road_counts.items()
    ])

    return df_phases, df_roads


def plot_behavior(df_phases, df_roads):
    fig1, ax1 = plt.subplots(figsize=(6, 4))
    sns.barplot(data=df_phases, x="Phase", y="Count", hue="Phase", legend=False, ax=ax1, palette="viridis")
    ax1.set_title("Phase Distribution")

    fig2, ax2 = plt.subplots(figsize=(8, 4))
    sns.barplot(data=df_roads, x="Road", y="Avg Vehicles", hue="Road", legend=False, ax=ax2, palette="magma")
    ax2.set_title("Average Vehicles per Road")
    ax2.tick_params(axis='x', rotation=45)

    return fig1, fig2
