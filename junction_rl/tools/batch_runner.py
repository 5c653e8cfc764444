import time
import os
import traceback
import pandas as pd
from tabulate import tabulate

from junction_rl.config import AppConfig
from junction_rl.core import run_simulation
from junction_rl.env.topology import Topology, default_topology
from junction_rl.logger import ExperimentLogger


def run_batch_experiments(base_config: AppConfig, output_folder, vehicle_rates=(2, 5, 8), seeds=1,
                          run_q_learning=True, run_adaptive=True, topology: Topology = None,
                          max_ticks=None):
    """
    Runs a grid of independent simulations (vehicle rate x seed x mode).
    Each run owns its own state and random source.
    max_ticks caps every run; an unbounded config (max_steps <= 0) falls
    back to 1000 ticks.
    Returns a DataFrame with one row per run.
    """
    topology = topology or default_topology()
    if max_ticks is None and base_config.simulation.unbounded:
        max_ticks = 1000

    experiments = []
    exp_id = 1
    for rate in vehicle_rates:
        for s_idx in range(seeds):
            experiments.append({"id": exp_id, "rate": rate, "seed_offset": s_idx})
            exp_id += 1

    modes = []
    if run_q_learning:
        modes.append(False)
    if run_adaptive:
        modes.append(True)

    print(f"\n" + "="*60)
    print(f"STARTING BATCH RUN")
    print(f"Output: {output_folder}")
    print(f"Total Configs: {len(experiments)}")
    print(f"Modes: Q-Learn={run_q_learning}, Adaptive={run_adaptive}")
    print("="*60)

    start_time = time.time()
    rows = []

    for exp in experiments:
        exp_name = f"Exp{exp['id']}_Rate{exp['rate']}_Seed{exp['seed_offset']}"
        print(f"\nRunning {exp_name} ({exp['id']}/{len(experiments)})")
        run_seed = base_config.run.seed + exp['seed_offset']

        for adaptive in modes:
            mode = "adaptive" if adaptive else "q_learning"
            try:
                config = base_config.override(vehicle_rate=exp['rate'], adaptive_mode=adaptive)
                logger = ExperimentLogger(config, base_dir=os.path.join(output_folder, exp_name))
                _, summary = run_simulation(topology, config.simulation, seed=run_seed, logger=logger,
                                            max_ticks=max_ticks)
                rows.append({"experiment": exp_name, "mode": mode, "vehicle_rate": exp['rate'],
                             "seed": run_seed, **summary})
            except Exception as e:
                print(f"  !!! {mode} run failed: {e}")
                traceback.print_exc()

    df = pd.DataFrame(rows)
    if not df.empty:
        os.makedirs(output_folder, exist_ok=True)
        df.to_csv(os.path.join(output_folder, "summary.csv"), index=False)
        table = df.groupby(["vehicle_rate", "mode"])[["mean_reward", "mean_vehicle_count"]].mean()
        print("\n" + tabulate(table.reset_index(), headers="keys", tablefmt="github", showindex=False))

    duration = (time.time() - start_time) / 60
    print(f"\nBATCH COMPLETE. Duration: {duration:.2f} minutes.")
    return df
