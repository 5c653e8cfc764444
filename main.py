import argparse
import os
from junction_rl.config import AppConfig, JunctionError
from junction_rl.core import run_simulation
from junction_rl.env.topology import default_topology
from junction_rl.agents.q_learning import q_table_frame
from junction_rl.logger import ExperimentLogger

# Import Tools
from junction_rl.tools.batch_runner import run_batch_experiments
from junction_rl.tools.optimizer import run_hyperparameter_optimization
from junction_rl.tools.behavior import analyze_behavior, plot_behavior


def run_single(args):
    """
    Runs ONE simulation from a config file and writes metrics/plots.
    """
    print(f"\n--- Starting Single Simulation Run ---")
    print(f"Config: {args.config}")

    config = AppConfig.load(args.config)
    config = config.override(seed=args.seed, max_steps=args.steps,
                             adaptive_mode=True if args.adaptive else None)
    sim = config.simulation

    if sim.unbounded and args.steps is None:
        print("Error: max_steps <= 0 runs forever; pass --steps to cap this run.")
        return

    print(f"Vehicle rate={sim.vehicle_rate}, Alpha={sim.learning_rate}, "
          f"Epsilon={sim.epsilon}, Gamma={sim.discount_factor}, Adaptive={sim.adaptive_mode}")

    topology = default_topology()
    logger = ExperimentLogger(config, base_dir=config.run.output_dir)
    runner, summary = run_simulation(topology, sim, seed=config.run.seed, logger=logger,
                                     progress=True, max_ticks=args.steps if sim.unbounded else None)

    for k, v in summary.items():
        print(f"  {k}: {v}")

    if args.show_q:
        print(q_table_frame(runner.state.q_table, topology).loc[lambda df: (df != 0).any(axis=1)])

    print(f"Run Complete. Results saved to: {logger.exp_dir}")


def run_behavior(args):
    config = AppConfig.load(args.config)
    topology = default_topology()
    n_runs = args.runs or config.run.n_runs
    seeds = range(config.run.seed, config.run.seed + n_runs)
    df_phases, df_roads = analyze_behavior(topology, config.simulation, seeds=seeds)
    print(df_phases.to_string(index=False))
    print(df_roads.to_string(index=False))

    os.makedirs(args.out, exist_ok=True)
    fig1, fig2 = plot_behavior(df_phases, df_roads)
    fig1.savefig(os.path.join(args.out, "phase_distribution.png"))
    fig2.savefig(os.path.join(args.out, "road_traffic.png"))
    print(f"Figures saved to: {args.out}")


def main():
    parser = argparse.ArgumentParser(description="Junction Q-Learning Traffic Simulator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # RUN Command
    p_run = subparsers.add_parser("run", help="Run a single simulation")
    p_run.add_argument("--config", type=str, default="configs/default.yaml", help="Path to YAML config")
    p_run.add_argument("--seed", type=int, default=None, help="Override random seed")
    p_run.add_argument("--steps", type=int, default=None, help="Override max_steps")
    p_run.add_argument("--adaptive", action="store_true", help="Enable adaptive mode")
    p_run.add_argument("--show-q", action="store_true", help="Print visited Q-table rows")

    # BATCH Command
    p_batch = subparsers.add_parser("batch", help="Run vehicle rate x seed x mode grid")
    p_batch.add_argument("--config", default="configs/default.yaml", help="Base config to use")
    p_batch.add_argument("--out", default="experiments_batch", help="Output folder name")
    p_batch.add_argument("--rates", type=int, nargs="+", default=[2, 5, 8], help="Vehicle rates")
    p_batch.add_argument("--seeds", type=int, default=None, help="Seeds per rate (default: run.n_runs)")
    p_batch.add_argument("--steps", type=int, default=None, help="Ticks per run (default: max_steps, or 1000 if unbounded)")

    # OPTIMIZE Command
    p_opt = subparsers.add_parser("optimize", help="Run Hyperparameter Tuning")
    p_opt.add_argument("--trials", type=int, default=25, help="Number of trials")
    p_opt.add_argument("--config", default="configs/default.yaml", help="Base config")

    # BEHAVIOR Command
    p_beh = subparsers.add_parser("behavior", help="Phase distribution and per-road traffic")
    p_beh.add_argument("--config", default="configs/default.yaml", help="Config to simulate")
    p_beh.add_argument("--runs", type=int, default=None, help="Number of seeded runs (default: run.n_runs)")
    p_beh.add_argument("--out", default="experiments_behavior", help="Output folder for figures")

    args = parser.parse_args()

    if not os.path.exists(args.config):
        print(f"Error: Config file '{args.config}' not found.")
        return

    # Dispatch Logic
    try:
        if args.command == "run":
            run_single(args)

        elif args.command == "batch":
            config = AppConfig.load(args.config)
            run_batch_experiments(config, args.out, vehicle_rates=args.rates,
                                  seeds=args.seeds or config.run.n_runs, max_ticks=args.steps)

        elif args.command == "optimize":
            run_hyperparameter_optimization(args.config, args.trials)

        elif args.command == "behavior":
            run_behavior(args)
    except JunctionError as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
