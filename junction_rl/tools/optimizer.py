import optuna
import numpy as np
import os
import yaml
from tqdm import tqdm

from junction_rl.config import AppConfig
from junction_rl.core import SimulationRunner
from junction_rl.env.topology import default_topology

# Fixed seed so every trial sees the same arrivals
ENV_SEED = 42

DEFAULT_SEARCH_SPACE = {
    'learning_rate': {'enabled': True, 'min': 0.01, 'max': 0.5},
    'epsilon': {'enabled': True, 'min': 0.0, 'max': 0.3},
    'discount_factor': {'enabled': True, 'choices': [0.8, 0.9, 0.95, 0.99]},
}


def run_hyperparameter_optimization(base_config_path, n_trials, search_space=None,
                                    output_path="configs/best_params_found.yaml"):
    """
    Searches learning rate / epsilon / discount factor for the highest mean
    reward over the back half of a run.
    """
    search_space = search_space or DEFAULT_SEARCH_SPACE

    print(f"\n" + "="*60)
    print(f"STARTING OPTIMIZATION")
    print(f"Trials: {n_trials}")
    print("="*60)

    if os.path.exists(base_config_path):
        base_app_config = AppConfig.load(base_config_path)
    else:
        raise FileNotFoundError(f"Config not found at {base_config_path}")

    topology = default_topology()
    # A tuning run needs a finite budget
    n_steps = base_app_config.simulation.max_steps if base_app_config.simulation.max_steps > 0 else 1000

    def objective(trial):
        sim = base_app_config.simulation
        params = {
            'learning_rate': sim.learning_rate,
            'epsilon': sim.epsilon,
            'discount_factor': sim.discount_factor,
        }

        if search_space.get('learning_rate', {}).get('enabled'):
            s = search_space['learning_rate']
            params['learning_rate'] = trial.suggest_float("learning_rate", s['min'], s['max'], log=True)

        if search_space.get('epsilon', {}).get('enabled'):
            s = search_space['epsilon']
            params['epsilon'] = trial.suggest_float("epsilon", s['min'], s['max'])

        if search_space.get('discount_factor', {}).get('enabled'):
            s = search_space['discount_factor']
            params['discount_factor'] = trial.suggest_categorical("discount_factor", s['choices'])

        config = sim.with_overrides(max_steps=n_steps, adaptive_mode=False, **params)
        runner = SimulationRunner(topology, config, seed=ENV_SEED)

        rewards = []
        pbar = tqdm(range(n_steps), desc=f"Trial {trial.number}", leave=False)
        for i in pbar:
            rewards.append(runner.tick().current_reward)

            # Pruning at the halfway mark
            if i == n_steps // 2:
                trial.report(float(np.mean(rewards)), i)
                if trial.should_prune():
                    pbar.close()
                    raise optuna.TrialPruned()

        pbar.close()
        return float(np.mean(rewards[n_steps // 2:]))

    optuna.logging.set_verbosity(optuna.logging.WARNING)
    study = optuna.create_study(direction="maximize", sampler=optuna.samplers.TPESampler(seed=42))
    study.optimize(objective, n_trials=n_trials)

    print("\n" + "="*60)
    print("OPTIMIZATION COMPLETE")
    print("="*60)
    print("Best Params found:")
    for k, v in study.best_params.items():
        print(f"  {k}: {v}")

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump({'simulation': dict(study.best_params)}, f)
    print(f"\nSaved best parameters to: {output_path}")
    return study.best_params
