import numpy as np
from typing import List, Optional
from tqdm import tqdm

from junction_rl.config import SimulationConfig
from junction_rl.env.discretizer import state_key
from junction_rl.env.engine import reset, should_continue, step
from junction_rl.env.state import SimulationState
from junction_rl.env.topology import Topology


class SimulationRunner:
    """
    Owns the current state of one simulation and drives the step engine.

    Cadence is up to the caller: tick() advances exactly one logical step,
    run() loops until the step budget is spent or stop() is called.
    """

    def __init__(self, topology: Topology, config: SimulationConfig,
                 seed: Optional[int] = None, logger=None):
        self.topology = topology
        self.config = config
        self.seed = seed
        self.logger = logger
        self.rng = np.random.default_rng(seed)
        self.state = reset(topology, config.adaptive_mode)
        self.history: List[SimulationState] = []
        self.is_running = False

    def reset(self) -> SimulationState:
        self.stop()
        self.rng = np.random.default_rng(self.seed)
        self.state = reset(self.topology, self.config.adaptive_mode)
        self.history = []
        return self.state

    def update_settings(self, **changes) -> SimulationConfig:
        self.config = self.config.with_overrides(**changes)
        return self.config

    def stop(self):
        self.is_running = False

    def tick(self) -> SimulationState:
        self.state = step(self.state, self.config, self.topology, self.rng)
        self.history.append(self.state)
        if self.logger:
            self.logger.log_step(self.state, state_key(self.state.road_traffic, self.topology))
        return self.state

    def run(self, max_ticks: Optional[int] = None, progress: bool = False) -> SimulationState:
        """
        Tick until the budget is exhausted or stop() is called.

        max_ticks caps this call only; it is required when the config is
        unbounded (max_steps <= 0) and nothing else stops the loop.
        """
        if self.config.unbounded and max_ticks is None:
            raise ValueError("Unbounded config (max_steps <= 0) needs max_ticks")

        total = max_ticks if self.config.unbounded else self.config.max_steps - self.state.step
        if max_ticks is not None:
            total = min(total, max_ticks)

        pbar = tqdm(total=max(total, 0), desc="Simulating", disable=not progress)
        self.is_running = True
        ticks = 0
        while self.is_running and should_continue(self.state, self.config):
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.tick()
            ticks += 1
            pbar.update(1)
            pbar.set_postfix({
                'rew': f"{self.state.current_reward:.1f}",
                'veh': self.state.vehicle_count,
                'ph': self.state.current_phase
            })
        pbar.close()
        self.is_running = False
        return self.state

    def summary(self) -> dict:
        rewards = [s.current_reward for s in self.history]
        return {
            "steps": self.state.step,
            "mean_reward": float(np.mean(rewards)) if rewards else 0.0,
            "final_reward": self.state.current_reward,
            "mean_vehicle_count": float(np.mean([s.vehicle_count for s in self.history])) if rewards else 0.0,
            "final_waiting_time": self.state.average_waiting_time,
            "final_speed": self.state.average_speed,
            "q_nonzero": sum(1 for v in self.state.q_table.values() if v != 0.0),
        }


def run_simulation(topology: Topology, config: SimulationConfig, seed: Optional[int] = None,
                   logger=None, progress: bool = False, max_ticks: Optional[int] = None):
    """
    Runs one simulation to completion.
    Returns: (runner, summary_dict)
    """
    runner = SimulationRunner(topology, config, seed=seed, logger=logger)
    runner.run(max_ticks=max_ticks, progress=progress)

    if logger:
        logger.save_plot(
            [s.current_reward for s in runner.history],
            [s.average_waiting_time for s in runner.history],
            [s.average_speed for s in runner.history],
        )
    return runner, runner.summary()
