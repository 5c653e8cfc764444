import os
import json
import csv
import time
import matplotlib.pyplot as plt

from junction_rl.env.state import SimulationState


class ExperimentLogger:
    def __init__(self, config, base_dir="experiments", name="q_learning"):
        timestamp = time.strftime("%Y%m%d-%H%M%S")
        mode = "adaptive" if config.simulation.adaptive_mode else name
        self.exp_dir = os.path.join(base_dir, f"{mode}_{timestamp}")
        os.makedirs(self.exp_dir, exist_ok=True)

        # Save Config
        with open(os.path.join(self.exp_dir, "config.json"), "w") as f:
            json.dump(config.to_dict(), f, indent=4)

        # Init CSV
        self.csv_path = os.path.join(self.exp_dir, "metrics.csv")
        self.headers = ["step", "reward", "vehicle_count", "avg_waiting_time",
                        "avg_speed", "phase", "state_key"]
        with open(self.csv_path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(self.headers)

    def log_step(self, state: SimulationState, state_key: str):
        with open(self.csv_path, "a", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([state.step, state.current_reward, state.vehicle_count,
                             state.average_waiting_time, state.average_speed,
                             state.current_phase, state_key])

    def save_plot(self, rewards, waits, speeds):
        plt.figure(figsize=(15, 5))
        plt.subplot(1, 3, 1)
        plt.plot(rewards)
        plt.title("Reward")
        plt.subplot(1, 3, 2)
        plt.plot(waits)
        plt.title("Avg Waiting Time")
        plt.subplot(1, 3, 3)
        plt.plot(speeds)
        plt.title("Avg Speed")
        plt.savefig(os.path.join(self.exp_dir, "simulation_plot.png"))
        plt.close()

    def get_save_path(self, filename):
        return os.path.join(self.exp_dir, filename)
