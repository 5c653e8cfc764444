import yaml
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, Any, Optional


class JunctionError(ValueError):
    """Base class for configuration-time errors."""


class ConfigError(JunctionError):
    pass


class TopologyError(JunctionError):
    pass


def _check_probability(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be in [0, 1], got {value}")


@dataclass(frozen=True)
class SimulationConfig:
    max_steps: int = 1000
    vehicle_rate: int = 5
    learning_rate: float = 0.1
    epsilon: float = 0.1
    discount_factor: float = 0.9
    adaptive_mode: bool = False

    def __post_init__(self):
        # Reject bad values here so step() never has to clamp them
        _check_probability("learning_rate", self.learning_rate)
        _check_probability("epsilon", self.epsilon)
        _check_probability("discount_factor", self.discount_factor)
        if self.vehicle_rate < 0:
            raise ConfigError(f"vehicle_rate must be >= 0, got {self.vehicle_rate}")

    @property
    def arrival_probability(self) -> float:
        return min(1.0, self.vehicle_rate / 10)

    @property
    def unbounded(self) -> bool:
        return self.max_steps <= 0

    def with_overrides(self, **changes) -> "SimulationConfig":
        """Returns a validated copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass
class RunConfig:
    seed: int = 42
    n_runs: int = 1
    output_dir: str = "experiments"


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    run: RunConfig = field(default_factory=RunConfig)

    @classmethod
    def load(cls, path: str) -> "AppConfig":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        sim_data = data.get('simulation') or {}
        run_data = data.get('run') or {}
        try:
            return cls(
                simulation=SimulationConfig(**sim_data),
                run=RunConfig(**run_data)
            )
        except TypeError as e:
            # Unknown keys in a YAML section
            raise ConfigError(f"Invalid config section: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def override(self, seed: Optional[int] = None, **sim_changes) -> "AppConfig":
        sim_changes = {k: v for k, v in sim_changes.items() if v is not None}
        run = replace(self.run, seed=seed) if seed is not None else self.run
        return AppConfig(simulation=self.simulation.with_overrides(**sim_changes), run=run)
