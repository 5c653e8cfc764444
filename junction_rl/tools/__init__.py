# Exposes tools for easier import
from .batch_runner import run_batch_experiments
from .optimizer import run_hyperparameter_optimization
from .behavior import analyze_behavior, plot_behavior
