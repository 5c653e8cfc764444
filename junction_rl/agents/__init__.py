from .q_learning import select_action, update_q_value, greedy_action, adaptive_action

__all__ = ["select_action", "update_q_value", "greedy_action", "adaptive_action"]
