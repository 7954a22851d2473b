import numpy as np


def gen_linear_sweep_list(low: int | float, high: int | float, num_steps: int):
    return np.linspace(low, high, num_steps)


def gen_centred_sweep_list(centre: int | float, span: int | float, num_points: int):
    return np.linspace(centre - span / 2, centre + span / 2, num_points)


def gen_log_sweep_list(low: int | float, high: int | float, num_steps: int):
    if low <= 0 or high <= 0:
        raise ValueError("Logarithmic sweep limits must both be positive.")
    return np.logspace(np.log10(low), np.log10(high), num_steps)


def gen_symmetric_list(values):
    # out and back, turning point only once: [0, 1, 2] -> [0, 1, 2, 1, 0]
    values = np.asarray(values, dtype=float)
    return np.concatenate([values, values[-2::-1]])
