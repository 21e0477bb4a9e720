# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Simulated group-level decoding results"""
from typing import Sequence, Tuple

import numpy as np

from .._results import Settings, StatsResult


def simulate_decoding(
        n_subjects: int = 10,
        n_times: int = 50,
        effect: Sequence[int] = (40, 50),
        effect_size: float = 0.15,
        chance: float = 0.5,
        noise: float = 0.05,
        tgm: bool = False,
        seed: int = 0,
) -> np.ndarray:
    """Simulate decoding performance for a group of subjects

    Parameters
    ----------
    n_subjects
        Number of subjects.
    n_times
        Number of time points.
    effect
        ``(start, stop)`` of the effect, in samples (``stop`` exclusive).
        For ``tgm=True``, the effect is a square on the diagonal.
    effect_size
        Performance above ``chance`` during the effect.
    chance
        Chance level.
    noise
        Standard deviation of the Gaussian noise for each sample.
    tgm
        Simulate temporal generalization matrices (test time by train time)
        instead of time courses.
    seed
        Seed for the random number generator, to ensure replicability.

    Returns
    -------
    y : array  (n_subjects, n_times [, n_times])
        Decoding performance.
    """
    random = np.random.RandomState(seed)
    shape = (n_subjects, n_times, n_times) if tgm else (n_subjects, n_times)
    y = random.normal(chance, noise, shape)
    start, stop = effect
    if tgm:
        y[:, start:stop, start:stop] += effect_size
    else:
        y[:, start:stop] += effect_size
    return y


def get_stats(
        n_conditions: int = 1,
        n_subjects: int = 10,
        n_times: int = 50,
        tgm: bool = False,
        measuremethod: str = 'AUC',
        nconds: int = 2,
        seed: int = 0,
        **kwargs,
) -> Tuple[StatsResult, ...]:
    """Decoding results for several conditions of a simulated experiment

    Parameters
    ----------
    n_conditions
        Number of results (conditions) to generate.
    n_subjects
        Number of subjects.
    n_times
        Number of time points.
    tgm
        Generate temporal generalization matrices.
    measuremethod
        Performance measure (determines the chance level).
    nconds
        Number of stimulus classes.
    seed
        Seed for the first condition (subsequent conditions use subsequent
        seeds).
    ...
        Parameters for :func:`simulate_decoding`.

    Returns
    -------
    stats : tuple of StatsResult
        One result per condition, named ``'c0'``, ``'c1'``, ...
    """
    settings = Settings(measuremethod, nconds)
    if 'chance' not in kwargs:
        kwargs['chance'] = 0.5 if measuremethod.lower() == 'auc' else 1 / nconds
    out = []
    for i in range(n_conditions):
        y = simulate_decoding(n_subjects, n_times, tgm=tgm, seed=seed + i, **kwargs)
        out.append(StatsResult(y.mean(0), y, f'c{i}', settings))
    return tuple(out)
