# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Resampling schemes for permutation tests against a population mean

Under the null hypothesis that subjects' data are distributed symmetrically
around the population mean, flipping the sign of a subject's deviation from
the population mean is equivalent to swapping that subject's condition
labels.
"""
from itertools import chain
from math import ceil
import random

import numpy as np

from .._utils import intervals


def resample_params(n, samples):
    """Decide whether to do all permutations or random resampling

    Parameters
    ----------
    n : int
        Number of subjects.
    samples : int
        Requested number of permutations (< 0 to perform all permutations).

    Returns
    -------
    actual_n_samples : int
        Adapted number of permutations that will be done.
    samples_param : int
        Samples parameter for :func:`permute_sign_flip` (-1 to do all
        permutations, otherwise same as ``actual_n_samples``).
    """
    n_perm = 2 ** n
    if n_perm - 1 <= samples:
        samples = -1

    if samples < 0:
        n_samples = n_perm - 1
    else:
        n_samples = samples

    return n_samples, samples


def permute_sign_flip(n, samples=1000, seed=0, rng=None, out=None):
    """Iterate over sign patterns for ``samples`` permutations of the data

    Parameters
    ----------
    n : int
        Number of subjects.
    samples : int
        Number of samples to yield. If < 0, all possible permutations are
        performed.
    seed : int
        Seed for the random number generator (ignored when ``rng`` is
        provided).
    rng : random.Random
        Random number generator.
    out : array of int8  (n,)
        Buffer for the ``sign`` variable that is yielded in each iteration.

    Yields
    ------
    sign : array of int8  (n,)
        Sign for each subject (``1`` or ``-1``; ``sign`` is the same array
        object but its content modified in every iteration).

    Notes
    -----
    Each sign pattern is drawn at most once, and the identity pattern (all
    ``1``) is never drawn.
    """
    n = int(n)
    if rng is None and samples >= 0:
        rng = random.Random(seed)

    if out is None:
        out = np.empty(n, np.int8)
    else:
        assert out.shape == (n,)

    if n > 62:
        if samples < 0:
            raise NotImplementedError("All possibilities for more than 62 subjects")
        n_groups = ceil(n / 62.)
        group_size = int(ceil(n / n_groups))
        out_parts = chain(range(0, n, group_size), [n])
        for _ in zip(*(permute_sign_flip(stop - start, samples, rng=rng, out=out[start: stop])
                       for start, stop in intervals(out_parts))):
            yield out
        return

    # determine possible number of permutations
    n_perm_possible = 2 ** n
    if samples < 0:
        # do all permutations
        sample_sequences = range(1, n_perm_possible)
    else:
        # random resampling
        sample_sequences = rng.sample(range(1, n_perm_possible), samples)

    for seq in sample_sequences:
        out.fill(1)
        for i in (i for i, s in enumerate(bin(seq)[-1:1:-1]) if s == '1'):
            out[i] = -1
        yield out
