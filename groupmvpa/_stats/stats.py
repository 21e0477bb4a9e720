# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Statistics functions that work on numpy arrays."""
from __future__ import annotations

from typing import Literal, Union

from mne.stats import fdr_correction
import numpy as np
import scipy.stats


FLOAT64 = np.dtype('float64')
TAILS = {'both': 0, 'right': 1, 'left': -1}
TailArg = Union[Literal['both', 'left', 'right'], int]
FDR_METHODS = {'dep': 'negcorr', 'pdep': 'indep'}


def as_tail(tail: TailArg) -> int:
    """Convert a tail specification to ``0`` (both), ``1`` (right) or ``-1`` (left)"""
    if isinstance(tail, str):
        try:
            return TAILS[tail.lower()]
        except KeyError:
            raise ValueError(f"{tail=}; needs to be 'both', 'left' or 'right'")
    elif tail in (0, 1, -1) and not isinstance(tail, bool):
        return int(tail)
    raise ValueError(f"{tail=}; needs to be 'both', 'left' or 'right'")


def tail_name(tail: TailArg) -> str:
    tail = as_tail(tail)
    for name, value in TAILS.items():
        if value == tail:
            return name


def _as_float64(x):
    if x.dtype is FLOAT64:
        return x
    else:
        return x.astype(FLOAT64)


def t_1samp(y, out=None):
    """T-value for 1-sample t-test

    Parameters
    ----------
    y : array  (n_cases, ...)
        Data, first dimension reflecting cases.
    out : array  (...)
        Container for the result.

    Notes
    -----
    Data points with zero variance are set to t=0.
    """
    n_cases = len(y)
    if out is None:
        out = np.empty(y.shape[1:])
    y = _as_float64(np.asarray(y))
    sem = y.std(0, ddof=1) / np.sqrt(n_cases)
    with np.errstate(divide='ignore', invalid='ignore'):
        np.divide(y.mean(0), sem, out=out)
    out[sem == 0] = 0
    return out


def t_1samp_perm(y, out, sign):
    """T-value for 1-sample t-test on sign-flipped data

    Parameters
    ----------
    y : array  (n_cases, ...)
        Data, first dimension reflecting cases.
    out : array  (...)
        Container for the result.
    sign : array of int8  (n_cases,)
        Sign for each case (``1`` or ``-1``).
    """
    sign = sign.reshape((len(y),) + (1,) * (y.ndim - 1))
    return t_1samp(y * sign, out)


def standard_error(y):
    """Standard error of the mean over the first axis

    Returns ``None`` if ``y`` contains a single case, since the dispersion
    can't be estimated from a single measurement.
    """
    n = len(y)
    if n < 2:
        return None
    return y.std(0, ddof=1) / np.sqrt(n)


def ttest_p(t, df, tail=0):
    """Probability of t values

    Parameters
    ----------
    t : array_like
        T values.
    df : int
        Degrees of freedom.
    tail : 0 | 1 | -1
        Which tail of the t-distribution to consider:
        0: both (two-tailed);
        1: upper tail (one-tailed);
        -1: lower tail (one-tailed).
    """
    t = np.asanyarray(t)
    if tail == 0:
        t = np.abs(t)
    elif tail == -1:
        t = -t
    elif tail != 1:
        raise ValueError("tail=%r" % tail)
    p = scipy.stats.t.sf(t, df)
    if tail == 0:
        p *= 2
    return p


def ttest_t(p, df, tail=0):
    """Positive t value for a given probability

    Parameters
    ----------
    p : array_like
        Probability.
    df : int
        Degrees of freedom.
    tail : 0 | 1 | -1
        One- or two-tailed t-distribution (the return value is always positive):
        0: two-tailed;
        1 or -1: one-tailed).
    """
    p = np.asanyarray(p)
    if tail == 0:
        p = p / 2
    t = scipy.stats.t.isf(p, df)
    return t


def fdr(p, q=0.05, method='dep'):
    """False discovery rate control

    Parameters
    ----------
    p : array_like
        Uncorrected p-values (any shape).
    q : scalar
        Desired false discovery rate.
    method : 'dep' | 'pdep'
        ``'dep'`` (default) for the Benjamini & Yekutieli (2001) procedure,
        which is valid under arbitrary dependency between tests; ``'pdep'``
        for the Benjamini & Hochberg (1995) procedure for independent or
        positively dependent tests.

    Returns
    -------
    h : array of bool
        Whether each p-value is significant (same shape as ``p``).
    p_out : array
        Copy of ``p`` in which non-significant values are set to 1.

    Notes
    -----
    With ``m`` tests sorted in ascending order, all tests up to the largest
    rank ``k`` with ``p(k) <= k * q / (m * c(m))`` are significant, where
    ``c(m) = sum(1 / i for i in 1..m)`` for ``'dep'`` and 1 for ``'pdep'``.
    """
    if method not in FDR_METHODS:
        raise ValueError(f"{method=}; needs to be 'dep' or 'pdep'")
    p = np.asarray(p, np.float64)
    p_flat = p.ravel()
    if p_flat.size:
        _, p_adjusted = fdr_correction(p_flat, q, FDR_METHODS[method])
        h = (p_adjusted <= q).reshape(p.shape)
    else:
        h = np.zeros(p.shape, bool)
    p_out = p.copy()
    p_out[~h] = 1
    return h, p_out
