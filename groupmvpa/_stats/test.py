# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Mass-univariate tests of subject data against a population mean

The test statistic is pluggable: :class:`StatTest` defines the interface
used by the uncorrected, FDR and cluster-based procedures, :class:`TTest`
implements it for the one-sample t-test.
"""
from typing import Tuple

import numpy as np

from .._text import n_of
from . import stats
from .stats import TailArg, as_tail


class StatTest:
    """Per-sample test of the first (subject) axis against 0

    Subclasses implement :meth:`statistic`, :meth:`p_value` and
    :meth:`threshold`. Statistics need to be signed, with positive values
    indicating data above the population mean.
    """
    name = None

    def statistic(self, y: np.ndarray, out: np.ndarray = None, sign: np.ndarray = None) -> np.ndarray:
        """Statistic map

        Parameters
        ----------
        y : array  (n_subjects, ...)
            Data, with population mean already subtracted.
        out : array  (...)
            Container for the result.
        sign : array of int8  (n_subjects,)
            Flip the sign of individual subjects (for permutation).
        """
        raise NotImplementedError

    def p_value(self, stat: np.ndarray, n: int, tail: int = 0) -> np.ndarray:
        "Uncorrected p-values for a statistic map based on ``n`` subjects"
        raise NotImplementedError

    def threshold(self, p: float, n: int, tail: int = 0) -> float:
        "Positive statistic value corresponding to the uncorrected ``p``"
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class TTest(StatTest):
    """One-sample t-test (``df = n - 1``)

    Notes
    -----
    Data points with zero variance are set to t=0.
    """
    name = 't'

    def statistic(self, y, out=None, sign=None):
        if sign is None:
            return stats.t_1samp(y, out)
        return stats.t_1samp_perm(y, out, sign)

    def p_value(self, stat, n, tail=0):
        return stats.ttest_p(stat, n - 1, tail)

    def threshold(self, p, n, tail=0):
        return float(stats.ttest_t(p, n - 1, tail))


def ttest(
        y: np.ndarray,
        popmean: float = 0,
        alpha: float = 0.05,
        tail: TailArg = 'both',
        test: StatTest = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Test every sample of ``y`` against ``popmean``

    Parameters
    ----------
    y : array  (n_subjects, ...)
        Data, first dimension reflecting subjects.
    popmean
        Value to compare ``y`` against (e.g., chance level).
    alpha
        Significance threshold for each individual sample.
    tail
        ``'both'`` for a two-tailed test, ``'right'`` to test for values above
        ``popmean``, ``'left'`` to test for values below ``popmean``.
    test
        Test statistic (default :class:`TTest`).

    Returns
    -------
    h : array of bool  (...)
        Significance of each sample (``p <= alpha``).
    p : array  (...)
        Uncorrected p-values.
    stat : array  (...)
        The test statistic.
    """
    if test is None:
        test = TTest()
    tail = as_tail(tail)
    y = np.asarray(y, np.float64)
    n = len(y)
    if n < 2:
        raise ValueError(f"{n_of(n, 'subject')}: not enough subjects for a test")
    stat = test.statistic(y - popmean)
    p = test.p_value(stat, n, tail)
    h = p <= alpha
    return h, p, stat
