# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Average group-level results and test them against chance"""
import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ._exceptions import ShapeError
from ._results import StatsResult
from ._stats import stats
from ._stats.clusters import Cluster, find_clusters
from ._stats.test import ttest
from ._stats.testnd import cluster_permutation_test
from ._stats_config import StatsConfig


def average_stats(
        stats_list: Sequence[StatsResult],
        cfg: Union[StatsConfig, Mapping[str, Any]] = None,
        **kwargs,
) -> StatsResult:
    """Average results with the same dimensions and test them against chance

    Parameters
    ----------
    stats_list
        Results to average, e.g. decoding results for different conditions
        in a within-subject design (same subjects, same dimensions, same
        performance measure).
    cfg
        Test configuration (see :class:`StatsConfig`). Parameters that are
        not specified are taken from the ``cfg`` of the first result, if
        available.
    **kwargs
        Override individual parameters of ``cfg``.

    Returns
    -------
    avstats
        Average result, with ``cond_name`` of the form
        ``'average(cond1,cond2)'``, ``settings`` with the chance level filled
        in, p-values, significant clusters and the configuration used.

    Notes
    -----
    With a single subject no test can be performed; in that case
    ``std_error`` is ``None`` and ``p_vals`` is all 0, as is the case for
    ``mpcompcor_method='none'``. Zero p-values thus do not indicate
    significance.
    """
    logger = logging.getLogger(__name__)
    if len(stats_list) == 0:
        raise ValueError("Need at least one result to average")
    first = stats_list[0]
    cfg = StatsConfig.coerce(cfg, first.cfg, **kwargs)

    # average
    check_shapes(stats_list)
    class_over_time = np.mean([s.class_over_time for s in stats_list], 0)
    indiv_class_over_time = np.mean([s.indiv_class_over_time for s in stats_list], 0)
    n_subjects = len(indiv_class_over_time)
    std_error = stats.standard_error(indiv_class_over_time)
    cond_name = f"average({','.join(s.cond_name for s in stats_list)})"
    settings = first.settings.with_chance()
    chance = settings.chance

    mask = resolve_mask(cfg.mask, indiv_class_over_time.shape[1:])
    if n_subjects > 1:
        logger.info("Testing %s against chance=%g (%s)", cond_name, chance, cfg.mpcompcor_method)
        p_vals, p_struct = compare_to_chance(indiv_class_over_time, chance, mask, cfg)
    else:
        logger.warning("%s: only 1 subject, statistics are undefined; setting all p-values to 0", cond_name)
        p_vals, p_struct = np.zeros(mask.shape), None

    return StatsResult(
        class_over_time, indiv_class_over_time, cond_name, settings,
        std_error, p_vals, p_struct, cfg)


def check_shapes(stats_list: Sequence[StatsResult]):
    "Raise a ShapeError if results can't be averaged"
    for attr in ('class_over_time', 'indiv_class_over_time'):
        shapes = [getattr(s, attr).shape for s in stats_list]
        if any(shape != shapes[0] for shape in shapes[1:]):
            raise ShapeError.from_shapes(f"Can't average results with different {attr} shapes", shapes)


def resolve_mask(mask: Optional[np.ndarray], shape: Tuple[int, ...]) -> np.ndarray:
    "Default mask, or validate a mask against the shape of the data"
    if mask is None:
        return np.ones(shape, bool)
    elif mask.shape != shape:
        raise ShapeError.from_shapes("mask needs to have the same shape as the data", [mask.shape, shape])
    return mask


def compare_to_chance(
        y: np.ndarray,
        chance: float,
        mask: np.ndarray,
        cfg: StatsConfig,
) -> Tuple[np.ndarray, Optional[List[Cluster]]]:
    """Test individual results against chance

    Parameters
    ----------
    y : array  (n_subjects, ...)
        Results for each subject.
    chance
        Chance level.
    mask : array of bool
        Restrict the test to these samples.
    cfg
        Test configuration.

    Returns
    -------
    p_vals : array
        P-values (1 for samples outside of ``mask``; all 0 for
        ``mpcompcor_method='none'``).
    p_struct : list of Cluster | None
        Significant clusters (``None`` if no test was performed).
    """
    method = cfg.mpcompcor_method
    if method == 'none':
        return np.zeros(mask.shape), None
    elif method == 'cluster_based':
        res = cluster_permutation_test(
            y, chance, mask, cfg.indiv_pval, cfg.cluster_pval, cfg.tail,
            cfg.n_permutations, cfg.seed)
        return res.p, find_clusters(res.sig, res.p, res.stat)

    h, p_vals, stat = ttest(y, chance, cfg.indiv_pval, cfg.tail)
    h &= mask
    p_vals[~mask] = 1
    if method == 'fdr':
        h[mask], p_vals[mask] = stats.fdr(p_vals[mask], cfg.cluster_pval, 'dep')
    return p_vals, find_clusters(h, p_vals, stat)
