# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Cluster-based permutation test against a population mean

The test proceeds in 3 steps:

- Clusters are formed from contiguous samples whose uncorrected test
  statistic exceeds the threshold equivalent to ``indiv_pval``. The mass of a
  cluster is the sum of the absolute statistic over its samples.
- For each permutation, the sign of each subject's deviation from the
  population mean is flipped at random, and the largest cluster mass is
  recorded (separately for positive and negative clusters in a two-tailed
  test).
- The p-value of each original cluster is the proportion of permutations
  (counting the original data as one of them) with a maximum cluster mass
  at least as large as the cluster's mass.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from multiprocessing.sharedctypes import RawArray
import logging
import operator
import os
from typing import List, Optional

import numpy as np
from scipy import ndimage

from .._config import CONFIG, mpc
from .._exceptions import ShapeError
from .._text import n_of
from .._utils import restore_main_spec, tqdm, trange
from .clusters import Cluster, cluster_list
from .connectivity import Connectivity
from .permutation import resample_params, permute_sign_flip
from .stats import TailArg, as_tail
from .test import StatTest, TTest


__test__ = False


def label_clusters(stat_map, threshold, tail, connectivity, mask=None):
    """Find clusters on a statistical parameter map

    Parameters
    ----------
    stat_map : array
        Statistical parameter map.
    threshold : scalar
        Samples with a statistic ``>= threshold`` (or ``<= -threshold``) can
        be part of a cluster.
    tail : 0 | 1 | -1
        Which tail(s) of the distribution to consider.
    connectivity : Connectivity
        Connectivity corresponding to ``stat_map``.
    mask : array of bool
        Only samples in the mask can be part of a cluster.

    Returns
    -------
    cmap : np.ndarray of uint32
        Array with clusters labelled as integers.
    cids_above : np.ndarray of uint32
        Identifiers of the positive clusters.
    cids_below : np.ndarray of uint32
        Identifiers of the negative clusters.
    """
    if tail >= 0:
        bin_map_above = np.greater_equal(stat_map, threshold)
        if mask is not None:
            bin_map_above &= mask
    else:
        bin_map_above = np.zeros(stat_map.shape, bool)

    if tail <= 0:
        bin_map_below = np.less_equal(stat_map, -threshold)
        if mask is not None:
            bin_map_below &= mask
    else:
        bin_map_below = np.zeros(stat_map.shape, bool)

    return connectivity.label_signed(bin_map_above, bin_map_below)


class ClusterProcessor:
    """Reduce a statistical map to the largest cluster mass

    For a two-tailed test, :meth:`max_stat` returns the largest positive and
    the largest negative cluster mass; otherwise, it returns a scalar.
    """

    def __init__(self, tail, shape, threshold, mask):
        self.tail = tail
        self.shape = shape
        self.threshold = threshold
        self.mask = mask
        self.connectivity = Connectivity(len(shape))

    def max_stat(self, stat_map):
        cmap, cids_above, cids_below = label_clusters(
            stat_map, self.threshold, self.tail, self.connectivity, self.mask)
        v_above = self._max_mass(stat_map, cmap, cids_above)
        v_below = self._max_mass(stat_map, cmap, cids_below)
        if self.tail == 0:
            return v_above, v_below
        elif self.tail > 0:
            return v_above
        else:
            return v_below

    @staticmethod
    def _max_mass(stat_map, cmap, cids):
        if len(cids) == 0:
            return 0
        clusters_v = ndimage.sum(stat_map, cmap, cids)
        return np.abs(clusters_v).max()


@dataclass
class ClusterPermutationResult:
    """Result of :func:`cluster_permutation_test`

    Attributes
    ----------
    stat : array
        Map of the test statistic (0 outside of the mask).
    p : array
        Map of cluster p-values; samples that are not part of a significant
        cluster have ``p = 1``.
    sig : array of bool
        Samples that are part of a significant cluster.
    clusters : list of Cluster
        All clusters in the original data, including those that are not
        significant, ordered by onset.
    dist : array | None
        Distribution of the maximum cluster mass in each permutation (``None``
        if the original data contains no clusters). For two-tailed tests, the
        two columns contain maxima for positive and negative clusters.
    n_samples : int
        The number of permutations.
    threshold : float
        Cluster forming threshold for the test statistic.
    tail : int
        Tail of the test.
    cluster_pval : float
        Threshold for cluster p-values.
    """
    stat: np.ndarray
    p: np.ndarray
    sig: np.ndarray
    clusters: List[Cluster]
    dist: Optional[np.ndarray]
    n_samples: int
    threshold: float
    tail: int
    cluster_pval: float

    @property
    def significant_clusters(self) -> List[Cluster]:
        return [c for c in self.clusters if c.p <= self.cluster_pval]

    def __repr__(self):
        n_sig = len(self.significant_clusters)
        return f"<ClusterPermutationResult: {n_of(len(self.clusters), 'cluster')}, {n_sig} significant, samples={self.n_samples}>"


class ClusterPermutationDistribution:
    """Accumulate the permutation distribution of the maximum cluster mass

    Parameters
    ----------
    y : array  (n_subjects, ...)
        Data with the population mean subtracted.
    samples : int
        Number of permutations.
    threshold : scalar > 0
        Cluster forming threshold for the test statistic.
    tail : 1 | 0 | -1
        Which tail(s) of the distribution to consider. 0 is two-tailed,
        whereas 1 only considers positive values and -1 only considers
        negative values.
    mask : array of bool
        Samples that can be part of a cluster.

    Notes
    -----
    Use proceeds in 3 steps:

    - initialize: ``cdist = ClusterPermutationDistribution(...)``
    - add the actual statistical map with ``cdist.add_original(stat_map)``
    - if any clusters are found (``if cdist.do_permutation``), fill the
      distribution with :func:`run_permutation`.
    """

    def __init__(self, y, samples, threshold, tail, mask):
        samples = int(samples)
        if samples < 1:
            raise ValueError(f"{samples=}: need at least one permutation")
        threshold = float(threshold)
        if not threshold > 0:
            raise ValueError(f"{threshold=}: cluster forming threshold needs to be positive")
        shape = y.shape[1:]
        if mask.shape != shape:
            raise ShapeError.from_shapes("mask and data with different shapes", [mask.shape, shape])
        if tail == 0:
            dist_shape = (samples, 2)
        else:
            dist_shape = (samples,)

        self.y_perm = y
        self.shape = shape
        self.samples = samples
        self.threshold = threshold
        self.tail = tail
        self.mask = mask
        self.dist_shape = dist_shape
        self.map_args = (tail, shape, threshold, mask)
        self.dist = None
        self.dist_array = None
        self.has_original = False
        self.do_permutation = False
        self._connectivity = Connectivity(len(shape))

    def __repr__(self):
        items = [f"threshold={self.threshold:.3g}", f"samples={self.samples}"]
        if self.has_original:
            items.append(n_of(self.n_clusters, 'cluster'))
        return f"<ClusterPermutationDistribution: {', '.join(items)}>"

    def add_original(self, stat_map):
        """Add the original statistical parameter map.

        Parameters
        ----------
        stat_map : array
            Parameter map of the statistic of interest.
        """
        if self.has_original:
            raise RuntimeError("Original stat_map already added")
        logger = logging.getLogger(__name__)
        logger.debug("Adding original parameter map...")

        cmap, cids_above, cids_below = label_clusters(
            stat_map, self.threshold, self.tail, self._connectivity, self.mask)
        cids = np.concatenate((cids_above, cids_below))
        if len(cids):
            masses = np.abs(ndimage.sum(stat_map, cmap, cids))
        else:
            masses = np.empty(0)

        self._original_cluster_map = cmap
        self._cids = cids
        self._signs = np.array([1] * len(cids_above) + [-1] * len(cids_below), np.int8)
        self._masses = masses
        self.n_clusters = len(cids)
        self.has_original = True

        if self.n_clusters:
            self._create_dist()
            self.do_permutation = True
        else:
            self.finalize()

    def _create_dist(self):
        "Create the distribution container"
        if CONFIG['n_workers']:
            n = reduce(operator.mul, self.dist_shape)
            dist_array = RawArray('d', n)
            dist = np.frombuffer(dist_array, np.float64, n)
            dist.shape = self.dist_shape
        else:
            dist_array = None
            dist = np.zeros(self.dist_shape)

        self.dist_array = dist_array
        self.dist = dist

    def data_for_permutation(self, raw=True):
        """Retrieve data for permutation

        Parameters
        ----------
        raw : bool
            Return a RawArray and a shape tuple instead of a numpy array.
        """
        x = self.y_perm
        if not raw:
            return x

        ra = RawArray('d', x.size)
        ra[:] = x.ravel()
        return ra, x.shape, self.shape

    def finalize(self):
        "Compute cluster p-values"
        cluster_p = np.ones(self.n_clusters)
        for i, (mass, sign) in enumerate(zip(self._masses, self._signs)):
            if self.tail == 0:
                dist = self.dist[:, 0 if sign > 0 else 1]
            else:
                dist = self.dist
            n_larger = np.sum(dist >= mass)
            cluster_p[i] = (n_larger + 1) / (self.samples + 1)
        self.cluster_p = cluster_p
        if self.dist is not None:
            # detach from shared memory
            self.dist = np.array(self.dist)
            self.dist_array = None

    def clusters(self) -> List[Cluster]:
        "All clusters in the original data"
        return cluster_list(self._original_cluster_map, self._cids, self.cluster_p, self._masses, self._signs)

    def probability_map(self, pmin: float) -> np.ndarray:
        "Map of cluster p-values, 1 outside of clusters with ``p <= pmin``"
        p_map = np.ones(self.shape)
        for cid, p in zip(self._cids, self.cluster_p):
            if p <= pmin:
                p_map[self._original_cluster_map == cid] = p
        return p_map

    def significance_map(self, pmin: float) -> np.ndarray:
        "Samples that are part of a cluster with ``p <= pmin``"
        cids = self._cids[self.cluster_p <= pmin]
        return np.isin(self._original_cluster_map, cids)


def distribution_worker(dist_array, dist_shape, in_queue, kill_beacon):
    "Worker that accumulates values and places them into the distribution"
    n = reduce(operator.mul, dist_shape)
    dist = np.frombuffer(dist_array, np.float64, n)
    dist.shape = dist_shape
    samples = dist_shape[0]
    for i in trange(samples, desc="Permutation test", unit=' permutations',
                    disable=CONFIG['tqdm']):
        dist[i] = in_queue.get()
        if kill_beacon.is_set():
            return


def permutation_worker(in_queue, out_queue, y, y_shape, stat_map_shape,
                       test, map_args, kill_beacon):
    "Worker computing the maximum cluster mass for permutations"
    if CONFIG['nice']:
        os.nice(CONFIG['nice'])

    n = reduce(operator.mul, y_shape)
    y = np.frombuffer(y, np.float64, n).reshape(y_shape)
    stat_map = np.empty(stat_map_shape)
    map_processor = ClusterProcessor(*map_args)
    while not kill_beacon.is_set():
        sign = in_queue.get()
        if sign is None:
            break
        test.statistic(y, stat_map, sign)
        max_v = map_processor.max_stat(stat_map)
        out_queue.put(max_v)


def run_permutation(test, dist, iterator):
    if CONFIG['n_workers']:
        workers, out_queue, kill_beacon = setup_workers(test, dist)

        try:
            for sign in iterator:
                out_queue.put(sign)

            for _ in range(len(workers) - 1):
                out_queue.put(None)

            logger = logging.getLogger(__name__)
            for w in workers:
                w.join()
                logger.debug("worker joined")
        except KeyboardInterrupt:
            kill_beacon.set()
            raise
    else:
        y = dist.data_for_permutation(False)
        map_processor = ClusterProcessor(*dist.map_args)
        stat_map = np.empty(dist.shape)
        iterator = tqdm(iterator, "Permutation test", dist.samples, unit=' permutations', disable=CONFIG['tqdm'])
        for i, sign in enumerate(iterator):
            test.statistic(y, stat_map, sign)
            dist.dist[i] = map_processor.max_stat(stat_map)
    dist.finalize()


def setup_workers(test, dist):
    "Initialize workers for permutation tests"
    logger = logging.getLogger(__name__)
    logger.debug("Setting up %i worker processes..." % CONFIG['n_workers'])
    permutation_queue = mpc.SimpleQueue()
    dist_queue = mpc.SimpleQueue()
    kill_beacon = mpc.Event()

    restore_main_spec()

    # permutation workers
    y, y_shape, stat_map_shape = dist.data_for_permutation()
    args = (permutation_queue, dist_queue, y, y_shape, stat_map_shape,
            test, dist.map_args, kill_beacon)
    workers = []
    for _ in range(CONFIG['n_workers']):
        w = mpc.Process(target=permutation_worker, args=args)
        w.start()
        workers.append(w)

    # distribution worker
    args = (dist.dist_array, dist.dist_shape, dist_queue, kill_beacon)
    w = mpc.Process(target=distribution_worker, args=args)
    w.start()
    workers.append(w)

    return workers, permutation_queue, kill_beacon


def cluster_permutation_test(
        y: np.ndarray,
        popmean: float = 0,
        mask: np.ndarray = None,
        indiv_pval: float = 0.05,
        cluster_pval: float = 0.05,
        tail: TailArg = 'both',
        samples: int = 1000,
        seed: int = 0,
        test: StatTest = None,
) -> ClusterPermutationResult:
    """Cluster-based permutation test of subject data against ``popmean``

    Parameters
    ----------
    y : array  (n_subjects, n_times [, n_times])
        Data, first dimension reflecting subjects.
    popmean
        Value to compare ``y`` against (e.g., chance level).
    mask : array of bool  (n_times [, n_times])
        Restrict the test to these samples (default all samples).
    indiv_pval
        Uncorrected p-value for samples to be included in a cluster.
    cluster_pval
        Threshold for cluster p-values.
    tail
        ``'both'`` for a two-tailed test, ``'right'`` to test for values above
        ``popmean``, ``'left'`` to test for values below ``popmean``. In a
        two-tailed test, positive and negative clusters are evaluated against
        separate distributions.
    samples
        Number of permutations. If ``2 ** n_subjects - 1 <= samples``, all
        possible sign flips are evaluated instead.
    seed
        Seed for drawing random permutations.
    test
        Test statistic (default :class:`TTest`).

    Returns
    -------
    result
        Test result with p-value map and clusters.

    Notes
    -----
    Neighboring samples share an edge (4-connectivity for time-time
    generalization maps).
    """
    if test is None:
        test = TTest()
    tail = as_tail(tail)
    y = np.asarray(y, np.float64)
    n = len(y)
    if n < 2:
        raise ValueError(f"{n_of(n, 'subject')}: not enough subjects for a permutation test")
    y_perm = y - popmean
    shape = y.shape[1:]
    if mask is None:
        mask = np.ones(shape, bool)
    else:
        mask = np.asarray(mask, bool)
        if mask.shape != shape:
            raise ShapeError.from_shapes("mask and data with different shapes", [mask.shape, shape])

    stat_map = test.statistic(y_perm)
    stat_map[~mask] = 0
    threshold = test.threshold(indiv_pval, n, tail)
    n_samples, samples_param = resample_params(n, samples)
    cdist = ClusterPermutationDistribution(y_perm, n_samples, threshold, tail, mask)
    cdist.add_original(stat_map)
    if cdist.do_permutation:
        iterator = permute_sign_flip(n, samples_param, seed)
        run_permutation(test, cdist, iterator)

    return ClusterPermutationResult(
        stat_map, cdist.probability_map(cluster_pval), cdist.significance_map(cluster_pval),
        cdist.clusters(), cdist.dist, n_samples, threshold, tail, cluster_pval)
