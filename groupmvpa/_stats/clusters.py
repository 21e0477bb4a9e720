# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Descriptions of contiguous significant regions"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import ndimage

from .._exceptions import ShapeError
from .connectivity import Connectivity


Index = Union[int, Tuple[int, ...]]


@dataclass(frozen=True)
class Cluster:
    """Contiguous region of significant samples

    Attributes
    ----------
    start : int | tuple of int
        First sample of the cluster (for 2-dimensional maps, the first
        index along each axis of the cluster's bounding box).
    stop : int | tuple of int
        Last sample of the cluster (inclusive).
    extent : int
        Number of samples in the cluster.
    p : float
        Representative p-value (the smallest p-value in the cluster).
    mass : float | None
        Sum of the absolute test statistic in the cluster (``None`` if no
        statistic was available).
    sign : int
        ``1`` for clusters above and ``-1`` for clusters below the population
        mean (``0`` if unknown).
    """
    start: Index
    stop: Index
    extent: int
    p: float
    mass: Optional[float] = None
    sign: int = 0

    @property
    def index(self) -> Tuple[slice, ...]:
        "Index into a map for the cluster's bounding box"
        starts = self.start if isinstance(self.start, tuple) else (self.start,)
        stops = self.stop if isinstance(self.stop, tuple) else (self.stop,)
        return tuple(slice(i, j + 1) for i, j in zip(starts, stops))


def cluster_list(
        cmap: np.ndarray,
        cids: Sequence[int],
        p_values: Sequence[float],
        masses: Sequence[float] = None,
        signs: Sequence[int] = None,
) -> List[Cluster]:
    """Create :class:`Cluster` objects for labelled regions

    Parameters
    ----------
    cmap : array of int
        Label map (0 outside of clusters).
    cids
        Labels of the regions to describe.
    p_values
        P-value for each region.
    masses
        Mass of each region.
    signs
        Sign of each region.

    Returns
    -------
    clusters
        One :class:`Cluster` per label, ordered by onset.
    """
    if len(cids) == 0:
        return []
    objects = ndimage.find_objects(cmap)
    extents = np.bincount(cmap.ravel(), minlength=int(max(cids)) + 1)
    clusters = []
    for i, cid in enumerate(cids):
        index = objects[cid - 1]
        start = tuple(s.start for s in index)
        stop = tuple(s.stop - 1 for s in index)
        if cmap.ndim == 1:
            start, = start
            stop, = stop
        clusters.append(Cluster(
            start, stop, int(extents[cid]), float(p_values[i]),
            None if masses is None else float(masses[i]),
            0 if signs is None else int(signs[i]),
        ))
    clusters.sort(key=lambda c: (c.start, c.stop))
    return clusters


def find_clusters(
        mask: np.ndarray,
        p_map: np.ndarray,
        stat_map: np.ndarray = None,
) -> List[Cluster]:
    """Describe contiguous regions in a significance mask

    Parameters
    ----------
    mask : array of bool
        Significance mask (1 or 2 dimensional).
    p_map : array
        P-value for each sample (same shape as ``mask``).
    stat_map : array
        Test statistic for each sample (same shape as ``mask``). If provided,
        regions above and below the population mean are separated, and the
        cluster mass is computed.

    Returns
    -------
    clusters
        One :class:`Cluster` for each maximal contiguous region of ``mask``,
        in ascending order of onset. Neighbors share an edge (4-connectivity
        for 2-dimensional maps).
    """
    mask = np.asarray(mask, bool)
    p_map = np.asarray(p_map)
    if p_map.shape != mask.shape:
        raise ShapeError.from_shapes("mask and p-values with different shapes", [mask.shape, p_map.shape])
    connectivity = Connectivity(mask.ndim)
    if stat_map is None:
        cmap, cids = connectivity.label(mask)
        masses = signs = None
    else:
        stat_map = np.asarray(stat_map)
        if stat_map.shape != mask.shape:
            raise ShapeError.from_shapes("mask and statistic with different shapes", [mask.shape, stat_map.shape])
        above = mask & (stat_map >= 0)
        below = mask & (stat_map < 0)
        cmap, cids_above, cids_below = connectivity.label_signed(above, below)
        cids = np.concatenate((cids_above, cids_below))
        masses = ndimage.sum(np.abs(stat_map), cmap, cids)
        signs = [1] * len(cids_above) + [-1] * len(cids_below)
    if len(cids) == 0:
        return []
    p_values = ndimage.minimum(p_map, cmap, cids)
    return cluster_list(cmap, cids, p_values, masses, signs)
