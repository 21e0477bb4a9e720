# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
import numpy as np
from scipy import ndimage
from scipy.ndimage import generate_binary_structure


class Connectivity:
    """Grid connectivity for time courses and time-time generalization maps

    Neighbors share an edge: adjacent samples in a time course, and
    4-connectivity (no diagonal neighbors) in a 2-dimensional map.
    """
    __slots__ = ('ndim', 'struct')

    def __init__(self, ndim: int):
        if ndim < 1:
            raise ValueError(f"{ndim=}: connectivity needs at least one dimension")
        self.ndim = ndim
        self.struct = generate_binary_structure(ndim, 1)

    def __repr__(self):
        return f"<Connectivity: {self.ndim}d grid>"

    def __getstate__(self):
        return {k: getattr(self, k) for k in self.__slots__}

    def __setstate__(self, state):
        for k, v in state.items():
            setattr(self, k, v)

    def label(self, bin_map, out=None):
        """Label connected regions in a boolean map

        Parameters
        ----------
        bin_map : array of bool
            Map of samples that can be part of a cluster.
        out : array of uint32
            Buffer for the label map (same shape as ``bin_map``).

        Returns
        -------
        cmap : array of uint32
            Label map (0 outside of clusters).
        cluster_ids : array of uint32
            Labels of the clusters, in ascending order.
        """
        if bin_map.ndim != self.ndim:
            raise ValueError(f"{bin_map.shape=} for {self}")
        if out is None:
            out = np.empty(bin_map.shape, np.uint32)
        n = ndimage.label(bin_map, self.struct, out)
        return out, np.arange(1, n + 1, dtype=np.uint32)

    def label_signed(self, bin_map_above, bin_map_below):
        """Label positive and negative regions separately

        Regions in ``bin_map_below`` receive labels following those of
        ``bin_map_above``, so that positive and negative regions never merge
        even when they are adjacent.

        Returns
        -------
        cmap : array of uint32
            Label map (0 outside of clusters).
        cids_above : array of uint32
            Labels of the regions in ``bin_map_above``.
        cids_below : array of uint32
            Labels of the regions in ``bin_map_below``.
        """
        cmap, cids_above = self.label(bin_map_above)
        int_buff, cids_below = self.label(bin_map_below)
        x = len(cids_above)
        int_buff[bin_map_below] += x
        cids_below += x
        cmap += int_buff
        return cmap, cids_above, cids_below
