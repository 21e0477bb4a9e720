# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Configuration of group-level tests"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal, Mapping, Optional, Union

import numpy as np

from ._exceptions import DeprecatedParameter, UnknownCorrectionMethod
from ._stats.stats import TailArg, tail_name


MPCOMPCOR_METHODS = ('uncorrected', 'fdr', 'cluster_based', 'none')
DEPRECATED_KEYS = {
    'one_two_tailed': ('tail', "Use 'both', 'left' or 'right'."),
}
MethodArg = Literal['uncorrected', 'fdr', 'cluster_based', 'none']


@dataclass(frozen=True)
class StatsConfig:
    """Settings for testing group-level results against chance

    Parameters
    ----------
    mpcompcor_method
        Method for multiple comparison correction: ``'uncorrected'``
        (default), ``'fdr'`` for false discovery rate, ``'cluster_based'``
        for cluster-based permutation testing, or ``'none'`` to skip
        statistical testing.
    indiv_pval
        Statistical threshold for each individual sample (default 0.05).
    cluster_pval
        For ``'cluster_based'``, the threshold for cluster p-values; for
        ``'fdr'``, the false discovery rate q (default 0.05).
    tail
        ``'both'`` (default) for two-tailed tests, ``'right'`` to test for
        values above chance, ``'left'`` to test for values below chance.
    mask
        Boolean array restricting the test to a region of interest (default
        all samples).
    n_permutations
        Number of permutations for ``'cluster_based'`` (default 1000).
    seed
        Seed for drawing permutations (default 0).
    """
    mpcompcor_method: MethodArg = 'uncorrected'
    indiv_pval: float = 0.05
    cluster_pval: float = 0.05
    tail: TailArg = 'both'
    mask: Optional[np.ndarray] = field(default=None, compare=False)
    n_permutations: int = 1000
    seed: int = 0

    def __post_init__(self):
        if self.mpcompcor_method not in MPCOMPCOR_METHODS:
            raise UnknownCorrectionMethod(self.mpcompcor_method, MPCOMPCOR_METHODS)
        for name in ('indiv_pval', 'cluster_pval'):
            value = getattr(self, name)
            if not 0 < value < 1:
                raise ValueError(f"{name}={value!r}; needs to be between 0 and 1")
        object.__setattr__(self, 'tail', tail_name(self.tail))
        if self.mask is not None:
            mask = np.array(self.mask, bool)
            mask.flags.writeable = False
            object.__setattr__(self, 'mask', mask)
        if int(self.n_permutations) < 1:
            raise ValueError(f"n_permutations={self.n_permutations!r}; needs to be at least 1")
        object.__setattr__(self, 'n_permutations', int(self.n_permutations))

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any], base: StatsConfig = None) -> StatsConfig:
        """Create a configuration from a ``cfg`` mapping

        Parameters
        ----------
        cfg
            Mapping with configuration parameters as keys.
        base
            Configuration providing values for parameters missing from
            ``cfg`` (default :class:`StatsConfig` defaults).
        """
        for key in cfg:
            if key in DEPRECATED_KEYS:
                raise DeprecatedParameter(key, *DEPRECATED_KEYS[key])
        valid = {f.name for f in fields(cls)}
        invalid = [key for key in cfg if key not in valid]
        if invalid:
            raise TypeError(f"Invalid configuration parameter(s): {', '.join(map(repr, invalid))}")
        if base is None:
            return cls(**cfg)
        return replace(base, **cfg)

    @classmethod
    def coerce(cls, cfg: Union[StatsConfig, Mapping[str, Any], None], base: StatsConfig = None, **kwargs) -> StatsConfig:
        "Combine the different ways a configuration can be specified"
        if isinstance(cfg, StatsConfig):
            base, cfg = cfg, {}
        elif cfg is None:
            cfg = {}
        return cls.from_dict({**cfg, **kwargs}, base)
