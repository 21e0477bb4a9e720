# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Group-level statistics for multivariate pattern analysis of EEG.

Average decoding results across conditions and test them against chance,
with uncorrected, false discovery rate or cluster-based permutation
correction for multiple comparisons.
"""
from . import datasets
from ._config import configure
from ._utils import set_log_level
from ._exceptions import DeprecatedParameter, ShapeError, UnknownCorrectionMethod
from ._results import Settings, StatsResult, chance_level
from ._stats_config import StatsConfig
from ._stats.clusters import Cluster, find_clusters
from ._stats.stats import fdr
from ._stats.test import StatTest, TTest, ttest
from ._stats.testnd import ClusterPermutationResult, cluster_permutation_test
from ._average import average_stats


__version__ = '0.1.0'
