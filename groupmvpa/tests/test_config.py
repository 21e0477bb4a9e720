# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
from dataclasses import FrozenInstanceError
import logging
import multiprocessing

import numpy as np
import pytest

from groupmvpa import DeprecatedParameter, StatsConfig, UnknownCorrectionMethod, configure, datasets, set_log_level
from groupmvpa._config import CONFIG
from groupmvpa.testing import ConfigContext


def test_configure():
    "Test session configuration"
    old = dict(CONFIG)
    try:
        configure(n_workers=False)
        assert CONFIG['n_workers'] == 0
        configure(n_workers=True)
        assert CONFIG['n_workers'] == multiprocessing.cpu_count()
        configure(n_workers=1)
        assert CONFIG['n_workers'] == 1
        configure(tqdm=False)
        assert CONFIG['tqdm'] is True
        with pytest.raises(TypeError):
            configure(n_workers='all')
        with pytest.raises(ValueError):
            configure(nice=20)
        # nothing is changed when an argument is invalid
        with pytest.raises(ValueError):
            configure(n_workers=0, nice=-25)
        assert CONFIG['n_workers'] == 1

        # logging
        logger = logging.getLogger('groupmvpa')
        configure(log=True)
        handler = CONFIG['log']
        assert handler in logger.handlers
        configure(log=False)
        assert handler not in logger.handlers
        assert CONFIG['log'] is False
    finally:
        CONFIG.update(old)
        logging.getLogger('groupmvpa').setLevel(logging.NOTSET)


def test_config_context():
    "Test temporary configuration"
    n_workers = CONFIG['n_workers']
    with ConfigContext('n_workers', 3):
        assert CONFIG['n_workers'] == 3
    assert CONFIG['n_workers'] == n_workers


def test_set_log_level():
    "Test setting the log level"
    logger = logging.getLogger('groupmvpa')
    try:
        set_log_level('debug')
        assert logger.level == logging.DEBUG
        set_log_level(logging.WARNING)
        assert logger.level == logging.WARNING
        with pytest.raises(ValueError):
            set_log_level('verbose')
        with pytest.raises(TypeError):
            set_log_level(1.5)
    finally:
        logger.setLevel(logging.NOTSET)


def test_stats_config():
    "Test StatsConfig validation"
    cfg = StatsConfig()
    assert cfg.mpcompcor_method == 'uncorrected'
    assert cfg.indiv_pval == cfg.cluster_pval == 0.05
    assert cfg.tail == 'both'
    assert cfg.mask is None
    assert cfg.n_permutations == 1000
    with pytest.raises(FrozenInstanceError):
        cfg.tail = 'left'

    assert StatsConfig(tail=0).tail == 'both'
    assert StatsConfig(tail='Left').tail == 'left'
    assert StatsConfig(tail=1).tail == 'right'
    with pytest.raises(ValueError):
        StatsConfig(tail='two')
    for pval in (0, 1, 1.5):
        with pytest.raises(ValueError):
            StatsConfig(indiv_pval=pval)
        with pytest.raises(ValueError):
            StatsConfig(cluster_pval=pval)
    with pytest.raises(ValueError):
        StatsConfig(n_permutations=0)
    with pytest.raises(UnknownCorrectionMethod):
        StatsConfig(mpcompcor_method='cluster')

    # mask is a read-only copy
    mask = [True, False, True]
    cfg = StatsConfig(mask=mask)
    assert cfg.mask.dtype == bool
    assert not cfg.mask.flags.writeable
    mask[0] = False
    assert cfg.mask[0]


def test_stats_config_from_dict():
    "Test creating StatsConfig from a mapping"
    cfg = StatsConfig.from_dict({'mpcompcor_method': 'fdr', 'cluster_pval': 0.1})
    assert cfg == StatsConfig('fdr', cluster_pval=0.1)
    # base
    base = StatsConfig('cluster_based', tail='right', mask=np.ones(10, bool))
    cfg = StatsConfig.from_dict({'indiv_pval': 0.01}, base)
    assert cfg.mpcompcor_method == 'cluster_based'
    assert cfg.tail == 'right'
    assert cfg.indiv_pval == 0.01
    assert cfg.mask.shape == (10,)
    # coerce
    assert StatsConfig.coerce(None) == StatsConfig()
    assert StatsConfig.coerce(None, base) == base
    assert StatsConfig.coerce(base, None, seed=2) == StatsConfig('cluster_based', tail='right', seed=2)
    assert StatsConfig.coerce({'seed': 2}, base, seed=3).seed == 3

    with pytest.raises(DeprecatedParameter) as exc_info:
        StatsConfig.from_dict({'one_two_tailed': 'two'})
    assert str(exc_info.value) == "The 'one_two_tailed' parameter has been replaced by the 'tail' parameter. Use 'both', 'left' or 'right'."
    with pytest.raises(TypeError):
        StatsConfig.from_dict({'n_perm': 100})


def test_datasets():
    "Test simulated results"
    stats = datasets.get_stats(3, n_subjects=6, n_times=30, effect=(10, 20))
    assert [s.cond_name for s in stats] == ['c0', 'c1', 'c2']
    for s in stats:
        assert s.indiv_class_over_time.shape == (6, 30)
        assert s.settings.measuremethod == 'AUC'
    # replicable
    y = datasets.simulate_decoding(seed=3)
    assert np.array_equal(y, datasets.simulate_decoding(seed=3))
    assert not np.array_equal(y, datasets.simulate_decoding(seed=4))
    assert datasets.simulate_decoding(tgm=True).shape == (10, 50, 50)
