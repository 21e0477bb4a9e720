# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
from dataclasses import replace
import logging

import numpy as np
from numpy.testing import assert_array_equal, assert_allclose
import pytest
import scipy.stats

from groupmvpa import (
    DeprecatedParameter, Settings, ShapeError, StatsConfig, StatsResult, UnknownCorrectionMethod,
    average_stats, chance_level, datasets,
)
from groupmvpa.testing import assert_stats_equal


def effect_cluster(clusters):
    "The cluster reflecting the simulated effect at samples 40-49"
    clusters = [c for c in clusters if c.stop == 49]
    assert len(clusters) == 1
    return clusters[0]


def test_chance_level():
    "Test chance level for different measures"
    assert chance_level(Settings('accuracy', 2)) == 0.5
    assert chance_level(Settings('accuracy', 3)) == pytest.approx(1 / 3)
    assert chance_level(Settings('accuracy', 4, chance=0.3)) == 0.3
    assert chance_level(Settings('AUC', 4)) == 0.5
    assert chance_level(Settings('auc', 4)) == 0.5
    for measure in ('hr-far', 'dprime', 'hr', 'far', 'mr', 'cr', 'HR', 'DPrime', '\\muV', '\\muV difference', 'accuracy difference'):
        assert chance_level(Settings(measure, 2)) == 0, measure
    assert chance_level(Settings('accuracy', 3, model='FEM')) == 0
    # explicit chance has priority
    assert chance_level(Settings('dprime', 2, chance=0.5)) == 0.5
    assert Settings('AUC').with_chance().chance == 0.5


def test_stats_result():
    "Test StatsResult construction"
    y = datasets.simulate_decoding()
    res = StatsResult(y.mean(0), y, 'c0')
    assert res.n_subjects == 10
    assert res.shape == (50,)
    assert res.settings == Settings()
    assert repr(res) == "<StatsResult: 'c0', n_subjects=10, shape=(50,)>"
    # lists are converted to arrays
    res = StatsResult(list(y.mean(0)), y.tolist())
    assert isinstance(res.class_over_time, np.ndarray)

    with pytest.raises(ShapeError):
        StatsResult(y[None], y[None, None])
    with pytest.raises(ShapeError):
        StatsResult(y.mean(0), y[:, :40])
    with pytest.raises(ShapeError):
        StatsResult(y.mean(0), y[:0])


def test_average_stats():
    "Test averaging conditions with uncorrected test"
    stats = datasets.get_stats(2)
    y_copies = [s.indiv_class_over_time.copy() for s in stats]
    res = average_stats(stats)
    # inputs are not modified
    for s, y in zip(stats, y_copies):
        assert_array_equal(s.indiv_class_over_time, y)
        assert s.p_vals is None

    assert res.cond_name == 'average(c0,c1)'
    assert res.settings == Settings('AUC', 2, 0.5)
    assert res.cfg == StatsConfig()
    y = np.mean([s.indiv_class_over_time for s in stats], 0)
    assert_allclose(res.indiv_class_over_time, y)
    assert_allclose(res.class_over_time, np.mean([s.class_over_time for s in stats], 0))
    assert_allclose(res.std_error, scipy.stats.sem(y))
    assert_allclose(res.p_vals, scipy.stats.ttest_1samp(y, 0.5)[1])
    cluster = effect_cluster(res.p_struct)
    assert cluster.start <= 40
    assert cluster.sign == 1
    assert cluster.p == pytest.approx(res.p_vals[cluster.start:50].min())
    assert "mpcompcor_method='uncorrected'" in repr(res)

    # averaging identical results
    s = stats[0]
    res_1 = average_stats([s])
    res_2 = average_stats([s, s])
    assert_array_equal(res_1.class_over_time, s.class_over_time)
    assert_array_equal(res_2.class_over_time, s.class_over_time)
    assert_stats_equal(res_2, replace(res_1, cond_name='average(c0,c0)'))

    # averaging results of the average
    res_3 = average_stats([res_1])
    assert res_3.cond_name == 'average(average(c0))'
    assert_array_equal(res_3.p_vals, res_1.p_vals)


def test_average_stats_2d():
    "Test averaging temporal generalization matrices"
    stats = datasets.get_stats(2, n_times=20, tgm=True, effect=(10, 15))
    res = average_stats(stats)
    assert res.p_vals.shape == (20, 20)
    assert np.all(res.p_vals[10:15, 10:15] <= 0.05)
    clusters = [c for c in res.p_struct if c.start[0] <= 12 <= c.stop[0] and c.start[1] <= 12 <= c.stop[1]]
    assert len(clusters) == 1
    assert clusters[0].extent >= 25


def test_average_stats_methods():
    "Test different multiple comparison corrections"
    stats = datasets.get_stats(2)
    res = average_stats(stats)

    # none
    res_none = average_stats(stats, mpcompcor_method='none')
    assert_array_equal(res_none.p_vals, 0)
    assert res_none.p_struct is None
    assert_array_equal(res_none.std_error, res.std_error)

    # fdr
    res_fdr = average_stats(stats, mpcompcor_method='fdr')
    sig_fdr = res_fdr.p_vals < 1
    assert sig_fdr[40:].all()
    assert sig_fdr.sum() <= (res.p_vals <= 0.05).sum()
    assert_array_equal(res_fdr.p_vals[sig_fdr], res.p_vals[sig_fdr])
    cluster = effect_cluster(res_fdr.p_struct)
    assert cluster.sign == 1

    # cluster-based
    res_clu = average_stats(stats, mpcompcor_method='cluster_based')
    assert res_clu.cfg.mpcompcor_method == 'cluster_based'
    assert len(res_clu.p_struct) == 1
    cluster = res_clu.p_struct[0]
    assert cluster.stop == 49
    assert cluster.start in (39, 40)
    assert cluster.p == pytest.approx(1 / 1001)
    assert_array_equal(res_clu.p_vals[:39], 1)
    # fixed seed
    assert_stats_equal(average_stats(stats, mpcompcor_method='cluster_based'), res_clu)

    # one-tailed
    res_left = average_stats(stats, tail='left')
    assert np.all(res_left.p_vals[40:] > 0.5)
    assert all(c.sign == -1 for c in res_left.p_struct)


def test_average_stats_mask():
    "Test restricting the test to a region of interest"
    stats = datasets.get_stats(2)
    mask = np.zeros(50, bool)
    for method in ('uncorrected', 'fdr', 'cluster_based'):
        res = average_stats(stats, mpcompcor_method=method, mask=mask)
        assert_array_equal(res.p_vals, 1)
        assert res.p_struct == []

    mask[:45] = True
    for method in ('uncorrected', 'fdr', 'cluster_based'):
        res = average_stats(stats, mpcompcor_method=method, mask=mask)
        assert_array_equal(res.p_vals[45:], 1)
        assert np.all(res.p_vals[40:45] <= 0.05)
        assert all(c.stop < 45 for c in res.p_struct)

    with pytest.raises(ShapeError):
        average_stats(stats, mask=mask[:40])


def test_average_stats_single_subject(caplog):
    "Test that a single subject is not tested"
    y = datasets.simulate_decoding(n_subjects=2)
    settings = Settings('AUC')
    s1 = StatsResult(y[0], y[:1], 'c0', settings)
    s2 = StatsResult(y[1], y[1:], 'c1', settings)
    with caplog.at_level(logging.WARNING):
        res = average_stats([s1, s2])
    assert 'only 1 subject' in caplog.text
    assert res.n_subjects == 1
    assert_array_equal(res.class_over_time, y.mean(0))
    assert res.std_error is None
    assert res.p_struct is None
    # zero p-values here do not indicate significance
    assert_array_equal(res.p_vals, 0)
    assert res.p_vals.shape == (50,)

    res = average_stats([s1], mpcompcor_method='cluster_based')
    assert_array_equal(res.p_vals, 0)


def test_average_stats_config():
    "Test configuration of average_stats()"
    stats = datasets.get_stats(2)

    # configuration from the first result
    cfg = StatsConfig(mpcompcor_method='none')
    stats_none = [replace(s, cfg=cfg) for s in stats]
    res = average_stats(stats_none)
    assert res.cfg == cfg
    assert_array_equal(res.p_vals, 0)
    # override with mapping and keyword arguments
    res = average_stats(stats_none, {'indiv_pval': 0.01})
    assert res.cfg == StatsConfig(mpcompcor_method='none', indiv_pval=0.01)
    res = average_stats(stats_none, {'indiv_pval': 0.01}, mpcompcor_method='fdr')
    assert res.cfg == StatsConfig(mpcompcor_method='fdr', indiv_pval=0.01)
    # StatsConfig is used as given
    res = average_stats(stats_none, StatsConfig())
    assert res.cfg == StatsConfig()

    # invalid configurations
    with pytest.raises(UnknownCorrectionMethod) as exc_info:
        average_stats(stats, mpcompcor_method='bonferroni')
    assert str(exc_info.value) == "mpcompcor_method='bonferroni'; needs to be 'uncorrected', 'fdr', 'cluster_based' or 'none'"
    with pytest.raises(DeprecatedParameter):
        average_stats(stats, {'one_two_tailed': 'two'})
    with pytest.raises(TypeError):
        average_stats(stats, {'pval': 0.05})
    with pytest.raises(ValueError):
        average_stats(stats, indiv_pval=1.5)


def test_average_stats_shapes():
    "Test that results with different dimensions can't be averaged"
    stats_1 = datasets.get_stats(1)
    stats_2 = datasets.get_stats(1, n_times=40)
    with pytest.raises(ShapeError):
        average_stats(stats_1 + stats_2)
    stats_3 = datasets.get_stats(1, n_subjects=8)
    with pytest.raises(ShapeError):
        average_stats(stats_1 + stats_3)
    with pytest.raises(ValueError):
        average_stats([])
    # configuration is validated before the data
    with pytest.raises(UnknownCorrectionMethod):
        average_stats(stats_1 + stats_2, mpcompcor_method='bonferroni')
