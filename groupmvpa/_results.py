# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Group-level decoding results"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from ._exceptions import ShapeError
from ._stats.clusters import Cluster
from ._text import n_of

if TYPE_CHECKING:
    from ._stats_config import StatsConfig


ZERO_CHANCE_MEASURES = ('hr-far', 'dprime', 'hr', 'far', 'mr', 'cr')


@dataclass(frozen=True)
class Settings:
    """Settings of the first-level analysis that produced a result

    Parameters
    ----------
    measuremethod
        Performance measure of the classifier (e.g., ``'accuracy'``,
        ``'AUC'``, ``'dprime'``, ``'hr-far'``) or of the signal amplitude
        (``'\\muV'``).
    nconds
        Number of stimulus classes.
    chance
        Explicit chance level (overrides the level implied by
        ``measuremethod`` and ``nconds``).
    model
        ``'BDM'`` (backward decoding model) or ``'FEM'`` (forward encoding
        model).
    """
    measuremethod: str = 'accuracy'
    nconds: int = 2
    chance: Optional[float] = None
    model: str = 'BDM'

    def with_chance(self) -> Settings:
        "Copy of the settings with the chance level resolved"
        return replace(self, chance=chance_level(self))


def chance_level(settings: Settings) -> float:
    """Value that decoding performance is tested against

    In order of priority: ``settings.chance``; 0 for signal detection
    measures, amplitudes, differences and forward encoding models; 0.5 for
    AUC; otherwise ``1 / nconds``.
    """
    if settings.chance is not None:
        return settings.chance
    measure = settings.measuremethod
    if (measure.lower() in ZERO_CHANCE_MEASURES or
            measure[:4].lower() == '\\muv' or
            'difference' in measure or
            settings.model.upper() == 'FEM'):
        return 0
    elif measure.lower() == 'auc':
        return .5
    else:
        return 1 / settings.nconds


@dataclass
class StatsResult:
    """Group-level decoding result

    Parameters
    ----------
    class_over_time : array  (n_test_times [, n_train_times])
        Group average decoding performance.
    indiv_class_over_time : array  (n_subjects, n_test_times [, n_train_times])
        Decoding performance for each subject.
    cond_name
        Condition(s) or contrast that the result describes.
    settings
        Settings of the first-level analysis.
    std_error : array  (n_test_times [, n_train_times])
        Standard error of the mean across subjects (``None`` for a single
        subject or for results that have not been tested).
    p_vals : array  (n_test_times [, n_train_times])
        P-value for each sample (``None`` for results that have not been
        tested).
    p_struct : list of Cluster
        Significant clusters (``None`` when no test was performed).
    cfg : StatsConfig
        Configuration of the test that produced the result.

    Notes
    -----
    Results are never modified in place; operations return new results.
    """
    class_over_time: np.ndarray
    indiv_class_over_time: np.ndarray
    cond_name: str = ''
    settings: Settings = Settings()
    std_error: Optional[np.ndarray] = None
    p_vals: Optional[np.ndarray] = None
    p_struct: Optional[List[Cluster]] = None
    cfg: Optional[StatsConfig] = None

    def __post_init__(self):
        self.class_over_time = np.asarray(self.class_over_time)
        self.indiv_class_over_time = np.asarray(self.indiv_class_over_time)
        if self.class_over_time.ndim not in (1, 2):
            raise ShapeError(f"class_over_time with shape {self.class_over_time.shape}; needs 1 (time) or 2 (time x time) dimensions")
        elif self.indiv_class_over_time.shape[1:] != self.class_over_time.shape:
            raise ShapeError.from_shapes("indiv_class_over_time needs shape (n_subjects, *class_over_time.shape)", [self.indiv_class_over_time.shape, self.class_over_time.shape])
        elif len(self.indiv_class_over_time) < 1:
            raise ShapeError("indiv_class_over_time contains no subjects")

    def __repr__(self):
        items = [repr(self.cond_name), f"n_subjects={self.n_subjects}", f"shape={self.shape}"]
        if self.cfg is not None:
            items.append(f"mpcompcor_method={self.cfg.mpcompcor_method!r}")
        if self.p_struct is not None:
            items.append(n_of(len(self.p_struct), 'cluster'))
        return f"<StatsResult: {', '.join(items)}>"

    @property
    def n_subjects(self) -> int:
        return len(self.indiv_class_over_time)

    @property
    def shape(self) -> tuple:
        return self.class_over_time.shape
