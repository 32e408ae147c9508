from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd


@dataclass
class RFEStep:
    """One evaluated subset."""
    step: int
    n_features: int
    metric: float
    features: List[str]
    importance: pd.Series
    eliminated: Optional[str] = None
    n_failed_folds: int = 0


@dataclass
class FeatureRanking:
    """
    Features ordered most to least important.

    Survivors of the final subset come first, ordered by their last mean
    importance, and have no elimination step. Eliminated features follow in
    reverse elimination order, so the first feature dropped ranks last.
    """
    table: pd.DataFrame

    @property
    def features(self) -> List[str]:
        return self.table['feature'].tolist()

    def rank_of(self, feature: str) -> int:
        return int(self.table.set_index('feature').loc[feature, 'rank'])

    def top(self, n: int) -> List[str]:
        return self.features[:n]

    def __len__(self) -> int:
        return len(self.table)


@dataclass
class RFEResult:
    ranking_model: str
    metric_name: str
    steps: List[RFEStep] = field(default_factory=list)
    best_features: List[str] = field(default_factory=list)
    best_metric: float = float('nan')
    ranking: Optional[FeatureRanking] = None

    @property
    def subset_sizes(self) -> List[int]:
        return [s.n_features for s in self.steps]

    def history_frame(self) -> pd.DataFrame:
        """Step table: step, n_features, metric, eliminated feature, failed folds, features."""
        return pd.DataFrame([
            {
                'step': s.step,
                'n_features': s.n_features,
                self.metric_name: s.metric,
                'eliminated': s.eliminated,
                'n_failed_folds': s.n_failed_folds,
                'features': ", ".join(s.features),
            }
            for s in self.steps
        ])
