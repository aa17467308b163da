"""
PCA projection model built on power iteration.
"""

from typing import Optional, Tuple

import numpy as np

from .base import BaseModel, clamp, sigmoid
from ..aggregation import PlayerAggregate
from ..comparison import ComparisonScore
from ..config import PCA_ITERATIONS, PCA_PROJECTION_SCALE, PCA_MIN_SAMPLES
from ..metrics import PCA_FEATURES, MetricKey


def feature_matrix(
    home: PlayerAggregate,
    away: PlayerAggregate,
    features: Tuple[MetricKey, ...] = PCA_FEATURES
) -> np.ndarray:
    """
    Stack both players' match rows (A first) into an n x m matrix.

    Missing or non-finite cells are NaN.
    """
    rows = list(home.match_rows) + list(away.match_rows)
    matrix = np.full((len(rows), len(features)), np.nan)
    for i, row in enumerate(rows):
        for j, feature in enumerate(features):
            value = row.get(feature)
            if value is not None and np.isfinite(value):
                matrix[i, j] = value
    return matrix


def column_means(matrix: np.ndarray) -> np.ndarray:
    """Mean of the available values per column, 0 for empty columns."""
    means = np.zeros(matrix.shape[1])
    for j in range(matrix.shape[1]):
        column = matrix[:, j]
        present = column[np.isfinite(column)]
        if present.size > 0:
            means[j] = present.mean()
    return means


def sample_stds(matrix: np.ndarray) -> np.ndarray:
    """Sample standard deviation per column; 1 where it is undefined or zero."""
    if matrix.shape[0] < 2:
        return np.ones(matrix.shape[1])
    stds = matrix.std(axis=0, ddof=1)
    return np.where(np.isfinite(stds) & (stds > 0), stds, 1.0)


def covariance_matrix(z: np.ndarray) -> np.ndarray:
    """Sample covariance of already centered data."""
    denominator = max(z.shape[0] - 1, 1)
    return (z.T @ z) / denominator


def dominant_eigenvector(cov: np.ndarray, iterations: int = PCA_ITERATIONS) -> Optional[np.ndarray]:
    """
    First principal direction by power iteration.

    Starts from the uniform unit vector and runs a fixed number of
    multiply-and-normalize steps. The sign is fixed so that the first
    component is non-negative. Returns None if the norm ever becomes
    zero or non-finite.
    """
    m = cov.shape[0]
    vector = np.full(m, 1 / np.sqrt(m))
    for _ in range(iterations):
        nxt = cov @ vector
        norm = np.sqrt(np.sum(nxt * nxt))
        if not np.isfinite(norm) or norm <= 0:
            return None
        vector = nxt / norm

    if vector[0] < 0:
        vector = -vector
    return vector


class PCAProjectionModel(BaseModel):
    """
    Projects both players onto the first principal component of their
    pooled match history and compares the scores.

    Steps:
    1. Pool all match rows of both players into an n x m feature matrix
    2. Impute missing cells with the column mean
    3. Standardize columns (sample std, 1 when degenerate)
    4. Covariance matrix and its dominant eigenvector by power iteration
    5. Project each player's means vector, sigmoid of the scaled difference
    """

    def __init__(
        self,
        iterations: int = PCA_ITERATIONS,
        scale: float = PCA_PROJECTION_SCALE,
        features: Tuple[MetricKey, ...] = PCA_FEATURES
    ):
        super().__init__(
            name="PCA Projection",
            model_id="pca"
        )
        self.iterations = iterations
        self.scale = scale
        self.features = features

    def _player_vector(self, player: PlayerAggregate, fallback: np.ndarray) -> np.ndarray:
        vector = fallback.copy()
        for j, feature in enumerate(self.features):
            value = player.means.get(feature)
            if value is not None and np.isfinite(value):
                vector[j] = value
        return vector

    def predict(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Optional[float]:
        x = feature_matrix(home, away, self.features)
        if x.shape[0] < PCA_MIN_SAMPLES:
            return None

        means = column_means(x)
        x = np.where(np.isfinite(x), x, means)
        stds = sample_stds(x)

        z = (x - means) / stds
        pc1 = dominant_eigenvector(covariance_matrix(z), self.iterations)
        if pc1 is None:
            return None

        z1 = (self._player_vector(home, means) - means) / stds
        z2 = (self._player_vector(away, means) - means) / stds
        delta = float(pc1 @ z1 - pc1 @ z2)
        if not np.isfinite(delta):
            return None
        return clamp(sigmoid(delta * self.scale) * 100, 0, 100)
