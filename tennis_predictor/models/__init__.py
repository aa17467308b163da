"""
Win-probability models for tennis match forecasting.
"""

from .base import BaseModel, ModelOutput
from .logistic import LogisticStyleModel
from .markov import MarkovChainModel
from .bradley_terry import BradleyTerryModel
from .pca import PCAProjectionModel

__all__ = [
    # Base
    "BaseModel",
    "ModelOutput",
    # Models
    "LogisticStyleModel",
    "MarkovChainModel",
    "BradleyTerryModel",
    "PCAProjectionModel",
]
