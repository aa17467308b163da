"""
Configuration settings for the Tennis Predictor.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Output files
CACHE_DIR = os.getenv(
    'TENNIS_PREDICTOR_CACHE_DIR',
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)
PREDICTIONS_FILE = os.path.join(CACHE_DIR, 'latest_predictions.json')

# History configuration
REQUESTED_MATCHES_PER_PLAYER = int(os.getenv('REQUESTED_MATCHES_PER_PLAYER', '5'))

# Audit configuration
AUDIT_TOLERANCE_PP = float(os.getenv('AUDIT_TOLERANCE_PP', '1.0'))
AUDIT_TOP_DIVERGENCES = 10

# Ensemble configuration
BASE_MODEL_WEIGHTS = {
    'logreg': 0.32,
    'markov': 0.28,
    'bradley': 0.20,
    'pca': 0.20,
}
MIN_RELIABILITY = 0.05
NEUTRAL_PROBABILITY = 50.0
NEUTRAL_EPSILON = 1e-9

# Logistic-style model
LOGISTIC_STEEPNESS = 5.0

# Markov chain model
MARKOV_ITERATIONS = 20
MARKOV_DEFAULT_SERVE = 0.6
MARKOV_DEFAULT_RETURN = 0.4
MARKOV_BLEND = 0.8  # share of the chain result, the rest is the comparison score
MARKOV_COVERAGE_FLOOR = 0.4

# PCA projection model
PCA_ITERATIONS = 30
PCA_PROJECTION_SCALE = 1.5
PCA_MIN_SAMPLES = 2
PCA_FULL_RELIABILITY_SAMPLES = 10

# Confidence score bounds
CONFIDENCE_MIN = 0.5
CONFIDENCE_MAX = 0.92
CONFIDENCE_MAX_DISPERSION_PENALTY = 0.12

# Model names for display
MODEL_NAMES = {
    'logreg': 'Logistic Style',
    'markov': 'Markov Chain',
    'bradley': 'Bradley-Terry',
    'pca': 'PCA Projection',
}

# Module labels used in prediction summaries
MODULE_LABELS = {
    'logreg': 'LOGREG',
    'markov': 'MARKOV',
    'bradley': 'BRADLEY',
    'pca': 'PCA',
}
