"""
Win-probability model.

Provides the logistic regression training engine and the per-sport
training pipeline.
"""
from .logistic import (
    TrainedModel,
    TrainingResult,
    TrainingStats,
    compute_normalization,
    feature_importance,
    sigmoid,
    train_logistic_regression,
)
from .trainer import TrainingConfig, prepare_training_rows, train_sport_model

__all__ = [
    'TrainedModel',
    'TrainingResult',
    'TrainingStats',
    'compute_normalization',
    'feature_importance',
    'sigmoid',
    'train_logistic_regression',
    'TrainingConfig',
    'prepare_training_rows',
    'train_sport_model',
]
