"""
L2-regularized logistic regression trained with full-batch gradient descent.

Features are z-score normalized with a population standard deviation; the
means and stds are frozen into the model so prediction applies exactly the
same transform. Initialization is all-zero and every epoch uses the full
batch, so training is deterministic for fixed inputs and hyperparameters.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# exp() overflows float64 a little past 709
Z_CLIP = 500.0


def sigmoid(z):
    """Logistic function, clamped to avoid exp overflow."""
    z = np.clip(z, -Z_CLIP, Z_CLIP)
    return 1.0 / (1.0 + np.exp(-z))


def compute_normalization(X: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Column means and population stds (divisor n); a zero std becomes 1."""
    means = X.mean(axis=0)
    stds = X.std(axis=0)
    stds = np.where(stds == 0, 1.0, stds)
    return means, stds


def normalize(X: np.ndarray, means: np.ndarray, stds: np.ndarray) -> np.ndarray:
    return (X - means) / stds


@dataclass
class TrainingResult:
    """Raw output of one training run."""

    weights: np.ndarray
    bias: float
    means: np.ndarray
    stds: np.ndarray
    accuracy: float
    sample_count: int
    final_loss: float


def train_logistic_regression(
    X,
    y,
    learning_rate: float = 0.1,
    epochs: int = 500,
    l2_lambda: float = 0.01,
    cancel_token: Optional[CancellationToken] = None,
) -> TrainingResult:
    """
    Fit logistic regression weights with batch gradient descent.

    Args:
        X: (n_samples, n_features) raw feature matrix
        y: (n_samples,) binary labels
        learning_rate: Step size
        epochs: Number of full-batch iterations
        l2_lambda: L2 penalty on the weights (the bias is not penalized)
        cancel_token: Checked before every epoch

    Returns:
        TrainingResult with weights, bias, normalization and training accuracy
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if X.ndim != 2 or X.shape[0] == 0:
        raise ValueError("X must be a non-empty 2-D matrix")
    if y.shape[0] != X.shape[0]:
        raise ValueError(f"X has {X.shape[0]} rows but y has {y.shape[0]} labels")

    n_samples, n_features = X.shape
    means, stds = compute_normalization(X)
    X_norm = normalize(X, means, stds)

    weights = np.zeros(n_features)
    bias = 0.0

    for epoch in range(epochs):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("training")

        predictions = sigmoid(X_norm @ weights + bias)
        errors = predictions - y

        grad_w = (X_norm.T @ errors) / n_samples + l2_lambda * weights
        grad_b = errors.mean()

        weights = weights - learning_rate * grad_w
        bias = bias - learning_rate * grad_b

        if epoch % 100 == 0:
            logger.debug(f"Epoch {epoch}: loss={_log_loss(predictions, y):.4f}")

    predictions = sigmoid(X_norm @ weights + bias)
    accuracy = float(np.mean((predictions >= 0.5) == (y == 1)))
    final_loss = _log_loss(predictions, y)

    logger.info(
        f"Trained on {n_samples} samples x {n_features} features: "
        f"accuracy={accuracy:.3f}, loss={final_loss:.4f}"
    )

    return TrainingResult(
        weights=weights,
        bias=float(bias),
        means=means,
        stds=stds,
        accuracy=accuracy,
        sample_count=n_samples,
        final_loss=final_loss,
    )


def _log_loss(predictions: np.ndarray, y: np.ndarray) -> float:
    p = np.clip(predictions, 1e-12, 1 - 1e-12)
    return float(-np.mean(y * np.log(p) + (1 - y) * np.log(1 - p)))


def feature_importance(features: Sequence[str], weights: Sequence[float]) -> List[Tuple[str, float]]:
    """Feature names ranked by |weight| on the normalized scale, largest first."""
    pairs = [(name, abs(float(w))) for name, w in zip(features, weights)]
    return sorted(pairs, key=lambda pair: pair[1], reverse=True)


@dataclass(frozen=True)
class TrainedModel:
    """Immutable trained model for one sport.

    Superseded by retraining, never mutated.
    """

    features: Tuple[str, ...]
    weights: Tuple[float, ...]
    bias: float
    means: Tuple[float, ...]
    stds: Tuple[float, ...]
    sport: Optional[str] = None

    def __post_init__(self):
        lengths = {len(self.features), len(self.weights), len(self.means), len(self.stds)}
        if len(lengths) != 1:
            raise ValueError(
                f"Model vectors differ in length: features={len(self.features)}, "
                f"weights={len(self.weights)}, means={len(self.means)}, stds={len(self.stds)}"
            )

    @classmethod
    def from_training(
        cls, result: TrainingResult, features: Sequence[str], sport: Optional[str] = None
    ) -> "TrainedModel":
        return cls(
            features=tuple(features),
            weights=tuple(float(w) for w in result.weights),
            bias=float(result.bias),
            means=tuple(float(m) for m in result.means),
            stds=tuple(float(s) for s in result.stds),
            sport=sport,
        )

    def decision_value(self, vector: Sequence[float]) -> float:
        """Log-odds for a derived (not yet normalized) feature vector."""
        if len(vector) != len(self.features):
            raise ValueError(
                f"Expected {len(self.features)} features, got {len(vector)}"
            )
        x = normalize(
            np.asarray(vector, dtype=float),
            np.asarray(self.means),
            np.asarray(self.stds),
        )
        return float(self.bias + x @ np.asarray(self.weights))

    def predict_proba(self, vector: Sequence[float]) -> float:
        """Probability that side 1 wins."""
        return float(sigmoid(self.decision_value(vector)))

    def feature_importance(self) -> List[Tuple[str, float]]:
        return feature_importance(self.features, self.weights)

    def to_dict(self) -> Dict[str, Any]:
        """Model parameters in the persisted ``modelParams`` shape."""
        return {
            "weights": list(self.weights),
            "bias": self.bias,
            "means": list(self.means),
            "stds": list(self.stds),
            "features": list(self.features),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], sport: Optional[str] = None) -> "TrainedModel":
        return cls(
            features=tuple(data["features"]),
            weights=tuple(float(w) for w in data["weights"]),
            bias=float(data["bias"]),
            means=tuple(float(m) for m in data["means"]),
            stds=tuple(float(s) for s in data["stds"]),
            sport=sport,
        )


@dataclass
class TrainingStats:
    """Summary of a training run."""

    accuracy: float
    sample_count: int
    feature_importance: List[Tuple[str, float]] = field(default_factory=list)
    trained_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "sampleCount": self.sample_count,
            "featureImportance": [
                {"feature": name, "importance": value}
                for name, value in self.feature_importance
            ],
            "trainedAt": self.trained_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingStats":
        trained_at = data.get("trainedAt")
        return cls(
            accuracy=float(data.get("accuracy", 0.0)),
            sample_count=int(data.get("sampleCount", 0)),
            feature_importance=[
                (item["feature"], float(item["importance"]))
                for item in data.get("featureImportance", [])
            ],
            trained_at=datetime.fromisoformat(trained_at) if trained_at else datetime.now(),
        )
