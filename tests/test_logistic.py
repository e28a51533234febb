"""Tests for the logistic regression engine and training pipeline."""

import numpy as np
import pytest

from sports_edge.config.sports import get_sport
from sports_edge.exceptions import InsufficientDataError, OperationCancelledError
from sports_edge.ml.logistic import (
    TrainedModel,
    TrainingStats,
    compute_normalization,
    feature_importance,
    sigmoid,
    train_logistic_regression,
)
from sports_edge.ml.trainer import TrainingConfig, train_sport_model
from sports_edge.utils.cancellation import CancellationToken


class TestNormalization:
    """Test z-score normalization."""

    def test_population_std(self):
        """[10, 20, 30] has mean 20 and population std sqrt(200/3)."""
        means, stds = compute_normalization(np.array([[10.0], [20.0], [30.0]]))
        assert means[0] == pytest.approx(20.0)
        assert stds[0] == pytest.approx(8.165, abs=1e-3)

    def test_constant_column(self):
        """A constant column gets std 1 instead of 0."""
        means, stds = compute_normalization(np.array([[5.0, 1.0], [5.0, 2.0]]))
        assert stds[0] == 1.0
        assert means[0] == 5.0


class TestSigmoid:
    """Test the clamped logistic function."""

    def test_midpoint(self):
        assert sigmoid(0.0) == pytest.approx(0.5)

    def test_extreme_inputs_do_not_overflow(self):
        """Huge logits saturate without warnings or NaN."""
        values = sigmoid(np.array([-1e6, 1e6]))
        assert values[0] == pytest.approx(0.0)
        assert values[1] == pytest.approx(1.0)
        assert np.all(np.isfinite(values))


class TestTrainLogisticRegression:
    """Test gradient descent training."""

    def _data(self):
        rng = np.random.default_rng(7)
        X = rng.normal(size=(60, 2))
        y = (X[:, 0] - 0.5 * X[:, 1] > 0).astype(float)
        return X, y

    def test_deterministic(self):
        """Same inputs and hyperparameters give identical weights."""
        X, y = self._data()
        first = train_logistic_regression(X, y, epochs=200)
        second = train_logistic_regression(X, y, epochs=200)
        assert np.array_equal(first.weights, second.weights)
        assert first.bias == second.bias

    def test_learns_separable_data(self):
        """Training accuracy is high on a linearly separable problem."""
        X, y = self._data()
        result = train_logistic_regression(X, y)
        assert result.accuracy > 0.9
        assert result.weights[0] > 0 > result.weights[1]
        assert result.sample_count == 60

    def test_regularization_shrinks_weights(self):
        """A larger L2 penalty gives smaller weights."""
        X, y = self._data()
        loose = train_logistic_regression(X, y, l2_lambda=0.0)
        tight = train_logistic_regression(X, y, l2_lambda=1.0)
        assert np.linalg.norm(tight.weights) < np.linalg.norm(loose.weights)

    def test_mismatched_labels(self):
        """X and y must have the same number of rows."""
        with pytest.raises(ValueError):
            train_logistic_regression(np.ones((3, 2)), np.ones(2))

    def test_cancellation(self):
        """A cancelled token stops training."""
        X, y = self._data()
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            train_logistic_regression(X, y, cancel_token=token)


class TestTrainedModel:
    """Test the immutable model."""

    def _model(self):
        return TrainedModel(
            features=("a", "b"),
            weights=(2.0, -1.0),
            bias=0.1,
            means=(1.0, 0.0),
            stds=(2.0, 1.0),
            sport="nfl",
        )

    def test_predict_uses_stored_normalization(self):
        """Prediction applies the training means and stds."""
        model = self._model()
        z = 0.1 + 2.0 * (3.0 - 1.0) / 2.0 - 1.0 * 0.5
        assert model.predict_proba([3.0, 0.5]) == pytest.approx(1 / (1 + np.exp(-z)))

    def test_length_mismatch_rejected(self):
        """Model vectors must align with the feature list."""
        with pytest.raises(ValueError):
            TrainedModel(features=("a",), weights=(1.0, 2.0), bias=0.0, means=(0.0,), stds=(1.0,))

    def test_wrong_vector_length(self):
        """Prediction vectors must match the feature count."""
        with pytest.raises(ValueError):
            self._model().predict_proba([1.0])

    def test_dict_round_trip(self):
        """to_dict/from_dict preserve parameters."""
        model = self._model()
        assert TrainedModel.from_dict(model.to_dict(), sport="nfl") == model

    def test_feature_importance_ranked(self):
        """Importance is |weight|, largest first."""
        assert feature_importance(["a", "b", "c"], [0.1, -2.0, 1.0]) == [("b", 2.0), ("c", 1.0), ("a", 0.1)]

    def test_stats_round_trip(self):
        """TrainingStats serializes with camelCase keys."""
        stats = TrainingStats(accuracy=0.7, sample_count=40, feature_importance=[("a", 1.5)])
        data = stats.to_dict()
        assert data["sampleCount"] == 40
        restored = TrainingStats.from_dict(data)
        assert restored.feature_importance == [("a", 1.5)]
        assert restored.trained_at == stats.trained_at


class TestTrainSportModel:
    """Test the end-to-end training pipeline."""

    def test_trains_on_season(self, season_rows):
        """A clearly separable season trains an accurate model."""
        model, stats = train_sport_model(season_rows, get_sport("nfl"), TrainingConfig())

        assert model.sport == "nfl"
        assert model.features == get_sport("nfl").features
        assert stats.sample_count == 80
        assert stats.accuracy > 0.8
        assert len(stats.feature_importance) == 4

    def test_insufficient_rows(self, season_rows):
        """Five rows are not enough to train."""
        with pytest.raises(InsufficientDataError):
            train_sport_model(season_rows[:5], get_sport("nfl"), TrainingConfig())

    def test_row_order_does_not_matter(self, season_rows):
        """Rows are sorted before form is computed."""
        model_a, _ = train_sport_model(season_rows, get_sport("nfl"), TrainingConfig(epochs=50))
        model_b, _ = train_sport_model(list(reversed(season_rows)), get_sport("nfl"), TrainingConfig(epochs=50))
        assert model_a.weights == pytest.approx(model_b.weights)

    def test_small_season_predicts_favorite(self, make_rows):
        """Twenty-five games are enough to price a clear favorite above 60%."""
        from sports_edge.analysis.edge_calculator import predict

        model, stats = train_sport_model(make_rows(25), get_sport("nfl"), TrainingConfig())
        prediction = predict(
            model,
            {"team1_moneyline": -200, "team2_moneyline": 170, "team1_last5": 0.8, "team2_last5": 0.3},
        )

        assert stats.accuracy > 0.8
        assert prediction.p1 > 0.6
