from __future__ import annotations

import warnings

import numpy as np
import sklearn

from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import ElasticNet, LinearRegression, LogisticRegression, Ridge
from sklearn.utils.fixes import parse_version
from sklearn.utils.validation import check_is_fitted

from county_election.config.constants import RND, THRESHOLD
from county_election.utils.errors import FitConvergenceError

# LogisticRegression(penalty=...) is deprecated from 1.8; l1_ratio and C carry the penalty instead
_L1_RATIO_API = parse_version(sklearn.__version__).release >= (1, 8)


def _check_penalty_mixture(penalty: float, mixture: float) -> None:
    if penalty is None or penalty < 0:
        raise ValueError(f"penalty must be >= 0, got {penalty}")
    if mixture is None or not (0.0 <= mixture <= 1.0):
        raise ValueError(f"mixture must lie in [0, 1], got {mixture}")


def _fit_strict(model, X, y, label: str):
    """Fit, turning convergence warnings and singular systems into FitConvergenceError."""
    with warnings.catch_warnings():
        warnings.simplefilter("error", category=ConvergenceWarning)
        try:
            model.fit(X, y)
        except ConvergenceWarning as exc:
            raise FitConvergenceError(f"{label} did not converge: {exc}") from exc
        except np.linalg.LinAlgError as exc:
            raise FitConvergenceError(f"{label} failed: {exc}") from exc
    return model


class PenalizedLinearRegression(RegressorMixin, BaseEstimator):
    """
    Squared-error regression with an elastic-net penalty, glmnet-style:

        1/(2n) * ||y - Xw||^2 + penalty * (mixture * |w|_1 + (1 - mixture)/2 * |w|^2)

    penalty == 0 is ordinary least squares, mixture == 1 is the Lasso and
    mixture == 0 is ridge (solved by Ridge with alpha = n * penalty, which
    is the same objective scaled by 2n).
    """

    def __init__(self, penalty: float = 1.0, mixture: float = 1.0, max_iter: int = 50_000,
                 tol: float = 1e-4, warm_start: bool = False):
        self.penalty = penalty
        self.mixture = mixture
        self.max_iter = max_iter
        self.tol = tol
        self.warm_start = warm_start

    def _make_model(self, n_rows: int):
        if self.penalty == 0:
            return LinearRegression()
        if self.mixture == 0:
            return Ridge(alpha=n_rows * self.penalty, random_state=RND)
        # reuse the previous coordinate-descent solution along a penalty path
        if self.warm_start and isinstance(getattr(self, "model_", None), ElasticNet):
            return self.model_.set_params(alpha=self.penalty, l1_ratio=self.mixture)
        return ElasticNet(
            alpha=self.penalty,
            l1_ratio=self.mixture,
            max_iter=self.max_iter,
            tol=self.tol,
            warm_start=self.warm_start,
            random_state=RND,
        )

    def fit(self, X, y):
        _check_penalty_mixture(self.penalty, self.mixture)
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)

        model = self._make_model(X.shape[0])
        try:
            _fit_strict(model, X, y, f"linear(penalty={self.penalty:g}, mixture={self.mixture:g})")
        except FitConvergenceError:
            # a half-fitted model must not seed the next warm start
            self.__dict__.pop("model_", None)
            raise

        self.model_ = model
        self.coef_ = np.ravel(model.coef_).copy()
        self.intercept_ = float(np.ravel(model.intercept_)[0])
        self.n_nonzero_ = int(np.count_nonzero(self.coef_))
        self.n_features_in_ = X.shape[1]
        return self

    def predict(self, X):
        check_is_fitted(self, "model_")
        return self.model_.predict(np.asarray(X, dtype=float))


class PenalizedLogisticRegression(ClassifierMixin, BaseEstimator):
    """
    Binary logistic regression with the same penalty/mixture parameterisation.

    The glmnet objective (1/n) * logloss + penalty * R(w) maps to sklearn's
    C * sum(logloss) + R(w) with C = 1 / (n * penalty). Labels are predicted
    by thresholding the positive-class probability.
    """

    def __init__(self, penalty: float = 1.0, mixture: float = 1.0, threshold: float = THRESHOLD,
                 max_iter: int = 10_000, tol: float = 1e-4, warm_start: bool = False):
        self.penalty = penalty
        self.mixture = mixture
        self.threshold = threshold
        self.max_iter = max_iter
        self.tol = tol
        self.warm_start = warm_start

    def _solver_params(self, n_rows: int) -> dict:
        solver = "lbfgs" if self.penalty == 0 or self.mixture == 0 else "saga"
        C = np.inf if self.penalty == 0 else 1.0 / (n_rows * self.penalty)
        if _L1_RATIO_API:
            # C = inf is the unpenalized fit; l1_ratio alone picks l2 / l1 / elastic net
            return {"solver": solver, "C": C, "l1_ratio": float(self.mixture)}

        if self.penalty == 0:
            return {"penalty": None, "solver": solver, "C": 1.0, "l1_ratio": None}
        if self.mixture == 0:
            return {"penalty": "l2", "solver": solver, "C": C, "l1_ratio": None}
        if self.mixture == 1:
            return {"penalty": "l1", "solver": solver, "C": C, "l1_ratio": None}
        return {"penalty": "elasticnet", "solver": solver, "C": C, "l1_ratio": self.mixture}

    def _make_model(self, n_rows: int) -> LogisticRegression:
        params = self._solver_params(n_rows)

        prev = getattr(self, "model_", None)
        if self.warm_start and isinstance(prev, LogisticRegression) and prev.get_params()["solver"] == params["solver"]:
            return prev.set_params(**params)
        return LogisticRegression(
            max_iter=self.max_iter,
            tol=self.tol,
            warm_start=self.warm_start,
            random_state=RND,
            **params,
        )

    def fit(self, X, y):
        _check_penalty_mixture(self.penalty, self.mixture)
        if not (0.0 < self.threshold < 1.0):
            raise ValueError(f"threshold must lie in (0, 1), got {self.threshold}")
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)

        classes = np.unique(y)
        if len(classes) != 2:
            raise FitConvergenceError(f"logistic fit needs exactly two classes, got {classes.tolist()}")

        model = self._make_model(X.shape[0])
        try:
            _fit_strict(model, X, y, f"logistic(penalty={self.penalty:g}, mixture={self.mixture:g})")
        except FitConvergenceError:
            self.__dict__.pop("model_", None)
            raise

        self.model_ = model
        self.classes_ = model.classes_
        self.coef_ = np.ravel(model.coef_).copy()
        self.intercept_ = float(np.ravel(model.intercept_)[0])
        self.n_nonzero_ = int(np.count_nonzero(self.coef_))
        self.n_features_in_ = X.shape[1]
        return self

    def predict_proba(self, X):
        check_is_fitted(self, "model_")
        return self.model_.predict_proba(np.asarray(X, dtype=float))

    def predict(self, X):
        p1 = self.predict_proba(X)[:, 1]
        return np.where(p1 >= self.threshold, self.classes_[1], self.classes_[0])


def make_estimator(family: str, penalty: float, mixture: float, **kwargs):
    if family == "linear":
        return PenalizedLinearRegression(penalty=penalty, mixture=mixture, **kwargs)
    if family == "logistic":
        return PenalizedLogisticRegression(penalty=penalty, mixture=mixture, **kwargs)
    raise ValueError(f"Unknown model family '{family}'. Expected linear/logistic.")
