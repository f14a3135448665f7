from __future__ import annotations


class DataLoadError(ValueError):
    """Input table is missing, unreadable, or does not have the expected shape."""


class FitConvergenceError(RuntimeError):
    """A model could not be fitted for the requested hyperparameters."""


class PredictionError(ValueError):
    """New data cannot be scored by a fitted model."""
