from .dataset import RegressionData

__all__ = [
    "RegressionData",
]
