from .config import ClientConfig, FeatureFlags

__all__ = ["ClientConfig", "FeatureFlags"]
