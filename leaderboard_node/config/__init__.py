from .runtime import AffiliateSettings, RuntimeSettings

__all__ = ["AffiliateSettings", "RuntimeSettings"]
