class ElementalReactionsError(Exception):
    """Base exception for the elemental reactions engine."""


class ConfigError(ElementalReactionsError):
    """Raised when a requested configuration file cannot be loaded in strict mode."""


class UnknownElementError(ElementalReactionsError):
    """Raised by strict element lookups for names that map to no element."""
