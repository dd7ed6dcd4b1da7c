"""BeanRoute Web Push subscription client."""

__version__ = "0.1.0"
