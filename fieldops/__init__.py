# Import all models to ensure they are registered with SQLModel
from fieldops.models import resource
from fieldops.core import config, exceptions, intervals

__all__ = [
    "resource",
    "config",
    "exceptions",
    "intervals",
]
