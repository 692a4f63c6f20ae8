from .app import create_app
from .deps import ServiceContainer

__all__ = ["create_app", "ServiceContainer"]
