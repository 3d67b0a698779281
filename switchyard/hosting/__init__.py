"""
Hosting adapters.
"""

from .asgi import create_app, create_router, create_websocket_router
from .sockets import SocketSession

__all__ = ["SocketSession", "create_app", "create_router", "create_websocket_router"]
