from .handler import WebSocketSubscriber, websocket_stream

__all__ = ["WebSocketSubscriber", "websocket_stream"]
