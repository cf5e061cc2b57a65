from .hub import BroadcastHub, Subscriber, encode_message

__all__ = ["BroadcastHub", "Subscriber", "encode_message"]
