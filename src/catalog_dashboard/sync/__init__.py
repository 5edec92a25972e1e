from .realtime import RealTimeSync

__all__ = ["RealTimeSync"]
