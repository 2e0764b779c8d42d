"""
Console front end - line commands dispatched to the notebook services
"""
from .handlers import ConsoleCommandHandler

__all__ = ["ConsoleCommandHandler"]
