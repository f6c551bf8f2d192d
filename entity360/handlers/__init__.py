"""Command handler boundary."""

from entity360.handlers.commands import CommandType, parse_command
from entity360.handlers.context import HandlerContext
from entity360.handlers.dispatcher import HANDLERS, dispatch

__all__ = ["CommandType", "parse_command", "HandlerContext", "HANDLERS", "dispatch"]
