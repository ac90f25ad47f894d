"""Caller and callee handlers of the two-function trace chain."""

from tracechain.functions.caller import make_handler as make_caller_handler
from tracechain.functions.callee import make_handler as make_callee_handler

__all__ = ["make_caller_handler", "make_callee_handler"]
