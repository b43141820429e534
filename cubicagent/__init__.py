"""Cubicler-compatible AI agent: a bounded model/tool loop behind one HTTP endpoint."""
import logging

__version__ = "0.1.0"

logging.getLogger("cubicagent").addHandler(logging.NullHandler())
