"""Exceptions raised while validating and encoding charts."""
from __future__ import annotations


class ChartError(Exception):
    """A chart or project is configured inconsistently."""


class ChartContractError(RuntimeError):
    """A part does not honour the serial get/set contract.

    This signals a bug in a custom part rather than a data mistake.
    """
