"""Exception types raised by the compilers and sinks."""

from __future__ import annotations


class CssForgeError(Exception):
    """Base class for cssforge errors."""


class InvalidStyleError(CssForgeError, ValueError):
    """A style description or keyframe stop set has the wrong shape."""


class MaterializationError(CssForgeError):
    """A sink could not make rule text effective."""
