"""
Exceptions raised by the grid index.

Every error derives from GridError so callers can catch the whole family,
and from the closest builtin so generic handlers (ValueError, LookupError)
keep working.
"""


class GridError(Exception):
    """Base class for all grid index errors."""


class ParseError(GridError, ValueError):
    """Malformed string input."""


class InvalidIndex(GridError, ValueError):
    """Structurally inconsistent bit pattern (or pentagon deleted-wedge digit)."""


class InvalidResolution(GridError, ValueError):
    """Target resolution is on the wrong side of the current one, or outside [0, 15]."""


class NoParent(GridError, LookupError):
    """Parent requested for a resolution 0 cell."""


class NoChild(GridError, LookupError):
    """Child requested for a cell at the finest resolution."""


class OutOfRange(GridError, IndexError):
    """A field accessor or encoder was given a value outside its bit field."""


class InvalidRadius(GridError, ValueError):
    """Negative traversal radius."""


class ProjectionError(GridError, RuntimeError):
    """The projection engine is unavailable or produced an inconsistent topology."""
