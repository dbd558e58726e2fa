"""Exception types raised by the composition engine."""


class CompositionError(Exception):
    """Base class for badge_svg errors."""


class PathParseError(CompositionError, ValueError):
    """Path data could not be parsed.

    Analyzers catch this and fall back to bounding-box geometry.
    """


class ViewBoxError(CompositionError, ValueError):
    """A viewBox value is not four finite numbers with positive size."""


class TemplateError(CompositionError, ValueError):
    """A template is structurally broken (missing fields, duplicate ids)."""
