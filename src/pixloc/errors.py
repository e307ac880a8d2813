"""
Named error conditions raised by the loading layers.
"""


class PixlocError(Exception):
    """
    Base class for pixloc specific failures.
    """


class MalformedTemplateError(PixlocError, ValueError):
    """
    A landmark image or its metadata could not be turned into a template.
    """


class MalformedMapError(PixlocError, ValueError):
    """
    A map document is structurally invalid or references unknown landmarks.
    """


class MalformedConfigError(PixlocError, ValueError):
    """
    A capture configuration document is invalid.
    """


__all__ = ["MalformedConfigError", "MalformedMapError", "MalformedTemplateError", "PixlocError"]
