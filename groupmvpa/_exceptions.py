# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Exceptions used throughout groupmvpa"""
from typing import Collection, Sequence

from ._text import enumeration


class ShapeError(ValueError):
    "Arrays that need to be aligned have mismatching shapes"

    @classmethod
    def from_shapes(cls, message: str, shapes: Sequence[tuple]):
        unique = []
        for shape in shapes:
            if shape not in unique:
                unique.append(shape)
        desc = ', '.join(map(str, unique))
        return cls(f"{message}: {desc}")


class UnknownCorrectionMethod(ValueError):
    "Multiple comparison correction method that is not implemented"

    def __init__(self, method: str, valid: Collection[str]):
        ValueError.__init__(self, method, tuple(valid))

    def __str__(self):
        method, valid = self.args
        return f"mpcompcor_method={method!r}; needs to be {enumeration(map(repr, valid), 'or')}"


class DeprecatedParameter(TypeError):
    "Configuration parameter that has been replaced"

    def __init__(self, old: str, new: str, info: str = ''):
        TypeError.__init__(self, old, new, info)

    def __str__(self):
        old, new, info = self.args
        message = f"The {old!r} parameter has been replaced by the {new!r} parameter."
        if info:
            message = f"{message} {info}"
        return message
