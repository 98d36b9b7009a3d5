"""
errors.py — Exception types raised by the cubemap conversion pipeline.

Every failure aborts the whole conversion; there is no partial result.
"""


class CubemapError(Exception):
    """Base class for conversion failures.

    Keyword arguments are kept in ``context`` (level, face, tile path, url…)
    and appended to the message so a traceback says where things broke.
    """

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = dict(context)

    def with_context(self, **context) -> 'CubemapError':
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        where = ', '.join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({where})"


class SourceLoadError(CubemapError):
    """Source image missing, unreadable, corrupt, or not fetchable."""


class GeometryError(CubemapError):
    """Degenerate direction vector reached the inverse projector."""


class EncodeError(CubemapError):
    """A tile could not be JPEG-encoded, even at the fallback quality."""


class PackagingError(CubemapError):
    """Writing the zip archive failed."""
