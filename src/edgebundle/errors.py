"""
Error types and the fail-soft reporting channel.

Data problems inside a render (a custom compatibility callback raising for
one pair, say) never abort the render. They are counted and the first one is
handed to the caller's error handler, or to the tracer when there is none.
Programmer errors are raised as EdgeBundleError subclasses.
"""

from edgebundle.tracer import get_tracer


class EdgeBundleError(Exception):
    """Base class for engine precondition failures."""


class StyleMismatchError(EdgeBundleError, ValueError):
    """A per-edge style sequence does not line up with the edge list."""


class ErrorReporter:
    """
    Collects recoverable failures for one render call.

    Only the first failure of each kind is forwarded; the rest are counted.
    """

    def __init__(self, handler=None):
        self.handler = handler
        self.counts = {}

    def report(self, kind, error, **context):
        """Record a failure and forward it if it is the first of its kind."""
        self.counts[kind] = self.counts.get(kind, 0) + 1
        if self.counts[kind] > 1:
            return

        if self.handler is not None:
            self.handler(error, {"kind": kind, **context})
        else:
            get_tracer().event(
                f"{kind} failed: {type(error).__name__}: {str(error)[:100]}",
                level="WARN",
                **context,
            )

    def count(self, kind):
        return self.counts.get(kind, 0)

    def summarize(self):
        """Emit one WARN event per failure kind with its total count."""
        tracer = get_tracer()
        for kind, total in self.counts.items():
            tracer.event(f"{kind}: {total} failure(s) treated as recoverable", level="WARN")
