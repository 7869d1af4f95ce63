"""Output sinks a rendering template writes to.

A sink needs a single primitive, :meth:`Sink.write_text`.  Values are
written through :meth:`Sink.write_value`, which hands objects exposing the
``__fmt__`` capability the sink itself instead of converting them to a
string first, so nested templates render straight into their parent's
output.

Errors are ordinary exceptions: the first failing write aborts the render
and propagates to whoever asked for it.
"""
import io


class Sink:
    """Base class of output sinks."""

    def write_text(self, text):  # pragma no cover
        raise NotImplementedError

    def write_value(self, value, spec=""):
        if not spec and hasattr(value, "__fmt__"):
            value.__fmt__(self)
        else:
            self.write_text(format(value, spec))

    def write(self, text):
        self.write_text(text)


class StringSink(Sink):
    """Collects everything written to it in memory."""

    def __init__(self):
        self._buf = io.StringIO()

    def write_text(self, text):
        self._buf.write(text)

    def getvalue(self):
        return self._buf.getvalue()


class StreamSink(Sink):
    """Forwards writes to a text stream such as ``sys.stdout``."""

    def __init__(self, stream):
        self.stream = stream

    def write_text(self, text):
        self.stream.write(text)
