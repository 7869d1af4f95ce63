import copy
import io

import pytest

from fmtools import StreamSink, StringSink, fmt
from fmtools.display import capture_by_value


def test_display():
    obj = fmt(lambda f: f.write_text("display"))
    assert str(obj) == "display"
    assert repr(obj) == "display"
    assert f"<{obj}>" == "<display>"
    assert format(obj, ">9") == "  display"


def test_write_value_specs():
    obj = fmt(lambda f: (f.write_value(255, "#x"), f.write_text(" "), f.write_value(0.5, ".0%")))
    assert str(obj) == "0xff 50%"


def test_by_reference():
    items = [1]
    obj = fmt(lambda f: f.write_value(items))
    items.append(2)
    assert str(obj) == "[1, 2]"


def test_by_value():
    items = [1]
    obj = fmt(lambda f: f.write_value(items), move=True)
    items.append(2)
    assert str(obj) == "[1]"


def test_by_value_outlives_scope():
    def make():
        a = 42
        obj = fmt(lambda f: f.write_text(f"a = {a}"), move=True)
        a = 0
        return obj

    assert str(make()) == "a = 42"


def test_by_value_unassigned_variable():
    def make():
        obj = fmt(lambda f: f.write_text(later), move=True)
        later = "x"
        return obj

    with pytest.raises(NameError):
        str(make())


def test_capture_keeps_function_metadata():
    def writer(f, suffix="!"):
        """Writes a greeting."""
        f.write_text("hi" + suffix)

    captured = capture_by_value(writer)
    assert captured is not writer
    assert captured.__name__ == "writer"
    assert captured.__doc__ == "Writes a greeting."
    sink = StringSink()
    captured(sink)
    assert sink.getvalue() == "hi!"


def test_capture_callable_object():
    class Writer:
        def __init__(self):
            self.parts = ["a"]

        def __call__(self, f):
            f.write_text("".join(self.parts))

    writer = Writer()
    obj = fmt(writer, move=True)
    writer.parts.append("b")
    assert str(obj) == "a"


def test_copy():
    obj = fmt(lambda f: f.write_text("copied"))
    assert str(copy.copy(obj)) == "copied"


def test_nested_fmt_goes_through_sink():
    inner = fmt(lambda f: f.write_text("inner"))
    outer = fmt(lambda f: (f.write_text("<"), f.write_value(inner), f.write_text(">")))
    assert str(outer) == "<inner>"


def test_nested_fmt_with_spec():
    inner = fmt(lambda f: f.write_text("ab"))
    sink = StringSink()
    sink.write_value(inner, "^6")
    assert sink.getvalue() == "  ab  "


def test_stream_sink():
    stream = io.StringIO()
    obj = fmt(lambda f: f.write("streamed"))
    obj.__fmt__(StreamSink(stream))
    assert stream.getvalue() == "streamed"
