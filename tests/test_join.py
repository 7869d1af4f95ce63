import pytest

from fmtools import Template, join


@pytest.mark.parametrize(
    ("sep", "items", "expected"),
    [
        (",", [1, 2, 3], "1,2,3"),
        (",", [], ""),
        (",", [7], "7"),
        ("", ["a", "b"], "ab"),
        (", ", "abc", "a, b, c"),
    ],
)
def test_join(sep, items, expected):
    assert str(join(sep, items)) == expected


def test_spec():
    assert str(join(" ", [10, 255], spec="#06x")) == "0x000a 0x00ff"


def test_renders_repeatedly():
    joined = join("-", (i for i in range(3)))
    assert str(joined) == "0-1-2"
    assert str(joined) == "0-1-2"


def test_by_reference():
    items = [1]
    joined = join(",", items)
    items.append(2)
    assert str(joined) == "1,2"


def test_by_value():
    items = [1]
    joined = join(",", items, move=True)
    items.append(2)
    assert str(joined) == "1"


def test_nested():
    rows = [join(" ", "ab"), join(" ", "cd")]
    assert str(join("; ", rows)) == "a b; c d"


def test_items_with_fmt():
    inner = Template('"<" {x} ">"')
    items = [inner({"x": 1}), inner({"x": 2})]
    assert str(join("", items)) == "<1><2>"


def test_not_iterable():
    with pytest.raises(TypeError):
        join(",", 5)
