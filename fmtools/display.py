"""The displayable-closure primitive.

:class:`fmt` turns a callable taking a sink into a value that can be
printed, formatted or interpolated into a template.  Compiled templates and
:func:`fmtools.join` results are ``fmt`` instances too, which is what makes
them nest freely.
"""
import copy
import functools
import types

from fmtools.sink import StringSink


def capture_by_value(func):
    """Return a copy of ``func`` owning snapshots of what it captured.

    Closure cells are deep-copied into fresh cells, so later rebinding or
    mutation in the creating scope is not observed.  Module globals are
    still looked up when the function runs.
    """
    if not isinstance(func, types.FunctionType):
        return copy.deepcopy(func)
    closure = func.__closure__
    if closure is not None:
        closure = tuple(_copy_cell(cell) for cell in closure)
    new_func = types.FunctionType(
        func.__code__,
        func.__globals__,
        func.__name__,
        func.__defaults__,
        closure,
    )
    new_func.__kwdefaults__ = copy.deepcopy(func.__kwdefaults__)
    return functools.update_wrapper(new_func, func)


def _copy_cell(cell):
    try:
        contents = cell.cell_contents
    except ValueError:  # empty cell, the variable was never assigned
        return types.CellType()
    return types.CellType(copy.deepcopy(contents))


class fmt:  # noqa: N801
    """Displayable object implemented by ``closure(sink)``.

    With ``move=False`` the closure sees the current value of the variables
    it references every time it is rendered.  With ``move=True`` it renders
    the values they had when the object was created.
    """

    def __init__(self, closure, move=False):  # noqa: FBT002
        if move:
            closure = capture_by_value(closure)
        self.closure = closure

    def __fmt__(self, sink):
        self.closure(sink)

    def render(self):
        sink = StringSink()
        self.__fmt__(sink)
        return sink.getvalue()

    def __str__(self):
        return self.render()

    def __repr__(self):
        return self.render()

    def __format__(self, spec):
        if spec:
            return format(self.render(), spec)
        return self.render()
