import copy
import logging
import types

from fmtools.display import fmt
from fmtools.ir import generate_python
from fmtools.join import join

log = logging.getLogger(__name__)


class TemplateError(Exception):
    """Base class for all fmtools template errors."""

    def __init__(self, msg, source, filename, linen, coln):
        super().__init__(
            f"[{filename}:{linen}] {msg}\n{self._get_source_snippet(source, linen)}"
        )
        self.msg = msg
        self.filename = filename
        self.linenum = linen
        self.colnum = coln

    def _get_source_snippet(self, source, linen):
        SURROUNDING = 2  # noqa: N806
        linen -= 1
        parts = []
        for i in range(SURROUNDING, 0, -1):
            parts.append(f"\t     {self._get_source_line(source, linen - i)}\n")
        parts.append(f"\t --> {self._get_source_line(source, linen)}\n")
        for i in range(1, SURROUNDING + 1):
            parts.append(f"\t     {self._get_source_line(source, linen + i)}\n")
        return "".join(parts)

    def _get_source_line(self, source, linen):
        if linen < 0:
            return ""
        try:
            return source.splitlines()[linen]
        except IndexError:
            return ""


class TemplateSyntaxError(TemplateError):
    """The template does not follow the template grammar."""


class _Template(fmt):
    """Base class of the classes returned by :func:`fmtools.Template`.

    Instantiating a template binds it to a context, the mapping its
    expressions read free names from.  By default the mapping is borrowed
    and read again on every render.  ``move=True`` takes a deep copy, so
    the instance keeps rendering the same text whatever happens to the
    caller's mapping afterwards.
    """

    _main = None
    base_globals = None
    filename = None
    py_text = None

    def __init__(self, context=None, move=False):  # noqa: FBT002
        if context is None:
            context = {}
        if move:
            context = copy.deepcopy(dict(context))
        self._context = context
        self._bound_func = self._bind_globals() if move else None
        super().__init__(self._render)

    def _render(self, sink):
        func = self._bound_func
        if func is None:
            func = self._bind_globals()
        func(sink)

    def _bind_globals(self):
        """Return the render function with its globals set to the context."""
        func = self._main
        globals_ = dict(self.base_globals or {})
        globals_.update(self._context)
        return types.FunctionType(
            func.__code__,
            globals_,
            func.__name__,
            func.__defaults__,
            func.__closure__,
        )


def from_ir(ir_node, base_globals=None):
    py_lines = list(generate_python(ir_node))
    py_text = "\n".join(map(str, py_lines))
    # Physical Python line -> template line.  A PyLine may span several
    # physical lines when it carries a multi-line expression.
    py_linenos = []
    for line in py_lines:
        py_linenos.extend([line._lineno] * (str(line).count("\n") + 1))  # noqa: SLF001
    dct = {"fmt": fmt, "join": join}
    if base_globals:
        dct.update(base_globals)
    try:
        code = compile(py_text, ir_node.filename, "exec")
    except SyntaxError as err:
        lineno = 0
        if err.lineno and err.lineno <= len(py_linenos):
            lineno = py_linenos[err.lineno - 1]
        raise TemplateSyntaxError(
            f"detected an invalid python expression: {err.msg}",
            ir_node.source,
            ir_node.filename,
            lineno,
            0,
        ) from err
    exec(code, dct)  # noqa: S102
    log.debug("compiled %s into %d lines of Python", ir_node.filename, len(py_linenos))
    return type(
        "Template",
        (_Template,),
        {
            "_main": staticmethod(dct["__main__"]),
            "base_globals": dct,
            "filename": ir_node.filename,
            "py_text": py_text,
        },
    )
