"""Write-plan nodes and the Python code generator.

The parser in :mod:`fmtools.text` builds a tree of the nodes below; iterating
over a node flattens its subtree into a stream of nodes interleaved with
:class:`IndentNode` / :class:`DedentNode` markers, and :func:`generate_python`
turns that stream into indented :class:`PyLine` objects.

Every body runs inside a function whose single parameter is the sink
(``_fmt_sink``).  Constructs that bind names get a function of their own,
called right after its definition with the value it binds or matches:

* a ``let`` shadowing a name its function already read
  (``let name = name.upper();``) covers the rest of its body; any other
  ``let`` is a plain assignment, so a run of bindings stays flat;
* ``for``, ``match`` and ``if let`` keep their pattern variables away from
  the enclosing body.
"""
import io
import os
import tokenize

from fmtools.util import flattener, gen_name

SINK = "_fmt_sink"
VALUE = "_fmt_value"
_CONVERSIONS = {"r": "repr", "s": "str", "a": "ascii"}


def generate_python(ir):
    cur_indent = 0
    for node in flattener(ir):
        if isinstance(node, IndentNode):
            cur_indent += 4
        elif isinstance(node, DedentNode):
            cur_indent -= 4
        for line in node.py():
            yield line.indent(cur_indent)


def indented(nodes):
    """Wrap a block of nodes in indent markers, filling empty blocks."""
    yield IndentNode()
    is_empty = True
    for x in nodes:
        yield x
        is_empty = False
    if is_empty:  # In Python, a block without a statement is a SyntaxError.
        yield PassNode()
    yield DedentNode()


class Node:
    def __init__(self):
        self.filename = "<string>"
        self.lineno = 0

    def py(self):  # pragma no cover
        return []

    def __iter__(self):
        yield self

    def line(self, text):
        return PyLine(self.filename, self.lineno, text)

    def stmt(self, text, verbatim=False):  # noqa: FBT002
        """A one-line statement node located where this node is."""
        node = StmtNode(text, verbatim)
        node.filename = self.filename
        node.lineno = self.lineno
        return node


class StmtNode(Node):
    def __init__(self, text, verbatim=False):  # noqa: FBT002
        super().__init__()
        self.text = text
        self.verbatim = verbatim

    def py(self):
        line = self.line(self.text)
        line.verbatim = self.verbatim
        yield line


class PassNode(Node):
    def py(self):
        yield self.line("pass")


class IndentNode(Node):
    pass


class DedentNode(Node):
    pass


class HierNode(Node):
    """Base for nodes that contain an indented Python block (def, for, if etc.)"""

    def __init__(self, body):
        super().__init__()
        self.body = tuple(optimize(x for x in body if x is not None))

    def body_iter(self):
        yield from flattener(map(flattener, self.body))

    def __iter__(self):
        yield self
        yield from indented(self.body_iter())


class TemplateNode(HierNode):
    """Root of the write plan.

    Generates the ``__main__(_fmt_sink)`` function performing every write of
    the template; :func:`fmtools.template.from_ir` wraps it into a template
    class.
    """

    def __init__(self, *body):
        super().__init__(body)
        self.source = ""

    def py(self):
        yield self.line(f"def __main__({SINK}):")


class TextNode(Node):
    """Writes a literal string."""

    def __init__(self, text):
        super().__init__()
        self.text = text

    def py(self):
        yield self.line(f"{SINK}.write_text({self.text!r})")


class ExprNode(Node):
    """Evaluates an expression and writes it with a format specifier.

    ``spec`` is a sequence of ``(is_expr, text)`` parts: literal spec text,
    or an expression whose value is substituted into the specifier (as in
    ``{value:>{width}}``).  An empty spec is the value's natural display.
    """

    def __init__(self, text, spec=(), conversion=None):
        super().__init__()
        self.text = text
        self.spec = tuple(spec)
        self.conversion = conversion

    def spec_code(self):
        if not any(is_expr for is_expr, _ in self.spec):
            return repr("".join(text for _, text in self.spec))
        parts = [f"format(({text}))" if is_expr else repr(text) for is_expr, text in self.spec]
        return "''.join(({},))".format(", ".join(parts))

    def py(self):
        value = f"({self.text})"
        if self.conversion is not None:
            value = f"{_CONVERSIONS[self.conversion]}({value})"
        if self.spec:
            yield self.line(f"{SINK}.write_value({value}, {self.spec_code()})")
        else:
            yield self.line(f"{SINK}.write_value({value})")


class LetNode(Node):
    """Assigns ``target`` in the function running the enclosing body."""

    def __init__(self, target, expr):
        super().__init__()
        self.target = target
        self.expr = expr

    def py(self):
        yield self.line(f"({self.target}) = ({self.expr})")


class ScopeNode(HierNode):
    """Binds ``target`` in a new function running the rest of the body."""

    def __init__(self, target, expr, *body):
        super().__init__(body)
        self.target = target
        self.expr = expr
        self.fname = gen_name("_fmt_let")

    def py(self):
        yield self.line(f"def {self.fname}({VALUE}):")

    def __iter__(self):
        yield self
        yield from indented(self._scope())
        yield self.stmt(f"{self.fname}(({self.expr}))")

    def _scope(self):
        yield self.stmt(f"({self.target}) = {VALUE}")
        yield from self.body_iter()


class IfNode(HierNode):
    """One ``if``/``elif`` clause of a :class:`ConditionalNode`."""

    def __init__(self, test, *body):
        super().__init__(body)
        self.test = test
        self.keyword = "if"

    def py(self):
        yield self.line(f"{self.keyword} ({self.test}):")


class IfLetNode(HierNode):
    """An ``if let pattern = expr`` clause.

    The pattern is tried by a one-case ``match`` inside a helper function
    that renders the body and reports whether it matched; the clause itself
    only calls the helper.
    """

    def __init__(self, pattern, expr, *body):
        super().__init__(body)
        self.pattern = pattern
        self.expr = expr
        self.keyword = "if"
        self.fname = gen_name("_fmt_if_let")

    def py(self):
        yield self.line(f"{self.keyword} {self.fname}(({self.expr})):")

    def __iter__(self):
        yield self
        yield from indented(())

    def definition(self):
        yield self.stmt(f"def {self.fname}({VALUE}):")
        yield from indented(self._matcher())

    def _matcher(self):
        yield self.stmt(f"match {VALUE}:")
        yield from indented(self._case())
        yield self.stmt("return False")

    def _case(self):
        yield self.stmt(f"case ({self.pattern}):")
        yield from indented(self._body())

    def _body(self):
        yield from self.body_iter()
        yield self.stmt("return True")


class ElseNode(HierNode):
    def __init__(self, *body):
        super().__init__(body)

    def py(self):
        yield self.line("else:")


class ConditionalNode(Node):
    """An ``if`` / ``else if`` / ``else`` chain.

    Only the first branch whose condition holds (or whose pattern matches)
    is rendered; the ``else`` body when none does.
    """

    def __init__(self, branches, orelse=None):
        super().__init__()
        self.branches = tuple(branches)
        for i, branch in enumerate(self.branches):
            branch.keyword = "if" if i == 0 else "elif"
        self.orelse = orelse

    def __iter__(self):
        for branch in self.branches:
            if isinstance(branch, IfLetNode):
                yield from branch.definition()
        for branch in self.branches:
            yield from branch
        if self.orelse is not None:
            yield from self.orelse


class CaseNode(HierNode):
    """One arm of a :class:`MatchNode`."""

    def __init__(self, pattern, *body, guard=None):
        super().__init__(body)
        self.pattern = pattern
        self.guard = guard

    def py(self):
        if self.guard is None:
            yield self.line(f"case ({self.pattern}):")
        else:
            yield self.line(f"case ({self.pattern}) if ({self.guard}):")


class MatchNode(HierNode):
    """Renders the first arm whose pattern (and guard) accepts the value.

    Arms are not checked for exhaustiveness: when no arm matches, nothing
    is written.
    """

    def __init__(self, expr, *arms):
        super().__init__(arms)
        self.expr = expr
        self.fname = gen_name("_fmt_match")

    def py(self):
        yield self.line(f"def {self.fname}({VALUE}):")

    def __iter__(self):
        yield self
        yield from indented(self._matcher())
        yield self.stmt(f"{self.fname}(({self.expr}))")

    def _matcher(self):
        if not self.body:
            return
        yield self.stmt(f"match {VALUE}:")
        yield from indented(self.body_iter())


class ForNode(HierNode):
    """Renders the body once per item of an iterable."""

    def __init__(self, target, expr, *body):
        super().__init__(body)
        self.target = target
        self.expr = expr
        self.fname = gen_name("_fmt_for")

    def py(self):
        yield self.line(f"def {self.fname}({VALUE}):")

    def __iter__(self):
        yield self
        yield from indented(self._loop())
        yield self.stmt(f"{self.fname}(({self.expr}))")

    def _loop(self):
        yield self.stmt(f"for ({self.target}) in {VALUE}:")
        yield from indented(self.body_iter())


class EscapeNode(Node):
    """Raw Python code given direct access to the sink under ``alias``.

    The block form (``|f| { ... }``) runs in a function of its own; the
    statement form (``|f| stmt;``) runs in the enclosing body, so names it
    assigns stay visible to the segments after it.
    """

    def __init__(self, alias, code, block=True):  # noqa: FBT002
        super().__init__()
        self.alias = alias
        self.block = block
        self.lines = []
        self._normalize(code)
        if block:
            self.fname = gen_name("_fmt_escape")

    def py(self):
        if self.block:
            yield self.line(f"def {self.fname}({self.alias}):")
        else:
            yield self.line(f"{self.alias} = {SINK}")

    def __iter__(self):
        yield self
        if self.block:
            yield from indented(self._code())
            yield self.stmt(f"{self.fname}({SINK})")
        else:
            yield from self._code()

    def _code(self):
        for i, line in enumerate(self.lines):
            yield self.stmt(line, verbatim=i in self.continued)

    def _normalize(self, text):
        """Split the code into lines relative to its own indentation.

        Lines starting inside a string literal (``continued``) are kept
        exactly as written and never re-indented.
        """
        first, _, rest = text.partition("\n")
        lines = rest.splitlines()
        # Code starting on the line of the opening brace: the lines after
        # it are only dedented among themselves.
        on_brace_line = bool(first.strip())
        if on_brace_line:
            lines.insert(0, first.lstrip())
        ends_open, continued = _string_lines(lines)
        candidates = [
            line
            for i, line in enumerate(lines)
            if line.strip() and i not in continued and not (on_brace_line and i == 0)
        ]
        margin = os.path.commonprefix([line[: len(line) - len(line.lstrip())] for line in candidates])
        self.continued = set()
        for i, line in enumerate(lines):
            if i in continued:
                self.continued.add(len(self.lines))
                self.lines.append(line)
                continue
            if not line.strip():
                continue
            if line.startswith(margin):
                line = line[len(margin) :]
            if i not in ends_open:
                line = line.rstrip()
            self.lines.append(line)


def _string_lines(lines):
    """Return the indices of the lines ending and starting inside a string."""
    ends_open = set()
    continued = set()
    # Leading whitespace only matters to the tokenizer's indentation rules;
    # string boundaries do not depend on it.
    readline = io.StringIO("\n".join(line.lstrip() for line in lines)).readline
    try:
        for tok in tokenize.generate_tokens(readline):
            first, last = tok.start[0] - 1, tok.end[0] - 1
            if last > first:
                ends_open.update(range(first, last))
                continued.update(range(first + 1, last + 1))
    except (tokenize.TokenError, SyntaxError):
        # Invalid code is reported when the generated module is compiled.
        pass
    return ends_open, continued


def optimize(iter_node):
    """Merge consecutive text nodes so they are written in one call."""
    last_node = None
    for node in iter_node:
        if type(node) == TextNode and type(last_node) == TextNode:
            merged = TextNode(last_node.text + node.text)
            merged.filename = last_node.filename
            merged.lineno = last_node.lineno
            last_node = merged
            # Erase this node by not yielding it.
            continue
        if last_node is not None:
            yield last_node
        last_node = node
    if last_node is not None:
        yield last_node


class PyLine:
    def __init__(self, filename, lineno, text, indent=0, verbatim=False):  # noqa: FBT002
        self._filename = filename
        self._lineno = lineno
        self._text = text
        self._indent = indent
        # Lines continuing a string literal keep their own indentation.
        self.verbatim = verbatim

    def indent(self, sz=4):
        return PyLine(self._filename, self._lineno, self._text, self._indent + sz, self.verbatim)

    def __str__(self):
        if self.verbatim:
            return self._text
        return (" " * self._indent) + self._text

    def __repr__(self):
        return f"{self._filename}:{self._lineno} {self}"
