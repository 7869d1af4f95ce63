"""Template compiler

Notable in this module are

Template - function building a template class from a source string or filename
_Parser - translates the atoms produced by :class:`fmtools.scanner._Scanner`
    into the write plan (:mod:`fmtools.ir`)
_Parser._parse_<construct> - consumes one construct and returns an ir.Node

A template is a sequence of segments::

    "Hello " {name} "!\\n"              literal text and interpolations
    {value:#x} {ratio;.1%} {name!r}     interpolation with a format spec
    let total = price * qty;            binding for the rest of the body
    if total > 100 { "big" } else if let [x] = items { {x} } else { "small" }
    match status { 0 => "ok", code if code < 0 => { "error " {code} } }
    for item in items { "* " {item} "\\n" }
    |f| f.write("raw");                 escape hatch, ``f`` is the sink
    |f| { f.write("a"); f.write("b") }
    ("grouped " "segments")
"""
import ast
import re

from fmtools import ir, template
from fmtools.scanner import Cursor, _Scanner, is_group, is_name, is_op, take_expr, take_until

_LITERAL_NAMES = frozenset(("True", "False", "None"))
_re_name = re.compile(r"[^\W\d]\w*")


def Template(  # noqa: N802
    source=None,
    filename=None,
    base_globals=None,
    encoding="utf-8",
):
    """Compile template source into a template class.

    Calling the returned class with a context mapping gives a
    :class:`fmtools.fmt` rendering the template against that context.
    """
    if source is None:
        with open(filename, encoding=encoding) as f:
            source = f.read()
    if filename is None:
        filename = "<string>"
    scanner = _Scanner(filename, source)
    tree = _Parser(scanner).parse()
    return template.from_ir(tree, base_globals=base_globals)


def is_literal(atom):
    if atom.kind == "number":
        return True
    if atom.kind == "string":
        return not _is_fstring(atom)
    return atom.kind == "name" and atom.text in _LITERAL_NAMES


def _is_fstring(atom):
    prefix = atom.text[: len(atom.text) - len(atom.text.lstrip("rRbBuUfF"))]
    return "f" in prefix.lower()


class _Parser:
    def __init__(self, scanner):
        self.scanner = scanner
        self.source = scanner.source
        self.filename = scanner.filename

    def parse(self):
        body = self._parse_body(self.scanner.atoms(), owning=True)
        node = ir.TemplateNode(*body)
        node.filename = self.filename
        node.source = self.source
        return node

    def error(self, msg, where):
        return self.scanner.error(msg, where)

    def text(self, atoms):
        return self.scanner.text(atoms)

    def locate(self, node, atom):
        node.filename = self.filename
        node.lineno = self.scanner.position(atom.start)[0]
        return node

    def _parse_body(self, atoms, owning=False, free=()):
        """Translate one body into a list of nodes.

        Segments are handled in a loop; only nested bodies recurse.  A
        ``(...)`` group at segment position is spliced in by pushing a
        cursor over its contents.

        A ``let`` becomes a plain assignment (:class:`ir.LetNode`) unless
        the function running the body already read one of the names it
        binds, where an assignment would turn that earlier read into an
        unbound local.  Such a ``let`` opens a scope collecting the
        remaining segments, folded into :class:`ir.ScopeNode` at the end.
        ``owning`` is false for bodies sharing their function with other
        code (``if`` branches, match arms): their first ``let`` always
        opens a scope.  ``free`` holds names the function reads before the
        body starts.
        """
        scopes = [_Scope(None, owning, free)]
        cursors = [Cursor(atoms)]
        while cursors:
            cursor = cursors[-1]
            atom = cursor.peek()
            scope = scopes[-1]
            if atom is None:
                cursors.pop()
            elif is_group(atom, "("):
                cursors.append(Cursor(cursor.next().children))
            elif is_name(atom, "let"):
                keyword, target, expr = self._parse_let(cursor)
                names = self._bound_names(target, keyword)
                reads = (_reads(target) - names) | _reads(expr)
                scope.free |= reads - scope.bound
                if scope.owning and not names & scope.free:
                    scope.bound |= names
                    let = ir.LetNode(self.text(target), self.text(expr))
                    scope.nodes.append(self.locate(let, keyword))
                else:
                    scopes.append(_Scope((keyword, target, expr), True, bound=names))
            else:
                start = cursor.index
                scope.nodes.append(self._parse_segment(cursor))
                scope.read(cursor.atoms[start : cursor.index])
        while len(scopes) > 1:
            scope = scopes.pop()
            keyword, target, expr = scope.let
            node = ir.ScopeNode(self.text(target), self.text(expr), *scope.nodes)
            scopes[-1].nodes.append(self.locate(node, keyword))
        return scopes[0].nodes

    def _bound_names(self, target, keyword):
        text = self.text(target)
        try:
            tree = ast.parse(f"({text}) = None")
        except SyntaxError as e:
            raise self.error(f"invalid let binding target {text}", keyword) from e
        return {
            node.id
            for node in ast.walk(tree)
            if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store)
        }

    def _parse_segment(self, cursor):
        atom = cursor.peek()
        if is_literal(atom):
            return self._parse_text(cursor)
        if atom.kind == "string":
            cursor.next()
            return self.locate(ir.ExprNode(atom.text), atom)
        if is_group(atom, "{"):
            return self._parse_interpolation(cursor.next())
        if is_op(atom, "|"):
            return self._parse_escape(cursor)
        if atom.kind == "name" and atom.text in ("if", "match", "for"):
            parser = getattr(self, f"_parse_{atom.text}")
            return parser(cursor)
        if is_name(atom, "else"):
            raise self.error("`else` without a preceding `if`", atom)
        raise self.error(f"unexpected {atom.text!r}", atom)

    def _parse_text(self, cursor):
        first = cursor.peek()
        parts = []
        while cursor.peek() is not None and is_literal(cursor.peek()):
            atom = cursor.next()
            try:
                value = ast.literal_eval(atom.text)
            except (SyntaxError, ValueError) as e:
                raise self.error(f"invalid literal {atom.text}", atom) from e
            if isinstance(value, bytes):
                raise self.error(f"bytes literal {atom.text} cannot be written", atom)
            parts.append(str(value))
        return self.locate(ir.TextNode("".join(parts)), first)

    def _parse_interpolation(self, group):
        cursor = Cursor(group.children)
        expr = take_until(cursor, lambda a: is_op(a, ":") or is_op(a, ";"))
        if not expr:
            raise self.error("empty interpolation", group)
        conversion = None
        if len(expr) > 2 and is_op(expr[-2], "!") and expr[-1].text in ("r", "s", "a"):
            conversion = expr[-1].text
            expr = expr[:-2]
        sep = cursor.next()
        # Whitespace between spec tokens is not part of the spec.
        spec = []
        if sep is not None:
            for atom in cursor.rest():
                if is_group(atom, "{"):
                    if not atom.inner.strip():
                        raise self.error("empty field in format specifier", atom)
                    spec.append((True, atom.inner.strip()))
                elif spec and not spec[-1][0]:
                    spec[-1] = (False, spec[-1][1] + atom.text)
                else:
                    spec.append((False, atom.text))
        return self.locate(ir.ExprNode(self.text(expr), spec, conversion), group)

    def _parse_let(self, cursor):
        keyword = cursor.next()
        target = take_until(cursor, lambda a: is_op(a, "="))
        if cursor.done():
            raise self.error("expected `=` in let binding", keyword)
        if not target:
            raise self.error("missing binding target after `let`", keyword)
        cursor.next()
        expr = take_until(cursor, lambda a: is_op(a, ";"))
        if cursor.done():
            raise self.error("missing `;` after let binding", keyword)
        if not expr:
            raise self.error("missing expression in let binding", keyword)
        cursor.next()
        return keyword, target, expr

    def _expr_and_block(self, cursor, keyword):
        atoms, block = take_expr(cursor)
        if not atoms:
            raise self.error(f"missing expression after `{keyword.text}`", keyword)
        if block is None:
            raise self.error(f"missing block after expression: {self.text(atoms)}", keyword)
        return self.text(atoms), block

    def _parse_if(self, cursor):
        branches = []
        orelse = None
        keyword = start = cursor.next()
        while True:
            branches.append(self._parse_branch(cursor, keyword))
            if not is_name(cursor.peek(), "else"):
                break
            else_keyword = cursor.next()
            if is_name(cursor.peek(), "if"):
                keyword = cursor.next()
                continue
            block = cursor.next()
            if not is_group(block, "{"):
                raise self.error("missing block after `else`", else_keyword)
            orelse = self.locate(ir.ElseNode(*self._parse_body(block.children)), else_keyword)
            break
        return self.locate(ir.ConditionalNode(branches, orelse), start)

    def _parse_branch(self, cursor, keyword):
        if not is_name(cursor.peek(), "let"):
            test, block = self._expr_and_block(cursor, keyword)
            body = self._parse_body(block.children)
            return self.locate(ir.IfNode(test, *body), keyword)
        let = cursor.next()
        pattern = take_until(cursor, lambda a: is_op(a, "="))
        if cursor.done():
            raise self.error("expected `=` after `if let` pattern", let)
        if not pattern:
            raise self.error("missing pattern after `if let`", let)
        cursor.next()
        expr, block = self._expr_and_block(cursor, keyword)
        body = self._parse_body(block.children)
        return self.locate(ir.IfLetNode(self.text(pattern), expr, *body), keyword)

    def _parse_match(self, cursor):
        keyword = cursor.next()
        expr, block = self._expr_and_block(cursor, keyword)
        arms = []
        arm_cursor = Cursor(block.children)
        while not arm_cursor.done():
            arms.append(self._parse_arm(arm_cursor))
        return self.locate(ir.MatchNode(expr, *arms), keyword)

    def _parse_arm(self, cursor):
        first = cursor.peek()
        head = Cursor(take_until(cursor, lambda a: is_op(a, "=>")))
        if cursor.done():
            raise self.error("expected `=>` after match pattern", first)
        arrow = cursor.next()
        pattern = take_until(head, lambda a: is_name(a, "if"))
        if not pattern:
            raise self.error("missing pattern before `=>`", first)
        guard = None
        if head.next() is not None:
            guard = head.rest()
            if not guard:
                raise self.error("missing guard after `if`", arrow)
            guard = self.text(guard)
        if is_group(cursor.peek(), "{"):
            body = self._parse_body(cursor.next().children)
        else:
            body = self._parse_body(take_until(cursor, lambda a: is_op(a, ",")))
        if is_op(cursor.peek(), ","):
            cursor.next()
        return self.locate(ir.CaseNode(self.text(pattern), *body, guard=guard), first)

    def _parse_for(self, cursor):
        keyword = cursor.next()
        target = take_until(cursor, lambda a: is_name(a, "in"))
        if cursor.done():
            raise self.error("expected `in` after `for` target", keyword)
        if not target:
            raise self.error("missing target after `for`", keyword)
        cursor.next()
        expr, block = self._expr_and_block(cursor, keyword)
        body = self._parse_body(block.children, owning=True, free=_reads(target))
        return self.locate(ir.ForNode(self.text(target), expr, *body), keyword)

    def _parse_escape(self, cursor):
        bar = cursor.next()
        alias = take_until(cursor, lambda a: is_op(a, "|"))
        if cursor.done():
            raise self.error("expected closing `|` of escape hatch", bar)
        cursor.next()
        alias = self.text(alias)
        if not alias.isidentifier():
            raise self.error(f"escape hatch binding must be a name, not {alias!r}", bar)
        if is_group(cursor.peek(), "{"):
            block = cursor.next()
            return self.locate(ir.EscapeNode(alias, block.inner, block=True), bar)
        code = take_until(cursor, lambda a: is_op(a, ";"))
        if cursor.done():
            raise self.error("missing `;` after escape hatch statement", bar)
        cursor.next()
        return self.locate(ir.EscapeNode(alias, self.text(code), block=False), bar)


class _Scope:
    """Names a generated function has bound and read so far.

    ``free`` collects the names read while not bound by a ``let`` of the
    same function; they are looked up in an enclosing scope.
    """

    def __init__(self, let, owning, free=(), bound=()):
        self.let = let
        self.owning = owning
        self.free = set(free)
        self.bound = set(bound)
        self.nodes = []

    def read(self, atoms):
        self.free |= _reads(atoms) - self.bound


def _reads(atoms):
    """Every name appearing in ``atoms``, nested groups and f-strings included."""
    names = set()
    stack = list(atoms)
    while stack:
        atom = stack.pop()
        if atom.kind == "group":
            stack.extend(atom.children)
        elif atom.kind == "name":
            names.add(atom.text)
        elif atom.kind == "string" and _is_fstring(atom):
            names.update(_re_name.findall(atom.text))
    return names
