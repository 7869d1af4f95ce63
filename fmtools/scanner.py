"""Template tokenizer.

Notable in this module are

_Scanner - splits template source into tokens and folds bracket pairs into
    atomic :class:`Group` atoms
Cursor - one-atom lookahead over a single nesting level
take_until, take_expr - the expression-boundary resolver

An embedded expression has no terminator of its own: it ends where the
construct owning it finds its delimiter (a ``{...}`` block, ``,``, ``;``,
``=``...).  Because a whole bracket group is a single atom, a delimiter
nested inside ``()``, ``[]`` or ``{}`` can never be taken for the end of
the expression, and a single forward pass is enough to find it.
"""
import re
from bisect import bisect_right

from fmtools.template import TemplateSyntaxError

_string = (
    r"[rRbBuUfF]{0,2}(?:"
    r"'''(?:\\[\s\S]|[^\\])*?'''|"
    r'"""(?:\\[\s\S]|[^\\])*?"""|'
    r"'(?:\\[\s\S]|[^'\\\n])*'|"
    r'"(?:\\[\s\S]|[^"\\\n])*"'
    r")"
)

_pattern = r"""
(?P<ws>\s+) |
(?P<string>%s) |
(?P<unterminated>[rRbBuUfF]{0,2}['"]) |
(?P<number>
    0[xX][0-9a-fA-F_]+ | 0[bB][01_]+ | 0[oO][0-7_]+ |
    (?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][-+]?\d[\d_]*)?[jJ]?
) |
(?P<name>[^\W\d]\w*) |
(?P<open>[(\[{]) |
(?P<close>[)\]}]) |
(?P<op>
    \*\*=? | //=? | >>=? | <<=? | -> | := | => | \.\.\. |
    [-+*/%%@&|^<>=!]= | [-+*/%%@&|^~<>=.,:;!\#?$\\]
)
""" % _string
_re_pattern = re.compile(_pattern, re.VERBOSE)

_PAIRS = {"(": ")", "[": "]", "{": "}"}


class Token:
    def __init__(self, kind, text, start, end):
        self.kind = kind
        self.text = text
        self.start = start
        self.end = end

    def __repr__(self):  # pragma no cover
        return f"<{self.__class__.__name__} {self.kind} {self.text!r}>"


class Group(Token):
    """A bracket pair and everything between, seen as one atom."""

    def __init__(self, delim, children, start, end, source):
        super().__init__("group", source[start:end], start, end)
        self.delim = delim
        self.children = children

    @property
    def inner(self):
        """Source text between the brackets."""
        return self.text[1:-1]


class _Scanner:
    def __init__(self, filename, source):
        self.filename = filename
        self.source = source
        self._line_starts = [0] + [mo.end() for mo in re.finditer("\n", source)]

    def __iter__(self):
        source = self.source
        pos = 0
        while pos < len(source):
            mo = _re_pattern.match(source, pos)
            if mo is None:
                raise self.error(f"unexpected character {source[pos]!r}", pos)
            kind = mo.lastgroup
            if kind == "unterminated":
                raise self.error("unterminated string literal", pos)
            if kind != "ws":
                yield Token(kind, mo.group(), pos, mo.end())
            pos = mo.end()

    def atoms(self):
        """Return the top-level atoms of the source.

        Bracket groups are folded with an explicit stack, so arbitrarily
        long or deep inputs never recurse.
        """
        stack = [(None, [])]
        for token in self:
            if token.kind == "open":
                stack.append((token, []))
            elif token.kind == "close":
                if len(stack) == 1:
                    raise self.error(f"unmatched {token.text!r}", token)
                opener, children = stack.pop()
                if _PAIRS[opener.text] != token.text:
                    raise self.error(
                        f"closing {token.text!r} does not match {opener.text!r}", token
                    )
                group = Group(opener.text, children, opener.start, token.end, self.source)
                stack[-1][1].append(group)
            else:
                stack[-1][1].append(token)
        if len(stack) > 1:
            raise self.error(f"{stack[-1][0].text!r} was never closed", stack[-1][0])
        return stack[0][1]

    def position(self, offset):
        """Return the (line, column) of a source offset, line being 1-based."""
        lineno = bisect_right(self._line_starts, offset)
        return lineno, offset - self._line_starts[lineno - 1]

    def error(self, msg, where):
        offset = where if isinstance(where, int) else where.start
        lineno, colno = self.position(offset)
        return TemplateSyntaxError(msg, self.source, self.filename, lineno, colno)

    def text(self, atoms):
        """Source text spanned by a run of atoms."""
        if not atoms:
            return ""
        return self.source[atoms[0].start : atoms[-1].end]


class Cursor:
    def __init__(self, atoms):
        self.atoms = atoms
        self.index = 0

    def peek(self):
        if self.index < len(self.atoms):
            return self.atoms[self.index]
        return None

    def next(self):
        atom = self.peek()
        if atom is not None:
            self.index += 1
        return atom

    def done(self):
        return self.index >= len(self.atoms)

    def rest(self):
        atoms = self.atoms[self.index :]
        self.index = len(self.atoms)
        return atoms


def is_op(atom, text):
    return atom is not None and atom.kind == "op" and atom.text == text


def is_name(atom, text):
    return atom is not None and atom.kind == "name" and atom.text == text


def is_group(atom, delim="{"):
    return atom is not None and atom.kind == "group" and atom.delim == delim


def take_until(cursor, stop):
    """Consume atoms up to, not including, the first one ``stop`` accepts."""
    atoms = []
    while not cursor.done() and not stop(cursor.peek()):
        atoms.append(cursor.next())
    return atoms


def take_expr(cursor):
    """Consume the expression in front of a required ``{...}`` block.

    The first atom always belongs to the expression (it may itself be a
    brace group, such as a set literal).  Returns ``(atoms, block)``;
    ``block`` is None when the input ran out before a block was found.
    """
    atoms = []
    while not cursor.done():
        atoms.append(cursor.next())
        if is_group(cursor.peek(), "{"):
            return atoms, cursor.next()
    return atoms, None
