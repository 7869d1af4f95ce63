import pytest

from fmtools import TemplateSyntaxError
from fmtools.scanner import Cursor, _Scanner, is_group, is_op, take_expr, take_until


def tokens(source):
    return [(t.kind, t.text) for t in _Scanner("<string>", source)]


def atoms(source):
    return _Scanner("<string>", source).atoms()


class TestTokens:
    def test_kinds(self):
        assert tokens('"a" 12 name {x}') == [
            ("string", '"a"'),
            ("number", "12"),
            ("name", "name"),
            ("open", "{"),
            ("name", "x"),
            ("close", "}"),
        ]

    def test_operators(self):
        texts = [text for _, text in tokens("a >= b => c := d ** 2 != e")]
        assert texts == ["a", ">=", "b", "=>", "c", ":=", "d", "**", "2", "!=", "e"]

    def test_string_forms(self):
        assert tokens("r'a\\b' f\"{x}\" '''multi\nline''' \"it's\"") == [
            ("string", "r'a\\b'"),
            ("string", 'f"{x}"'),
            ("string", "'''multi\nline'''"),
            ("string", '"it\'s"'),
        ]

    def test_numbers(self):
        assert tokens("4_2_0 0x2a 1.5e3 .5 2j") == [
            ("number", "4_2_0"),
            ("number", "0x2a"),
            ("number", "1.5e3"),
            ("number", ".5"),
            ("number", "2j"),
        ]

    def test_spec_characters_are_tokens(self):
        assert tokens("#x") == [("op", "#"), ("name", "x")]

    def test_unterminated_string(self):
        with pytest.raises(TemplateSyntaxError, match="unterminated string literal"):
            tokens('"abc')

    def test_unexpected_character(self):
        with pytest.raises(TemplateSyntaxError, match="unexpected character"):
            tokens("a ` b")


class TestGroups:
    def test_groups_are_atomic(self):
        result = atoms("{a, {b: 1}} (c) [d]")
        assert [a.delim for a in result] == ["{", "(", "["]
        first = result[0]
        assert is_group(first, "{")
        assert [a.text for a in first.children] == ["a", ",", "{b: 1}"]
        assert first.inner == "a, {b: 1}"

    def test_unmatched_close(self):
        with pytest.raises(TemplateSyntaxError, match="unmatched"):
            atoms("a)")

    def test_mismatched_close(self):
        with pytest.raises(TemplateSyntaxError, match="does not match"):
            atoms("(]")

    def test_unclosed(self):
        with pytest.raises(TemplateSyntaxError, match="was never closed"):
            atoms("{a")

    def test_deep_nesting(self):
        depth = 2000
        result = atoms("(" * depth + ")" * depth)
        assert len(result) == 1
        group = result[0]
        levels = 1
        while group.children:
            group = group.children[0]
            levels += 1
        assert levels == depth


class TestPosition:
    def test_position(self):
        scanner = _Scanner("<string>", "a\n  b")
        assert scanner.position(0) == (1, 0)
        assert scanner.position(4) == (2, 2)

    def test_error_location(self):
        scanner = _Scanner("t.fmt", "a\n  b")
        err = scanner.error("boom", 4)
        assert err.linenum == 2
        assert err.colnum == 2
        assert err.filename == "t.fmt"
        assert str(err).startswith("[t.fmt:2] boom")
        assert "--> " in str(err)


class TestBoundaries:
    def test_expression_stops_at_block(self):
        scanner = _Scanner("<string>", 'power >= 1.0 {"full"} rest')
        cursor = Cursor(scanner.atoms())
        expr, block = take_expr(cursor)
        assert scanner.text(expr) == "power >= 1.0"
        assert block.text == '{"full"}'
        assert cursor.peek().text == "rest"

    def test_braces_inside_brackets_are_not_blocks(self):
        scanner = _Scanner("<string>", "f({1: 2}) + [{}] {body}")
        expr, block = take_expr(Cursor(scanner.atoms()))
        assert scanner.text(expr) == "f({1: 2}) + [{}]"
        assert block.inner == "body"

    def test_leading_brace_group_is_expression(self):
        scanner = _Scanner("<string>", "{1, 2} {body}")
        expr, block = take_expr(Cursor(scanner.atoms()))
        assert scanner.text(expr) == "{1, 2}"
        assert block.inner == "body"

    def test_missing_block(self):
        expr, block = take_expr(Cursor(atoms("x + 1")))
        assert len(expr) == 3
        assert block is None

    def test_take_until_skips_nested_delimiters(self):
        cursor = Cursor(atoms("f(a, b), c"))
        expr = take_until(cursor, lambda a: is_op(a, ","))
        assert [a.text for a in expr] == ["f", "(a, b)"]
        assert is_op(cursor.peek(), ",")
