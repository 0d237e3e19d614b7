"""Tests for routelint.pattern — route template parsing."""

from routelint.pattern import (
    LiteralNode,
    ReplacementNode,
    RouteParameter,
    parse,
    parse_template,
)
from routelint.pattern import parser as msgs
from routelint.text import TextSpan
from routelint.virtual_chars import convert_to_virtual_chars


def _messages(template: str, *, allow: bool = False) -> list[str]:
    return [d.message for d in parse_template(template, allow_token_replacement=allow).diagnostics]


# ---------------------------------------------------------------------------
# Valid templates
# ---------------------------------------------------------------------------


class TestValidTemplates:
    def test_literal_segments(self) -> None:
        tree = parse_template("/users/list")

        assert tree.diagnostics == ()
        assert [s.parts for s in tree.segments] == [
            (LiteralNode("users", TextSpan(1, 5)),),
            (LiteralNode("list", TextSpan(7, 4)),),
        ]

    def test_parameter_with_policy(self) -> None:
        tree = parse_template("/users/{id:int}")
        param = tree.route_parameters["id"]

        assert tree.diagnostics == ()
        assert param.policies == (":int",)
        assert param.span == TextSpan(7, 8)
        assert param.name_span == TextSpan(8, 2)

    def test_multiple_policies_keep_text(self) -> None:
        param = parse_template("/{age:int:range(18,120)}").route_parameters["age"]
        assert "".join(param.policies) == ":int:range(18,120)"

    def test_equals_inside_policy_is_not_a_default(self) -> None:
        param = parse_template("/{id:regex(a=b)}").route_parameters["id"]

        assert param.policies == (":regex(a=b)",)
        assert param.default_value is None

    def test_default_value(self) -> None:
        param = parse_template("/{page=1}").route_parameters["page"]

        assert param.default_value == "1"
        assert not param.is_optional

    def test_optional(self) -> None:
        param = parse_template("/{id?}").route_parameters["id"]

        assert param.is_optional
        assert param.name == "id"

    def test_catch_all(self) -> None:
        tree = parse_template("/files/{*path}")
        param = tree.route_parameters["path"]

        assert tree.diagnostics == ()
        assert param.is_catch_all
        assert not param.spans_segments

    def test_double_star_catch_all(self) -> None:
        param = parse_template("/files/{**path}").route_parameters["path"]

        assert param.is_catch_all
        assert param.spans_segments

    def test_complex_segment(self) -> None:
        tree = parse_template("/{name}.{ext?}")

        assert tree.diagnostics == ()
        parts = tree.segments[0].parts
        assert [type(p) for p in parts] == [RouteParameter, LiteralNode, RouteParameter]
        assert not tree.segments[0].is_simple

    def test_trailing_slash(self) -> None:
        tree = parse_template("/a/")

        assert tree.diagnostics == ()
        assert len(tree.segments) == 1

    def test_tilde_prefix(self) -> None:
        assert _messages("~/a/{id}") == []

    def test_relative_template(self) -> None:
        tree = parse_template("a/{b}")

        assert tree.diagnostics == ()
        assert list(tree.route_parameters) == ["b"]

    def test_empty_template(self) -> None:
        tree = parse_template("")

        assert tree.segments == ()
        assert tree.diagnostics == ()


# ---------------------------------------------------------------------------
# Structural diagnostics
# ---------------------------------------------------------------------------


class TestDiagnostics:
    def test_empty_parameter_returns_tree(self) -> None:
        tree = parse_template("/a/{}")

        assert len(tree.diagnostics) == 1
        assert tree.diagnostics[0].span == TextSpan(3, 2)
        assert len(tree.route_parameters) == 0
        assert tree.segments[0].parts[0].value == "a"  # type: ignore[union-attr]

    def test_consecutive_separators(self) -> None:
        tree = parse_template("/a//b")

        assert [d.message for d in tree.diagnostics] == [msgs.CONSECUTIVE_SEPARATORS]
        assert tree.diagnostics[0].span == TextSpan(3, 1)

    def test_tilde_without_slash(self) -> None:
        tree = parse_template("~a")

        assert [d.message for d in tree.diagnostics] == [msgs.INVALID_TILDE]
        assert tree.diagnostics[0].span == TextSpan(0, 1)

    def test_unclosed_parameter(self) -> None:
        tree = parse_template("/a/{id")

        assert [d.message for d in tree.diagnostics] == [msgs.INCOMPLETE_PARAMETER]
        assert tree.diagnostics[0].span == TextSpan(3, 3)
        assert len(tree.route_parameters) == 0

    def test_stray_closing_brace(self) -> None:
        assert _messages("/a}") == [msgs.INCOMPLETE_PARAMETER]

    def test_brace_inside_parameter(self) -> None:
        assert _messages("/{a{b}") == [msgs.UNESCAPED_BRACE]

    def test_invalid_name(self) -> None:
        assert _messages("/{a/b}") != []
        assert _messages("/{a*b}") == [msgs.INVALID_PARAMETER_NAME.format("a*b")]

    def test_empty_policy(self) -> None:
        tree = parse_template("/{id:}")

        assert [d.message for d in tree.diagnostics] == [msgs.EMPTY_POLICY.format("id")]
        assert tree.diagnostics[0].span == TextSpan(4, 1)
        assert tree.route_parameters["id"].policies == ()

    def test_optional_with_default(self) -> None:
        assert _messages("/{id=3?}") == [msgs.OPTIONAL_WITH_DEFAULT]

    def test_optional_catch_all(self) -> None:
        assert _messages("/{*path?}") == [msgs.OPTIONAL_CATCH_ALL]

    def test_catch_all_not_last(self) -> None:
        tree = parse_template("/{*path}/b")

        assert [d.message for d in tree.diagnostics] == [msgs.CATCH_ALL_NOT_LAST]
        assert tree.diagnostics[0].span == TextSpan(1, 7)

    def test_catch_all_in_complex_segment(self) -> None:
        assert _messages("/x{*path}") == [msgs.CATCH_ALL_IN_COMPLEX_SEGMENT]

    def test_consecutive_parameters(self) -> None:
        assert _messages("/{a}{b}") == [msgs.CONSECUTIVE_PARAMETERS]

    def test_optional_not_last_in_segment(self) -> None:
        expected = msgs.OPTIONAL_NOT_LAST.format("{a?}.{b}", "a", ".")
        assert _messages("/{a?}.{b}") == [expected]

    def test_optional_preceded_by_non_period(self) -> None:
        expected = msgs.OPTIONAL_BAD_PRECEDING.format("{name}-{ext?}", "ext", "-")
        assert _messages("/{name}-{ext?}") == [expected]

    def test_question_mark_in_literal(self) -> None:
        assert _messages("/a?b") == [msgs.QUESTION_MARK_IN_LITERAL.format("a?b")]

    def test_reports_every_problem_in_order(self) -> None:
        tree = parse_template("/a//{}/{b")
        starts = [d.span.start for d in tree.diagnostics]

        assert len(tree.diagnostics) == 3
        assert starts == sorted(starts)


# ---------------------------------------------------------------------------
# Duplicates and case-insensitivity
# ---------------------------------------------------------------------------


class TestParameterNames:
    def test_duplicate_keeps_first(self) -> None:
        tree = parse_template("/a/{x}/{x}")

        assert [d.message for d in tree.diagnostics] == [msgs.DUPLICATE_PARAMETER.format("x")]
        assert tree.diagnostics[0].span == TextSpan(7, 3)
        assert tree.route_parameters["x"].span == TextSpan(3, 3)
        assert len(tree.route_parameters) == 1
        assert len(tree.parameters) == 2

    def test_duplicates_differ_only_in_case(self) -> None:
        tree = parse_template("/{id}/{ID}")

        assert len(tree.diagnostics) == 1
        assert tree.route_parameters["Id"].name == "id"

    def test_lookup_is_case_insensitive(self) -> None:
        tree = parse_template("/{UserId}")

        assert "userid" in tree.route_parameters
        assert list(tree.route_parameters) == ["UserId"]


# ---------------------------------------------------------------------------
# Token replacement
# ---------------------------------------------------------------------------


class TestTokenReplacement:
    def test_replacement_token(self) -> None:
        tree = parse_template("/[controller]/{id}", allow_token_replacement=True)

        assert tree.diagnostics == ()
        assert tree.segments[0].parts == (ReplacementNode("controller", TextSpan(1, 12)),)

    def test_replacement_not_allowed(self) -> None:
        tree = parse_template("/[controller]")

        assert [d.message for d in tree.diagnostics] == [
            msgs.TOKEN_REPLACEMENT_NOT_ALLOWED.format("[controller]")
        ]
        assert tree.diagnostics[0].span == TextSpan(1, 12)

    def test_escaped_braces(self) -> None:
        tree = parse_template("/{{x}}", allow_token_replacement=True)

        assert tree.diagnostics == ()
        assert tree.segments[0].parts == (LiteralNode("{x}", TextSpan(1, 5)),)
        assert len(tree.route_parameters) == 0

    def test_escaped_braces_not_allowed(self) -> None:
        assert _messages("/{{x}}") == [
            msgs.ESCAPED_BRACE_NOT_ALLOWED.format("{{"),
            msgs.ESCAPED_BRACE_NOT_ALLOWED.format("}}"),
        ]

    def test_escaped_brackets_not_allowed(self) -> None:
        tree = parse_template("/[[x]]")

        assert [(d.message, d.span) for d in tree.diagnostics] == [
            (msgs.TOKEN_REPLACEMENT_NOT_ALLOWED.format("[["), TextSpan(1, 2)),
            (msgs.TOKEN_REPLACEMENT_NOT_ALLOWED.format("]]"), TextSpan(4, 2)),
        ]

    def test_escaped_brackets(self) -> None:
        tree = parse_template("/[[x]]", allow_token_replacement=True)

        assert tree.diagnostics == ()
        assert tree.segments[0].parts == (LiteralNode("[x]", TextSpan(1, 5)),)

    def test_empty_replacement(self) -> None:
        assert _messages("/[]", allow=True) == [msgs.EMPTY_REPLACEMENT]

    def test_unclosed_replacement(self) -> None:
        assert _messages("/[abc", allow=True) == [msgs.UNCLOSED_REPLACEMENT]

    def test_unescaped_close(self) -> None:
        assert _messages("/a]", allow=True) == [msgs.UNESCAPED_REPLACEMENT_CLOSE]


# ---------------------------------------------------------------------------
# Source spans through escapes
# ---------------------------------------------------------------------------


class TestSpanFidelity:
    def test_spans_point_at_source_text(self) -> None:
        token = r'"/users/\x7bid}"'
        tree = parse(convert_to_virtual_chars(token, 100))
        assert tree is not None

        param = tree.route_parameters["id"]
        assert tree.text == "/users/{id}"
        assert param.span == TextSpan(108, 7)
        assert param.name_span == TextSpan(112, 2)

    def test_none_in_none_out(self) -> None:
        assert parse(None) is None

    def test_parsing_is_deterministic(self) -> None:
        template = "/a/{id:int}/{x}/{x}/[t]/{{"
        first = parse_template(template)
        second = parse_template(template)

        assert first == second
        assert first.diagnostics == second.diagnostics
