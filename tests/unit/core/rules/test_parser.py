"""Tests for the trigger rule parser."""

import dataclasses

import pytest

from hookman.core.rules import parse_rule
from hookman.core.rules.ast import (
    AndRule,
    ArgumentReference,
    MatchRule,
    MatchType,
    NotRule,
    OrRule,
    ParameterSource,
)
from hookman.core.rules.exceptions import RuleLexError, RuleNestingError, RuleSyntaxError
from hookman.core.rules.parser import MAX_NESTING_DEPTH, RuleParser


def match(name: str, value: str) -> MatchRule:
    """Value match rule on a header, as produced by '"header.<name>" == "<value>"'."""
    return MatchRule(MatchType.VALUE, ArgumentReference(ParameterSource.HEADER, name), value=value)


A = '"header.a" == "1"'
B = '"header.b" == "2"'
C = '"header.c" == "3"'
D = '"header.d" == "4"'


class TestMatchRules:
    """Test parsing single match rules."""

    def test_value_match(self):
        """Test parsing a value match."""
        rule = RuleParser('"header.X" == "foo"').parse()
        assert rule == MatchRule(
            MatchType.VALUE, ArgumentReference(ParameterSource.HEADER, "X"), value="foo"
        )

    def test_regex_match(self):
        """Test parsing a regex match."""
        rule = RuleParser('"payload.body" ~= "^ab.*"').parse()
        assert rule == MatchRule(
            MatchType.REGEX, ArgumentReference(ParameterSource.PAYLOAD, "body"), regex="^ab.*"
        )

    def test_sha1_match(self):
        """Test parsing a sha1 hash match."""
        rule = RuleParser('"header.X" == sha1("payload.body", "secret")').parse()
        assert rule == MatchRule(
            MatchType.HASH_SHA1, ArgumentReference(ParameterSource.HEADER, "X"), secret="secret"
        )

    def test_sha1_match_plain_payload_target(self):
        """Test sha1 with the bare payload target, any case and quoting."""
        rule = RuleParser("'header.X-Hub-Signature' == SHA1('payload', 'k3y')").parse()
        assert rule.type == MatchType.HASH_SHA1
        assert rule.secret == "k3y"
        assert rule.parameter.name == "X-Hub-Signature"

    def test_single_quoted_literals(self):
        """Test that single and double quotes can be mixed."""
        rule = RuleParser("'query.token' == \"abc\"").parse()
        assert rule == MatchRule(
            MatchType.VALUE, ArgumentReference(ParameterSource.QUERY, "token"), value="abc"
        )

    def test_string_source_and_dotted_name(self):
        """Test the string source and a name containing dots."""
        rule = RuleParser('"string.a.b.c" == "x"').parse()
        assert rule.parameter == ArgumentReference(ParameterSource.STRING, "a.b.c")

    def test_escaped_quote_in_value(self):
        """Test that escaped quotes reach the match value unescaped."""
        rule = RuleParser(r"'header.a' == 'it\'s'").parse()
        assert rule.value == "it's"


class TestLogicalRules:
    """Test and, or, not and grouping."""

    def test_and(self):
        """Test parsing a conjunction."""
        assert RuleParser(f"{A} && {B}").parse() == AndRule((match("a", "1"), match("b", "2")))

    def test_or(self):
        """Test parsing a disjunction."""
        assert RuleParser(f"{A} || {B}").parse() == OrRule((match("a", "1"), match("b", "2")))

    def test_long_runs_stay_flat(self):
        """Test that a run of the same operator produces one node."""
        rule = RuleParser(f"{A} && {B} && {C}").parse()
        assert rule == AndRule((match("a", "1"), match("b", "2"), match("c", "3")))

        rule = RuleParser(f"{A} || {B} || {C}").parse()
        assert rule == OrRule((match("a", "1"), match("b", "2"), match("c", "3")))

    def test_and_then_or(self):
        """Test a && b || c."""
        rule = RuleParser(f"{A} && {B} || {C}").parse()
        assert rule == OrRule((AndRule((match("a", "1"), match("b", "2"))), match("c", "3")))

    def test_or_then_and(self):
        """Test a || b && c."""
        rule = RuleParser(f"{A} || {B} && {C}").parse()
        assert rule == OrRule((match("a", "1"), AndRule((match("b", "2"), match("c", "3")))))

    def test_mixed_runs(self):
        """Test a && b || c && d."""
        rule = RuleParser(f"{A} && {B} || {C} && {D}").parse()
        assert rule == OrRule((
            AndRule((match("a", "1"), match("b", "2"))),
            AndRule((match("c", "3"), match("d", "4"))),
        ))

    def test_not(self):
        """Test parsing a not rule."""
        rule = RuleParser('!("header.b" == "c")').parse()
        assert rule == NotRule(match("b", "c"))

    def test_not_of_group(self):
        """Test a not rule around a conjunction."""
        rule = RuleParser(f"!({A} && {B})").parse()
        assert rule == NotRule(AndRule((match("a", "1"), match("b", "2"))))

    def test_not_as_operand(self):
        """Test a not rule combined with other rules."""
        rule = RuleParser(f"{A} && !({B})").parse()
        assert rule == AndRule((match("a", "1"), NotRule(match("b", "2"))))

    def test_grouping(self):
        """Test that parentheses override the default grouping."""
        rule = RuleParser(f"({A} || {B}) && {C}").parse()
        assert rule == AndRule((OrRule((match("a", "1"), match("b", "2"))), match("c", "3")))

    def test_single_rule_groups_do_not_nest(self):
        """Test that redundant parentheses are dropped."""
        assert RuleParser(f"(({A}))").parse() == match("a", "1")

    def test_nested_groups(self):
        """Test groups inside groups."""
        rule = RuleParser(f"({A} && ({B} || !({C})))").parse()
        assert rule == AndRule((
            match("a", "1"),
            OrRule((match("b", "2"), NotRule(match("c", "3")))),
        ))

    def test_deterministic(self):
        """Test that parsing the same text twice gives equal trees."""
        text = f"({A} || {B}) && !({C}) || {D}"
        assert RuleParser(text).parse() == RuleParser(text).parse()

    def test_tree_is_immutable(self):
        """Test that parsed rules cannot be modified."""
        rule = RuleParser(f"{A} && {B}").parse()
        assert isinstance(rule.rules, tuple)
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.rules = ()

    def test_parse_rule_function(self):
        """Test the module level parse_rule helper."""
        assert parse_rule(A) == match("a", "1")


class TestOperatorErrors:
    """Test errors around && and ||."""

    def test_dangling_and(self):
        """Test a trailing &&."""
        with pytest.raises(RuleSyntaxError, match="expected valid rule") as exc_info:
            RuleParser('"header.b" == "c" &&').parse()
        assert exc_info.value.token == "<EOF>"
        assert exc_info.value.position == 13

    def test_dangling_or(self):
        """Test a trailing ||."""
        with pytest.raises(RuleSyntaxError, match="expected valid rule"):
            RuleParser(f"{A} && {B} ||").parse()

    def test_leading_operator(self):
        """Test an operator with no left operand."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"&& {A}").parse()
        assert exc_info.value.token == "&&"
        assert exc_info.value.position == 0

    def test_double_operator(self):
        """Test two operators in a row."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"{A} && || {B}").parse()
        assert exc_info.value.token == "||"
        assert exc_info.value.position == 13

    def test_missing_operator(self):
        """Test two operands with no operator between them."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"{A} {B}").parse()
        assert exc_info.value.token == "header.b"
        assert exc_info.value.position == 11


class TestStructureErrors:
    """Test errors in rule structure."""

    def test_empty_rule(self):
        """Test an empty expression."""
        with pytest.raises(RuleSyntaxError, match="invalid rule") as exc_info:
            RuleParser("").parse()
        assert str(exc_info.value) == "invalid rule (token: <EOF>, pos: 0)"

    def test_empty_group(self):
        """Test an empty group."""
        with pytest.raises(RuleSyntaxError, match="error parsing expression group") as exc_info:
            RuleParser("()").parse()
        assert str(exc_info.value) == (
            "error parsing expression group (token: (, pos: 0)\n"
            "\tinvalid rule (token: ), pos: 1)"
        )
        assert isinstance(exc_info.value.__cause__, RuleSyntaxError)

    def test_error_inside_not(self):
        """Test an error inside a not rule."""
        with pytest.raises(RuleSyntaxError, match="error parsing not rule") as exc_info:
            RuleParser(f"!({A} ||)").parse()
        assert exc_info.value.position == 0
        assert "\n\texpected valid rule (token: ), pos: 15)" in str(exc_info.value)

    def test_missing_closing_parenthesis(self):
        """Test an unclosed group."""
        with pytest.raises(RuleLexError, match="missing closing parenthesis"):
            RuleParser('(("header.b"=="c")').parse()

    def test_extra_closing_parenthesis(self):
        """Test an unmatched closing parenthesis."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"{A})").parse()
        assert exc_info.value.token == ")"
        assert exc_info.value.position == 11

    def test_extra_closing_parenthesis_before_group(self):
        """Test an unmatched ) balanced by a later (."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"){A}(").parse()
        assert exc_info.value.position == 0

    def test_not_without_group(self):
        """Test ! that is not followed by a parenthesis."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser(f"!{A}").parse()
        assert exc_info.value.token == "!"

    def test_lone_literal(self):
        """Test a literal that is not part of a match rule."""
        with pytest.raises(RuleSyntaxError, match="unexpected token"):
            RuleParser('"header.a"').parse()

    def test_stray_sha1(self):
        """Test sha1 outside a match rule."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser("sha1").parse()
        assert exc_info.value.token == "sha1"

    def test_malformed_sha1_call(self):
        """Test a sha1 call missing its comma."""
        with pytest.raises(RuleSyntaxError, match="unexpected token") as exc_info:
            RuleParser('"header.a" == sha1("payload" "secret")').parse()
        assert exc_info.value.token == "header.a"

    def test_lexical_error(self):
        """Test that lexical errors surface from the parser."""
        with pytest.raises(RuleLexError, match="missing closing quotation mark"):
            RuleParser("\"header.a\" == 'x").parse()

    def test_nesting_at_limit(self):
        """Test that groups nested up to the limit still parse."""
        levels = MAX_NESTING_DEPTH - 1
        rule = parse_rule("(" * levels + A + ")" * levels)
        assert rule == match("a", "1")

    def test_nesting_too_deep(self):
        """Test that very deep groups fail with a rule error."""
        with pytest.raises(RuleNestingError, match="expression nested too deeply") as exc_info:
            parse_rule("(" * 600 + A + ")" * 600)
        assert isinstance(exc_info.value, RuleSyntaxError)
        assert exc_info.value.token == "("
        assert exc_info.value.position == MAX_NESTING_DEPTH
        assert not str(exc_info.value).startswith("error parsing expression group")

    def test_not_nesting_too_deep(self):
        """Test that very deep not rules fail with a rule error."""
        with pytest.raises(RuleNestingError, match="expression nested too deeply"):
            RuleParser("!(" * 600 + A + ")" * 600).parse()


class TestParameterErrors:
    """Test validation of parameter references."""

    def test_invalid_source(self):
        """Test an unknown parameter source."""
        with pytest.raises(RuleSyntaxError, match="invalid parameter source") as exc_info:
            RuleParser('"foo.bar" == "x"').parse()
        assert str(exc_info.value) == (
            "invalid parameter source (token: foo.bar, pos: 0)\n"
            "\tparameter source must be one of [header, payload, query, string]"
        )

    def test_missing_dot(self):
        """Test a parameter without a source."""
        with pytest.raises(RuleSyntaxError, match="invalid argument format"):
            RuleParser('"header" ~= "x"').parse()

    def test_empty_name(self):
        """Test a parameter with an empty name."""
        with pytest.raises(RuleSyntaxError, match="invalid parameter name"):
            RuleParser('"header." == "x"').parse()

    def test_invalid_sha1_target(self):
        """Test sha1 over something other than the payload."""
        with pytest.raises(RuleSyntaxError, match="invalid sha1 target") as exc_info:
            RuleParser('"header.X" == sha1("query.q", "secret")').parse()
        assert exc_info.value.token == "query.q"
        assert exc_info.value.position == 15
        assert "sha1 target must be payload" in str(exc_info.value)

    @pytest.mark.parametrize("target", ["payload.", "payloads", "payloads.body", ""])
    def test_sha1_target_must_be_payload_reference(self, target):
        """Test that the sha1 target is payload or a payload.<name> reference."""
        with pytest.raises(RuleSyntaxError, match="invalid sha1 target") as exc_info:
            RuleParser(f'"header.X" == sha1("{target}", "s")').parse()
        assert exc_info.value.token == target

    def test_sha1_parameter_validated(self):
        """Test that the compared parameter of a sha1 match is validated."""
        with pytest.raises(RuleSyntaxError, match="invalid parameter source"):
            RuleParser('"body.X" == sha1("payload", "secret")').parse()

    def test_nested_error_indentation(self):
        """Test that nested errors are indented once per level."""
        with pytest.raises(RuleSyntaxError) as exc_info:
            RuleParser('("foo.bar" == "x")').parse()
        assert str(exc_info.value) == (
            "error parsing expression group (token: (, pos: 0)\n"
            "\tinvalid parameter source (token: foo.bar, pos: 1)\n"
            "\t\tparameter source must be one of [header, payload, query, string]"
        )

    def test_deeply_nested_error(self):
        """Test error wrapping across a group and a not rule."""
        with pytest.raises(RuleSyntaxError) as exc_info:
            RuleParser(f"{A} && (!({B} &&))").parse()

        lines = str(exc_info.value).split("\n")
        assert lines[0].startswith("error parsing expression group")
        assert lines[1].startswith("\terror parsing not rule")
        assert lines[2].startswith("\t\texpected valid rule")
