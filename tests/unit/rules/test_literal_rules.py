"""Unit tests for literal rules (regexp, template and time layouts)."""

import pytest

from bugvet.rules.base import LIKELY_BUG, Severity
from bugvet.rules.config import RuleConfig, RuleEngineConfig
from bugvet.rules.literals.regexp import InvalidRegexRule
from bugvet.rules.literals.template import InvalidTemplateRule
from bugvet.rules.literals.time_layout import InvalidTimeLayoutRule
from bugvet.syntax.types import Named, Pointer, Struct


def template_type(pkg: str) -> Pointer:
    named = Named(pkg=pkg, name="Template")
    named.bind(Struct(()))
    return Pointer(named)


# =============================================================================
# Invalid Regex Rule Tests
# =============================================================================


class TestInvalidRegexRule:
    """Tests for LITERALS.INVALID_REGEX."""

    @pytest.fixture
    def rule(self):
        return InvalidRegexRule()

    def test_rule_metadata(self, rule):
        """Test rule metadata."""
        assert rule.rule_id == "LITERALS.INVALID_REGEX"
        assert rule.category == "literals"
        assert rule.default_severity == Severity.HIGH

    def test_unbalanced_bracket_reported(self, rule, go, run_rule):
        """Test that an unterminated character class is reported."""
        arg = go.string("[a-z")
        file = go.file(go.stmt(go.call("regexp", "Compile", arg)))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert findings[0].message.startswith("error parsing regexp: ")
        assert findings[0].node is arg
        assert findings[0].line == arg.pos.line
        assert findings[0].tag == LIKELY_BUG

    def test_valid_pattern_not_reported(self, rule, go, run_rule):
        """Test that a valid pattern is accepted."""
        file = go.file(go.stmt(go.call("regexp", "Compile", go.string("[a-z]+"))))
        assert run_rule(rule, file) == []

    def test_must_compile_checked(self, rule, go, run_rule):
        """Test that MustCompile is checked the same way."""
        file = go.file(go.stmt(go.call("regexp", "MustCompile", go.string("(abc"))))
        assert len(run_rule(rule, file)) == 1

    def test_lookahead_reported_with_re2_wording(self, rule, go, run_rule):
        """Test that Perl-only syntax is reported as RE2 would."""
        file = go.file(go.stmt(go.call("regexp", "Compile", go.string("foo(?=bar)"))))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert "invalid or unsupported Perl syntax: `(?=`" in findings[0].message

    def test_re2_named_group_accepted(self, rule, go, run_rule):
        """Test that (?<name>...) groups are accepted."""
        file = go.file(
            go.stmt(go.call("regexp", "Compile", go.string(r"(?<year>\d{4})-(?P<m>\d\d)")))
        )
        assert run_rule(rule, file) == []

    def test_error_after_unicode_class_reported(self, rule, go, run_rule):
        """Test that a Unicode class does not hide a later error."""
        file = go.file(go.stmt(go.call("regexp", "Compile", go.string(r"\p{Greek}+["))))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert findings[0].message == "error parsing regexp: missing closing ]: `[`"

    @pytest.mark.parametrize("pattern", [r"[\p{L}\p{N}]+", r"[\x{41}-\x{5A}]", r"^[\pL_]+$"])
    def test_escapes_inside_class_accepted(self, rule, go, run_rule, pattern):
        """Test that RE2 escapes inside brackets are accepted."""
        file = go.file(go.stmt(go.call("regexp", "Compile", go.string(pattern))))
        assert run_rule(rule, file) == []

    @pytest.mark.parametrize(
        "pattern",
        ["(?P<n>a)(?P=n)", "(?x)a b", "a{2}+", r"\p{Bogus}", "[[:bogus:]]", "(?u)a"],
    )
    def test_perl_only_syntax_reported(self, rule, go, run_rule, pattern):
        """Test that syntax Go's regexp rejects is reported exactly once."""
        arg = go.string(pattern)
        file = go.file(go.stmt(go.call("regexp", "MustCompile", arg)))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert findings[0].node is arg

    def test_non_constant_argument_skipped(self, rule, go, run_rule):
        """Test that a variable argument is not reported."""
        file = go.file(go.stmt(go.call("regexp", "Compile", go.ident("pattern"))))
        assert run_rule(rule, file) == []

    def test_folded_constant_checked(self, rule, go, run_rule):
        """Test that a constant-folded identifier is checked."""
        arg = go.const(go.ident("pattern"), "a)")
        file = go.file(go.stmt(go.call("regexp", "Compile", arg)))
        assert len(run_rule(rule, file)) == 1

    def test_wrong_arity_skipped(self, rule, go, run_rule):
        """Test that calls with another argument count are ignored."""
        call = go.call("regexp", "Compile", go.string("["), go.string("["))
        assert run_rule(rule, go.file(go.stmt(call))) == []

    def test_other_package_skipped(self, rule, go, run_rule):
        """Test that Compile from another package is ignored."""
        file = go.file(go.stmt(go.call("mylib", "Compile", go.string("["))))
        assert run_rule(rule, file) == []

    def test_resolved_callee_wins(self, rule, go, run_rule):
        """Test that a renamed import is matched through TypeInfo."""
        call = go.call("re", "MustCompile", go.string("["), resolved="regexp.MustCompile")
        assert len(run_rule(rule, go.file(go.stmt(call)))) == 1

    def test_resolved_callee_mismatch(self, rule, go, run_rule):
        """Test that a resolved non-regexp callee is not matched syntactically."""
        call = go.call("regexp", "Compile", go.string("["), resolved="example.com/regexp.Compile")
        assert run_rule(rule, go.file(go.stmt(call))) == []


# =============================================================================
# Invalid Template Rule Tests
# =============================================================================


class TestInvalidTemplateRule:
    """Tests for LITERALS.INVALID_TEMPLATE."""

    @pytest.fixture
    def rule(self):
        return InvalidTemplateRule()

    def parse_call(self, go, source: str, pkg: str = "text/template"):
        recv = go.ident("t", template_type(pkg))
        return go.method_call(recv, "Parse", go.string(source))

    def test_rule_metadata(self, rule):
        """Test rule metadata."""
        assert rule.rule_id == "LITERALS.INVALID_TEMPLATE"
        assert rule.parameters == {"reportSubstring": "unexpected"}

    def test_unbalanced_delimiter_reported(self, rule, go, run_rule):
        """Test that a malformed action is reported."""
        file = go.file(go.stmt(self.parse_call(go, "{{.Foo}")))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert findings[0].message.startswith("template: :1: ")
        assert 'unexpected "}" in operand' in findings[0].message
        assert findings[0].data["dialect"] == "text"

    def test_missing_end_reported(self, rule, go, run_rule):
        """Test that an unterminated if is reported."""
        file = go.file(go.stmt(self.parse_call(go, "{{if .X}}\nyes\n")))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert "unexpected EOF" in findings[0].message

    def test_valid_template_not_reported(self, rule, go, run_rule):
        """Test that a valid template is accepted."""
        source = "{{range $i, $v := .Items}}{{$i}}: {{$v | printf \"%q\"}}\n{{end}}"
        file = go.file(go.stmt(self.parse_call(go, source)))
        assert run_rule(rule, file) == []

    def test_undefined_function_not_reported(self, rule, go, run_rule):
        """Test that errors without 'unexpected' are left alone."""
        file = go.file(go.stmt(self.parse_call(go, "{{myfunc .X}}")))
        assert run_rule(rule, file) == []

    def test_html_template_dialect(self, rule, go, run_rule):
        """Test that html/template receivers are checked as html."""
        file = go.file(go.stmt(self.parse_call(go, "<p>{{end}}</p>", pkg="html/template")))

        findings = run_rule(rule, file)

        assert len(findings) == 1
        assert "unexpected {{end}}" in findings[0].message
        assert findings[0].data["dialect"] == "html"

    def test_other_receiver_skipped(self, rule, go, run_rule):
        """Test that Parse on an unrelated type is ignored."""
        file = go.file(go.stmt(self.parse_call(go, "{{.Foo}", pkg="example.com/template")))
        assert run_rule(rule, file) == []

    def test_untyped_receiver_skipped(self, rule, go, run_rule):
        """Test that an unresolved receiver is ignored."""
        call = go.method_call(go.ident("t"), "Parse", go.string("{{.Foo}"))
        assert run_rule(rule, go.file(go.stmt(call))) == []

    def test_report_substring_configurable(self, rule, go, run_rule):
        """Test that the report filter comes from the rule parameters."""
        config = RuleEngineConfig(
            rules={"LITERALS.INVALID_TEMPLATE": RuleConfig(parameters={"reportSubstring": "not defined"})}
        )
        file = go.file(go.stmt(self.parse_call(go, "{{myfunc .X}}")))

        findings = run_rule(rule, file, config)

        assert len(findings) == 1
        assert 'function "myfunc" not defined' in findings[0].message


# =============================================================================
# Invalid Time Layout Rule Tests
# =============================================================================


class TestInvalidTimeLayoutRule:
    """Tests for LITERALS.INVALID_TIME_LAYOUT."""

    @pytest.fixture
    def rule(self):
        return InvalidTimeLayoutRule()

    @pytest.mark.parametrize(
        "layout",
        [
            "2006-01-02T15:04:05Z07:00",
            "Mon Jan _2 15:04:05 2006",
            "02 Jan 06 15:04 MST",
            "2006-01-02 15:04:05.000",
            "3:04PM",
        ],
    )
    def test_valid_layouts_not_reported(self, rule, go, run_rule, layout):
        """Test that well-known layouts are accepted."""
        call = go.call("time", "Parse", go.string(layout), go.ident("value"))
        assert run_rule(rule, go.file(go.stmt(call))) == []

    def test_month_out_of_range_reported(self, rule, go, run_rule):
        """Test that a misspelled month element is reported."""
        arg = go.string("2006-13-02")
        call = go.call("time", "Parse", arg, go.ident("value"))

        findings = run_rule(rule, go.file(go.stmt(call)))

        assert len(findings) == 1
        assert findings[0].message == 'parsing time "2006-13-02": month out of range'
        assert findings[0].node is arg

    def test_wrong_arity_skipped(self, rule, go, run_rule):
        """Test that calls with another argument count are ignored."""
        call = go.call("time", "Parse", go.string("2006-13-02"))
        assert run_rule(rule, go.file(go.stmt(call))) == []

    def test_other_function_skipped(self, rule, go, run_rule):
        """Test that time.ParseInLocation-like calls are not matched."""
        call = go.call("time", "ParseDuration", go.string("2006-13-02"), go.ident("v"))
        assert run_rule(rule, go.file(go.stmt(call))) == []
