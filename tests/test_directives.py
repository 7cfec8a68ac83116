# Tests for the alt-text directive parser
"""
Test the directive syntax: `@name(key, key=number, key="text")`.
"""

import logging

import pytest

from shadestag.directives import (
    parse_arguments,
    parse_directives,
    parse_filters,
    parse_value,
    scan_directives,
)
from shadestag.exceptions import DirectiveSyntaxError
from shadestag.filters import (
    BoostLightness,
    Contrast,
    DarkMode,
    Invert,
    ParameterValue,
    Transparent,
    ValueKind,
)


class TestValueParsing:
    """Tests for coercing a single argument value."""

    def test_integer(self):
        value = parse_value("20")
        assert value.kind is ValueKind.NUMBER
        assert value.number == 20
        assert isinstance(value.number, int)

    def test_signed_integer(self):
        assert parse_value("-3").number == -3
        assert parse_value("+2").number == 2

    def test_fraction(self):
        value = parse_value("1.1")
        assert isinstance(value.number, float)
        assert value.number == 1.1
        assert parse_value("-0.5").number == -0.5
        assert parse_value(".5").number == 0.5
        assert parse_value("2.").number == 2.0

    def test_quoted_text(self):
        value = parse_value('"below"')
        assert value.kind is ValueKind.TEXT
        assert value.text == "below"

    def test_quoted_text_unescapes(self):
        assert parse_value(r'"say \"hi\" \(ok\)"').text == 'say "hi" (ok)'
        assert parse_value(r'"back\\slash"').text == "back\\slash"

    def test_unquoted_text_is_invalid(self):
        with pytest.raises(DirectiveSyntaxError):
            parse_value("below")

    def test_number_with_garbage_is_invalid(self):
        with pytest.raises(DirectiveSyntaxError):
            parse_value("1.2.3")


class TestArgumentParsing:
    """Tests for parsing an argument list."""

    def test_mixed_entries(self):
        params = parse_arguments('threshold=20, remove="below", strict')
        assert params == {
            "threshold": ParameterValue.of_number(20),
            "remove": ParameterValue.of_text("below"),
            "strict": ParameterValue.of_flag(True),
        }

    def test_whitespace_is_insignificant(self):
        assert parse_arguments("  amount =  1.5 ,  ") == {"amount": ParameterValue.of_number(1.5)}

    def test_later_duplicate_wins(self):
        assert parse_arguments("amount=1, amount=2")["amount"].number == 2

    def test_comma_inside_quotes(self):
        assert parse_arguments('label="a, b", x=1')["label"].text == "a, b"

    def test_invalid_key(self):
        with pytest.raises(DirectiveSyntaxError):
            parse_arguments("am ount=1")

    def test_empty(self):
        assert parse_arguments("") == {}
        assert parse_arguments("   ") == {}


class TestDirectiveScanning:
    """Tests for scanning annotation text."""

    def test_bare_directive(self):
        specs = parse_directives("@invert")
        assert [s.name for s in specs] == ["invert"]
        assert specs[0].parameters == {}

    def test_empty_parentheses(self):
        assert parse_directives("@invert()")[0].parameters == {}

    def test_order_follows_text(self):
        specs = parse_directives("@boost-lightness @invert @contrast(amount=2)")
        assert [s.name for s in specs] == ["boost-lightness", "invert", "contrast"]

    def test_directives_inside_prose(self):
        specs = parse_directives("Architecture diagram @darkmode, drawn by hand")
        assert [s.name for s in specs] == ["darkmode"]

    def test_example_annotation(self):
        specs = parse_directives('@transparent(threshold=20,remove="below") @boost-lightness(amount=1.1)')
        assert [s.name for s in specs] == ["transparent", "boost-lightness"]
        assert specs[0].parameters["threshold"].number == 20
        assert specs[0].parameters["remove"].text == "below"
        assert specs[1].parameters["amount"].number == 1.1

    def test_names_are_case_insensitive(self):
        assert [s.name for s in parse_directives("@Invert")] == ["invert"]

    def test_unknown_names_are_dropped(self):
        assert [s.name for s in parse_directives("@unknown @invert @nope(x=1)")] == ["invert"]

    def test_scan_keeps_unknown_names(self):
        assert [s.name for s in scan_directives("@unknown @invert")] == ["unknown", "invert"]

    def test_malformed_value_skips_only_that_directive(self):
        specs = parse_directives("@contrast(amount=abc) @invert")
        assert [s.name for s in specs] == ["invert"]

    def test_unbalanced_parenthesis_skips_directive(self):
        specs = parse_directives("@contrast(amount=1 @invert")
        assert [s.name for s in specs] == ["invert"]

    def test_nested_parenthesis_skips_directive(self):
        specs = parse_directives("@contrast(amount=(1)) @invert")
        assert [s.name for s in specs] == ["invert"]

    def test_unterminated_quote_skips_directive(self):
        specs = parse_directives('@transparent(remove="below) @invert')
        assert [s.name for s in specs] == ["invert"]

    def test_quoted_parenthesis_and_at_sign(self):
        specs = scan_directives(r'@label(text="a \) @invert") @contrast')
        assert [s.name for s in specs] == ["label", "contrast"]
        assert specs[0].parameters["text"].text == "a ) @invert"

    def test_no_directives(self):
        assert parse_directives("") == []
        assert parse_directives("just a caption") == []
        assert parse_directives(None) == []


class TestFilterResolution:
    """Tests for turning directives into filters."""

    def test_example_chain(self):
        pipeline = parse_filters('@transparent(threshold=20,remove="below") @boost-lightness(amount=1.1)')
        assert pipeline[0] == Transparent(threshold=20, remove="below")
        assert pipeline[1] == BoostLightness(amount=1.1)
        assert pipeline.signatures() == [
            "transparent(threshold=20,remove=below)",
            "boost-lightness(amount=1.1)",
        ]

    def test_defaults(self):
        pipeline = parse_filters("@transparent @boost-lightness @contrast @sharpness @invert")
        assert pipeline.signatures() == [
            "transparent(threshold=13,remove=below)",
            "boost-lightness(amount=1.2)",
            "contrast(amount=1)",
            "sharpness(amount=1)",
            "invert",
        ]

    def test_dark_alias(self):
        pipeline = parse_filters("@dark")
        assert isinstance(pipeline[0], DarkMode)
        assert pipeline.signatures() == ["darkmode"]

    def test_wrong_types_fall_back_to_defaults(self):
        pipeline = parse_filters('@boost-lightness(amount="lots") @transparent(remove="sideways", threshold)')
        assert pipeline[0] == BoostLightness()
        assert pipeline[1] == Transparent()

    def test_color_threshold(self):
        pipeline = parse_filters('@transparent(threshold="#f0f0f0", remove="above")')
        assert pipeline[0].threshold == (240, 240, 240)
        assert pipeline.signatures() == ["transparent(threshold=f0f0f0,remove=above)"]

    def test_invalid_color_falls_back(self):
        pipeline = parse_filters('@transparent(threshold="not-a-color")')
        assert pipeline[0].threshold == Transparent.DEFAULT_THRESHOLD

    def test_flags_are_ignored_by_invert(self):
        assert parse_filters("@invert(strong)")[0] == Invert()

    def test_contrast_amount(self):
        assert parse_filters("@contrast(amount=0.5)")[0] == Contrast(amount=0.5)

    def test_determinism(self):
        text = '@darkmode @transparent(threshold=20) @sharpness(amount=0.25) @contrast'
        assert parse_filters(text).signatures() == parse_filters(text).signatures()

    def test_empty_chain(self):
        assert len(parse_filters("no directives here")) == 0

    def test_keys_are_case_insensitive(self):
        assert list(parse_arguments('Amount=2, REMOVE="above"')) == ["amount", "remove"]
        assert parse_filters("@boost-lightness(Amount=2)")[0] == BoostLightness(amount=2)

    def test_unknown_key_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="shadestag"):
            pipeline = parse_filters("@boost-lightness(amout=2)")
        assert pipeline[0] == BoostLightness()
        assert "unknown parameter 'amout'" in caplog.text

    def test_known_keys_are_not_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="shadestag"):
            parse_filters('@transparent(threshold=20, remove="above") @sharpness(amount=2)')
        assert caplog.records == []
