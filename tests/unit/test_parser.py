"""Unit tests for feature parser"""
import logging

import pytest
from gherkinsheet.parser.feature_parser import FeatureParser, ScenarioType


@pytest.fixture
def parser():
    return FeatureParser("features")


RULES_FEATURE = """
@feature-tag
Feature: Accounts

  Background:
    Given the service is up

  @rule-a
  Rule: Admins

    Background:
      Given an admin is logged in

    @own
    Scenario: Admin deletes user
      When the admin deletes "bob"
      Then "bob" is gone

  Rule: Guests

    Scenario: Guest browses
      When the guest opens the catalogue
      Then products are listed
"""


def test_scope_resolved_tags_and_background(parser):
    feature = parser.parse_text(RULES_FEATURE, "accounts.feature")
    admin, guest = feature.scenarios

    assert feature.name == "Accounts"
    assert admin.rule_name == "Admins"
    assert admin.effective_tags == ["@feature-tag", "@rule-a", "@own"]
    assert [s.text for s in admin.background] == ["the service is up", "an admin is logged in"]

    # the second Rule sees the Feature background only, never the first Rule's
    assert guest.rule_name == "Guests"
    assert guest.effective_tags == ["@feature-tag"]
    assert [s.text for s in guest.background] == ["the service is up"]


def test_new_feature_resets_rule_context(parser):
    text = """
Feature: One
  Rule: R1
    Background:
      Given r1 setup
    Scenario: A
      Given a

Feature: Two
  Scenario: B
    Given b
"""
    feature = parser.parse_text(text)
    first, second = feature.scenarios
    assert first.feature == "One" and first.rule_name == "R1"
    assert second.feature == "Two"
    assert second.rule_name == ""
    assert second.background == []


def test_tag_line_after_background_attaches_to_next_scenario(parser):
    text = """
Feature: Regression
  Background:
    Given setup
    And more setup
  @critical @smoke
  Scenario: Tagged
    Given step
"""
    feature = parser.parse_text(text)
    scenario = feature.scenarios[0]
    assert scenario.tags == ["@critical", "@smoke"]
    assert [s.text for s in scenario.background] == ["setup", "more setup"]
    assert [s.text for s in scenario.steps] == ["step"]


def test_dangling_tag_after_background_is_reported(parser, caplog):
    text = """
Feature: Dangling
  Background:
    Given setup
  @orphan
    Given not a header

  Scenario: Later
    Given x
"""
    with caplog.at_level(logging.WARNING):
        feature = parser.parse_text(text, "dangling.feature")

    assert "dangling.feature" in caplog.text
    assert [s.text for s in feature.scenarios[0].background] == ["setup"]
    assert feature.scenarios[0].tags == ["@orphan"]


def test_and_but_resolve_to_previous_base(parser):
    text = """
Feature: Steps
  Scenario: Mixed
    And leading and
    When act
    And act more
    Then check
    But not that
"""
    steps = parser.parse_text(text).scenarios[0].steps
    assert [(s.keyword, s.keyword_base) for s in steps] == [
        ("And", "Given"),
        ("When", "When"),
        ("And", "When"),
        ("Then", "Then"),
        ("But", "Then"),
    ]


def test_tables_and_doc_strings_attach_to_last_step(parser):
    text = "\n".join([
        "Feature: Continuations",
        "  Scenario: Payload",
        "    | orphan | row |",
        "    Given the headers",
        "      | key          | value            |",
        "      | Content-Type | application/json |",
        "    When I send",
        '      """',
        '      {"id": 1}',
        "      '''",
        '      """',
        "    Then ok",
    ])
    steps = parser.parse_text(text).scenarios[0].steps
    assert len(steps) == 3

    headers, send, _ = steps
    assert headers.data_table == [["key", "value"], ["Content-Type", "application/json"]]
    assert headers.text.split("\n")[1] == "| key          | value            |"

    # a ''' line inside a """ block does not close it
    assert send.doc_string == '{"id": 1}\n\'\'\''
    assert send.text == 'I send\n"""\n{"id": 1}\n\'\'\'\n"""'


def test_outline_examples_blocks_with_own_tags(parser):
    text = """
Feature: Outlines
  @outline-tag
  Scenario Outline: Login as <role>
    Given user is <role>

    @admins
    Examples: admins
      | role  | pin |
      # a comment inside the table region
      | admin | 1   |

    @guests
    Examples:
      | role  | pin |
      | guest |

    Examples: header only
      | role |

  Scenario: After
    Given done
"""
    scenarios = parser.parse_text(text).scenarios
    outline, after = scenarios

    assert outline.type is ScenarioType.OUTLINE
    assert outline.tags == ["@outline-tag"]
    assert [b.tags for b in outline.examples] == [["@admins"], ["@guests"]]
    assert outline.example_rows == [{"role": "admin", "pin": "1"}, {"role": "guest", "pin": ""}]

    assert after.type is ScenarioType.SCENARIO
    assert after.tags == []


def test_example_keyword_is_a_plain_scenario(parser):
    scenario = parser.parse_text("Feature: F\n  Example: Single\n    Given x\n").scenarios[0]
    assert scenario.type is ScenarioType.SCENARIO
    assert scenario.name == "Single"


def test_malformed_input_never_raises(parser):
    text = """
random preamble
  | table before anything |
  \"\"\"
  unterminated doc string
Scenario Outline: no feature <x>
  Examples:
"""
    feature = parser.parse_text(text)
    assert feature.name == ""
    assert feature.scenarios == []


def test_crlf_input_is_normalized(parser):
    feature = parser.parse_text("Feature: CRLF\r\n  Scenario: S\r\n    Given x\r\n")
    assert feature.scenarios[0].steps[0].text == "x"


def test_parse_features_filters_on_effective_tags(tmp_path):
    (tmp_path / "a.feature").write_text("@smoke\nFeature: A\n  Scenario: S1\n    Given x\n", encoding="utf-8")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "b.feature").write_text(
        "Feature: B\n  @smoke\n  Scenario: S2\n    Given y\n  Scenario: S3\n    Given z\n", encoding="utf-8")
    (tmp_path / "c.feature").write_text("Feature: C\n  Scenario: S4\n    Given w\n", encoding="utf-8")

    features = FeatureParser(str(tmp_path)).parse_features(["@smoke"])

    assert [f.name for f in features] == ["A", "B"]
    assert [s.name for s in features[1].scenarios] == ["S2"]


def test_parse_file_tolerates_byte_order_mark(tmp_path):
    path = tmp_path / "bom.feature"
    path.write_bytes(b"\xef\xbb\xbf@p0\nFeature: With BOM\n  Scenario: S\n    Given x\n")

    feature = FeatureParser(str(tmp_path)).parse_file(path)

    assert feature.name == "With BOM"
    assert feature.tags == ["@p0"]
    assert feature.scenarios[0].effective_tags == ["@p0"]


def test_parse_text_strips_leading_byte_order_mark(parser):
    feature = parser.parse_text("\ufeffFeature: BOM text\n  Scenario: S\n    Given x\n")
    assert feature.name == "BOM text"


def test_table_row_comment_and_escaped_pipe(parser):
    text = "\n".join([
        "Feature: Rows",
        "  Scenario: S",
        "    Given the values",
        r"      | expr  | result |  # operators",
        r"      | a\|b  | true   |",
    ])
    step = parser.parse_text(text).scenarios[0].steps[0]
    assert step.data_table == [["expr", "result"], ["a|b", "true"]]
    assert step.text == "the values\n| expr  | result |\n" + r"| a\|b  | true   |"
