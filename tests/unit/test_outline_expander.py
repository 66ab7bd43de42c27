"""Unit tests for the Scenario Outline expander"""
import pytest
from gherkinsheet.parser.feature_parser import FeatureParser, ScenarioType
from gherkinsheet.parser.outline_expander import (
    OutlineExpander,
    ensure_single_trailing_blank,
    substitute_placeholders,
    trim_blank_edges,
)


@pytest.fixture
def expander():
    return OutlineExpander()


def test_login_outline_expands_to_two_scenarios(expander):
    source = (
        "Scenario Outline: Login as <role>\n"
        "  Given user is <role>\n"
        "Examples:\n"
        "  | role |\n"
        "  | admin |\n"
        "  | guest |"
    )
    assert expander.transform(source) == (
        "Scenario: Login as admin\n"
        "  Given user is admin\n"
        "\n"
        "Scenario: Login as guest\n"
        "  Given user is guest\n"
    )


def test_substitute_placeholders_keeps_unknown_columns():
    row = {"name": "Ann", "age": "30"}
    assert substitute_placeholders("<name> is <age>, <unknownColumn>", row) == "Ann is 30, <unknownColumn>"
    assert substitute_placeholders("<name>", None) == "<name>"


def test_expand_outline_reemits_tags_and_injects_background(expander):
    block = [
        "  Scenario Outline: Pay <amount>",
        "    When I pay <amount>",
        "      \"\"\"",
        "      {\"amount\": <amount>, \"currency\": \"<currency>\"}",
        "      \"\"\"",
        "    Then the balance is <left>",
        "",
        "    @small",
        "    Examples: small",
        "      | amount | left |",
        "",
        "      | 5      | 95   |",
        "    @large",
        "    Examples:",
        "      | amount | left |",
        "      | 90     | 10   |",
        "",
    ]
    out = expander.expand_outline(
        block,
        outline_tag_lines=["  @payments"],
        feature_background=["    Given an account with 100"],
        rule_background=["    And the <amount> limit is on"],
    )

    assert out == [
        "  @payments",
        "    @small",
        "  Scenario: Pay 5",
        "    Given an account with 100",
        "    And the 5 limit is on",
        "    When I pay 5",
        "      \"\"\"",
        "      {\"amount\": 5, \"currency\": \"<currency>\"}",
        "      \"\"\"",
        "    Then the balance is 95",
        "",
        "  @payments",
        "    @large",
        "  Scenario: Pay 90",
        "    Given an account with 100",
        "    And the 90 limit is on",
        "    When I pay 90",
        "      \"\"\"",
        "      {\"amount\": 90, \"currency\": \"<currency>\"}",
        "      \"\"\"",
        "    Then the balance is 10",
        "",
    ]


def test_outline_without_usable_examples_is_returned_unmodified(expander):
    block = [
        "  Scenario Outline: Nothing <x>",
        "    Given <x>",
        "    Examples:",
        "      | x |",
    ]
    assert expander.expand_outline(block, ["  @tag"]) == block

    text = "Feature: F\n  @tag\n" + "\n".join(block) + "\n"
    assert expander.transform(text) == text


def test_transform_injects_feature_and_rule_background():
    source = """Feature: Shop

  Background:

    Given the shop is open

  Scenario: Browse
    When I browse


  Rule: Members
    Background:
      Given I am a member

    @vip
    Scenario Outline: Buy <item>
      When I buy <item>

      Examples:
        | item |
        | tea  |

  Rule: Visitors
    Scenario: Look
      When I look
"""
    assert OutlineExpander().transform(source) == """Feature: Shop

  Scenario: Browse
    Given the shop is open
    When I browse

  Rule: Members
    @vip
    Scenario: Buy tea
    Given the shop is open
      Given I am a member
      When I buy tea

  Rule: Visitors
    Scenario: Look
    Given the shop is open
      When I look
"""


def test_transform_without_background_injection_keeps_background_block():
    source = """Feature: F
  Background:
    Given base

  Scenario Outline: O <n>
    Given <n>
    Examples:
      | n |
      | 1 |
"""
    assert OutlineExpander(inject_background=False).transform(source) == """Feature: F
  Background:
    Given base

  Scenario: O 1
    Given 1
"""


def test_transform_is_idempotent_on_expanded_documents(expander):
    source = """@feature
Feature: Idempotent

  # comment kept
  @a
  Scenario Outline: Check <v>
    Given <v>
    Examples:
      | v |
      | x |
      | y |

  Rule: R
    Scenario: Plain
      Given z
"""
    once = expander.transform(source)
    assert "Scenario Outline" not in once
    assert expander.transform(once) == once


def test_tag_line_between_scenarios_is_not_swallowed(expander):
    source = """Feature: F
  Background:
    Given setup
  @next
  Scenario: S
    Given s
"""
    assert expander.transform(source) == """Feature: F
  @next
  Scenario: S
    Given setup
    Given s
"""


def test_expand_scenario_records():
    text = """Feature: Records
  Background:
    Given <role> exists
  @outline
  Scenario Outline: Login as <role>
    When <role> logs in
      | user   | pin   |
      | <role> | <pin> |
    @second
    Examples:
      | role  | pin |
      | admin | 1   |
      | guest | 2   |
"""
    outline = FeatureParser().parse_text(text).scenarios[0]
    expanded = OutlineExpander().expand_scenario(outline)

    assert [s.name for s in expanded] == ["Login as admin", "Login as guest"]
    assert all(s.type is ScenarioType.SCENARIO for s in expanded)
    assert expanded[0].tags == ["@outline", "@second"]
    assert expanded[0].example_row == {"role": "admin", "pin": "1"}
    assert expanded[0].background[0].text == "admin exists"
    assert expanded[1].steps[0].data_table == [["user", "pin"], ["guest", "2"]]
    assert "<role>" not in expanded[1].steps[0].text
    # the parsed outline itself is left untouched
    assert outline.steps[0].text.startswith("<role> logs in")


def test_blank_line_helpers():
    assert trim_blank_edges(["", "  ", "a", "", "b", " "]) == ["a", "", "b"]
    lines = ["a", "", "  "]
    ensure_single_trailing_blank(lines)
    assert lines == ["a", ""]


def test_examples_tags_survive_blank_and_comment_lines(expander):
    source = (
        "Scenario Outline: Run <n>\n"
        "  Given run <n>\n"
        "\n"
        "  @slow\n"
        "\n"
        "  # nightly only\n"
        "  Examples:\n"
        "    | n |\n"
        "    | 1 |\n"
    )
    assert expander.transform(source) == (
        "  @slow\n"
        "Scenario: Run 1\n"
        "  Given run 1\n"
    )


def test_transform_strips_byte_order_mark(expander):
    source = "\ufeff@p0\nFeature: F\n  Scenario: S\n    Given x\n"
    assert expander.transform(source) == "@p0\nFeature: F\n  Scenario: S\n    Given x\n"
