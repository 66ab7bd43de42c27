"""Unit tests for tag classification"""
import pytest
from gherkinsheet.core.tag_resolver import (
    TagRole,
    classify_tag,
    free_labels,
    resolve_priority,
    resolve_type,
    summarize_tags,
)


@pytest.mark.parametrize("tag, role", [
    ("@p0", TagRole.PRIORITY),
    ("@P3", TagRole.PRIORITY),
    ("@p4", TagRole.LABEL),
    ("@Critical", TagRole.PRIORITY),
    ("@blocker", TagRole.PRIORITY),
    ("@negative", TagRole.TYPE),
    ("@smoke", TagRole.LABEL),
])
def test_classify_tag(tag, role):
    assert classify_tag(tag) is role


def test_first_priority_tag_wins():
    assert resolve_priority(["@p1", "@critical"]) == "P1"
    assert resolve_priority(["@smoke", "@low", "@p0"]) == "P3"
    assert resolve_priority(["@smoke"]) == ""


def test_type_resolution():
    assert resolve_type(["@negative", "@positive"]) == "Negative"
    assert resolve_type(["@wip"]) == ""


def test_labels_drop_at_sign_and_repeats():
    assert free_labels(["@smoke", "@p1", "@Regression", "@smoke", "@positive"]) == ["smoke", "Regression"]


def test_summary_scans_feature_rule_then_scenario_tags():
    feature_tags, rule_tags, own_tags = ["@api"], ["@high"], ["@p0", "@negative", "@api"]
    summary = summarize_tags(feature_tags + rule_tags + own_tags)

    assert summary.priority == "P1"
    assert summary.type == "Negative"
    assert summary.labels == ["api"]
