"""Tests for ignore-rule target selection and path matching."""

from __future__ import annotations

import pytest

from helmdrift.diff.selector import IgnoreMatcher, parse_selector
from helmdrift.models.declared import IgnoreRule, TargetSelector
from tests.helpers import make_deployment, make_manifest_object, make_service

_DEPLOY = make_manifest_object(make_deployment())
_SVC = make_manifest_object(make_service())


def _matcher(*rules: IgnoreRule) -> IgnoreMatcher:
    return IgnoreMatcher(rules)


class TestTargetSelection:
    def test_rule_without_target_applies_everywhere(self) -> None:
        matcher = _matcher(IgnoreRule(paths=("/spec/replicas",)))
        assert matcher.ignores_path(_DEPLOY, "/spec/replicas")
        assert matcher.ignores_path(_SVC, "/spec/replicas")

    def test_kind_matches_exactly(self) -> None:
        matcher = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(kind="Deployment")))
        assert matcher.ignores_path(_DEPLOY, "/spec/replicas")
        assert not matcher.ignores_path(_SVC, "/spec/ports")

    def test_group_and_version(self) -> None:
        apps = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(group="apps", version="v1")))
        core = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(group="", version="v1")))
        assert apps.ignores_path(_DEPLOY, "/spec")
        assert not apps.ignores_path(_SVC, "/spec")
        # Empty group means "any group".
        assert core.ignores_path(_SVC, "/spec")

    def test_name_is_anchored_regex(self) -> None:
        matcher = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(name="desched.*")))
        assert matcher.ignores_path(_DEPLOY, "/spec")
        partial = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(name="desched")))
        assert not partial.ignores_path(_DEPLOY, "/spec")

    def test_namespace_regex(self) -> None:
        matcher = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(namespace="kube-.*")))
        assert not matcher.ignores_path(_DEPLOY, "/spec")

    def test_label_selector(self) -> None:
        hit = _matcher(
            IgnoreRule(paths=("/spec",), target=TargetSelector(label_selector="app.kubernetes.io/name=descheduler"))
        )
        miss = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(label_selector="app.kubernetes.io/name=x")))
        assert hit.ignores_path(_DEPLOY, "/spec")
        assert not miss.ignores_path(_DEPLOY, "/spec")

    def test_annotation_selector_absent_key(self) -> None:
        matcher = _matcher(IgnoreRule(paths=("/spec",), target=TargetSelector(annotation_selector="!owner")))
        assert matcher.ignores_path(_DEPLOY, "/spec")

    def test_object_level_rule(self) -> None:
        matcher = _matcher(IgnoreRule(target=TargetSelector(kind="Service")))
        assert matcher.ignores_object(_SVC)
        assert not matcher.ignores_object(_DEPLOY)
        assert matcher.ignores_path(_SVC, "/anything")

    def test_empty_matcher_is_falsy(self) -> None:
        assert not IgnoreMatcher()
        assert not IgnoreMatcher().ignores_object(_DEPLOY)

    def test_invalid_regex_raises(self) -> None:
        with pytest.raises(ValueError):
            IgnoreMatcher([IgnoreRule(paths=("/spec",), target=TargetSelector(name="("))])

    def test_relative_path_raises(self) -> None:
        with pytest.raises(ValueError):
            IgnoreMatcher([IgnoreRule(paths=("spec/replicas",))])


class TestParseSelector:
    def test_equality_forms(self) -> None:
        reqs = parse_selector("a=1, b==2, c!=3")
        labels = {"a": "1", "b": "2", "c": "4"}
        assert all(r.matches(labels) for r in reqs)

    def test_inequality_matches_missing_key(self) -> None:
        (req,) = parse_selector("tier!=db")
        assert req.matches({})

    def test_existence(self) -> None:
        present, absent = parse_selector("a,!b")
        assert present.matches({"a": ""})
        assert not present.matches({})
        assert absent.matches({"a": "x"})
        assert not absent.matches({"b": "x"})

    def test_set_based(self) -> None:
        inset, notin = parse_selector("env in (prod, staging),tier notin (db)")
        assert inset.matches({"env": "staging"})
        assert not inset.matches({"env": "dev"})
        assert notin.matches({"tier": "web"})
        assert not notin.matches({"tier": "db"})

    def test_empty_selector(self) -> None:
        assert parse_selector("") == ()

    def test_invalid_key(self) -> None:
        with pytest.raises(ValueError):
            parse_selector("bad key=1")
