"""
Tests for the pydantic models.
"""

import pytest
from pydantic import ValidationError

from aiops.core.models.plan import Diff, Plan
from aiops.core.models.project import AiopsConfig
from aiops.core.models.stack import DetectedStack, Framework, Language


class TestPlan:
    def test_counters(self):
        plan = Plan()
        plan.add(Diff(path="a", status="new", new_hash="1"))
        plan.add(Diff(path="b", status="modified", current_hash="1", new_hash="2"))
        plan.add(Diff(path="c", status="unchanged", current_hash="3", new_hash="3"))

        assert (plan.new_files, plan.modified, plan.unchanged) == (1, 1, 1)
        assert plan.has_changes
        assert plan.changed_paths() == ["a", "b"]
        assert plan.changed_paths(include_unchanged=True) == ["a", "b", "c"]
        assert plan.to_dict()["diffs"][0] == {
            "path": "a", "status": "new", "current_hash": "", "new_hash": "1",
        }

    def test_empty_plan_has_no_changes(self):
        assert not Plan().has_changes

    def test_bad_status_rejected(self):
        with pytest.raises(ValidationError):
            Diff(path="a", status="deleted")


class TestStack:
    def test_names(self):
        stack = DetectedStack(
            languages=[Language(name="go"), Language(name="python")],
            frameworks=[Framework(name="fastapi", language="python")],
        )
        assert stack.language_names == ["go", "python"]
        assert stack.framework_names == ["fastapi"]

    def test_frozen(self):
        with pytest.raises(ValidationError):
            Language(name="go").name = "rust"


class TestConfig:
    def test_camel_case_aliases_accepted(self):
        cfg = AiopsConfig.model_validate({
            "project": {"name": "x"},
            "detected": {"goModule": "example.com/x", "mcpServers": [{"name": "gh"}]},
        })
        assert cfg.detected.go_module == "example.com/x"
        assert cfg.detected.mcp_servers[0].name == "gh"
