"""Tests for nodekit.declaration: YAML node set files."""

from pathlib import Path

import pytest
import yaml

from nodekit.declaration import load_nodeset


def _write_yaml(path: Path, data: dict) -> Path:
    path.write_text(yaml.dump(data))
    return path


@pytest.fixture
def nodeset_file(tmp_path):
    return _write_yaml(tmp_path / ".nodeset.yml", {
        "default_set": "main",
        "sets": {
            "main": {
                "nodes": {
                    "main-test1": {"prefab": "centos-64-x64"},
                    "main-test2": {"prefab": "centos-59-x64", "options": {"flavor": "m1.large"}},
                },
            },
            "other": {
                "nodes": {"other-test1": None},
            },
        },
    })


class TestLoadNodeset:

    def test_loads_default_set(self, nodeset_file):
        name, specs = load_nodeset(nodeset_file)
        assert name == "main"
        assert list(specs) == ["main-test1", "main-test2"]
        assert specs["main-test1"].prefab == "centos-64-x64"
        assert specs["main-test1"].options == {}
        assert specs["main-test2"].options == {"flavor": "m1.large"}

    def test_loads_named_set(self, nodeset_file):
        name, specs = load_nodeset(nodeset_file, "other")
        assert name == "other"
        assert specs["other-test1"].prefab is None

    def test_single_set_needs_no_default(self, tmp_path):
        path = _write_yaml(tmp_path / "n.yml", {"sets": {"only": {"nodes": {"a": {}}}}})
        assert load_nodeset(path)[0] == "only"

    @pytest.mark.parametrize("data, message", [
        ({}, "declares no node sets"),
        ({"sets": {"a": {"nodes": {"x": {}}}, "b": {"nodes": {"y": {}}}}}, "no default_set"),
        ({"sets": {"a": {"nodes": {}}}}, "has no nodes"),
        ({"sets": {"a": {"nodes": {"x": {"options": ["flavor"]}}}}}, "must be a mapping"),
    ])
    def test_malformed(self, tmp_path, data, message):
        path = _write_yaml(tmp_path / "n.yml", data)
        with pytest.raises(RuntimeError, match=message):
            load_nodeset(path)

    def test_unknown_set(self, nodeset_file):
        with pytest.raises(RuntimeError, match="not found"):
            load_nodeset(nodeset_file, "missing")

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuntimeError, match="Failed to load"):
            load_nodeset(tmp_path / "absent.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("sets: [unclosed")
        with pytest.raises(RuntimeError, match="Failed to load"):
            load_nodeset(path)
