"""
Tests for YAML configuration loading.
"""
import pytest

from atlas.config import AtlasConfig, ConfigError
from atlas.page import Role
from atlas.schema import TaskStatus


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("ATLAS_DB", raising=False)
    monkeypatch.delenv("ATLAS_CONFIG", raising=False)


def test_defaults_when_file_missing(tmp_path):
    cfg = AtlasConfig.load(str(tmp_path / "missing.yaml"))
    assert cfg.storage_backend == "sqlite"
    assert cfg.drag_threshold_px == 5
    assert not cfg.strict_resolution
    assert "~" not in cfg.db_path


def test_load_yaml(tmp_path):
    path = tmp_path / "atlas.yaml"
    path.write_text(
        "storage_backend: memory\n"
        "strict_resolution: true\n"
        "drag_threshold_px: 8\n"
        "unknown_key: ignored\n"
        "pages:\n"
        "  triage:\n"
        "    columns: [someday, planning, nonsense]\n"
        "    add_buttons: [planning]\n"
        "    cards: true\n"
    )
    cfg = AtlasConfig.load(str(path))
    assert cfg.storage_backend == "memory"
    assert cfg.strict_resolution
    assert cfg.drag_threshold_px == 8

    triage = cfg.bindings("triage")
    assert triage.columns == (TaskStatus.SOMEDAY, TaskStatus.PLANNING)
    assert triage.has(Role.ADD_BUTTON, TaskStatus.PLANNING)
    assert not triage.has(Role.COUNT_BADGE, TaskStatus.PLANNING)


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("toast_limit: 3\n")
    monkeypatch.setenv("ATLAS_CONFIG", str(path))
    assert AtlasConfig.load().toast_limit == 3


def test_malformed_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "atlas.yaml"
    path.write_text("storage_backend: [unclosed\n")
    assert AtlasConfig.load(str(path)).storage_backend == "sqlite"


def test_db_path_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("ATLAS_DB", str(tmp_path / "other.db"))
    cfg = AtlasConfig.load(str(tmp_path / "missing.yaml"))
    assert cfg.db_path == str(tmp_path / "other.db")


def test_invalid_values_raise(tmp_path):
    path = tmp_path / "atlas.yaml"
    path.write_text("storage_backend: redis\n")
    with pytest.raises(ConfigError):
        AtlasConfig.load(str(path))

    with pytest.raises(ConfigError):
        AtlasConfig(drag_threshold_px=-1).validate()


def test_builtin_page_bindings():
    cfg = AtlasConfig()
    kanban = cfg.bindings("kanban")
    assert kanban.columns == tuple(TaskStatus)
    assert kanban.has(Role.CARD)
    assert cfg.bindings("dashboard").columns == ()
    assert not cfg.bindings("index").has(Role.MODAL_ROOT)
    assert cfg.bindings("somewhere-else").name == "somewhere-else"
