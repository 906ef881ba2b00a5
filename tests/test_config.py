# tests/test_config.py
"""
Profiles, workspace seeding and runtime settings.

Run: pytest -v
"""

from __future__ import annotations

import pytest

from bigfib import config
from bigfib.runtime import APPLY, CFG
from bigfib.runtime import current as _rt_current
from bigfib.utility import UserInputError
from bigfib.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


def test_workspace_dir_from_env(workspace):
    assert workspace_dir() == workspace.resolve()


def test_seed_copies_packaged_profiles(workspace):
    root, seeded, copied = ensure_workspace_seeded()
    assert seeded
    assert copied["profiles"] >= 2
    assert (root / "profiles" / "default.toml").is_file()
    # second run copies nothing
    _, seeded_again, _ = ensure_workspace_seeded()
    assert not seeded_again


def test_seed_overwrite_restores_edits(workspace):
    ensure_workspace_seeded()
    p = workspace / "profiles" / "default.toml"
    p.write_text("[BEHAVIOUR]\nDEBUG = true\n", encoding="utf-8")
    seed_workspace(overwrite=True)
    assert "MAX_INDEX" in p.read_text(encoding="utf-8")


def test_list_profiles(workspace):
    assert {"default", "wide"} <= set(config.list_all_profiles())
    pairs = dict(config.list_profiles_with_descriptions())
    assert pairs["default"].startswith("Device offsets")


def test_load_default_profile(workspace):
    ensure_workspace_seeded()
    s = config.load_settings(None)
    assert s.name == "default"
    assert "_PROFILE_" not in s.as_dict()
    assert s.as_dict()["DEVICE"]["MAX_LENGTH"] == 100


def test_apply_profile_syncs_runtime(workspace):
    ensure_workspace_seeded()
    APPLY(config.load_settings("wide"))
    rt = _rt_current()
    assert rt.profile_name == "wide"
    assert rt.output_format == "decimal"
    assert rt.show_timing is True
    assert CFG("BEHAVIOUR.MAX_INDEX") == 1_000_000
    assert CFG("NOPE.KEY", "fallback") == "fallback"


def test_missing_profile(workspace):
    ensure_workspace_seeded()
    assert not config.has_profile("ghost")
    with pytest.raises(UserInputError):
        config.load_settings("ghost")


def test_broken_toml_reports_location(workspace):
    ensure_workspace_seeded()
    (workspace / "profiles" / "broken.toml").write_text("[OUTPUT\nFORMAT = 1\n", encoding="utf-8")
    with pytest.raises(UserInputError, match="line 1"):
        config.load_settings("broken")
    # listing stays best-effort
    assert ("broken", "(unreadable)") in config.list_profiles_with_descriptions()


def test_top_level_values_must_be_sections(workspace):
    ensure_workspace_seeded()
    (workspace / "profiles" / "flat.toml").write_text("DEBUG = true\n", encoding="utf-8")
    with pytest.raises(UserInputError, match="section"):
        config.load_settings("flat")


def test_current_profile_roundtrip(workspace):
    assert config.read_current_profile() is None
    config.write_current_profile("wide.toml")
    assert config.read_current_profile() == "wide"


def test_invalid_output_format_is_ignored():
    APPLY({"OUTPUT": {"FORMAT": "roman"}})
    assert _rt_current().output_format == "positional"


def test_inline_sections_apply_without_a_profile():
    APPLY({"BEHAVIOUR": {"DEBUG": True}, "DEVICE": {"MAX_LENGTH": 7}})
    rt = _rt_current()
    assert rt.profile_name == "(inline)"
    assert rt.debug is True
    assert CFG("DEVICE.MAX_LENGTH") == 7
    assert CFG("DEVICE.MAX_LENGTH.X", "leaf") == "leaf"
