# File: tests/test_policy.py
import itertools
import json

import pytest
from doc_scout.policy import KEY_DEEP_MODE, KEY_MODE, KEY_WHITELIST, SiteActivationPolicy
from doc_scout.storage import JsonFileStorage, MemoryStorage

TRANSITIONS = ("enable_only_this_host", "disable_this_host", "enable_all", "clear_whitelist")
HOSTS = ("a.edu", "b.edu")


def test_defaults(make_policy):
    policy = make_policy()
    assert policy.mode == "all"
    assert policy.whitelist == []
    assert not policy.deep_mode_requested
    assert policy.is_enabled_for_host()


def test_enable_only_this_host(make_policy, storage):
    policy = make_policy("School.Example.EDU")
    assert policy.enable_only_this_host() == "Enabled only on school.example.edu"
    assert policy.enable_only_this_host() == "Enabled only on school.example.edu"
    assert storage.data == {KEY_WHITELIST: ["school.example.edu"], KEY_MODE: "whitelist"}
    assert policy.is_enabled_for_host()
    assert not make_policy("other.example.edu").is_enabled_for_host()


def test_disable_last_host_switches_back_to_all(make_policy):
    policy = make_policy("a.edu")
    policy.enable_only_this_host()
    assert policy.disable_this_host() == "Removed a.edu"
    assert policy.mode == "all"
    assert policy.whitelist == []
    assert policy.is_enabled_for_host()


def test_enable_all_keeps_the_whitelist(make_policy):
    policy = make_policy("a.edu")
    policy.enable_only_this_host()
    assert policy.enable_all() == "Enabled on all sites"
    assert policy.mode == "all"
    assert policy.whitelist == ["a.edu"]
    assert make_policy("b.edu").is_enabled_for_host()


def test_clear_whitelist(make_policy):
    make_policy("a.edu").enable_only_this_host()
    make_policy("b.edu").enable_only_this_host()
    policy = make_policy("c.edu")
    assert policy.clear_whitelist() == "Whitelist cleared, enabled on all sites"
    assert policy.whitelist == []
    assert policy.mode == "all"


def test_two_hosts_scenario(make_policy):
    a, b = make_policy("a.edu"), make_policy("b.edu")
    a.enable_only_this_host()
    b.enable_only_this_host()
    assert a.whitelist == ["a.edu", "b.edu"]

    a.disable_this_host()
    assert a.mode == "whitelist"
    assert not a.is_enabled_for_host()
    assert b.is_enabled_for_host()

    b.disable_this_host()
    assert b.mode == "all"
    assert a.is_enabled_for_host()


@pytest.mark.parametrize("steps", list(itertools.product(TRANSITIONS, HOSTS, repeat=3)))
def test_whitelist_mode_never_has_an_empty_list(steps):
    storage = MemoryStorage()
    pairs = zip(steps[::2], steps[1::2])
    for transition, host in pairs:
        getattr(SiteActivationPolicy(storage, host), transition)()
        policy = SiteActivationPolicy(storage, host)
        assert not (policy.mode == "whitelist" and not policy.whitelist)
        assert len(policy.whitelist) == len(set(policy.whitelist))


@pytest.mark.parametrize(
    "initial",
    [
        {KEY_MODE: "sometimes"},
        {KEY_WHITELIST: "a.edu"},
        {KEY_DEEP_MODE: "maybe"},
    ],
)
def test_invalid_state_falls_back_to_defaults(initial):
    policy = SiteActivationPolicy(MemoryStorage(initial), "a.edu")
    assert policy.mode == "all"
    assert policy.whitelist == []
    assert policy.is_enabled_for_host()


def test_blank_hosts_are_dropped():
    storage = MemoryStorage({KEY_MODE: "whitelist", KEY_WHITELIST: ["", "  ", "a.edu", 3]})
    assert SiteActivationPolicy(storage, "a.edu").whitelist == ["a.edu"]


def test_deep_mode_preference(make_policy, storage):
    policy = make_policy()
    policy.set_deep_mode(True)
    assert storage.data[KEY_DEEP_MODE] is True
    assert policy.deep_mode_requested
    policy.set_deep_mode(0)
    assert storage.data[KEY_DEEP_MODE] is False


def test_status_and_whitelist_views(make_policy):
    a = make_policy("a.edu")
    assert a.status_text() == "Mode: all sites, deep mode: off"
    assert a.whitelist_text() == "Whitelist is empty"

    a.enable_only_this_host()
    a.set_deep_mode(True)
    make_policy("b.edu").enable_only_this_host()
    assert a.status_text() == "Mode: whitelist only (current site enabled), deep mode: on"
    assert make_policy("c.edu").status_text() == (
        "Mode: whitelist only (current site not enabled), deep mode: on"
    )
    assert a.whitelist_text() == "Whitelist (2)\n\na.edu\nb.edu"


# --------------------------------------------------------------------------- #
#                               JSON-file storage                             #
# --------------------------------------------------------------------------- #


def test_state_survives_separate_policy_objects(tmp_path):
    path = tmp_path / "state" / "state.json"
    SiteActivationPolicy(JsonFileStorage(path), "a.edu").enable_only_this_host()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {KEY_WHITELIST: ["a.edu"], KEY_MODE: "whitelist"}

    fresh = SiteActivationPolicy(JsonFileStorage(path), "b.edu")
    assert not fresh.is_enabled_for_host()
    assert fresh.whitelist == ["a.edu"]
    assert list(tmp_path.joinpath("state").iterdir()) == [path]


def test_json_storage_reads_missing_and_empty_files(tmp_path):
    path = tmp_path / "state.json"
    storage = JsonFileStorage(path)
    assert storage.get(KEY_MODE, "all") == "all"
    path.write_text("  \n", encoding="utf-8")
    assert storage.get(KEY_WHITELIST, []) == []


@pytest.mark.parametrize("content,exc", [("{broken", ValueError), ("[1, 2]", TypeError)])
def test_json_storage_rejects_bad_files(tmp_path, content, exc):
    path = tmp_path / "state.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(exc):
        JsonFileStorage(path).get(KEY_MODE)
