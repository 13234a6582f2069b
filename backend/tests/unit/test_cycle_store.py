"""Tests for CycleStateStore — persisted progress of the background sync."""

import pytest

from dirsync.domain.common.errors import ConfigValueError
from dirsync.domain.sync.cycle_store import CycleStateStore
from dirsync.domain.sync.models import CycleState, IntervalConfig
from dirsync.domain.sync.registry import ProfileRegistry

from tests.unit.sync_fakes import NAMESPACE, add_profile, set_cycle


@pytest.fixture
def store(config_store) -> CycleStateStore:
    return CycleStateStore(config_store, ProfileRegistry(config_store, NAMESPACE), NAMESPACE)


class TestGetCycle:
    def test_none_when_registry_empty(self, store, config_store):
        set_cycle(config_store, "A", 100)
        assert store.get_cycle() is None

    def test_none_when_nothing_recorded(self, store, config_store):
        add_profile(config_store, "A")
        assert store.get_cycle() is None

    def test_stale_prefix_treated_as_absent(self, store, config_store):
        add_profile(config_store, "A")
        add_profile(config_store, "B", active=False)
        set_cycle(config_store, "B", 100)
        assert store.get_cycle() is None

    def test_recorded_cycle(self, store, config_store):
        add_profile(config_store, "A")
        set_cycle(config_store, "A", 150)
        assert store.get_cycle() == CycleState("A", 150)

    def test_missing_offset_defaults_to_zero(self, store, config_store):
        add_profile(config_store, "A")
        config_store.values[(NAMESPACE, "background_sync_prefix")] = "A"
        assert store.get_cycle() == CycleState("A", 0)


class TestSetCycle:
    def test_writes_prefix_and_offset_together(self, store, config_store):
        store.set_cycle(CycleState("B", 0))

        assert config_store.cycle() == ("B", "0")
        assert config_store.writes[-1] == (
            NAMESPACE,
            {"background_sync_prefix": "B", "background_sync_offset": "0"},
        )


class TestProfileMetadata:
    def test_last_change_defaults_to_zero(self, store):
        assert store.get_last_change("A") == 0

    def test_last_change(self, store, config_store):
        add_profile(config_store, "A", last_change=1_699_999_000)
        assert store.get_last_change("A") == 1_699_999_000

    def test_min_paging_size_zero_without_settings(self, store):
        assert store.get_min_paging_size() == 0

    def test_min_paging_size_across_all_profiles(self, store, config_store):
        add_profile(config_store, "A", paging_size=500)
        add_profile(config_store, "B", paging_size=200)
        add_profile(config_store, "C", paging_size=100, active=False)
        assert store.get_min_paging_size() == 100

    def test_min_paging_size_zero_setting_wins(self, store, config_store):
        add_profile(config_store, "A", paging_size=500)
        add_profile(config_store, "B", paging_size=0)
        assert store.get_min_paging_size() == 0


class TestScheduling:
    def test_interval_default_and_roundtrip(self, store):
        assert store.get_interval(1800) == 1800
        store.set_interval(8640)
        assert store.get_interval(1800) == 8640

    def test_last_run(self, store):
        assert store.get_last_run() == 0
        store.set_last_run(1_700_000_000)
        assert store.get_last_run() == 1_700_000_000

    def test_background_mode(self, store, config_store):
        assert store.is_background_mode() is True
        config_store.values[("core", "backgroundjobs_mode")] = "ajax"
        assert store.is_background_mode() is False

    def test_manual_mode_is_the_default(self, store, config_store):
        del config_store.values[("core", "backgroundjobs_mode")]
        assert store.is_background_mode() is False

    def test_interval_config_carries_persisted_interval(self, store):
        store.set_interval(8640)
        assert store.get_interval_config(IntervalConfig()).current_seconds == 8640

    def test_interval_config_clamps_hand_edited_interval(self, store, config_store):
        config_store.values[(NAMESPACE, "background_sync_interval")] = "999999"
        assert store.get_interval_config(IntervalConfig()).current_seconds == 43200


class TestInvalidValues:
    def test_non_numeric_offset_names_the_key(self, store, config_store):
        add_profile(config_store, "A")
        set_cycle(config_store, "A", 0)
        config_store.values[(NAMESPACE, "background_sync_offset")] = "ten"

        with pytest.raises(ConfigValueError) as exc_info:
            store.get_cycle()

        assert exc_info.value.key == "background_sync_offset"
        assert "ten" in str(exc_info.value)

    def test_non_numeric_last_change(self, store, config_store):
        add_profile(config_store, "A", last_change="yesterday")
        with pytest.raises(ConfigValueError, match="A_lastChange"):
            store.get_last_change("A")

    def test_non_numeric_paging_size(self, store, config_store):
        add_profile(config_store, "A", paging_size="lots")
        with pytest.raises(ConfigValueError, match="Aldap_paging_size"):
            store.get_min_paging_size()

    def test_non_numeric_last_run(self, store, config_store):
        config_store.values[(NAMESPACE, "background_sync_last_run")] = "never"
        with pytest.raises(ConfigValueError):
            store.get_last_run()
