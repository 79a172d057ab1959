"""Smoke tests for the end-to-end pattern flow."""

from datetime import date, timedelta

import pytest

from shiftcycle.domain.models import Pattern
from shiftcycle.domain.status import AssignmentStatus
from shiftcycle.service.pattern_service import PatternService
from shiftcycle.storage.json_store import JsonFileStore

TODAY = date(2025, 2, 15)
TIMEOUT = 5


class TestSmoke:
    """End-to-end smoke tests over a JSON file store."""

    @pytest.fixture
    def data_file(self, tmp_path):
        return tmp_path / "patterns.json"

    def _service(self, data_file, shift_catalog):
        store = JsonFileStore(data_file)
        return PatternService(store, store, shift_catalog, clock=lambda: TODAY)

    def test_create_resolve_reload_edit_delete(self, data_file, shift_catalog):
        # Classic 4-on 2-off rotation: two mornings, two nights, two rest days
        pattern = Pattern.from_shift_refs(["M", "M", "N", "N", None, None])
        anchor = date(2025, 3, 1)

        with self._service(data_file, shift_catalog) as service:
            created = service.create_pattern(pattern, anchor, "Four on two off").result(TIMEOUT)
            assert created.success
            assignment = created.data
            assert assignment.status(TODAY) == AssignmentStatus.PENDING

            preview = service.generate_preview(pattern, anchor, 12)
            assert [d.is_work_day for d in preview.data] == [True] * 4 + [False] * 2 + [True] * 4 + [False] * 2

        with self._service(data_file, shift_catalog) as service:
            for offset, expected in [(0, "M"), (2, "N"), (4, None), (6, "M"), (600, "M")]:
                result = service.get_schedule_for_date(anchor + timedelta(days=offset)).result(TIMEOUT)
                assert result.success
                if expected is None:
                    assert result.data.is_rest_day
                else:
                    assert result.data.shift.shift.id == expected

            editing = service.load_pattern_for_editing(assignment.id).result(TIMEOUT)
            assert editing.data.pattern == pattern

            updated = service.update_pattern(
                assignment.id, Pattern.from_shift_refs(["A", None]), anchor, "Alternate"
            ).result(TIMEOUT)
            assert updated.success

            day = service.get_schedule_for_date(anchor).result(TIMEOUT)
            assert day.data.shift.shift.name == "Afternoon"

            deleted = service.delete_pattern(assignment.id).result(TIMEOUT)
            assert deleted.success
            assert service.list_user_patterns().result(TIMEOUT).data == []

        store = JsonFileStore(data_file)
        assert store.get_rule(updated.data.recurrence_rule_id) is None
        assert store.get_rule(assignment.recurrence_rule_id) is None
