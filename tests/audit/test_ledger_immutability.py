"""
Ledger immutability tests.

Ledger entries cannot be edited or deleted through the ORM, and an item's
unique_id never changes once persisted.  Cascade deletion is the only
sanctioned way for entries to disappear.
"""

import pytest

from inventory_kernel.exceptions import ImmutabilityViolationError


class TestLedgerEntryImmutability:
    def test_entry_update_is_blocked(self, session, lifecycle_service, make_spec, actor):
        _item, entry = lifecycle_service.create(make_spec(), actor)

        entry.notes = "rewritten"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "InventoryTransaction"

    def test_quantity_update_is_blocked(self, session, lifecycle_service, make_spec, actor):
        _item, entry = lifecycle_service.create(make_spec(), actor)

        entry.new_quantity = 500
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_entry_delete_is_blocked(self, session, lifecycle_service, make_spec, actor):
        _item, entry = lifecycle_service.create(make_spec(), actor)

        session.delete(entry)
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert "deleted individually" in exc_info.value.reason

    def test_violation_is_logged(
        self, session, lifecycle_service, make_spec, actor, captured_logs
    ):
        _item, entry = lifecycle_service.create(make_spec(), actor)
        entry.purpose = "changed"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        blocked = [
            r for r in captured_logs() if r["message"] == "immutability_violation_blocked"
        ]
        assert blocked[0]["entity_id"] == str(entry.id)


class TestItemIdentifierImmutability:
    def test_unique_id_change_is_blocked(self, session, create_item):
        item = create_item()
        item.unique_id = "SOMETHING-ELSE"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "InventoryItem"

    def test_other_item_fields_remain_mutable(self, session, create_item):
        item = create_item()
        item.description = "Updated description"
        session.flush()
        assert item.version == 2
