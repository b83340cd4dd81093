"""
Tests for the message dispatch table
"""

from unittest.mock import Mock

from comfyone_sdk.dispatch import DispatchTable


class TestDispatchTable:
    """Single-handler-per-type registry"""

    def test_dispatch_calls_registered_handler(self):
        table = DispatchTable()
        handler = Mock(return_value="done")
        table.add("finished", handler)
        message = {"type": "finished", "data": {"success": True}}

        handled, result = table.dispatch(message)

        assert handled is True
        assert result == "done"
        handler.assert_called_once_with(message)

    def test_unknown_type_is_not_handled(self):
        table = DispatchTable()
        table.add("progress", Mock())

        assert table.dispatch({"type": "mystery"}) == (False, None)
        assert table.dispatch({"data": {}}) == (False, None)
        assert table.dispatch({"type": ["not", "a", "tag"]}) == (False, None)

    def test_last_registration_wins(self):
        table = DispatchTable()
        first, second = Mock(), Mock()
        table.add("progress", first)
        table.add("progress", second)

        table.dispatch({"type": "progress"})

        first.assert_not_called()
        second.assert_called_once()
        assert len(table) == 1

    def test_remove(self):
        table = DispatchTable()
        table.add("error", Mock())

        table.remove("error")
        table.remove("never-added")

        assert "error" not in table
        assert table.get("error") is None
        assert list(table) == []
