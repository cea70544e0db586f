# plugins/core_resources/tests/test_array_handler.py

import pytest

from plugins.core_resources.array_handler import (
    ArrayHandler,
    normalize_operation,
    try_parse_json,
)
from plugins.core_resources.contracts import (
    AddOperation,
    ChangeOperation,
    RankOperation,
    RemoveOperation,
    ReplaceAllOperation,
    parse_operation,
)
from plugins.core_resources.errors import OperationError


@pytest.fixture
def handler() -> ArrayHandler:
    return ArrayHandler()


class TestAdd:
    def test_add_appends_to_end(self, handler):
        result = handler.handle(AddOperation(target="c"), ["a", "b"])
        assert result == ["a", "b", "c"]

    def test_add_to_missing_array(self, handler):
        assert handler.handle(AddOperation(target="a"), None) == ["a"]

    def test_add_duplicate_fails(self, handler):
        with pytest.raises(OperationError, match="already exists"):
            handler.handle(AddOperation(target="a"), ["a"])

    def test_add_json_object_string_is_parsed(self, handler):
        result = handler.handle(AddOperation(target='{"name": "x"}'), [])
        assert result == [{"name": "x"}]

    def test_input_list_is_not_mutated(self, handler):
        values = ["a"]
        handler.handle(AddOperation(target="b"), values)
        assert values == ["a"]


class TestChange:
    def test_change_replaces_deep_equal_item(self, handler):
        values = [{"name": "a", "category": "x"}, {"name": "b"}]
        result = handler.handle(
            ChangeOperation(target={"name": "a", "category": "x"}, to={"name": "c"}), values
        )
        assert result == [{"name": "c"}, {"name": "b"}]

    def test_change_matches_by_name_only_target(self, handler):
        values = [{"name": "Draft", "category": "initial"}]
        result = handler.handle(
            ChangeOperation(target={"name": "Draft"}, to={"name": "Open", "category": "initial"}), values
        )
        assert result == [{"name": "Open", "category": "initial"}]

    def test_change_matches_bare_string_against_name(self, handler):
        values = [{"name": "Draft", "category": "initial"}]
        result = handler.handle(ChangeOperation(target="Draft", to={"name": "New"}), values)
        assert result == [{"name": "New"}]

    def test_change_missing_item_fails(self, handler):
        with pytest.raises(OperationError, match="not found"):
            handler.handle(ChangeOperation(target="zzz", to="y"), ["a"])

    def test_change_with_json_array_string_replaces_everything(self, handler):
        result = handler.handle(ChangeOperation(target="a", to='["x", "y"]'), ["a", "b"])
        assert result == ["x", "y"]

    def test_change_with_json_object_string_wraps_single_item(self, handler):
        result = handler.handle(ChangeOperation(target="a", to='{"name": "x"}'), ["a", "b"])
        assert result == [{"name": "x"}]


class TestRank:
    def test_rank_moves_item(self, handler):
        result = handler.handle(RankOperation(target="c", new_index=0), ["a", "b", "c"])
        assert result == ["c", "a", "b"]

    def test_rank_to_last_index(self, handler):
        result = handler.handle(RankOperation(target="a", new_index=2), ["a", "b", "c"])
        assert result == ["b", "c", "a"]

    def test_rank_out_of_bounds_fails(self, handler):
        with pytest.raises(OperationError, match="Invalid target index"):
            handler.handle(RankOperation(target="a", new_index=3), ["a", "b", "c"])

    def test_rank_missing_item_fails(self, handler):
        with pytest.raises(OperationError, match="not found"):
            handler.handle(RankOperation(target="z", new_index=0), ["a"])


class TestRemove:
    def test_remove_first_match_only(self, handler):
        result = handler.handle(RemoveOperation(target="a"), ["a", "b", "a"])
        assert result == ["b", "a"]

    def test_remove_by_name(self, handler):
        values = [{"name": "Draft"}, {"name": "Done"}]
        result = handler.handle(RemoveOperation(target={"name": "Done"}), values)
        assert result == [{"name": "Draft"}]

    def test_remove_missing_fails(self, handler):
        with pytest.raises(OperationError, match="not found"):
            handler.handle(RemoveOperation(target="x"), ["a"])


class TestReplaceAll:
    def test_replace_all_without_target(self, handler):
        result = handler.handle(ReplaceAllOperation(to=[1, 2]), ["a"])
        assert result == [1, 2]

    def test_replace_all_target_must_exist(self, handler):
        with pytest.raises(OperationError, match="not found"):
            handler.handle(ReplaceAllOperation(to=[1], target="x"), ["a"])


class TestOperationParsing:
    def test_parse_operation_from_wire_form(self):
        op = parse_operation({"name": "rank", "target": "a", "newIndex": 1})
        assert isinstance(op, RankOperation)
        assert op.new_index == 1

    def test_parse_change_with_mapping_table(self):
        op = parse_operation({
            "name": "change",
            "target": "w1",
            "to": "w2",
            "mappingTable": {"stateMapping": {"Draft": "Open"}},
        })
        assert op.mapping_table.state_mapping == {"Draft": "Open"}

    def test_normalize_json_array_string(self):
        op = normalize_operation(ChangeOperation(target="a", to='["x", "y"]'))
        assert isinstance(op, ReplaceAllOperation)
        assert op.to == ["x", "y"]

    def test_normalize_wraps_json_object_string_in_list(self):
        op = normalize_operation(ChangeOperation(target="a", to='{"name": "x"}'))
        assert isinstance(op, ReplaceAllOperation)
        assert op.to == [{"name": "x"}]

    def test_normalize_leaves_scalar_change_alone(self):
        op = ChangeOperation(target="a", to="b")
        assert normalize_operation(op) is op

    def test_try_parse_json_keeps_plain_and_broken_strings(self):
        assert try_parse_json("plain") == "plain"
        assert try_parse_json("[broken") == "[broken"
        assert try_parse_json(' {"a": 1}') == {"a": 1}
