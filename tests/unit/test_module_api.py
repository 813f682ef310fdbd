"""
Tests for the module-level convenience functions.
"""
from unittest.mock import Mock

import pytest
import sqlite_adapter
from sqlite_adapter import EncodeError, ErrorCode, Statement


def test_get_adapter_cached(user_model, log_model):
    """Test one default adapter per model type"""
    adapter = sqlite_adapter.get_adapter(user_model)
    assert sqlite_adapter.get_adapter(user_model) is adapter
    assert sqlite_adapter.get_adapter(log_model) is not adapter
    assert adapter.options.placeholder_style == 'qmark'


def test_module_functions_match_adapter(user_model):
    """Test module functions agree with SQLiteAdapter methods"""
    user = user_model(id=7, name='Ada')
    adapter = sqlite_adapter.SQLiteAdapter(user_model)

    assert sqlite_adapter.parameters_for_insert(user, 'u') == adapter.parameters_for_insert(user, 'u')
    assert sqlite_adapter.parameters_for_update(user, 'u') == adapter.parameters_for_update(user, 'u')
    assert sqlite_adapter.parameters_for_delete(user, 'u') == adapter.parameters_for_delete(user, 'u')
    assert sqlite_adapter.model_from_row(user_model, {'id': 7, 'full_name': 'Ada'}) == user
    assert sqlite_adapter.models_from_rows(user_model, [{'id': 7, 'full_name': 'Ada'}]) == [user]
    assert sqlite_adapter.column_definitions(user_model) == 'id INTEGER PRIMARY KEY, full_name TEXT'


def test_module_encode_missing_model():
    """Test that None cannot pick an adapter"""
    with pytest.raises(EncodeError) as exc_info:
        sqlite_adapter.parameters_for_insert(None, 'u')
    assert exc_info.value.code is ErrorCode.NIL_MODEL


def test_execute_statement():
    """Test statement execution passes text and parameters through"""
    cursor = Mock()
    stmt = Statement('DELETE FROM u WHERE id=?', (7,))

    sqlite_adapter.execute_statement(cursor, stmt)
    cursor.execute.assert_called_once_with('DELETE FROM u WHERE id=?', (7,))
    assert str(stmt) == stmt.text
