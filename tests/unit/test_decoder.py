"""
Unit tests for row decoding.
"""
import datetime
import decimal
import uuid
from collections import namedtuple
from dataclasses import dataclass

import numpy as np
import pandas as pd
import pytest
from sqlite_adapter import AdapterOptions, SQLiteAdapter, SQLiteSerializing
from sqlite_adapter import ValueTransformer, transformed_field
from sqlite_adapter.exceptions import DecodeError, ErrorCode


@pytest.fixture
def user_adapter(user_model):
    return SQLiteAdapter(user_model)


class TestScenarios:
    """Decoding rows for {id: 'id', name: 'full_name'}"""

    def test_full_row(self, user_adapter, user_model):
        assert user_adapter.model_from_row({'id': 7, 'full_name': 'Ada'}) == user_model(id=7, name='Ada')

    def test_missing_column_uses_default(self, user_adapter, user_model):
        user = user_adapter.model_from_row({'id': 7})
        assert user == user_model(id=7)
        assert user.name is None

    def test_extra_columns_ignored(self, user_adapter, user_model):
        assert user_adapter.model_from_row({'id': 7, 'full_name': 'Ada', 'rowid': 99}) == \
            user_model(id=7, name='Ada')


def test_reverse_transformers(account_model, status_enum):
    """Test reverse transformation at each resolution level"""
    row = {
        'id': 1,
        'is_active': 1,
        'created_at': '2024-03-01T12:00:00',
        'birthday': '1990-07-04',
        'balance': 1050,
        'tags': '["a", "b"]',
        'status': 'disabled',
        'ref': '00000000-0000-0000-0000-000000000001',
        'nickname': 'ADA',
        'password': 'hashed:secret',
        }
    account = SQLiteAdapter(account_model).model_from_row(row)

    assert account.active is True
    assert account.created == datetime.datetime(2024, 3, 1, 12, 0)
    assert account.birthday == datetime.date(1990, 7, 4)
    assert account.balance == decimal.Decimal('10.50')
    assert account.tags == ['a', 'b']
    assert account.status is status_enum.DISABLED
    assert account.ref == uuid.UUID(int=1)
    assert account.nickname == 'ada'
    # forward-only: raw value kept
    assert account.password == 'hashed:secret'
    assert account.note == ''


def test_null_columns(account_model):
    """Test that NULL reads as None without calling transformers"""
    account = SQLiteAdapter(account_model).model_from_row({'id': 1, 'created_at': None, 'is_active': None})
    assert account.created is None
    assert account.active is None


def test_default_factory_for_missing_columns(account_model):
    """Test that each decoded model gets its own default list"""
    adapter = SQLiteAdapter(account_model)
    first = adapter.model_from_row({'id': 1})
    second = adapter.model_from_row({'id': 2})
    assert first.tags == [] and second.tags == []
    assert first.tags is not second.tags


def test_transform_failure(account_model):
    """Test that malformed stored values abort decoding"""
    with pytest.raises(DecodeError) as exc_info:
        SQLiteAdapter(account_model).model_from_row({'id': 1, 'created_at': 'last tuesday'})
    assert exc_info.value.code is ErrorCode.TRANSFORM_FAILURE
    assert 'created' in exc_info.value.reason


class TestClassSelection:
    """Tests for class-cluster decoding"""

    def test_selects_subclass(self, shape_models):
        shape, circle, square = shape_models
        adapter = SQLiteAdapter(shape)

        assert adapter.model_from_row({'id': 1, 'kind': 'circle', 'radius': 2.5}) == \
            circle(id=1, kind='circle', radius=2.5)
        assert adapter.model_from_row({'id': 2, 'kind': 'square', 'side': 3.0}) == \
            square(id=2, kind='square', side=3.0)

    def test_no_class_found_is_deterministic(self, shape_models):
        shape, _, _ = shape_models
        adapter = SQLiteAdapter(shape)

        for _ in range(3):
            with pytest.raises(DecodeError) as exc_info:
                adapter.model_from_row({'id': 3, 'kind': 'triangle'})
            assert exc_info.value.code is ErrorCode.NO_CLASS_FOUND

    def test_subclass_descriptors_cached(self, shape_models):
        shape, circle, _ = shape_models
        adapter = SQLiteAdapter(shape)
        adapter.model_from_row({'id': 1, 'kind': 'circle'})

        assert adapter.descriptor_for(circle) is adapter.descriptor_for(circle)
        assert 'radius' in adapter.descriptor_for(circle).column_names_by_property_key

    def test_selector_must_return_subclass(self, log_model):
        @dataclass
        class Stray(SQLiteSerializing):
            id: int = 0

            @classmethod
            def column_names_by_property_key(cls):
                return {'id': 'id'}

            @classmethod
            def class_for_parsing_row(cls, row):
                return log_model

        with pytest.raises(TypeError):
            SQLiteAdapter(Stray).model_from_row({'id': 1})


class TestValidation:
    """Tests for post-construction validation"""

    def test_valid_model_returned(self, reading_model):
        assert SQLiteAdapter(reading_model).model_from_row({'id': 1, 'kelvin': 273.15}).kelvin == 273.15

    def test_invalid_model_rejected(self, reading_model):
        with pytest.raises(DecodeError) as exc_info:
            SQLiteAdapter(reading_model).model_from_row({'id': 1, 'kelvin': -5.0})
        assert exc_info.value.code is ErrorCode.VALIDATION_FAILED
        assert exc_info.value.reason == '-5.0 K is below absolute zero'
        assert exc_info.value.__cause__.reason == exc_info.value.reason

    def test_validation_disabled(self, reading_model):
        adapter = SQLiteAdapter(reading_model, AdapterOptions(validate_models=False))
        assert adapter.model_from_row({'id': 1, 'kelvin': -5.0}).kelvin == -5.0


class TestRowSources:
    """Tests for the row shapes accepted by the decoder"""

    def test_namedtuple_row(self, user_adapter, user_model):
        Row = namedtuple('Row', ['id', 'full_name'])
        assert user_adapter.model_from_row(Row(7, 'Ada')) == user_model(id=7, name='Ada')

    def test_sqlite_row(self, user_adapter, user_model, sqlite_conn):
        row = sqlite_conn.execute("select 7 as id, 'Ada' as full_name").fetchone()
        assert user_adapter.model_from_row(row) == user_model(id=7, name='Ada')

    def test_unsupported_row(self, user_adapter):
        with pytest.raises(TypeError):
            user_adapter.model_from_row([7, 'Ada'])

    def test_models_from_rows(self, user_adapter, user_model):
        rows = [{'id': 1, 'full_name': 'a'}, {'id': 2}]
        assert user_adapter.models_from_rows(rows) == [user_model(1, 'a'), user_model(2)]
        assert user_adapter.models_from_rows(None) == []

    def test_models_from_dataframe(self, user_adapter, user_model):
        df = pd.DataFrame({'id': [1, 2], 'full_name': ['a', np.nan]})
        users = user_adapter.models_from_rows(df)

        assert users == [user_model(1, 'a'), user_model(2, None)]
        assert all(type(u.id) is int for u in users)


def test_lookup_error_is_transform_failure():
    """Test that a lookup-table transformer rejecting a code reports a typed failure"""
    codes = {1: 'open', 2: 'closed'}

    @dataclass
    class Ticket(SQLiteSerializing):
        id: int = 0
        code: str | None = transformed_field(
            ValueTransformer(lambda s: {v: k for k, v in codes.items()}[s], lambda c: codes[c]),
            default=None)

        @classmethod
        def column_names_by_property_key(cls):
            return {'id': 'id', 'code': 'code'}

    adapter = SQLiteAdapter(Ticket)
    assert adapter.model_from_row({'id': 1, 'code': 2}).code == 'closed'
    with pytest.raises(DecodeError) as exc_info:
        adapter.model_from_row({'id': 1, 'code': 99})
    assert exc_info.value.code is ErrorCode.TRANSFORM_FAILURE
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_missing_columns_without_defaults():
    """Test that fields declared without defaults read as their zero value"""
    @dataclass
    class Request(SQLiteSerializing):
        id: int
        flag: bool
        path: str
        weight: float
        body: bytes

        @classmethod
        def column_names_by_property_key(cls):
            return {k: k for k in ('id', 'flag', 'path', 'weight', 'body')}

    assert SQLiteAdapter(Request).model_from_row({'id': 3}) == Request(3, False, '', 0.0, b'')


def test_dataframe_int_column_with_missing_values(user_model):
    """Test that an int column upcast to float64 by NaN reads back as int"""
    df = pd.DataFrame({'id': [1, np.nan], 'full_name': ['a', 'b']})
    users = SQLiteAdapter(user_model).models_from_rows(df)

    assert users == [user_model(1, 'a'), user_model(None, 'b')]
    assert type(users[0].id) is int
