"""Tests for the in-memory test double."""

import pytest

from dataaccess.db.dummy import DummyDAO
from dataaccess.db.results import ArrayResultSet
from dataaccess.exceptions import DatabaseConnectionError, DatabaseQueryError, TransactionError


class TestDummyQueries:
    """Canned rows come back from every query."""

    def test_round_trip(self, people_rows):
        dao = DummyDAO({'testdata': people_rows})

        result = dao.query("SELECT * FROM people WHERE id > :id", {'id': 0})

        assert isinstance(result, ArrayResultSet)
        assert dao.query_text == "SELECT * FROM people WHERE id > :id"
        assert dao.params == {'id': 0}
        assert dao.query_succeeded() is True
        assert dao.to_array() == people_rows
        assert result.num_rows() == 2

    def test_set_test_data(self, people_rows):
        dao = DummyDAO()
        dao.set_test_data(people_rows[:1])
        assert dao.query("SELECT 1").to_array() == people_rows[:1]

    def test_options_override_test_data(self, people_rows):
        dao = DummyDAO({'testdata': people_rows})

        rows = dao.query("SELECT 1", options={'testdata': [{'id': 9}]}).to_array()

        assert rows == [{'id': 9}]
        assert dao.test_data == [{'id': 9}]

    def test_params_merged_from_options(self):
        dao = DummyDAO({'testdata': []})
        dao.query("SELECT 1", {'b': 3}, {'params': {'a': 1, 'b': 2}})
        assert dao.params == {'a': 1, 'b': 3}

    def test_without_test_data(self):
        dao = DummyDAO()
        result = dao.query("SELECT * FROM people")

        assert dao.query_succeeded() is False
        assert dao.to_array() is None
        assert result.to_array() == []

    def test_navigation(self, people_rows):
        result = DummyDAO({'testdata': people_rows}).query("SELECT * FROM people")

        assert result.current() == people_rows[0]
        assert result.fetch() == people_rows[0]
        assert result.fetch() == people_rows[1]
        assert result.fetch() is None
        assert result.valid() is False

    def test_connects_lazily(self):
        dao = DummyDAO()
        assert dao.is_connected is False
        dao.query("SELECT 1")
        assert dao.is_connected is True

    def test_last_insert_id(self):
        assert DummyDAO().last_insert_id() == 30
        assert DummyDAO({'last_insert_id': 7}).last_insert_id() == 7


class TestDummyFailures:
    """Simulated failures."""

    def test_fail_connection(self):
        dao = DummyDAO()
        dao.set_fail_connection()

        with pytest.raises(DatabaseConnectionError, match="Unable to connect to the database!"):
            dao.query("SELECT 1")
        assert dao.is_connected is False

    def test_fail_connection_after_connecting(self):
        dao = DummyDAO()
        dao.connect()
        dao.set_fail_connection()

        with pytest.raises(DatabaseConnectionError):
            dao.query("SELECT 1")

    def test_fail_query(self):
        dao = DummyDAO({'testdata': []})
        dao.set_fail_query()

        with pytest.raises(DatabaseQueryError) as exc_info:
            dao.query("SELECT * FROM people WHERE id = :id", {'id': 4})

        assert str(exc_info.value).startswith("Unable to complete the query")
        assert "|| QUERY: SELECT * FROM people WHERE id = :id || PARAMS: 4" in str(exc_info.value)
        assert dao.query_succeeded() is False

    def test_fail_query_can_be_cleared(self):
        dao = DummyDAO({'testdata': [{'id': 1}]})
        dao.set_fail_query()
        dao.set_fail_query(False)
        assert dao.query("SELECT 1").to_array() == [{'id': 1}]


class TestDummyTransactions:
    """Transaction flag handling."""

    def test_begin_commit(self):
        dao = DummyDAO()
        assert dao.begin_transaction() is True
        assert dao.in_transaction is True
        assert dao.commit_transaction() is True
        assert dao.in_transaction is False

    def test_begin_rollback(self):
        dao = DummyDAO()
        dao.begin_transaction()
        assert dao.rollback_transaction() is True
        assert dao.in_transaction is False

    def test_begin_twice(self):
        dao = DummyDAO()
        dao.begin_transaction()
        with pytest.raises(TransactionError):
            dao.begin_transaction()

    def test_commit_without_begin(self):
        with pytest.raises(TransactionError):
            DummyDAO().commit_transaction()

    def test_rollback_without_begin(self):
        with pytest.raises(TransactionError):
            DummyDAO().rollback_transaction()

    def test_disconnect_ends_transaction(self):
        dao = DummyDAO()
        dao.begin_transaction()
        dao.disconnect()
        assert dao.in_transaction is False
        assert dao.is_connected is False

    def test_context_manager(self):
        with DummyDAO() as dao:
            dao.connect()
        assert dao.is_connected is False
