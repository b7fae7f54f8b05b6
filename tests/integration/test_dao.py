"""End-to-end DAO tests against a temporary SQLite database."""

import uuid

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError, StatementError

from dao_builder import CardinalityError, MalformedCriteriaError, OperationKind
from dao_conn import Audit, Dao, DaoConnection, ErrorMode, FetchMode, TableConfig
from conftest import PEOPLE


class TestRoundTrip:
    """Insert and read back."""

    def test_insert_then_select_id(self, con) -> None:
        dao = Dao(con, "person")
        pid = dao.insert({"name": "a", "age": 5})
        row = dao.select_id(pid)
        assert row == {"id_person": pid, "name": "a", "age": 5, "status": None}

    def test_select_id_missing(self, people: Dao) -> None:
        assert people.select_id(999) is None

    def test_select_returns_every_row(self, people: Dao) -> None:
        rows = people.select()
        assert [r["name"] for r in rows] == [p["name"] for p in PEOPLE]

    def test_select_where_idempotent(self, people: Dao) -> None:
        first = people.select_where({"status": "active"})
        second = people.select_where({"status": "active"})
        assert first == second
        assert len(first) == 3

    def test_select_where_in_list(self, people: Dao) -> None:
        rows = people.select_where({"name": ["bob", "alice"]})
        assert sorted(r["name"] for r in rows) == ["alice", "bob"]


class TestCardinality:
    """select_id must address at most one row."""

    def test_non_unique_identifier_raises(self, people: Dao) -> None:
        by_status = people.with_identifier("status")
        with pytest.raises(CardinalityError) as exc:
            by_status.select_id("active")
        assert exc.value.count == 3

    def test_unique_non_default_identifier(self, people: Dao) -> None:
        row = people.with_identifier("name").select_id("alice")
        assert row["age"] == 27


class TestFilteredSelect:
    """select_filter and select_like executed."""

    def test_filter_order_limit(self, people: Dao) -> None:
        rows = people.select_filter(columns=["name", "age"], where={"status": "active"},
                                    order="age", vector="desc", limit=2)
        assert rows == [{"name": "robert", "age": 44}, {"name": "bobby", "age": 31}]

    def test_filter_like_is_lowercased_prefix(self, people: Dao) -> None:
        rows = people.select_filter(columns="name", like={"name": "BOB"}, order="name")
        assert [r["name"] for r in rows] == ["bob", "bobby"]

    def test_like_relevance_ranking(self, people: Dao) -> None:
        rows = people.select_like({"name": ["bob", "by"]}, columns=["name"], type="OR", sort="DESC")
        assert rows[0]["name"] == "bobby"
        assert {r["name"] for r in rows} == {"bob", "bobby"}

    def test_like_and_requires_every_condition(self, people: Dao) -> None:
        rows = people.select_like({"name": "ob", "status": "act"})
        assert {r["name"] for r in rows} == {"bob", "bobby", "robert"}

    def test_like_quote_in_pattern_is_data(self, people: Dao) -> None:
        assert people.select_like({"name": "x' OR '1'='1"}) == []


class TestWrites:
    """update and the delete variants."""

    def test_update(self, people: Dao) -> None:
        count = people.update({"status": "archived"}, {"status": "inactive"})
        assert count == 1
        assert people.select_where({"name": "alice"})[0]["status"] == "archived"

    def test_update_same_column_in_set_and_where(self, people: Dao) -> None:
        assert people.update({"age": 6}, {"age": 5}) == 1
        assert people.with_identifier("name").select_id("bob")["age"] == 6

    def test_delete_id(self, people: Dao) -> None:
        pid = people.range_id()[0]
        assert people.delete_id(pid) == 1
        assert people.select_id(pid) is None

    def test_delete_where(self, people: Dao) -> None:
        assert people.delete_where({"status": "active"}) == 3
        assert len(people.select()) == 1

    def test_delete_range(self, people: Dao) -> None:
        ids = people.range_id()
        assert people.delete_range(ids[:2]) == 2
        assert people.range_id() == ids[2:]

    def test_delete_where_empty_rejected(self, people: Dao) -> None:
        with pytest.raises(MalformedCriteriaError):
            people.delete_where({})
        assert len(people.select()) == len(PEOPLE)


class TestRawQuery:
    """query() with caller-supplied kinds."""

    def test_select_with_params(self, people: Dao) -> None:
        rows = people.query("SELECT name FROM person WHERE age > :age ORDER BY age", {"age": 30})
        assert [r["name"] for r in rows] == ["bobby", "robert"]

    def test_kind_decides_result_not_sql_text(self, people: Dao) -> None:
        rows = people.query("SELECT 'UPDATE' AS word")
        assert rows == [{"word": "UPDATE"}]

    def test_insert_kind_returns_lastrowid(self, people: Dao) -> None:
        pid = people.query("INSERT INTO person (name) VALUES (:name)", {"name": "zed"}, OperationKind.INSERT)
        assert people.select_id(pid)["name"] == "zed"

    def test_kind_accepts_value_string(self, people: Dao) -> None:
        assert people.query("DELETE FROM person WHERE age > :age", {"age": 30}, kind="delete") == 2


class TestFetchModes:
    """Row shapes."""

    def test_num(self, people: Dao) -> None:
        rows = people.with_fetch_mode(FetchMode.NUM).select_filter(columns=["name", "age"], limit=1)
        assert rows == [("bob", 5)]

    def test_column(self, people: Dao) -> None:
        names = people.with_fetch_mode(FetchMode.COLUMN).select_filter(columns="name", order="name")
        assert names == ["alice", "bob", "bobby", "robert"]

    def test_frame(self, people: Dao) -> None:
        df = people.with_fetch_mode(FetchMode.FRAME).select()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["id_person", "name", "age", "status"]
        assert len(df) == len(PEOPLE)

    def test_frame_keeps_columns_when_empty(self, people: Dao) -> None:
        df = people.with_fetch_mode(FetchMode.FRAME).select_where({"name": "nobody"})
        assert df.empty
        assert "name" in df.columns

    def test_reconfiguring_returns_new_dao(self, people: Dao) -> None:
        people.with_fetch_mode(FetchMode.NUM)
        people.with_table("other")
        assert people.fetch_mode is FetchMode.ASSOC
        assert people.table == "person"
        assert people.identifier == "id_person"


class TestConfiguration:
    """TableConfig defaults and validation."""

    def test_identifier_default(self) -> None:
        assert TableConfig("orders").identifier == "id_orders"

    def test_with_table_resets_identifier(self, people: Dao) -> None:
        other = people.with_identifier("name").with_table("orders")
        assert other.identifier == "id_orders"

    def test_invalid_identifier_rejected(self) -> None:
        with pytest.raises(MalformedCriteriaError):
            TableConfig("person", "id person")


class TestErrorModes:
    """Driver errors propagate unless the caller opts out."""

    def test_exception_mode_propagates(self, people: Dao) -> None:
        with pytest.raises(OperationalError):
            people.with_table("missing").select()

    def test_constraint_violation_propagates(self, people: Dao) -> None:
        with pytest.raises(IntegrityError):
            people.insert({"age": 1})

    def test_unbound_placeholder_fails(self, people: Dao) -> None:
        with pytest.raises(StatementError):
            people.query("SELECT * FROM person WHERE age = :age")

    def test_warning_mode_logs_and_returns_none(self, people: Dao, caplog) -> None:
        people.con.set_error_mode(ErrorMode.WARNING)
        assert people.with_table("missing").select() is None
        assert people.con.last_error is not None
        assert people.con.error_info()["sql"] == "SELECT * FROM missing"
        assert any("failed" in r.message for r in caplog.records)

    def test_silent_mode_records_error(self, people: Dao) -> None:
        people.con.set_error_mode(ErrorMode.SILENT)
        assert people.insert({"age": 1}) is None
        assert people.con.error_info()["type"] == "IntegrityError"
        people.select()
        assert people.con.error_info() == {}

    def test_malformed_input_raises_regardless_of_mode(self, people: Dao) -> None:
        people.con.set_error_mode(ErrorMode.SILENT)
        with pytest.raises(MalformedCriteriaError):
            people.select_where({"a": {"b": 1}})


class TestConnectionOwnership:
    """Engine-backed and caller-owned connections."""

    def test_last_query_recorded(self, people: Dao) -> None:
        people.select_where({"name": "bob"})
        assert people.con.last_query.sql == "SELECT * FROM person WHERE name = :w_name"

    def test_caller_owned_connection_leaves_commit_to_caller(self, db_url) -> None:
        engine = create_engine(db_url)
        with engine.connect() as conn:
            dao = Dao(DaoConnection(conn), "person")
            dao.insert({"name": "temp"})
            assert len(dao.select()) == 1
            conn.rollback()
            assert dao.select() == []
        engine.dispose()

    def test_get_uid(self, con) -> None:
        value = Dao(con, "person").get_uid()
        assert str(uuid.UUID(value)) == value

    def test_audit_trail(self, db_url, tmp_path) -> None:
        audit_db = str(tmp_path / "audit.db")
        with DaoConnection(db_url, audit_db=audit_db, error_mode=ErrorMode.SILENT) as c:
            dao = Dao(c, "person")
            dao.insert({"name": "x"})
            dao.insert({"age": 2})
        entries = Audit(audit_db).entries()
        assert [e["ok"] for e in entries] == [0, 1]
        assert entries[1]["kind"] == "insert"
        assert entries[1]["sql"] == "INSERT INTO person (name) VALUES (:name)"
        assert entries[0]["err"]
