from __future__ import annotations

from sql_advisor.services.advisor.index_advisor import equality_columns, target_table
from sql_advisor.services.advisor.static_pass import run_static_pass


def test_equality_predicate_produces_composite_index() -> None:
    report = run_static_pass("SELECT * FROM Orders WHERE CustomerId = @id")

    assert report.index_recommendations == ["create index ix_customerid_suggested on orders (customerid);"]


def test_join_predicates_are_not_index_candidates() -> None:
    report = run_static_pass("SELECT Name FROM Users u JOIN Orders o ON u.Id = o.UserId")

    assert report.index_recommendations == []


def test_at_most_three_columns_in_first_seen_order() -> None:
    report = run_static_pass(
        "SELECT s.id FROM dbo.Sales s "
        "WHERE s.Region = 'EU' AND s.Status = :status AND s.Region = 'US' AND s.Kind = ? AND s.Channel = 4"
    )

    assert report.index_recommendations == [
        "create index ix_region_suggested on dbo.sales (region, status, kind);"
    ]


def test_equality_columns_skip_range_and_inequality_operators() -> None:
    assert equality_columns("SELECT A FROM T WHERE A >= 1 AND B <> 2 AND C != 3 AND D <= 4") == []
    assert equality_columns("SELECT A FROM T WHERE T.A = $1 AND B = %S AND C = N'X'") == ["a", "b", "c"]
    assert equality_columns("SELECT A FROM T WHERE [DBO].[T].[CODE] = 'Z'") == ["code"]


def test_equality_columns_skip_function_wrapped_columns() -> None:
    assert equality_columns("SELECT ID FROM EVENTS WHERE YEAR(CREATEDAT) = 2023") == []


def test_target_table_falls_back_to_join_then_placeholder() -> None:
    assert target_table("SELECT A FROM ORDERS WHERE B = 1") == "orders"
    assert target_table("UPDATE X SET X.A = 1 JOIN ITEMS I ON I.ID = 2") == "items"
    assert target_table("UPDATE X SET A = 1") == "<yourtable>"


def test_no_equality_predicates_means_no_suggestion() -> None:
    report = run_static_pass("SELECT id FROM t WHERE created > '2020-01-01' ORDER BY id")

    assert report.index_recommendations == []
