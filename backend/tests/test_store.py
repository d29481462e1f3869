"""SqlAlchemyPortfolioStore tests on a throwaway SQLite database."""

from __future__ import annotations

import math
from datetime import date, timedelta

import numpy as np
import pytest
from sqlalchemy import insert

from app.models import HistoricalPrice, TrackedAsset, User
from app.services.store import SqlAlchemyPortfolioStore
from portfolio_metrics import (
    AnalysisRecord,
    Asset,
    Portfolio,
    PortfolioAnalyzer,
    RecordNotFoundError,
    StoreReadError,
)


async def _seed_user(database, username: str = "alice") -> int:
    async with database.session() as session:
        async with session.begin():
            user = User(username=username, password_hash="x", role="user")
            session.add(user)
            await session.flush()
            return user.id


async def _seed_prices(database, rows) -> None:
    async with database.session() as session:
        async with session.begin():
            await session.execute(
                insert(HistoricalPrice),
                [{"ticker": ticker, "date": day, "close": close} for ticker, day, close in rows],
            )


def _record(user_id: int, name: str = "p", *, sharpe: float = 1.0, dates=None, **overrides) -> AnalysisRecord:
    dates = dates if dates is not None else (date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4))
    fields = dict(
        name=name,
        user_id=user_id,
        trading_dates=tuple(dates),
        daily_values=tuple(100.0 + index for index in range(len(dates))),
        daily_returns=tuple(0.01 for _ in range(max(len(dates) - 1, 0))),
        cumulative_return=0.02,
        mean_return=0.01,
        volatility=0.005,
        sharpe=sharpe,
        value_at_risk=-12.5,
        assets=(Asset("AAA", 0.7), Asset("BBB", 0.3)),
    )
    fields.update(overrides)
    return AnalysisRecord(**fields)


async def test_trading_dates_are_distinct_and_sorted(open_database):
    async with open_database() as database:
        await _seed_prices(
            database,
            [
                ("BBB", date(2024, 1, 3), 20.0),
                ("AAA", date(2024, 1, 3), 10.0),
                ("AAA", date(2024, 1, 2), 9.5),
                ("CCC", date(2024, 1, 5), 3.0),
            ],
        )
        store = SqlAlchemyPortfolioStore(database)

        assert await store.fetch_trading_dates() == [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)]


async def test_closing_prices_keep_gaps(open_database):
    async with open_database() as database:
        await _seed_prices(
            database,
            [
                ("AAA", date(2024, 1, 2), 10.0),
                ("AAA", date(2024, 1, 3), 11.0),
                ("BBB", date(2024, 1, 3), 50.0),
                ("CCC", date(2024, 1, 2), 1.0),
            ],
        )
        store = SqlAlchemyPortfolioStore(database)
        dates = await store.fetch_trading_dates()

        panel = await store.fetch_closing_prices(["AAA", "BBB"], dates)

        assert panel.tickers == ("AAA", "BBB")
        assert panel.price(date(2024, 1, 2), "AAA") == 10.0
        assert panel.price(date(2024, 1, 2), "BBB") is None
        assert panel.closes.tolist() == [[10.0, 0.0], [11.0, 50.0]]


async def test_closing_prices_for_unknown_ticker_are_empty(open_database):
    async with open_database() as database:
        await _seed_prices(database, [("AAA", date(2024, 1, 2), 10.0)])
        store = SqlAlchemyPortfolioStore(database)

        panel = await store.fetch_closing_prices(["ZZZ"], [date(2024, 1, 2)])

        assert panel.missing_count() == 1
        assert panel.closes.tolist() == [[0.0]]


async def test_saved_record_round_trips(open_database):
    async with open_database() as database:
        user_id = await _seed_user(database)
        store = SqlAlchemyPortfolioStore(database)
        record = _record(user_id, "income")

        portfolio_id = await store.save_portfolio(record)
        loaded = await store.fetch_portfolio(portfolio_id)

        assert loaded.id == portfolio_id
        assert loaded.username == "alice"
        assert loaded.trading_dates == record.trading_dates
        assert loaded.daily_values == pytest.approx(record.daily_values)
        assert loaded.daily_returns == pytest.approx(record.daily_returns)
        assert loaded.sharpe == pytest.approx(1.0)
        assert loaded.value_at_risk == pytest.approx(-12.5)
        assert loaded.assets == record.assets


async def test_saved_record_keeps_non_finite_values(open_database):
    async with open_database() as database:
        user_id = await _seed_user(database)
        store = SqlAlchemyPortfolioStore(database)
        record = _record(
            user_id,
            daily_values=(0.0, 10.0, 0.0),
            daily_returns=(math.inf, -1.0),
            volatility=math.nan,
            sharpe=math.nan,
            value_at_risk=math.nan,
        )

        loaded = await store.fetch_portfolio(await store.save_portfolio(record))

        assert math.isinf(loaded.daily_returns[0])
        assert loaded.daily_returns[1] == -1.0
        assert math.isnan(loaded.volatility)
        assert math.isnan(loaded.sharpe)
        assert math.isnan(loaded.value_at_risk)


async def test_ids_increase_across_saves(open_database):
    async with open_database() as database:
        user_id = await _seed_user(database)
        store = SqlAlchemyPortfolioStore(database)

        first = await store.save_portfolio(_record(user_id, "a"))
        second = await store.save_portfolio(_record(user_id, "b"))

        assert second > first


async def test_missing_portfolio_raises_not_found(open_database):
    async with open_database() as database:
        store = SqlAlchemyPortfolioStore(database)

        with pytest.raises(RecordNotFoundError):
            await store.fetch_portfolio(999)


async def test_user_portfolios_are_newest_first(open_database):
    async with open_database() as database:
        alice = await _seed_user(database, "alice")
        bob = await _seed_user(database, "bob")
        store = SqlAlchemyPortfolioStore(database)
        await store.save_portfolio(_record(alice, "first"))
        await store.save_portfolio(_record(bob, "other"))
        await store.save_portfolio(_record(alice, "second"))
        await store.save_portfolio(_record(alice, "empty", dates=()))

        summaries = await store.fetch_user_portfolios(alice)

        assert [summary.name for summary in summaries] == ["second", "first"]
        assert summaries[0].start == date(2024, 1, 2)
        assert summaries[0].end == date(2024, 1, 4)
        assert summaries[0].assets == (Asset("AAA", 0.7), Asset("BBB", 0.3))


async def test_leaderboard_orders_by_sharpe_with_nulls_last(open_database):
    async with open_database() as database:
        alice = await _seed_user(database, "alice")
        bob = await _seed_user(database, "bob")
        store = SqlAlchemyPortfolioStore(database)
        await store.save_portfolio(_record(alice, "steady", sharpe=0.8))
        await store.save_portfolio(_record(bob, "undefined", sharpe=math.nan))
        await store.save_portfolio(_record(bob, "hot", sharpe=2.4))

        entries = await store.fetch_leaderboard()

        assert [entry.name for entry in entries] == ["hot", "steady", "undefined"]
        assert entries[0].username == "bob"
        assert entries[0].start_date == date(2024, 1, 2)
        assert math.isnan(entries[-1].sharpe)

        assert [entry.name for entry in await store.fetch_leaderboard(limit=1)] == ["hot"]


async def test_infinite_sharpe_ranks_after_finite_ratios(open_database):
    async with open_database() as database:
        alice = await _seed_user(database, "alice")
        store = SqlAlchemyPortfolioStore(database)
        await store.save_portfolio(_record(alice, "flat", sharpe=math.inf, volatility=0.0))
        await store.save_portfolio(_record(alice, "real", sharpe=2.4))
        await store.save_portfolio(_record(alice, "sinking", sharpe=-math.inf, volatility=0.0))
        await store.save_portfolio(_record(alice, "weak", sharpe=-0.3))

        entries = await store.fetch_leaderboard()
        data = await store.fetch_account_data(alice)

        assert [entry.name for entry in entries[:2]] == ["real", "weak"]
        assert {entry.name for entry in entries[2:]} == {"flat", "sinking"}
        assert math.isinf(entries[2].sharpe) and math.isinf(entries[3].sharpe)
        assert data.portfolio_count == 4
        assert data.best_sharpe == pytest.approx(2.4)


async def test_best_sharpe_is_zero_when_only_non_finite_ratios_exist(open_database):
    async with open_database() as database:
        alice = await _seed_user(database, "alice")
        store = SqlAlchemyPortfolioStore(database)
        await store.save_portfolio(_record(alice, "flat", sharpe=math.inf, volatility=0.0))
        await store.save_portfolio(_record(alice, "short", sharpe=math.nan, volatility=math.nan))

        data = await store.fetch_account_data(alice)

        assert data.portfolio_count == 2
        assert data.best_sharpe == 0.0


async def test_account_data_counts_and_best_sharpe(open_database):
    async with open_database() as database:
        alice = await _seed_user(database, "alice")
        store = SqlAlchemyPortfolioStore(database)

        empty = await store.fetch_account_data(alice)
        assert empty.portfolio_count == 0
        assert empty.best_sharpe == 0.0

        await store.save_portfolio(_record(alice, "a", sharpe=0.4))
        await store.save_portfolio(_record(alice, "b", sharpe=1.6))

        data = await store.fetch_account_data(alice)
        assert data.portfolio_count == 2
        assert data.best_sharpe == pytest.approx(1.6)


async def test_tickers_are_sorted_and_capped(open_database):
    async with open_database() as database:
        async with database.session() as session:
            async with session.begin():
                session.add_all([TrackedAsset(ticker=f"T{index:03d}") for index in range(60, 0, -1)])
        store = SqlAlchemyPortfolioStore(database)

        tickers = await store.fetch_tickers()

        assert len(tickers) == 50
        assert tickers[0] == "T001"
        assert tickers == sorted(tickers)


async def test_analyzer_end_to_end_on_sqlite(open_database):
    async with open_database() as database:
        user_id = await _seed_user(database)
        start = date(2024, 2, 1)
        rows = []
        for offset in range(10):
            day = start + timedelta(days=offset)
            rows.append(("AAA", day, 100.0 + offset))
            if offset != 4:
                rows.append(("BBB", day, 50.0 - offset / 2))
        await _seed_prices(database, rows)
        store = SqlAlchemyPortfolioStore(database)
        analyzer = PortfolioAnalyzer(store, rng=np.random.default_rng(0))

        portfolio_id = await analyzer.analyze(
            user_id, Portfolio(name="blend", current_value=5000, assets=(Asset("AAA", 0.5), Asset("BBB", 0.5)))
        )
        loaded = await store.fetch_portfolio(portfolio_id)

        assert len(loaded.trading_dates) == 10
        assert len(loaded.daily_returns) == 9
        assert loaded.daily_values[4] == pytest.approx(0.5 * 104.0)
        assert math.isfinite(loaded.sharpe)


async def test_read_failures_are_wrapped(open_database):
    async with open_database() as database:
        store = SqlAlchemyPortfolioStore(database)
        async with database.engine.begin() as connection:
            await connection.exec_driver_sql("DROP TABLE historical_prices")

        with pytest.raises(StoreReadError):
            await store.fetch_trading_dates()
