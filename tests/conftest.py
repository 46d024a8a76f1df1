"""Pytest bootstrap configuration.

Each test gets its own SQLite ledger in a temp dir so gateway tests exercise
the real repository and unit of work.
"""
import functools
import os

os.environ.setdefault("DEBUG", "true")

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from infrastructure.database import build_engine, build_session_factory, create_tables
from infrastructure.models import TransactionModel
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@pytest_asyncio.fixture
async def ledger_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(ledger_engine):
    return build_session_factory(ledger_engine)


@pytest.fixture
def uow_factory(session_factory):
    return functools.partial(SQLAlchemyUnitOfWork, session_factory)


@pytest.fixture
def fetch_transaction(uow_factory):
    async def _fetch(gateway_transaction_id):
        async with uow_factory(readonly=True) as uow:
            return await uow.transaction_repository.get_by_gateway_transaction_id(gateway_transaction_id)
    return _fetch


@pytest.fixture
def count_transactions(session_factory):
    async def _count():
        async with session_factory() as session:
            result = await session.execute(select(func.count(TransactionModel.id)))
            return result.scalar_one()
    return _count
