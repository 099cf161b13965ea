"""SQLAlchemy storage backend for gachaforge."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Sequence

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, Text, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.cards import CardDefinition, CardTemplate, GameplayType, PackDefinition
from ..domain.economy import CurrencyType
from ..loaders.json_loader import (
    dump_card,
    dump_pack,
    dump_template,
    parse_card,
    parse_pack,
    parse_template,
)
from .base import (
    AccountRecord,
    AccountStore,
    AuditStore,
    BatchRecord,
    BatchSettlement,
    CatalogStore,
    CollectionStore,
    HistoryStore,
    OwnedCardRecord,
    PityStore,
    SettlementStore,
)
from .serialization import (
    balances_from_dict,
    balances_to_dict,
    result_from_dict,
    result_to_dict,
    statistics_from_dict,
    statistics_to_dict,
)


class Base(DeclarativeBase):
    pass


class CardTable(Base):
    __tablename__ = "gachaforge_cards"

    card_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    gameplay_type: Mapped[str] = mapped_column(String(32), index=True)
    payload: Mapped[dict] = mapped_column(JSON)


class PackTable(Base):
    __tablename__ = "gachaforge_packs"

    pack_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    gameplay_type: Mapped[str] = mapped_column(String(32), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    payload: Mapped[dict] = mapped_column(JSON)


class TemplateTable(Base):
    __tablename__ = "gachaforge_templates"

    template_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    gameplay_type: Mapped[str] = mapped_column(String(32), index=True)
    payload: Mapped[dict] = mapped_column(JSON)


class AccountTable(Base):
    __tablename__ = "gachaforge_accounts"

    account_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    currencies: Mapped[dict] = mapped_column(JSON, default=dict)
    statistics: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class PityCounterTable(Base):
    __tablename__ = "gachaforge_pity_counters"

    account_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    pack_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    counter: Mapped[int] = mapped_column(Integer, default=0)


class OwnedCardTable(Base):
    __tablename__ = "gachaforge_owned_cards"

    account_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    card_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer)
    obtained_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class HistoryTable(Base):
    __tablename__ = "gachaforge_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(String(64), unique=True)
    account_id: Mapped[str] = mapped_column(String(64), index=True)
    pack_id: Mapped[str] = mapped_column(String(128), index=True)
    pack_name: Mapped[str] = mapped_column(String(255))
    pack_description: Mapped[str] = mapped_column(Text, default="")
    pack_cover_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    pack_currency: Mapped[str] = mapped_column(String(32))
    pack_cost: Mapped[int] = mapped_column(Integer)
    quantity: Mapped[int] = mapped_column(Integer)
    result: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


class AuditTable(Base):
    __tablename__ = "gachaforge_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _account_row(record: AccountRecord) -> AccountTable:
    return AccountTable(
        account_id=record.account_id,
        username=record.username,
        email=record.email,
        currencies=balances_to_dict(record.currencies),
        statistics=statistics_to_dict(record.statistics),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _owned_row(entry: OwnedCardRecord) -> OwnedCardTable:
    return OwnedCardTable(
        account_id=entry.account_id,
        card_id=entry.card_id,
        quantity=entry.quantity,
        obtained_at=entry.obtained_at,
    )


def _history_row(record: BatchRecord) -> HistoryTable:
    return HistoryTable(
        record_id=record.record_id,
        account_id=record.account_id,
        pack_id=record.pack_id,
        pack_name=record.pack_name,
        pack_description=record.pack_description,
        pack_cover_image_url=record.pack_cover_image_url,
        pack_currency=record.pack_currency.value,
        pack_cost=record.pack_cost,
        quantity=record.quantity,
        result=result_to_dict(record.result),
        created_at=record.created_at,
    )


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def catalog_store(self) -> "AsyncSQLAlchemyCatalogStore":
        return AsyncSQLAlchemyCatalogStore(self._session_factory)

    def account_store(self) -> "AsyncSQLAlchemyAccountStore":
        return AsyncSQLAlchemyAccountStore(self._session_factory)

    def pity_store(self) -> "AsyncSQLAlchemyPityStore":
        return AsyncSQLAlchemyPityStore(self._session_factory)

    def collection_store(self) -> "AsyncSQLAlchemyCollectionStore":
        return AsyncSQLAlchemyCollectionStore(self._session_factory)

    def history_store(self) -> "AsyncSQLAlchemyHistoryStore":
        return AsyncSQLAlchemyHistoryStore(self._session_factory)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory)

    def settlement_store(self) -> "AsyncSQLAlchemySettlementStore":
        return AsyncSQLAlchemySettlementStore(self._session_factory)


class AsyncSQLAlchemyCatalogStore(CatalogStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_card(self, card_id: str) -> CardDefinition | None:
        async with self._session_factory() as session:
            row = await session.get(CardTable, card_id)
            return parse_card(row.payload) if row else None

    async def get_cards_by_ids(self, card_ids: Sequence[str]) -> Sequence[CardDefinition]:
        if not card_ids:
            return []
        async with self._session_factory() as session:
            stmt = select(CardTable).where(CardTable.card_id.in_(list(card_ids)))
            rows = {row.card_id: row for row in (await session.execute(stmt)).scalars().all()}
            return [parse_card(rows[card_id].payload) for card_id in card_ids if card_id in rows]

    async def list_cards(self, gameplay_type: GameplayType | None = None) -> Sequence[CardDefinition]:
        async with self._session_factory() as session:
            stmt = select(CardTable).order_by(CardTable.card_id)
            if gameplay_type is not None:
                stmt = stmt.where(CardTable.gameplay_type == gameplay_type.value)
            rows = (await session.execute(stmt)).scalars().all()
            return [parse_card(row.payload) for row in rows]

    async def save_card(self, card: CardDefinition) -> None:
        async with self._session_factory() as session:
            await session.merge(
                CardTable(
                    card_id=card.card_id,
                    gameplay_type=card.gameplay_type.value,
                    payload=dump_card(card),
                )
            )
            await session.commit()

    async def delete_card(self, card_id: str) -> None:
        async with self._session_factory() as session:
            row = await session.get(CardTable, card_id)
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def get_pack(self, pack_id: str) -> PackDefinition | None:
        async with self._session_factory() as session:
            row = await session.get(PackTable, pack_id)
            return parse_pack(row.payload) if row else None

    async def list_packs(
        self, gameplay_type: GameplayType | None = None, *, active_only: bool = False
    ) -> Sequence[PackDefinition]:
        async with self._session_factory() as session:
            stmt = select(PackTable).order_by(PackTable.pack_id)
            if gameplay_type is not None:
                stmt = stmt.where(PackTable.gameplay_type == gameplay_type.value)
            if active_only:
                stmt = stmt.where(PackTable.is_active.is_(True))
            rows = (await session.execute(stmt)).scalars().all()
            return [parse_pack(row.payload) for row in rows]

    async def save_pack(self, pack: PackDefinition) -> None:
        async with self._session_factory() as session:
            await session.merge(
                PackTable(
                    pack_id=pack.pack_id,
                    gameplay_type=pack.gameplay_type.value,
                    is_active=pack.is_active,
                    payload=dump_pack(pack),
                )
            )
            await session.commit()

    async def delete_pack(self, pack_id: str) -> None:
        async with self._session_factory() as session:
            row = await session.get(PackTable, pack_id)
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def get_template(self, template_id: str) -> CardTemplate | None:
        async with self._session_factory() as session:
            row = await session.get(TemplateTable, template_id)
            return parse_template(row.payload) if row else None

    async def list_templates(self, gameplay_type: GameplayType | None = None) -> Sequence[CardTemplate]:
        async with self._session_factory() as session:
            stmt = select(TemplateTable).order_by(TemplateTable.template_id)
            if gameplay_type is not None:
                stmt = stmt.where(TemplateTable.gameplay_type == gameplay_type.value)
            rows = (await session.execute(stmt)).scalars().all()
            return [parse_template(row.payload) for row in rows]

    async def save_template(self, template: CardTemplate) -> None:
        async with self._session_factory() as session:
            await session.merge(
                TemplateTable(
                    template_id=template.template_id,
                    gameplay_type=template.gameplay_type.value,
                    payload=dump_template(template),
                )
            )
            await session.commit()


class AsyncSQLAlchemyAccountStore(AccountStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, account_id: str) -> AccountRecord | None:
        async with self._session_factory() as session:
            row = await session.get(AccountTable, account_id)
            return self._to_record(row) if row else None

    async def save(self, record: AccountRecord) -> None:
        async with self._session_factory() as session:
            await session.merge(_account_row(record))
            await session.commit()

    async def all(self) -> Sequence[AccountRecord]:
        async with self._session_factory() as session:
            rows = (await session.execute(select(AccountTable))).scalars().all()
            return [self._to_record(row) for row in rows]

    def _to_record(self, row: AccountTable) -> AccountRecord:
        return AccountRecord(
            account_id=row.account_id,
            username=row.username,
            email=row.email,
            currencies=balances_from_dict(row.currencies),
            statistics=statistics_from_dict(row.statistics),
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )


class AsyncSQLAlchemyPityStore(PityStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, account_id: str, pack_id: str) -> int:
        async with self._session_factory() as session:
            row = await session.get(PityCounterTable, (account_id, pack_id))
            return row.counter if row else 0

    async def put(self, account_id: str, pack_id: str, counter: int) -> None:
        async with self._session_factory() as session:
            await session.merge(
                PityCounterTable(account_id=account_id, pack_id=pack_id, counter=counter)
            )
            await session.commit()


class AsyncSQLAlchemyCollectionStore(CollectionStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, account_id: str, card_id: str) -> OwnedCardRecord | None:
        async with self._session_factory() as session:
            row = await session.get(OwnedCardTable, (account_id, card_id))
            return self._to_record(row) if row else None

    async def put(self, entry: OwnedCardRecord) -> None:
        async with self._session_factory() as session:
            await session.merge(_owned_row(entry))
            await session.commit()

    async def delete(self, account_id: str, card_id: str) -> None:
        async with self._session_factory() as session:
            row = await session.get(OwnedCardTable, (account_id, card_id))
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def for_account(self, account_id: str) -> Sequence[OwnedCardRecord]:
        async with self._session_factory() as session:
            stmt = (
                select(OwnedCardTable)
                .where(OwnedCardTable.account_id == account_id)
                .order_by(OwnedCardTable.obtained_at)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [self._to_record(row) for row in rows]

    def _to_record(self, row: OwnedCardTable) -> OwnedCardRecord:
        return OwnedCardRecord(
            account_id=row.account_id,
            card_id=row.card_id,
            quantity=row.quantity,
            obtained_at=_aware(row.obtained_at),
        )


class AsyncSQLAlchemyHistoryStore(HistoryStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append(self, record: BatchRecord) -> None:
        async with self._session_factory() as session:
            session.add(_history_row(record))
            await session.commit()

    async def for_account(self, account_id: str) -> Sequence[BatchRecord]:
        async with self._session_factory() as session:
            stmt = (
                select(HistoryTable)
                .where(HistoryTable.account_id == account_id)
                .order_by(HistoryTable.created_at.desc(), HistoryTable.id.desc())
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [self._to_record(row) for row in rows]

    async def all(self) -> Sequence[BatchRecord]:
        async with self._session_factory() as session:
            stmt = select(HistoryTable).order_by(HistoryTable.created_at, HistoryTable.id)
            rows = (await session.execute(stmt)).scalars().all()
            return [self._to_record(row) for row in rows]

    def _to_record(self, row: HistoryTable) -> BatchRecord:
        return BatchRecord(
            record_id=row.record_id,
            account_id=row.account_id,
            pack_id=row.pack_id,
            pack_name=row.pack_name,
            pack_description=row.pack_description,
            pack_cover_image_url=row.pack_cover_image_url,
            pack_currency=CurrencyType(row.pack_currency),
            pack_cost=row.pack_cost,
            quantity=row.quantity,
            result=result_from_dict(row.result),
            created_at=_aware(row.created_at),
        )


class AsyncSQLAlchemyAuditStore(AuditStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()


class AsyncSQLAlchemySettlementStore(SettlementStore):
    """Write a whole batch in one transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def settle(self, settlement: BatchSettlement) -> None:
        account_id = settlement.account.account_id
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(
                    PityCounterTable(
                        account_id=account_id,
                        pack_id=settlement.pack_id,
                        counter=settlement.pity_counter,
                    )
                )
                for entry in settlement.owned_cards:
                    await session.merge(_owned_row(entry))
                await session.merge(_account_row(settlement.account))
                session.add(_history_row(settlement.record))
