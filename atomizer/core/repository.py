from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import Column, DateTime, String, Text, create_engine, select, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .models import ATOMS_TABLE, CONTEXTS_TABLE, Atom, Context, ContextRef

Base = declarative_base()

RowId = Union[str, int]


class AtomModel(Base):
    __tablename__ = ATOMS_TABLE
    id = Column(String, primary_key=True)
    type = Column(String)
    content = Column(Text)
    embedding = Column(Text)
    created_at = Column(DateTime)


class ContextModel(Base):
    __tablename__ = CONTEXTS_TABLE
    id = Column(String, primary_key=True)
    owner = Column(String, index=True)
    children = Column(Text)
    embedding = Column(Text)


JSON_COLUMNS = {"children", "embedding"}


def context_from_row(row: Dict[str, Any]) -> Context:
    return Context(
        id=row["id"],
        owner=row.get("owner"),
        children=[ContextRef(id=str(child["id"])) for child in row.get("children") or []],
        embedding=row.get("embedding"),
    )


def atom_from_row(row: Dict[str, Any]) -> Atom:
    return Atom(
        id=row["id"],
        type=row["type"],
        content=row["content"],
        embedding=row.get("embedding"),
        created_at=row.get("created_at"),
    )


class AtomizerRepository:
    """
    Persistence boundary for atoms and contexts. Rows cross the boundary as
    plain dicts so that callers can address any table/column by name; the
    typed helpers at the bottom are built on top of them.
    """

    def insert_atoms(self, atoms: Iterable[Atom]) -> None:
        raise NotImplementedError

    def insert_contexts(self, contexts: Iterable[Context]) -> None:
        raise NotImplementedError

    def get_by_id(self, table: str, row_id: RowId) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def get_by_ids(self, table: str, ids: Iterable[RowId]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def update_column(self, table: str, row_id: RowId, column: str, value: Any) -> None:
        raise NotImplementedError

    def get_subtree(self, root_id: str) -> List[Context]:
        """
        Return every context reachable from ``root_id`` through context
        children, flattened, in one call.
        """
        raise NotImplementedError

    def list_atoms(self) -> List[Atom]:
        raise NotImplementedError

    def get_atom(self, atom_id: str) -> Optional[Atom]:
        row = self.get_by_id(ATOMS_TABLE, atom_id)
        return atom_from_row(row) if row else None

    def get_context(self, context_id: str) -> Optional[Context]:
        row = self.get_by_id(CONTEXTS_TABLE, context_id)
        return context_from_row(row) if row else None


class InMemoryAtomizerRepository(AtomizerRepository):
    """
    Simple in-memory store for local runs and tests. It mirrors the DB shape
    and keeps copies of dataclasses to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.atoms: Dict[str, Atom] = {}
        self.contexts: Dict[str, Context] = {}

    def _table(self, table: str) -> Dict[str, Any]:
        if table == ATOMS_TABLE:
            return self.atoms
        if table == CONTEXTS_TABLE:
            return self.contexts
        raise ValueError(f"Unknown table: {table}")

    def insert_atoms(self, atoms: Iterable[Atom]) -> None:
        for atom in atoms:
            if atom.id in self.atoms:
                raise ValueError(f"Atom {atom.id} already exists")
            record = deepcopy(atom)
            if record.created_at is None:
                record.created_at = datetime.utcnow()
            self.atoms[atom.id] = record

    def insert_contexts(self, contexts: Iterable[Context]) -> None:
        for context in contexts:
            if context.id in self.contexts:
                raise ValueError(f"Context {context.id} already exists")
            self.contexts[context.id] = deepcopy(context)

    def get_by_id(self, table: str, row_id: RowId) -> Optional[Dict[str, Any]]:
        record = self._table(table).get(str(row_id))
        return asdict(record) if record else None

    def get_by_ids(self, table: str, ids: Iterable[RowId]) -> List[Dict[str, Any]]:
        rows = self._table(table)
        return [asdict(rows[str(i)]) for i in ids if str(i) in rows]

    def update_column(self, table: str, row_id: RowId, column: str, value: Any) -> None:
        record = self._table(table).get(str(row_id))
        if not record:
            return
        if column == "id" or not hasattr(record, column):
            raise ValueError(f"Unknown column {column} on {table}")
        setattr(record, column, deepcopy(value))

    def get_subtree(self, root_id: str) -> List[Context]:
        result: List[Context] = []
        seen = set()
        frontier = [root_id]
        while frontier:
            context_id = frontier.pop(0)
            if context_id in seen or context_id not in self.contexts:
                continue
            seen.add(context_id)
            context = deepcopy(self.contexts[context_id])
            result.append(context)
            frontier.extend(ref.id for ref in context.children)
        return result

    def list_atoms(self) -> List[Atom]:
        return [deepcopy(a) for a in self.atoms.values()]


class SqlAlchemyAtomizerRepository(AtomizerRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    Children and embeddings are stored JSON-encoded.
    """

    MODELS = {ATOMS_TABLE: AtomModel, CONTEXTS_TABLE: ContextModel}

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _model(self, table: str):
        model = self.MODELS.get(table)
        if model is None:
            raise ValueError(f"Unknown table: {table}")
        return model

    def _to_row(self, model) -> Dict[str, Any]:
        row = {}
        for column in model.__table__.columns:
            value = getattr(model, column.name)
            if column.name in JSON_COLUMNS and value is not None:
                value = json.loads(value)
            row[column.name] = value
        return row

    # region ingestion
    def insert_atoms(self, atoms: Iterable[Atom]) -> None:
        with self._session() as session:
            for atom in atoms:
                session.add(
                    AtomModel(
                        id=atom.id,
                        type=atom.type,
                        content=atom.content,
                        embedding=json.dumps(atom.embedding) if atom.embedding is not None else None,
                        created_at=atom.created_at or datetime.utcnow(),
                    )
                )
            session.commit()

    def insert_contexts(self, contexts: Iterable[Context]) -> None:
        with self._session() as session:
            for context in contexts:
                session.add(
                    ContextModel(
                        id=context.id,
                        owner=context.owner,
                        children=json.dumps([{"id": ref.id} for ref in context.children]),
                        embedding=json.dumps(context.embedding) if context.embedding is not None else None,
                    )
                )
            session.commit()

    # endregion

    # region lookups
    def get_by_id(self, table: str, row_id: RowId) -> Optional[Dict[str, Any]]:
        model_cls = self._model(table)
        with self._session() as session:
            model = session.get(model_cls, str(row_id))
            return self._to_row(model) if model else None

    def get_by_ids(self, table: str, ids: Iterable[RowId]) -> List[Dict[str, Any]]:
        model_cls = self._model(table)
        id_list = [str(i) for i in ids]
        if not id_list:
            return []
        with self._session() as session:
            stmt = select(model_cls).where(model_cls.id.in_(id_list))
            return [self._to_row(m) for m in session.execute(stmt).scalars().all()]

    def get_subtree(self, root_id: str) -> List[Context]:
        result: List[Context] = []
        seen = set()
        frontier = [root_id]
        with self._session() as session:
            while frontier:
                stmt = select(ContextModel).where(ContextModel.id.in_(frontier))
                models = session.execute(stmt).scalars().all()
                frontier = []
                for model in models:
                    if model.id in seen:
                        continue
                    seen.add(model.id)
                    context = context_from_row(self._to_row(model))
                    result.append(context)
                    frontier.extend(ref.id for ref in context.children if ref.id not in seen)
        return result

    def list_atoms(self) -> List[Atom]:
        with self._session() as session:
            models = session.execute(select(AtomModel)).scalars().all()
            return [atom_from_row(self._to_row(m)) for m in models]

    # endregion

    def update_column(self, table: str, row_id: RowId, column: str, value: Any) -> None:
        model_cls = self._model(table)
        if column == "id" or column not in model_cls.__table__.columns:
            raise ValueError(f"Unknown column {column} on {table}")
        if column in JSON_COLUMNS and value is not None:
            value = json.dumps(value)
        with self._session() as session:
            stmt = update(model_cls).where(model_cls.id == str(row_id)).values({column: value})
            session.execute(stmt)
            session.commit()
