# inventario/crud/product.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List, Optional, Union

from sqlalchemy import case, delete as sa_delete, func, or_, select, update as sa_update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventario.database import Base
from inventario.models.product import Product
from inventario.schemas.product import (
    ProductCreate,
    ProductFilters,
    ProductRead,
    ProductStats,
    ProductUpdate,
)

ProductId = Union[int, str]

LOW_STOCK_LIMIT = 10

SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1
_ID_RE = re.compile(r"-?[0-9]+")


class StorageError(Exception):
    """Orice eșec în interiorul store-ului; poartă mesajul driver-ului."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @classmethod
    def from_exc(cls, exc: SQLAlchemyError) -> "StorageError":
        orig = getattr(exc, "orig", None)
        return cls(str(orig) if orig is not None else str(exc))


def _utcnow() -> datetime:
    # SQLite nu păstrează tz; stocăm UTC naiv
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_id(product_id: ProductId) -> Optional[int]:
    """ID-uri neparsabile sau în afara INTEGER-ului SQLite sunt tratate ca not-found."""
    if isinstance(product_id, bool):
        return None
    if isinstance(product_id, int):
        pid = product_id
    else:
        raw = str(product_id).strip() if product_id is not None else ""
        # doar cifre ASCII: int() ar accepta și "1_1" sau cifre unicode
        if not _ID_RE.fullmatch(raw):
            return None
        pid = int(raw)
    return pid if SQLITE_INT_MIN <= pid <= SQLITE_INT_MAX else None


def _to_record(obj: Product) -> ProductRead:
    return ProductRead.model_validate(obj)


def initialize(engine: Engine) -> None:
    """Creează tabelul `products` dacă lipsește (idempotent)."""
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StorageError.from_exc(e) from e


def create(db: Session, data: ProductCreate) -> int:
    """Inserează produsul și întoarce ID-ul nou."""
    now = _utcnow()
    obj = Product(**data.model_dump(), criado_em=now, atualizado_em=now)
    db.add(obj)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError.from_exc(e) from e
    return obj.id


def get(db: Session, product_id: ProductId) -> Optional[ProductRead]:
    """Returnează produsul după ID (sau None)."""
    pid = _parse_id(product_id)
    if pid is None:
        return None
    try:
        stmt = select(Product).where(Product.id == pid).execution_options(populate_existing=True)
        obj = db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise StorageError.from_exc(e) from e
    return _to_record(obj) if obj is not None else None


def list_products(db: Session, filters: Optional[ProductFilters] = None) -> List[ProductRead]:
    """
    Listează produse, cele mai noi primele.

    Filtre (toate opționale, combinate cu AND):
      - search: substring literal în nome SAU descricao (case-insensitive).
      - categoria: potrivire exactă.
      - min_price/max_price: interval inclusiv pe preco.
      - ativo: potrivire exactă; None → și active, și inactive.
    """
    filters = filters or ProductFilters()
    conditions = []

    if filters.search:
        # autoescape: % și _ din input sunt caractere literale
        conditions.append(or_(
            Product.nome.icontains(filters.search, autoescape=True),
            Product.descricao.icontains(filters.search, autoescape=True),
        ))

    if filters.categoria:
        conditions.append(Product.categoria == filters.categoria)

    if filters.min_price is not None:
        conditions.append(Product.preco >= filters.min_price)

    if filters.max_price is not None:
        conditions.append(Product.preco <= filters.max_price)

    if filters.ativo is not None:
        conditions.append(Product.ativo == filters.ativo)

    stmt = select(Product)
    if conditions:
        stmt = stmt.where(*conditions)
    # tiebreaker pe id pentru stabilitate
    stmt = stmt.order_by(Product.criado_em.desc(), Product.id.desc()).execution_options(populate_existing=True)

    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        raise StorageError.from_exc(e) from e
    return [_to_record(r) for r in rows]


def update(db: Session, product_id: ProductId, data: ProductUpdate) -> int:
    """
    Replace complet al câmpurilor editabile; id și criado_em rămân neatinse.
    Întoarce numărul de rânduri afectate (0 = ID inexistent).
    """
    pid = _parse_id(product_id)
    if pid is None:
        return 0
    stmt = (
        sa_update(Product)
        .where(Product.id == pid)
        .values(**data.model_dump(), atualizado_em=_utcnow())
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError.from_exc(e) from e
    return int(result.rowcount or 0)


def delete(db: Session, product_id: ProductId) -> int:
    """Șterge definitiv produsul. Întoarce numărul de rânduri afectate."""
    pid = _parse_id(product_id)
    if pid is None:
        return 0
    stmt = sa_delete(Product).where(Product.id == pid)
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError.from_exc(e) from e
    return int(result.rowcount or 0)


def distinct_categories(db: Session) -> List[str]:
    """Categoriile folosite efectiv, fără duplicate, sortate crescător."""
    stmt = (
        select(Product.categoria)
        .where(Product.categoria.is_not(None))
        .distinct()
        .order_by(Product.categoria.asc())
    )
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as e:
        raise StorageError.from_exc(e) from e


def statistics(db: Session) -> ProductStats:
    """Agregate peste produsele active; 0 / 0.0 când nu există niciunul."""
    stmt = select(
        func.count(Product.id),
        func.sum(case((Product.estoque > 0, 1), else_=0)),
        func.sum(case((Product.estoque == 0, 1), else_=0)),
        func.sum(case(((Product.estoque > 0) & (Product.estoque <= LOW_STOCK_LIMIT), 1), else_=0)),
        func.avg(Product.preco),
        func.sum(Product.estoque),
    ).where(Product.ativo.is_(True))

    try:
        row = db.execute(stmt).one()
    except SQLAlchemyError as e:
        raise StorageError.from_exc(e) from e

    total, com_estoque, sem_estoque, estoque_baixo, preco_medio, total_estoque = row
    return ProductStats(
        total=int(total or 0),
        com_estoque=int(com_estoque or 0),
        sem_estoque=int(sem_estoque or 0),
        estoque_baixo=int(estoque_baixo or 0),
        preco_medio=float(preco_medio or 0.0),
        total_estoque=int(total_estoque or 0),
    )
