# inventario/models/product.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventario.database import Base

DEFAULT_CATEGORY = "Outros"


class Product(Base):
    """
    Singura entitate a aplicației (tabel `products`).

    Note:
    - `ativo` e stocat ca 0/1 (Boolean pe SQLite) și întors ca bool.
    - `criado_em` se setează o singură dată; `atualizado_em` la fiecare update.
    - Fără CHECK pe preț: preco >= 0 e doar așteptat, nu impus.
    """
    __tablename__ = "products"
    __table_args__ = (
        # listarea e mereu ordonată după data creării (desc)
        Index("ix_products_criado_em", "criado_em"),
        Index("ix_products_categoria", "categoria"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String, nullable=False)
    descricao: Mapped[str] = mapped_column(Text, nullable=False, default="")
    preco: Mapped[float] = mapped_column(Float, nullable=False)
    estoque: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    categoria: Mapped[str | None] = mapped_column(String, nullable=True, default=DEFAULT_CATEGORY)
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    criado_em: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    atualizado_em: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        # scurtează numele în repr pentru loguri mai curate
        name_preview = (self.nome[:32] + "…") if self.nome and len(self.nome) > 33 else self.nome
        return f"<Product id={self.id!r} nome={name_preview!r} categoria={self.categoria!r}>"
