# inventario/schemas/product.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventario.models.product import DEFAULT_CATEGORY


class ProductBase(BaseModel):
    """
    Câmpuri comune pentru produs; folosit la create/update/read.

    Regulile de default sunt aceleași la create și la update (replace complet):
    descricao -> "", estoque -> 0, categoria -> "Outros", ativo -> True.
    """
    nome: str = Field(..., min_length=1, max_length=255)
    descricao: str = ""
    # preco >= 0 e așteptat, dar nu impus; NaN/inf sunt respinse
    preco: float = Field(..., allow_inf_nan=False)
    estoque: int = 0
    categoria: str = DEFAULT_CATEGORY
    ativo: bool = True

    # --- Validators ---
    @field_validator("nome")
    @classmethod
    def _nome_strip_nonempty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("nome must not be empty")
        return v

    @field_validator("descricao", mode="before")
    @classmethod
    def _descricao_default(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("estoque", mode="before")
    @classmethod
    def _estoque_default(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0
        return v

    @field_validator("categoria", mode="before")
    @classmethod
    def _categoria_default(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v.strip() if isinstance(v, str) else v

    @field_validator("ativo", mode="before")
    @classmethod
    def _ativo_default(cls, v: Any) -> Any:
        return True if v is None else v

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "nome": "Widget",
                    "descricao": "Aço inox, 10cm",
                    "preco": 9.99,
                    "estoque": 5,
                    "categoria": "Tools",
                    "ativo": True,
                }
            ]
        }
    )


class ProductCreate(ProductBase):
    """Payload pentru creare produs."""
    pass


class ProductUpdate(ProductBase):
    """Payload pentru update: replace complet, fără semantică de patch."""
    pass


class ProductRead(ProductBase):
    """Produs normalizat, așa cum iese din store."""
    id: int
    criado_em: datetime
    atualizado_em: datetime
    model_config = ConfigDict(from_attributes=True)


class ProductFilters(BaseModel):
    """Filtre opționale pentru listare; toate se combină cu AND."""
    search: Optional[str] = None
    categoria: Optional[str] = None
    min_price: Optional[float] = Field(None, alias="minPrice", allow_inf_nan=False)
    max_price: Optional[float] = Field(None, alias="maxPrice", allow_inf_nan=False)
    ativo: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)


class ProductStats(BaseModel):
    """Agregate calculate doar peste produsele active; niciodată null."""
    total: int = 0
    com_estoque: int = 0
    sem_estoque: int = 0
    estoque_baixo: int = 0
    preco_medio: float = 0.0
    total_estoque: int = 0
