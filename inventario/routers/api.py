# inventario/routers/api.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from inventario.crud import product as crud
from inventario.database import get_db
from inventario.schemas.product import ProductRead

router = APIRouter(prefix="/api/products", tags=["api"])


@router.get(
    "",
    response_model=List[ProductRead],
    summary="List all products (no filters)",
)
def list_products_json(db: Session = Depends(get_db)):
    return crud.list_products(db)


@router.get(
    "/{product_id}",
    response_model=ProductRead,
    summary="Get a product by id",
    responses={404: {"description": "Product not found"}},
)
def get_product_json(product_id: str, db: Session = Depends(get_db)):
    obj = crud.get(db, product_id)
    if obj is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Product not found"})
    return obj
