# inventario/routers/pages.py
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional, Type

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.templating import Jinja2Templates

from inventario.crud import product as crud
from inventario.database import get_db
from inventario.schemas.product import ProductBase, ProductCreate, ProductFilters, ProductUpdate

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["pages"])
logger = logging.getLogger("inventario.pages")

# Sugestii fixe în formular (nu se citesc din DB)
CATEGORY_SUGGESTIONS = ["Electronics", "Clothing", "Food", "Books", "Other"]


# ----------------------
# Utilitare
# ----------------------
def render_not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "404.html", {"path": request.url.path}, status_code=status.HTTP_404_NOT_FOUND
    )


def render_error(request: Request, message: str, status_code: int = 500, errors: Optional[list] = None) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": message, "errors": errors or [], "status_code": status_code},
        status_code=status_code,
    )


def _parse_price(raw: Optional[str]) -> Optional[float]:
    """Filtru numeric neparsabil → None (filtrul e ignorat)."""
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _filters_from_query(
    search: Optional[str],
    categoria: Optional[str],
    min_price: Optional[str],
    max_price: Optional[str],
    ativo: Optional[str],
) -> ProductFilters:
    return ProductFilters(
        search=search or None,
        categoria=categoria or None,
        min_price=_parse_price(min_price),
        max_price=_parse_price(max_price),
        ativo=None if not ativo else ativo == "true",
    )


def _payload_from_form(schema: Type[ProductBase], form: Dict[str, Optional[str]]) -> ProductBase:
    # checkbox: lipsă → inactiv
    return schema(
        nome=form.get("nome") or "",
        descricao=form.get("descricao"),
        preco=form.get("preco"),
        estoque=form.get("estoque"),
        categoria=form.get("categoria"),
        ativo=form.get("ativo") == "true",
    )


def _error_lines(exc: ValidationError) -> list:
    return [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]


def _form_ctx(produto: Any, titulo: str) -> Dict[str, Any]:
    return {"produto": produto, "titulo": titulo, "categorias": CATEGORY_SUGGESTIONS}


# =========================================================
# ==============   Pagini HTML (web)    ====================
# =========================================================
@router.get("/", response_class=HTMLResponse)
def list_products_html(
    request: Request,
    search: Optional[str] = None,
    categoria: Optional[str] = None,
    minPrice: Optional[str] = None,
    maxPrice: Optional[str] = None,
    ativo: Optional[str] = None,
    db: Session = Depends(get_db),
):
    filters = _filters_from_query(search, categoria, minPrice, maxPrice, ativo)
    produtos = crud.list_products(db, filters)
    categorias = crud.distinct_categories(db)
    estatisticas = crud.statistics(db)

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "produtos": produtos,
            "categorias": categorias,
            "estatisticas": estatisticas,
            "filtros": {
                "search": search or "",
                "categoria": categoria or "",
                "minPrice": minPrice or "",
                "maxPrice": maxPrice or "",
                "ativo": ativo or "",
            },
        },
    )


@router.get("/new-form", response_class=HTMLResponse)
def new_product_form(request: Request):
    return templates.TemplateResponse(request, "form.html", _form_ctx(None, "New product"))


@router.post("/products")
def create_product_html(
    request: Request,
    nome: Optional[str] = Form(None),
    descricao: Optional[str] = Form(None),
    preco: Optional[str] = Form(None),
    estoque: Optional[str] = Form(None),
    categoria: Optional[str] = Form(None),
    ativo: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    form = {
        "nome": nome, "descricao": descricao, "preco": preco,
        "estoque": estoque, "categoria": categoria, "ativo": ativo,
    }
    try:
        payload = _payload_from_form(ProductCreate, form)
    except ValidationError as e:
        logger.info("Invalid product payload on create: %s", e.error_count())
        return render_error(request, "Invalid product data", status.HTTP_422_UNPROCESSABLE_ENTITY, _error_lines(e))

    new_id = crud.create(db, payload)
    logger.info("Product created: %s (id=%s)", payload.nome, new_id)
    return RedirectResponse(url=f"/products/{new_id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/products/{product_id}", response_class=HTMLResponse)
def product_detail(product_id: str, request: Request, db: Session = Depends(get_db)):
    produto = crud.get(db, product_id)
    if produto is None:
        return render_not_found(request)
    return templates.TemplateResponse(
        request,
        "detail.html",
        {"produto": produto, "estoque_baixo": 0 < produto.estoque <= crud.LOW_STOCK_LIMIT},
    )


@router.get("/products/{product_id}/edit", response_class=HTMLResponse)
def edit_product_form(product_id: str, request: Request, db: Session = Depends(get_db)):
    produto = crud.get(db, product_id)
    if produto is None:
        return render_not_found(request)
    return templates.TemplateResponse(request, "form.html", _form_ctx(produto, "Edit product"))


@router.post("/products/{product_id}/update")
def update_product_html(
    product_id: str,
    request: Request,
    nome: Optional[str] = Form(None),
    descricao: Optional[str] = Form(None),
    preco: Optional[str] = Form(None),
    estoque: Optional[str] = Form(None),
    categoria: Optional[str] = Form(None),
    ativo: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    form = {
        "nome": nome, "descricao": descricao, "preco": preco,
        "estoque": estoque, "categoria": categoria, "ativo": ativo,
    }
    try:
        payload = _payload_from_form(ProductUpdate, form)
    except ValidationError as e:
        logger.info("Invalid product payload on update (id=%s): %s", product_id, e.error_count())
        return render_error(request, "Invalid product data", status.HTTP_422_UNPROCESSABLE_ENTITY, _error_lines(e))

    changes = crud.update(db, product_id, payload)
    if changes == 0:
        return render_not_found(request)

    logger.info("Product updated: %s (id=%s)", payload.nome, product_id)
    return RedirectResponse(url=f"/products/{product_id}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/products/{product_id}/delete")
def delete_product_html(product_id: str, request: Request, db: Session = Depends(get_db)):
    changes = crud.delete(db, product_id)
    if changes == 0:
        return render_not_found(request)

    logger.info("Product deleted: id=%s", product_id)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
