# mfgops/api/products.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..services import product as products

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
def list_products(session: Session = Depends(get_session)):
    return products.list_products(session)


@router.get("/{product_id}")
def get_product(product_id: str, session: Session = Depends(get_session)):
    return products.product_detail(session, product_id)


@router.get("/{product_id}/production-orders")
def get_product_production_orders(product_id: str, session: Session = Depends(get_session)):
    return products.production_orders_for_product(session, product_id)
