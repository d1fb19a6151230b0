# mfgops/services/inventory.py

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from ..models.enums import NeedReason
from ..models.master import Product


@dataclass
class LineRequest:
    product_id: str
    quantity: int


@dataclass
class NeedEntry:
    """A product that needs a production order once the order is booked."""
    product: Product
    required_quantity: int
    reason: NeedReason

    @property
    def product_id(self) -> str:
        return self.product.id

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product.id,
            "product": {
                "id": self.product.id,
                "sku": self.product.sku,
                "name": self.product.name,
                "current_stock": self.product.current_stock,
                "minimum_stock_level": self.product.minimum_stock_level,
                "lead_time": self.product.lead_time,
            },
            "required_quantity": self.required_quantity,
            "reason": self.reason.value,
        }


@dataclass
class InventoryCheckResult:
    needs: List[NeedEntry] = field(default_factory=list)
    # Lines whose product id did not resolve. They are skipped, not flagged.
    unknown_product_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "needs": [n.to_dict() for n in self.needs],
            "unknown_product_ids": list(self.unknown_product_ids),
        }


def evaluate_line(product: Product, quantity: int) -> Optional[NeedEntry]:
    """
    Stock decision for one product/quantity pair.

      stock_after = current_stock - quantity
      stock_after < 0                    -> INSUFFICIENT_STOCK, need |stock_after|
      stock_after < minimum_stock_level  -> BELOW_MINIMUM, need minimum - stock_after
      otherwise                          -> no need

    The shortfall only brings stock back to zero (or to the minimum).
    Lead time and any safety margin above the minimum are not considered.
    """
    stock_after = product.current_stock - quantity

    if stock_after < 0:
        return NeedEntry(product=product, required_quantity=abs(stock_after),
                         reason=NeedReason.INSUFFICIENT_STOCK)
    if stock_after < product.minimum_stock_level:
        return NeedEntry(product=product,
                         required_quantity=product.minimum_stock_level - stock_after,
                         reason=NeedReason.BELOW_MINIMUM)
    return None


def aggregate_lines(lines: Iterable[LineRequest]) -> List[LineRequest]:
    """Sum quantities per product id, keeping first-seen order."""
    totals: Dict[str, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return [LineRequest(product_id=pid, quantity=qty) for pid, qty in totals.items()]


def check_inventory_levels(session: Session, lines: Sequence[LineRequest]) -> InventoryCheckResult:
    """
    Flag every product whose stock cannot cover its line.

    Lines are evaluated one by one against the product's stored stock, so
    duplicate product ids are NOT summed: each is compared with the same
    unreduced ``current_stock``, and only the first flagged entry per product
    is kept. Callers that want total demand per product must pass
    ``aggregate_lines(lines)``.
    """
    result = InventoryCheckResult()
    if not lines:
        return result

    ids = list({line.product_id for line in lines})
    products = session.exec(select(Product).where(Product.id.in_(ids))).all()
    by_id = {p.id: p for p in products}

    flagged = set()
    for line in lines:
        product = by_id.get(line.product_id)
        if product is None:
            if line.product_id not in result.unknown_product_ids:
                result.unknown_product_ids.append(line.product_id)
            continue
        if line.product_id in flagged:
            continue

        need = evaluate_line(product, line.quantity)
        if need is not None:
            flagged.add(line.product_id)
            result.needs.append(need)

    return result
