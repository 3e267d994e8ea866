"""
Stateless price quotes.
"""
from fastapi import APIRouter

from config import settings
from domain.responses import success_response
from models import QuoteRequest
from services.order_service import validate_items
from services.pricing import PricedLine, compute_totals, default_catalog

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/quote")
async def quote(request: QuoteRequest):
    """Subtotal, discount and total for the given items. Nothing is stored."""
    lines = validate_items([i.as_line() for i in request.items]) if request.items else []
    breakdown = compute_totals(
        [PricedLine(unit_price=i["price"], quantity=i["quantity"]) for i in lines],
        request.promo_code,
        default_catalog(),
    )
    return success_response(data={**breakdown.as_dict(), "currency": settings.currency})
