# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pos_api/routes/sales.py
"""Sales API routes: commit a sale and read back an invoice."""

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..services.sales_service import SaleError, ItemNotFoundError, ItemInactiveError, StorageError
from ..services.inventory_service import InsufficientStockError
from ..services.code_service import CodeGenerationError
from ..validation import ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _error(message: str, code: str, status: int, details: dict | None = None):
    return jsonify({"error": message, "code": code, "details": details or {}}), status


@sales_bp.post("")
@sales_bp.post("/")
def create_sale_route():
    """
    Commit a sale: price the cart, write the invoice, take the stock.

    Body: {items: [{item_id, quantity}], payment_method, paid_amount?,
           flat_discount?, notes?, created_by?}

    Returns 201 with invoice_id, invoice_number, total_amount,
    balance_amount and payment_status.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Invalid JSON payload", "VALIDATION_ERROR", 400)

    try:
        result = sales_service.create_sale(
            data.get("items"),
            data.get("payment_method"),
            paid_amount=data.get("paid_amount"),
            flat_discount=data.get("flat_discount"),
            notes=data.get("notes"),
            created_by=data.get("created_by"),
        )
    except ValidationError as e:
        return _error(str(e), "VALIDATION_ERROR", 400, e.details)
    except ItemInactiveError as e:
        current_app.logger.warning("Sale rejected: %s", e)
        return _error(str(e), "ITEM_INACTIVE", 404, e.details)
    except ItemNotFoundError as e:
        current_app.logger.warning("Sale rejected: %s", e)
        return _error(str(e), "ITEM_NOT_FOUND", 404, e.details)
    except InsufficientStockError as e:
        current_app.logger.warning(
            "Sale rejected: insufficient stock for %s (requested %s, available %s)",
            e.item_code, e.requested, e.available,
        )
        return _error(str(e), "INSUFFICIENT_STOCK", 409, e.details)
    except CodeGenerationError as e:
        current_app.logger.exception("Invoice number generation failed")
        return _error(str(e), "CODE_GENERATION_ERROR", 500, e.details)
    except StorageError as e:
        current_app.logger.exception("Failed to store sale")
        return _error(str(e), "STORAGE_ERROR", 500)
    except SaleError as e:
        return _error(str(e), "SALE_ERROR", 400, e.details)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return _error("Internal server error", "INTERNAL_ERROR", 500)

    current_app.logger.info(
        "Sale committed: %s total=%s status=%s",
        result.invoice_number, result.total_amount, result.payment_status,
    )
    return jsonify({"success": True, **result.to_dict()}), 201


@sales_bp.get("/<int:invoice_id>")
def get_invoice_route(invoice_id: int):
    """Invoice header plus its line snapshots in line order."""
    invoice = sales_service.get_invoice(invoice_id)
    if not invoice:
        return _error("Invoice not found", "NOT_FOUND", 404)

    return jsonify({
        "invoice": invoice.to_dict(),
        "items": [line.to_dict() for line in invoice.lines],
    }), 200
