from flask import Blueprint, request

from ...services import invoices
from ...utils.responses import get_json_body, success_response

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.route("", methods=["GET"])
def list_invoices():
    """
    List invoices, newest first
    ---
    tags:
      - Invoices
    parameters:
      - in: query
        name: status
        type: string
        enum: [all, issued, void, paid]
        default: all
    responses:
      200:
        description: Invoices with the customer name
    """
    result = invoices.list_invoices(request.args.get("status", "all"))
    return success_response([invoices.invoice_to_dict(i) for i in result])


@invoices_bp.route("/<int:invoice_id>", methods=["GET"])
def get_invoice(invoice_id):
    """
    Invoice with its order, lines and customer
    ---
    tags:
      - Invoices
    parameters:
      - in: path
        name: invoice_id
        type: integer
        required: true
    responses:
      200:
        description: Invoice found
        schema:
          $ref: '#/definitions/Invoice'
      404:
        description: Invoice not found
    """
    invoice = invoices.get_invoice(invoice_id)
    return success_response(invoices.invoice_to_dict(invoice, with_order=True))


@invoices_bp.route("/next-number", methods=["GET"])
def get_next_number():
    """
    Number the next invoice will receive
    ---
    tags:
      - Invoices
    responses:
      200:
        description: Next invoice number
    """
    return success_response({"number": invoices.next_invoice_number()})


@invoices_bp.route("", methods=["POST"])
def create_invoice():
    """
    Issue an invoice for an order
    ---
    tags:
      - Invoices
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - order_id
          properties:
            order_id:
              type: integer
            notes:
              type: string
            billing_details:
              type: object
              properties:
                business_name:
                  type: string
                tax_id:
                  type: string
                address:
                  type: string
                phone:
                  type: string
                email:
                  type: string
                contact_name:
                  type: string
    responses:
      201:
        description: Invoice issued
        schema:
          $ref: '#/definitions/Invoice'
      409:
        description: Order cancelled, already invoiced or paid with points
    """
    invoice = invoices.create_invoice(get_json_body())
    return success_response(
        invoices.invoice_to_dict(invoice), f"Invoice {invoice.number} issued", 201
    )


@invoices_bp.route("/<int:invoice_id>/pay", methods=["POST"])
def pay_invoice(invoice_id):
    """
    Mark an invoice as paid
    ---
    tags:
      - Invoices
    parameters:
      - in: path
        name: invoice_id
        type: integer
        required: true
    responses:
      200:
        description: Invoice paid
      409:
        description: Invoice is void
    """
    invoice = invoices.mark_paid(invoice_id)
    return success_response(invoices.invoice_to_dict(invoice), "Invoice paid")


@invoices_bp.route("/<int:invoice_id>/void", methods=["POST"])
def void_invoice(invoice_id):
    """
    Void an invoice; its order can be invoiced again
    ---
    tags:
      - Invoices
    parameters:
      - in: path
        name: invoice_id
        type: integer
        required: true
    responses:
      200:
        description: Invoice void
    """
    invoice = invoices.void_invoice(invoice_id)
    return success_response(invoices.invoice_to_dict(invoice), "Invoice voided")
