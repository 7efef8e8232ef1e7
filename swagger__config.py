"""
Swagger/OpenAPI configuration for the Cafeteria back office API
"""

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api/docs",
}

SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Cafeteria Back Office API",
        "description": "Catalog, customers and loyalty, orders and kitchen board, point-of-sale cart, invoices and sales reports for a coffee shop",
        "contact": {"email": "soporte@cafeteria.local"},
        "version": "1.0.0",
    },
    "host": "",
    "basePath": "/",
    "schemes": ["http", "https"],
    "tags": [
        {"name": "Catalog", "description": "Categories and products"},
        {"name": "Storage", "description": "Product images and bucket administration"},
        {"name": "Customers", "description": "Customer records"},
        {"name": "Loyalty", "description": "Points, tiers and rewards"},
        {"name": "Orders", "description": "Checkout, edits and kitchen workflow"},
        {"name": "Cart", "description": "Point-of-sale cart"},
        {"name": "Invoices", "description": "Invoice issuing, payment and voiding"},
        {"name": "Reports", "description": "Sales reports, dashboards and Excel export"},
        {"name": "Staff", "description": "Staff user management"},
        {"name": "Utility", "description": "Service status"},
    ],
    "definitions": {
        "Error": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean", "example": False},
                "error": {"type": "string"},
            },
        },
        "Success": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean", "example": True},
                "data": {"type": "object"},
                "message": {"type": "string"},
            },
        },
        "Product": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "description": {"type": "string"},
                "category_id": {"type": "integer"},
                "price": {"type": "number", "format": "float", "example": 3.5},
                "cost": {"type": "number", "format": "float"},
                "image_url": {"type": "string"},
                "points_awarded": {"type": "integer"},
                "status": {"type": "string", "enum": ["available", "out_of_stock"]},
                "is_active": {"type": "boolean"},
                "featured": {"type": "boolean"},
            },
        },
        "Customer": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "first_name": {"type": "string"},
                "last_name": {"type": "string"},
                "email": {"type": "string", "format": "email"},
                "phone": {"type": "string"},
                "loyalty_points": {"type": "integer"},
                "loyalty_tier": {
                    "type": "string",
                    "enum": ["bronze", "silver", "gold", "platinum"],
                },
            },
        },
        "OrderLineInput": {
            "type": "object",
            "required": ["product_id"],
            "properties": {
                "product_id": {"type": "integer"},
                "quantity": {"type": "integer", "example": 1},
                "notes": {"type": "string", "example": "No sugar"},
            },
        },
        "Order": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "customer_id": {"type": "integer"},
                "status": {
                    "type": "string",
                    "enum": ["pending", "preparing", "completed", "cancelled"],
                },
                "payment_method": {
                    "type": "string",
                    "enum": ["cash", "credit_card", "debit_card", "transfer", "points"],
                },
                "tax_rate": {"type": "number", "example": 0.15},
                "subtotal": {"type": "number"},
                "tax": {"type": "number"},
                "total": {"type": "number"},
                "points_earned": {"type": "integer"},
                "points_spent": {"type": "integer"},
                "billing_status": {
                    "type": "string",
                    "enum": ["not_invoiced", "invoiced"],
                },
                "created_at": {"type": "string", "format": "date-time"},
            },
        },
        "Invoice": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "number": {"type": "string", "example": "F-000001"},
                "order_id": {"type": "integer"},
                "customer_name": {"type": "string"},
                "issued_at": {"type": "string", "format": "date-time"},
                "subtotal": {"type": "number"},
                "tax": {"type": "number"},
                "total": {"type": "number"},
                "status": {"type": "string", "enum": ["issued", "void", "paid"]},
                "billing_details": {"type": "object"},
            },
        },
    },
}
