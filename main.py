from app.api.cart.cart import cart_bp
from app.api.catalog.categories import categories_bp
from app.api.catalog.products import products_bp
from app.api.catalog.storage import storage_bp
from app.api.customers.details import customers_bp
from app.api.invoices.invoices import invoices_bp
from app.api.loyalty.customer_loyalty import loyalty_bp
from app.api.orders.kitchen import kitchen_bp
from app.api.orders.orders import orders_bp
from app.api.reports.reports import reports_bp
from app.api.staff.users import users_bp
from flask import Flask
from flask_cors import CORS
from flasgger import Swagger
from swagger__config import SWAGGER_CONFIG, SWAGGER_TEMPLATE
import os

from app.config import Config  # noqa: E402
from app.errors import register_error_handlers  # noqa: E402
from app.extensions import db  # noqa: E402


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    app.logger.info("Starting create_app()")

    CORS(app)
    db.init_app(app)

    # Determine host based on environment
    host = os.environ.get("API_HOST", "127.0.0.1:5000")
    swagger_template = SWAGGER_TEMPLATE.copy()
    swagger_template["host"] = host
    Swagger(app, config=SWAGGER_CONFIG, template=swagger_template)

    blueprints = [
        categories_bp,
        products_bp,
        storage_bp,
        customers_bp,
        loyalty_bp,
        orders_bp,
        kitchen_bp,
        cart_bp,
        invoices_bp,
        reports_bp,
        users_bp,
    ]

    for bp in blueprints:
        app.register_blueprint(bp)
        app.logger.debug(f"  {bp.name} registered")

    register_error_handlers(app)

    @app.route("/")
    def home():
        """
        Root endpoint - API status
        ---
        tags:
          - Utility
        responses:
          200:
            description: API is running
            schema:
              type: object
              properties:
                status:
                  type: string
                message:
                  type: string
                docs_url:
                  type: string
        """
        return {
            "status": "ok",
            "message": "Backend is running!",
            "docs_url": "/api/docs",
        }, 200

    app.logger.info(
        f"create_app() completed: {len(blueprints)} blueprints, "
        f"{len(list(app.url_map.iter_rules()))} routes"
    )
    return app


app = create_app()


if __name__ == "__main__":
    # Create a .env containing:
    #       DATABASE_URL=mysql+pymysql://<USER>:<PASSWORD>@<HOST>:<PORT>/cafeteria
    port = int(os.environ.get("PORT", 5000))
    app.run(
        host="0.0.0.0", port=port, debug=os.environ.get("FLASK_ENV") != "production"
    )
