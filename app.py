import logging
from decimal import Decimal

import click
from flask import Flask
from flask.cli import with_appcontext

import backend
from catalog import SAMPLE_PRODUCTS
from config import DevConfig
from errors import register_error_handlers
from models import db, Product
from routes_admin import bp as admin_bp
from routes_api import bp as api_bp
from routes_shop import bp as shop_bp


def create_app(config_object=DevConfig):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_object(config_object)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    backend.init_app(app)
    register_error_handlers(app)

    app.register_blueprint(api_bp)
    app.register_blueprint(shop_bp)
    app.register_blueprint(admin_bp)

    with app.app_context():
        db.create_all()

    app.cli.add_command(seed_catalog)
    return app


@click.command("seed-catalog")
@with_appcontext
def seed_catalog():
    """Load the sample products into an empty products table."""
    if Product.query.first() is not None:
        click.echo("[seed] products table not empty; skipped")
        return
    for row in SAMPLE_PRODUCTS:
        # ids come from the table's sequence, not the sample data
        fields = {k: v for k, v in row.items() if k != "id"}
        db.session.add(Product(**{**fields, "price": Decimal(row["price"])}))
    db.session.commit()
    click.echo(f"[seed] added {len(SAMPLE_PRODUCTS)} products")


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
