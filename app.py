import logging
from datetime import datetime

import click
from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from configs import db, login, mail
from blueprint import blue_print
from utils.email import init_mailer
from utils.errors import ProcurementError
from utils.log import configure_logging
from utils.serialize import plain

logger = logging.getLogger(__name__)


def create_app(config_object=None, mailer=None):
    app = Flask(__name__)
    app.config.from_object(config_object or "config.Config")

    configure_logging(app)

    import db.models as _models  # noqa: F401  đăng ký toàn bộ model với metadata
    from db.models.user import User

    db.init_app(app)
    login.init_app(app)
    mail.init_app(app)
    init_mailer(app, mailer)

    @login.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "UNAUTHORIZED", "message": "Vui lòng đăng nhập", "details": {}}), 401

    @app.errorhandler(ProcurementError)
    def handle_procurement_error(err):
        db.session.rollback()
        body = err.to_dict()
        body["details"] = plain(body["details"])
        return jsonify(body), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return (
            jsonify({"error": err.name.upper().replace(" ", "_"), "message": err.description, "details": {}}),
            err.code,
        )

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err):
        db.session.rollback()
        logger.exception("Database error")
        return jsonify({"error": "DATABASE_ERROR", "message": "Lỗi cơ sở dữ liệu", "details": {}}), 500

    blue_print(app)

    @app.cli.command("init-db")
    def init_db():
        """Tạo bảng (dev); production dùng alembic."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed")
    def seed_command():
        """Nạp dữ liệu mẫu."""
        from seed import seed_all

        db.create_all()
        seed_all()
        click.echo("Seeded demo data.")

    @app.cli.command("scan-overdue")
    def scan_overdue_command():
        """Đánh dấu trễ các PO quá ngày giao."""
        from dao import tracking as tracking_dao

        created = tracking_dao.scan_for_overdue(datetime.utcnow())
        click.echo(f"Flagged {len(created)} overdue purchase orders.")

    return app


if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5000)
