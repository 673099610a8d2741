from index import main_bp
from routes.auth import auth_bp
from routes.project import project_bp
from routes.material import material_bp
from routes.supplier import supplier_bp
from routes.material_request import request_bp
from routes.quota import quota_bp
from routes.stock import stock_bp
from routes.rfq import rfq_bp
from routes.quotation import quotation_bp
from routes.purchases import purchase_bp
from routes.tracking import tracking_bp
from routes.delivery import delivery_bp
from routes.payment import payment_bp
from routes.evaluation import evaluation_bp
from routes.notification import notification_bp


def blue_print(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(material_bp)
    app.register_blueprint(supplier_bp)
    app.register_blueprint(request_bp)
    app.register_blueprint(quota_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(rfq_bp)
    app.register_blueprint(quotation_bp)
    app.register_blueprint(purchase_bp)
    app.register_blueprint(tracking_bp)
    app.register_blueprint(delivery_bp)
    app.register_blueprint(payment_bp)
    app.register_blueprint(evaluation_bp)
    app.register_blueprint(notification_bp)
