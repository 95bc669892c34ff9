"""
API blueprints
"""


def register_blueprints(app):
    """Register all API blueprints with the app"""
    from labdesk.routes.auth import auth_bp
    from labdesk.routes.staff import staff_bp
    from labdesk.routes.patients import patients_bp
    from labdesk.routes.doctors import doctors_bp
    from labdesk.routes.catalog import catalog_bp
    from labdesk.routes.invoices import invoices_bp
    from labdesk.routes.reports import reports_bp
    from labdesk.routes.expenses import expenses_bp
    from labdesk.routes.stock import stock_bp
    from labdesk.routes.analytics import analytics_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(staff_bp, url_prefix='/api/staff')
    app.register_blueprint(patients_bp, url_prefix='/api/patients')
    app.register_blueprint(doctors_bp, url_prefix='/api/doctors')
    app.register_blueprint(catalog_bp, url_prefix='/api/tests')
    app.register_blueprint(invoices_bp, url_prefix='/api/invoices')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')
    app.register_blueprint(expenses_bp, url_prefix='/api/expenses')
    app.register_blueprint(stock_bp, url_prefix='/api/stock')
    app.register_blueprint(analytics_bp, url_prefix='/api')
