"""
Routes package for the Discover Cymru API
Blueprint-based modular route organization
"""


def register_blueprints(app):
    """
    Register all route blueprints with the Quart app

    Admin routes (health, metrics, cache stats) first, then the geocode API.
    """
    from .admin import register as register_admin
    from .geocode import register as register_geocode

    register_admin(app)
    register_geocode(app)
