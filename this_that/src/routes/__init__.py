"""
Routes package for This=That
Blueprint-based modular route organization
"""


def register_blueprints(app):
    """Register all route blueprints with the Quart app"""
    from .admin import register as register_admin
    from .like import register as register_like
    from .restaurant import register as register_restaurant

    register_admin(app)
    register_like(app)
    register_restaurant(app)
