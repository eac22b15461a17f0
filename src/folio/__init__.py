"""folio - portfolio site backend, public-site view model, and admin client."""

__version__ = "0.3.0"
