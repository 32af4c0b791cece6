"""WSGI entrypoint for the recipe tracker.

The Flask development server is intentionally not started from this module so
that deployments rely on a WSGI server such as Gunicorn. Local development can
still use ``flask --app main run`` which imports the ``app`` object defined
below.
"""

from recipe_tracker import create_app

app = create_app()


__all__ = ["app"]
