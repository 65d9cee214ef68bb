"""notiroute routing — decides which channels receive an event and renders the text.

Rules are priority ranked.  Every matching rule adds its channels to the
selection; the single highest-priority match supplies the message and
subject templates, which are rendered by placeholder substitution against
the event payload and fixed event fields.
"""

from notiroute.routing.engine import RoutingEngine
from notiroute.routing.templates import render_template

__all__ = ["RoutingEngine", "render_template"]
