"""transitops web route modules.

Each module exports a ``router`` (APIRouter instance) that
``transitops.web.app`` includes.
"""

from transitops.web.routes import health, installation_types, installations

__all__ = ["health", "installation_types", "installations"]
