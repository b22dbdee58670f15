"""Orderflow bounded context — order fulfillment and packaging verification.

Drives an order from payment review (cartera) through logistics, mandatory
warehouse packaging (empaque) and delivery (reparto). Uses CQRS: the Order and
PackagingSession aggregates are persisted as current state, while projections
feed the dashboards.
"""

from protean.domain import Domain

from orderflow.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
orderflow = Domain(name="orderflow")
