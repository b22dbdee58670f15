"""Packaging session setup — one session per order lifecycle."""

from protean.utils.globals import current_domain

from orderflow.errors import AlreadyInitialized
from orderflow.packaging.session import PackagingSession


def find_session(order_id):
    """Return the order's packaging session, or None if packaging never started."""
    return (
        current_domain.repository_for(PackagingSession)
        ._dao.query.filter(order_id=str(order_id))
        .all()
        .first
    )


def initialize_packaging(order, started_by: str = "system") -> PackagingSession:
    """Create the order's packaging session from its current items.

    Re-initializing would erase in-progress scan counts, so a second call for
    the same order fails.
    """
    if find_session(order.id) is not None:
        raise AlreadyInitialized(str(order.id))
    return PackagingSession.initialize(order, started_by=started_by)
