"""Fulfillment bounded context — vendor-side sub-order pipeline.

Tracks each vendor's sub-orders from confirmation through cooking, pickup and
delivery. The backend owns the authoritative state; this context mirrors it,
validates transitions before they are requested and drives the automatic
"cooking → picked up" countdown.
"""

from protean.domain import Domain

fulfillment = Domain(name="fulfillment")
