"""Fulfillment bounded context — Subscription Orders and Delivery Scheduling.

Turns a confirmed package payment into a single Order with a concrete
delivery calendar, then tracks that Order through driver assignment and
delivery. The operational calendar decides which days deliveries may run.
"""

from protean.domain import Domain

fulfillment = Domain(name="fulfillment")
