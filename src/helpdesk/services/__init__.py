"""Business logic services used by handlers.

Services are wired by ``helpdesk.container`` and imported lazily by handlers
so cold starts do not pay for clients a route never uses.
"""
