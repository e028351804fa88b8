"""
API server package: HTTP/JSON interface.

Exposes token balance lookups and wallet transaction history. Validates input,
delegates to the services layer, and converts failures into JSON error envelopes.
"""
