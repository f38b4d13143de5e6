"""Business logic services.

This package contains the Artsy access layer (token broker, gateway and
normalizer) and the account and favorites services used by the routers.
"""
