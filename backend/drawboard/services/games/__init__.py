"""Game domain services.

This package contains the game catalog (create/update/delete with live
notifications), imported by HTTP routes so transport concerns stay out of
the domain logic.
"""
