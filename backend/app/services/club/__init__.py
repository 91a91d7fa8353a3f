"""Club floor services: pricing storage, table sessions and checkout.

These functions own the database side of the club manager. Amounts are
always computed through ``app.services.billing`` so the REST checkout and
the table device's payment view share one implementation.
"""
