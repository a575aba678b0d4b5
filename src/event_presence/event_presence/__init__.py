"""Event presence tracking.

Participants are scanned in and out of an event; every scan pair becomes a
session in the attendance ledger and the per-event totals are kept alongside
it in the same transaction. Feature packages follow the same split as the
rest of the code base: domain models, repository protocols, MySQL
repositories, services and a thin Flask controller layer.
"""
