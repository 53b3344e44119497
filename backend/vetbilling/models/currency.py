"""Settlement currencies."""

from enum import Enum


class Currency(str, Enum):
    """Currencies an invoice or payment can be denominated in.

    ``LOCAL`` is the clinic's local currency (bolívares, shown as "Bs").
    """

    USD = "USD"
    LOCAL = "LOCAL"
