"""
Request parameter validation shared by the ledger routes.
"""

from typing import Any, Optional

from ..api.schemas import Instrument, InstrumentPair
from ..core.errors import (
    BaseRequired, CounterRequired, InvalidBaseInstrument, InvalidCounterInstrument,
    MissingCounterparty, NativeIssuerNotAllowed
)

BASE = "base"
COUNTER = "counter"


def is_native(currency: str, native_currency: str) -> bool:
    return currency.upper() == native_currency.upper()


def validate_instrument(value: Any, side: str, native_currency: str) -> Instrument:
    """
    Check one side of a market.

    The native currency must come without an issuer and every other
    currency must name one.
    """
    invalid = InvalidBaseInstrument if side == BASE else InvalidCounterInstrument
    required = BaseRequired if side == BASE else CounterRequired

    if not isinstance(value, dict):
        raise invalid()
    currency = value.get("currency")
    if not currency:
        raise required()
    if not isinstance(currency, str):
        raise invalid()

    issuer = value.get("issuer")
    if is_native(currency, native_currency):
        if issuer:
            raise NativeIssuerNotAllowed(native_currency)
        return Instrument(currency=currency)

    if not issuer:
        raise MissingCounterparty(side)
    if not isinstance(issuer, str):
        raise invalid()
    return Instrument(currency=currency, issuer=issuer)


def validate_pair(base: Any, counter: Any, native_currency: str) -> Optional[InstrumentPair]:
    """
    Validate an explicit base/counter pair.

    Returns None when neither side was supplied. Supplying only one side
    is an error.
    """
    if base is not None and counter is not None:
        return InstrumentPair(
            base=validate_instrument(base, BASE, native_currency),
            counter=validate_instrument(counter, COUNTER, native_currency),
        )
    if base is not None:
        raise CounterRequired()
    if counter is not None:
        raise BaseRequired()
    return None
