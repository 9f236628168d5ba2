# conversion.py

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional, Union


def format_decimal(value) -> str:
    """Render a Decimal without trailing zeros (Decimal('1.000') -> '1')."""
    d = Decimal(str(value))
    text = format(d.normalize(), "f")
    return text


@dataclass(frozen=True)
class ConversionTerms:
    """
    The parts of a conversion rate that govern a single conversion.
    """

    points_per_cvc: int
    minimum_points: int
    minimum_cvc: Decimal
    claim_fee_eth: str = "0"
    is_active: bool = True

    @classmethod
    def from_rate(cls, rate: Union[Mapping[str, Any], Any]) -> "ConversionTerms":
        """Build from a ConversionRate row or a plain mapping with the same keys."""
        get = rate.get if isinstance(rate, Mapping) else lambda k, d=None: getattr(rate, k, d)
        return cls(
            points_per_cvc=int(get("points_per_cvc")),
            minimum_points=int(get("minimum_points")),
            minimum_cvc=Decimal(str(get("minimum_cvc"))),
            claim_fee_eth=str(get("claim_fee_eth", "0")),
            is_active=bool(get("is_active", True)),
        )


@dataclass(frozen=True)
class ConversionValidation:
    is_valid: bool
    error: Optional[str] = None
    cvc_amount: Optional[int] = None


def calculate_cvc_from_points(points: int, terms: ConversionTerms) -> int:
    # Whole CVC only; the remainder stays with the conversion, not the user
    return int(points) // int(terms.points_per_cvc)


def validate_conversion(points: int, terms: ConversionTerms) -> ConversionValidation:
    """
    Checks run in a fixed order so a user under the points floor always sees
    the points-floor message, even when the CVC floor would also fail.
    """
    if not terms.is_active:
        return ConversionValidation(False, "Points conversion is currently disabled")

    if points < terms.minimum_points:
        return ConversionValidation(
            False, f"Minimum {terms.minimum_points} points required for conversion"
        )

    cvc_amount = calculate_cvc_from_points(points, terms)

    if cvc_amount < terms.minimum_cvc:
        return ConversionValidation(
            False,
            f"Conversion results in less than minimum {format_decimal(terms.minimum_cvc)} CVC",
        )

    return ConversionValidation(True, cvc_amount=cvc_amount)
