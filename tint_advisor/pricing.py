"""
Pricing calculator.
Per-film quotes use the catalog's installed price per sq ft with a fixed ±15%
band; without identifiers a baseline tier table is used instead.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .models import PRICE_TIERS, PROPERTY_TYPES, EstimateResult, FilmRecord, Quote, QuoteError, QuoteLine

MIN_AREA = 10.0
MAX_IDENTIFIERS = 3
BAND_LOW = 0.85
BAND_HIGH = 1.15
DISCLAIMER = "Estimate ±15% for access and complexity."

NOT_FOUND = "not found"
PRICE_UNAVAILABLE = "price unavailable"

# Installed $/sq ft; commercial assumes higher labor and access costs
BASELINE_TIERS: Dict[str, Dict[str, Tuple[float, float]]] = {
	'residential': {'value': (14.0, 19.0), 'mid': (16.0, 21.0), 'premium': (18.0, 24.0)},
	'commercial': {'value': (16.0, 21.0), 'mid': (18.0, 23.0), 'premium': (20.0, 26.0)},
}


class PricingInputError(ValueError):
	"""Area below the minimum, an unknown property type or tier, or too many identifiers."""


def format_money(amount: float) -> str:
	"""$3,200 for whole amounts, $3,210.50 otherwise."""
	if float(amount).is_integer():
		return f"${amount:,.0f}"
	return f"${amount:,.2f}"


def format_range(low: float, high: float) -> str:
	return f"{format_money(low)} – {format_money(high)}"


def _quote(identifier: str, unit_low: float, unit_high: float, area: float) -> Quote:
	unit_low = round(unit_low, 2)
	unit_high = round(unit_high, 2)
	subtotal_low = round(unit_low * area, 2)
	subtotal_high = round(unit_high * area, 2)
	if not (math.isfinite(subtotal_low) and math.isfinite(subtotal_high)):
		raise PricingInputError(f"area {area:g} sq ft is too large to price")
	return Quote(
		identifier=identifier,
		unit_price_low=unit_low,
		unit_price_high=unit_high,
		subtotal_low=subtotal_low,
		subtotal_high=subtotal_high,
		notes=DISCLAIMER,
	)


class PricingCalculator:
	"""Stateless over a film lookup (anything with .get(id))."""

	def __init__(self, catalog):
		self.catalog = catalog

	def estimate(
		self,
		area: float,
		property_type: str,
		identifiers: Optional[Sequence[str]] = None,
		budget_tier: Optional[str] = None,
	) -> EstimateResult:
		area = self._validate_area(area)
		property_type = self._validate_property_type(property_type)
		ids = self._validate_identifiers(identifiers)

		# Identifiers take precedence over a tier
		if ids:
			quotes = [self.quote_film(identifier, area, property_type) for identifier in ids]
			priced = sum(1 for q in quotes if isinstance(q, Quote))
			logger.info(f"[Pricing] {priced}/{len(quotes)} films priced for {area:g} sq ft ({property_type})")
			return EstimateResult(area=area, property_type=property_type, quotes=quotes)

		return self.baseline(area, property_type, budget_tier)

	def quote_film(self, identifier: str, area: float, property_type: str) -> QuoteLine:
		film: Optional[FilmRecord] = self.catalog.get(identifier)
		if film is None:
			logger.debug(f"[Pricing] '{identifier}' not in catalog")
			return QuoteError(identifier=identifier, error=NOT_FOUND)
		base = (film.price_per_area_unit or {}).get(property_type)
		if not base or base <= 0:
			logger.debug(f"[Pricing] '{identifier}' has no {property_type} price")
			return QuoteError(identifier=identifier, error=PRICE_UNAVAILABLE)
		return _quote(identifier, base * BAND_LOW, base * BAND_HIGH, area)

	def baseline(self, area: float, property_type: str, budget_tier: Optional[str] = None) -> EstimateResult:
		tiers = BASELINE_TIERS[property_type]
		if budget_tier is None:
			quotes: List[QuoteLine] = [
				_quote(f"baseline_{tier}", low, high, area) for tier, (low, high) in tiers.items()
			]
			return EstimateResult(area=area, property_type=property_type, quotes=quotes)

		tier = str(budget_tier).strip().lower()
		if tier not in tiers:
			raise PricingInputError(f"budget_tier '{budget_tier}' must be one of {', '.join(PRICE_TIERS)}")
		low, high = tiers[tier]
		quote = _quote(f"baseline_{tier}", low, high, area)
		return EstimateResult(
			area=area,
			property_type=property_type,
			quotes=[quote],
			price_range_text=format_range(quote.subtotal_low, quote.subtotal_high),
		)

	def _validate_area(self, area) -> float:
		try:
			value = float(area)
		except (TypeError, ValueError):
			raise PricingInputError(f"area must be a number, got {area!r}")
		if not math.isfinite(value) or value < MIN_AREA:
			raise PricingInputError(f"area must be a finite number of at least {MIN_AREA:g} sq ft")
		return value

	def _validate_property_type(self, property_type) -> str:
		value = str(property_type or '').strip().lower()
		if value not in PROPERTY_TYPES:
			raise PricingInputError(f"property_type must be one of {', '.join(PROPERTY_TYPES)}")
		return value

	def _validate_identifiers(self, identifiers) -> List[str]:
		if identifiers is None:
			return []
		if isinstance(identifiers, str):
			identifiers = [identifiers]
		# An empty list means "no identifiers" and falls through to the baseline table
		ids = [str(i).strip() for i in identifiers if i is not None and str(i).strip()]
		if len(ids) > MAX_IDENTIFIERS:
			raise PricingInputError(f"at most {MAX_IDENTIFIERS} identifiers can be priced at once")
		return ids
