"""
Data models for the Window Film Advisor.
Defines the closed vocabularies and the core data structures used throughout the system.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Dict, List, Optional, Tuple, Union  # containers and optional values


# Closed vocabularies shared by the parser, scorer, expander and surfaces
PROPERTY_TYPES = ('residential', 'commercial')
GOALS = ('heat', 'glare', 'uv', 'privacy', 'security', 'decorative')
CATEGORIES = ('solar_control', 'privacy', 'security', 'decorative', 'other')
APPLICATIONS = (
	'living_room',
	'bedroom',
	'kitchen',
	'bathroom',
	'office',
	'conference_room',
	'storefront',
	'lobby',
	'server_room',
	'warehouse',
	'other',
)
VLT_PREFERENCES = ('brighter', 'neutral', 'darker')
PRICE_TIERS = ('value', 'mid', 'premium')
INSTALL_LOCATIONS = ('interior', 'exterior')
SUN_EXPOSURES = ('low', 'medium', 'high')
ORIENTATIONS = ('north', 'east', 'south', 'west')

# Ordinal scale used when backfilling neighbouring budget tiers
TIER_ORDINAL = {'value': 1, 'mid': 2, 'premium': 3}


@dataclass(frozen=True)
class FilmRecord:
	"""
	One catalog entry, flattened and normalized.
	Records are immutable so a loaded catalog can be shared by every call.
	"""
	id: str  # unique identifier within the catalog (natural key or synthesized slug)
	brand: str  # manufacturer name as shown to buyers
	product_name: str  # product name without the brand
	category: str  # one of CATEGORIES
	series: Optional[str] = None  # optional product line (e.g. "Prestige")
	category_label: str = ''  # the catalog's own category text, kept for display and detection
	use_cases: Tuple[str, ...] = ()  # lowercase goal tags the film is sold for
	applicable_property: Tuple[str, ...] = ()  # empty means no property-type restriction
	install_locations: Tuple[str, ...] = ()  # empty means no install-location restriction
	exterior_capable: Optional[bool] = None  # None when the catalog gives no signal
	price_tier: Optional[str] = None  # one of PRICE_TIERS when declared
	visible_light_transmission: Optional[float] = None  # VLT percentage (0..100)
	ir_rejection_pct: Optional[float] = None  # infrared rejection percentage (0..100)
	uv_rejection_pct: Optional[float] = None  # UV rejection percentage (0..100)
	price_per_area_unit: Optional[Dict[str, float]] = None  # property type -> installed price per sq ft

	def to_dict(self) -> Dict:
		"""Plain-dict view; feeding it back through the normalizer yields an equal record."""
		return {
			'id': self.id,
			'brand': self.brand,
			'series': self.series,
			'product_name': self.product_name,
			'category': self.category,
			'category_label': self.category_label,
			'use_cases': list(self.use_cases),
			'applicable_property': list(self.applicable_property),
			'install_locations': list(self.install_locations),
			'exterior_capable': self.exterior_capable,
			'price_tier': self.price_tier,
			'visible_light_transmission': self.visible_light_transmission,
			'ir_rejection_pct': self.ir_rejection_pct,
			'uv_rejection_pct': self.uv_rejection_pct,
			'price_per_area_unit': dict(self.price_per_area_unit) if self.price_per_area_unit else None,
		}


@dataclass(frozen=True)
class RequestContext:
	"""
	The buyer's scenario after boundary validation.
	Only property_type and goals are required; everything else refines the ranking.
	"""
	property_type: str  # one of PROPERTY_TYPES
	goals: Tuple[str, ...]  # non-empty, subset of GOALS, in the order given
	application: Optional[str] = None  # one of APPLICATIONS (free text is bucketed)
	application_note: Optional[str] = None  # the raw text when it was bucketed into "other"
	vlt_preference: Optional[str] = None  # brighter / neutral / darker
	budget_level: Optional[str] = None  # value / mid / premium
	install_location: Optional[str] = None  # interior / exterior
	sun_exposure: Optional[str] = None  # low / medium / high (advisory)
	orientation: Tuple[str, ...] = ()  # any of ORIENTATIONS (advisory)
	city: Optional[str] = None  # advisory only, used in messaging

	def wants(self, goal: str) -> bool:
		return goal in self.goals

	def to_dict(self) -> Dict:
		return {
			'property_type': self.property_type,
			'goals': list(self.goals),
			'application': self.application,
			'application_note': self.application_note,
			'vlt_preference': self.vlt_preference,
			'budget_level': self.budget_level,
			'install_location': self.install_location,
			'sun_exposure': self.sun_exposure,
			'orientation': list(self.orientation),
			'city': self.city,
		}


@dataclass
class ScoredFilm:
	"""A film plus its match score and the reasons that produced it."""
	film: FilmRecord  # the catalog record (never modified)
	score: float  # additive match score, higher is better
	rationale: List[str] = field(default_factory=list)  # ordered, human-readable reasons

	@property
	def id(self) -> str:
		return self.film.id

	@property
	def brand(self) -> str:
		return self.film.brand

	def dedupe_key(self) -> str:
		"""Identifier when present, otherwise a composite brand/series/name key."""
		if self.film.id:
			return self.film.id
		return '|'.join([self.film.brand.lower(), (self.film.series or '').lower(), self.film.product_name.lower()])

	def to_dict(self) -> Dict:
		data = self.film.to_dict()
		data['score'] = round(self.score, 2)
		data['rationale'] = list(self.rationale)
		return data


@dataclass
class RankedItem:
	"""A scored film chosen for presentation, with display strings."""
	scored: ScoredFilm
	title: str
	subtitle: str

	@property
	def id(self) -> str:
		return self.scored.id

	def to_dict(self) -> Dict:
		data = self.scored.to_dict()
		data['title'] = self.title
		data['subtitle'] = self.subtitle
		return data


@dataclass
class Quote:
	"""One priced line in an estimate."""
	identifier: str
	unit_price_low: float
	unit_price_high: float
	subtotal_low: float
	subtotal_high: float
	notes: str

	def to_dict(self) -> Dict:
		return {
			'identifier': self.identifier,
			'unit_price_low': self.unit_price_low,
			'unit_price_high': self.unit_price_high,
			'subtotal_low': self.subtotal_low,
			'subtotal_high': self.subtotal_high,
			'notes': self.notes,
		}


@dataclass
class QuoteError:
	"""Marker for a requested line that could not be priced."""
	identifier: str
	error: str

	def to_dict(self) -> Dict:
		return {'identifier': self.identifier, 'error': self.error}


QuoteLine = Union[Quote, QuoteError]


@dataclass
class RecommendationResult:
	"""Output of a recommend call."""
	items: List[RankedItem]
	criteria: RequestContext
	summary: str
	prompts: List[str] = field(default_factory=list)  # missing inputs, when the call asks instead of ranking
	broadened: bool = False  # True when the broadening pass produced the candidates

	def to_dict(self) -> Dict:
		return {
			'items': [item.to_dict() for item in self.items],
			'criteria': self.criteria.to_dict(),
			'summary': self.summary,
			'prompts': list(self.prompts),
			'broadened': self.broadened,
		}


@dataclass
class EstimateResult:
	"""Output of an estimate call."""
	area: float
	property_type: str
	quotes: List[QuoteLine]
	price_range_text: Optional[str] = None  # only for a single selected baseline tier

	def to_dict(self) -> Dict:
		data = {
			'area': self.area,
			'property_type': self.property_type,
			'quotes': [q.to_dict() for q in self.quotes],
		}
		if self.price_range_text:
			data['price_range_text'] = self.price_range_text
		return data
