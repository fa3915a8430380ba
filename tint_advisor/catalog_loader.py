"""
Catalog loading and normalization module.
Finds the product list inside whatever shape the catalog document has and
flattens it into uniform, immutable FilmRecord objects.
"""

# Standard libs for JSON parsing, regex, typing, and paths
import json  # read JSON / JSON lines
import math  # finite checks on prices
import re  # slugs and keyword detection
from collections.abc import Mapping  # structural checks on parsed JSON
from dataclasses import replace  # copy a frozen record with a new id
from pathlib import Path  # filesystem-safe paths
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple  # type hints

# Import our data classes and vocabularies used across the project
from .models import CATEGORIES, INSTALL_LOCATIONS, PROPERTY_TYPES, FilmRecord  # structured film record

# Console logging
from loguru import logger  # console logger


# Wrapper keys checked, in priority order, when the document is a mapping
WRAPPER_KEYS = ('films', 'items', 'data', 'catalog', 'rows', 'list', 'brands')

# Keys under which a brand group nests its products
GROUP_PRODUCT_KEYS = ('products', 'films', 'items')


def _from_list(doc) -> Optional[list]:
	"""The document already is the product list."""
	if isinstance(doc, (list, tuple)):
		return list(doc)
	return None


def _from_wrapper_key(doc) -> Optional[list]:
	"""The product list sits under one of the well-known wrapper keys."""
	if not isinstance(doc, Mapping):
		return None
	for key in WRAPPER_KEYS:
		if isinstance(doc.get(key), list):
			return doc[key]
	return None


def _from_keyed_mapping(doc) -> Optional[list]:
	"""A flat mapping keyed by SKU whose every value is itself a record."""
	if isinstance(doc, Mapping) and doc and all(isinstance(v, Mapping) for v in doc.values()):
		return list(doc.values())
	return None


# Ordered strategy list: the first structural match wins
LOCATE_STRATEGIES: Tuple[Tuple[str, Callable], ...] = (
	('list', _from_list),
	('wrapper_key', _from_wrapper_key),
	('keyed_mapping', _from_keyed_mapping),
)


def locate_entries(doc) -> Tuple[str, list]:
	"""
	Return (strategy_name, entries) for the first strategy that matches.
	No match is reported explicitly as ('none', []).
	"""
	for name, strategy in LOCATE_STRATEGIES:
		entries = strategy(doc)
		if entries is not None:
			return name, entries
	return 'none', []


def slugify(text: str) -> str:
	"""Lowercase, strip non-alphanumerics, and hyphen-join what remains."""
	return re.sub(r'[^a-z0-9]+', '-', (text or '').lower()).strip('-')


def make_film_id(brand: str, product_name: str, series: Optional[str] = None) -> str:
	"""Deterministic identifier for records that carry no natural key."""
	name = slugify(product_name)
	line = slugify(series or '')
	if line and line in name:
		line = ''  # "Prestige" + "Prestige 70" -> prestige-70
	return '-'.join(part for part in (slugify(brand), line, name) if part)


def tier_family(text: Optional[str]) -> Optional[str]:
	"""Fold a free-text tier label (good/better/best, basic, elite, ...) onto value/mid/premium."""
	if not text:
		return None
	lowered = str(text).strip().lower()
	for tier, words in CatalogLoader.TIER_FAMILIES.items():
		if any(re.search(rf'\b{word}\b', lowered) for word in words):
			return tier
	return None


class CatalogLoader:
	"""
	Handles loading and normalizing window-film catalog data.
	"""

	# Goal synonym mapping: catalog/user phrasings → single goal tag
	GOAL_SYNONYMS = {
		'heat': 'heat',
		'heat rejection': 'heat',
		'heat reduction': 'heat',
		'solar': 'heat',
		'energy': 'heat',
		'energy savings': 'heat',
		'glare': 'glare',
		'glare reduction': 'glare',
		'uv': 'uv',
		'uv / fade': 'uv',
		'uv/fade': 'uv',
		'fade': 'uv',
		'fading': 'uv',
		'fade protection': 'uv',
		'privacy': 'privacy',
		'daytime privacy': 'privacy',
		'security': 'security',
		'safety': 'security',
		'shatter': 'security',
		'shatter resistance': 'security',
		'decorative': 'decorative',
		'decor': 'decorative',
		'frosted': 'decorative',
		'branding': 'decorative',
	}

	# Tier label families → canonical price tier
	TIER_FAMILIES = {
		'value': ('value', 'basic', 'good', 'economy'),
		'mid': ('mid', 'better', 'standard'),
		'premium': ('premium', 'best', 'elite', 'flagship'),
	}

	# Category keywords checked in order; graffiti lines are deliberately not "security"
	CATEGORY_KEYWORDS = (
		('other', ('graffiti', 'anti-vandal', 'antivandal', 'anti vandal')),
		('security', ('security', 'safety', 'shatter')),
		('privacy', ('privacy', 'blackout', 'one-way', 'mirror')),
		('decorative', ('decorative', 'frost', 'gradient', 'etched', 'pattern')),
		('solar_control', ('solar', 'sun', 'heat', 'reflect', 'ceramic', 'spectrally', 'nano', 'low-e', 'low e', 'dual')),
	)

	def __init__(self):
		"""Initialize the loader and expose the synonym mappings."""
		self.goal_synonyms = self.GOAL_SYNONYMS  # store mapping for reuse

	def load_films_from_json(self, filepath: str) -> List[FilmRecord]:
		"""
		Load a catalog from a JSON document (any supported shape) or a JSON Lines file.
		Returns a list of FilmRecord objects.
		"""
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Catalog file not found: {filepath}")

		logger.info(f"[Catalog] Loading films from {filepath}...")  # log action

		if filepath.suffix == '.jsonl':
			return self._load_jsonl(filepath)

		try:
			doc = json.loads(filepath.read_text(encoding='utf-8'))  # parse whole document
		except json.JSONDecodeError as e:
			# Malformed catalogs degrade to an empty list so callers see "no matches"
			logger.warning(f"[Catalog] Invalid JSON in {filepath}: {e}; using an empty catalog")
			return []

		films = self.normalize(doc)
		logger.info(f"[Catalog] Successfully loaded {len(films)} films.")  # summary
		return films

	def _load_jsonl(self, filepath: Path) -> List[FilmRecord]:
		"""One record (or brand group) per line; bad lines are skipped."""
		entries = []  # accumulator for parsed JSON objects
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():
					continue
				try:
					entries.append(json.loads(line.strip()))  # parse JSON object per line
				except json.JSONDecodeError as e:
					logger.warning(f"[Catalog] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
					continue  # move on
		films = self.normalize(entries)
		logger.info(f"[Catalog] Successfully loaded {len(films)} films.")  # summary
		return films

	def normalize(self, doc) -> List[FilmRecord]:
		"""
		Locate the product list in `doc`, flatten brand groups, and parse every entry.
		Never raises on data-shape variance; unusable entries are skipped.
		"""
		strategy, entries = locate_entries(doc)
		logger.debug(f"[Catalog] Located {len(entries)} entries via '{strategy}' strategy")

		parsed: List[Tuple[FilmRecord, bool]] = []  # (record, carries a natural key), in catalog order
		for raw, brand in self._iter_products(entries):
			if isinstance(raw, FilmRecord):
				film = raw  # already normalized
			else:
				try:
					film = self._parse_film_data(raw, default_brand=brand)
				except (TypeError, ValueError) as e:
					logger.warning(f"[Catalog] Error parsing film entry {raw!r:.80}: {e}")  # unexpected issue
					continue
			if film is not None:
				parsed.append((film, self._has_natural_key(raw)))

		# Natural keys are reserved up front so a synthesized id never takes one
		reserved = {film.id for film, natural in parsed if natural}
		films: List[FilmRecord] = []
		used_ids = set()  # ids already handed out, to keep them unique
		for film, natural in parsed:
			film = self._ensure_unique_id(film, natural, used_ids, reserved)
			if film is None:
				continue
			used_ids.add(film.id)
			films.append(film)
		return films

	def _iter_products(self, entries: Iterable) -> Iterator[Tuple[object, Optional[str]]]:
		"""Yield (product, inherited_brand) pairs, flattening brand groups."""
		for entry in entries:
			if isinstance(entry, Mapping):
				nested = next((entry[k] for k in GROUP_PRODUCT_KEYS if isinstance(entry.get(k), list)), None)
				if nested is not None:
					group_brand = self._clean(entry.get('brand') or entry.get('name'))
					for product in nested:
						yield product, group_brand
					continue
			yield entry, None

	def _has_natural_key(self, raw) -> bool:
		if isinstance(raw, FilmRecord):
			return True
		return isinstance(raw, Mapping) and bool(self._clean(raw.get('id') or raw.get('sku')))

	def _ensure_unique_id(self, film: FilmRecord, natural: bool, used_ids: set, reserved: set) -> Optional[FilmRecord]:
		if natural:
			if film.id in used_ids:
				logger.warning(f"[Catalog] Duplicate id '{film.id}' skipped")
				return None
			return film
		taken = used_ids | reserved
		if film.id not in taken:
			return film
		# Synthesized id collides with an earlier slug or a natural key; suffix deterministically
		n = 2
		while f"{film.id}-{n}" in taken:
			n += 1
		return replace(film, id=f"{film.id}-{n}")

	def _parse_film_data(self, data, default_brand: Optional[str] = None) -> Optional[FilmRecord]:
		"""
		Convert a raw dictionary (from file) into a strongly-typed FilmRecord.
		Returns None when the entry has no usable brand or product name.
		"""
		if not isinstance(data, Mapping):
			logger.warning(f"[Catalog] Skipping non-object entry: {data!r:.80}")
			return None

		brand = self._clean(data.get('brand')) or default_brand  # product brand wins over group brand
		name = self._clean(data.get('product_name') or data.get('name') or data.get('title'))
		if not brand or not name:
			logger.warning(f"[Catalog] Dropping entry without brand/name: {dict(data)!r:.80}")
			return None

		series = self._clean(data.get('series')) or None
		raw_category = self._clean(data.get('category'))
		# An explicit label (even an empty one) is kept as-is so normalized records round-trip
		if data.get('category_label') is not None:
			category_label = self._clean(data.get('category_label'))
		else:
			category_label = raw_category

		install_locations = self._parse_vocabulary(
			self._first(data, 'install_locations', 'install_location', 'mount'), INSTALL_LOCATIONS
		)

		natural_id = self._clean(data.get('id') or data.get('sku'))

		return FilmRecord(
			id=natural_id or make_film_id(brand, name, series),
			brand=brand,
			product_name=name,
			category=self._normalize_category(raw_category),
			series=series,
			category_label=category_label,
			use_cases=self._parse_use_cases(data.get('use_cases')),
			applicable_property=self._parse_vocabulary(
				self._first(data, 'applicable_property', 'best_for', 'property_types', 'property_type'), PROPERTY_TYPES
			),
			install_locations=install_locations,
			exterior_capable=self._exterior_capable(data, install_locations, category_label, series, name),
			price_tier=tier_family(self._first(data, 'price_tier', 'tier')),
			visible_light_transmission=self._parse_pct(self._first(data, 'visible_light_transmission', 'vlt', 'vlt_pct')),
			ir_rejection_pct=self._parse_pct(self._first(data, 'ir_rejection_pct', 'ir_reduction_pct', 'ir_pct')),
			uv_rejection_pct=self._parse_pct(self._first(data, 'uv_rejection_pct', 'uv_pct')),
			price_per_area_unit=self._parse_prices(
				self._first(data, 'price_per_area_unit', 'typical_installed_price_per_sqft_usd', 'price_per_sqft')
			),
		)

	def _first(self, data: Mapping, *keys):
		"""Value of the first alias present (and not None) in `data`."""
		for key in keys:
			if data.get(key) is not None:
				return data[key]
		return None

	def _clean(self, value) -> str:
		"""Trim a scalar into a string; None and containers become ''."""
		if value is None or isinstance(value, (list, tuple, dict)):
			return ''
		return str(value).strip()

	def _parse_comma_separated(self, value) -> List[str]:
		"""
		Normalize a value that may be None, a list, or a comma/pipe-separated string
		into a list of clean strings.
		"""
		if value is None:  # missing field
			return []  # treat as empty list
		if isinstance(value, (list, tuple)):  # already a list
			return [str(item).strip() for item in value if item]  # clean each
		if isinstance(value, str):  # separated string
			return [item.strip() for item in re.split(r'[,|]', value) if item.strip()]  # split/trim
		return []  # any other type becomes empty

	def _parse_vocabulary(self, value, vocabulary: Tuple[str, ...]) -> Tuple[str, ...]:
		"""Keep only known vocabulary terms, lowercased, de-duplicated, in order."""
		out: List[str] = []
		for item in self._parse_comma_separated(value):
			term = item.lower()
			if term in vocabulary and term not in out:
				out.append(term)
		return tuple(out)

	def _parse_use_cases(self, value) -> Tuple[str, ...]:
		"""Lowercase tags with goal synonyms folded; unknown tags (e.g. graffiti) are kept."""
		out: List[str] = []
		for item in self._parse_comma_separated(value):
			tag = item.lower()
			tag = self.goal_synonyms.get(tag, tag)
			if tag not in out:
				out.append(tag)
		return tuple(out)

	def _normalize_category(self, text: str) -> str:
		"""Map the catalog's category text onto the closed category set."""
		lowered = (text or '').strip().lower()
		if not lowered:
			return 'other'
		canonical = re.sub(r'[\s\-]+', '_', lowered)
		if canonical in CATEGORIES:
			return canonical
		for category, keywords in self.CATEGORY_KEYWORDS:
			if any(k in lowered for k in keywords):
				return category
		return 'other'

	def _exterior_capable(self, data: Mapping, install_locations, category_label: str, series, name: str) -> Optional[bool]:
		explicit = self._first(data, 'exterior_capable', 'exterior_ok')
		if isinstance(explicit, bool):
			return explicit
		if isinstance(explicit, str) and explicit.strip().lower() in ('yes', 'true', 'no', 'false'):
			return explicit.strip().lower() in ('yes', 'true')
		if install_locations:
			return 'exterior' in install_locations
		# Name hints such as "Exterior" or the OSW (outside-weatherable) series
		text = ' '.join([category_label, series or '', name]).lower()
		if re.search(r'exterior|\bosw\b', text):
			return True
		return None

	def _parse_pct(self, value) -> Optional[float]:
		"""Parse a 0..100 percentage; anything else is treated as unknown."""
		if value is None or isinstance(value, bool):
			return None
		try:
			number = float(str(value).strip().rstrip('%'))
		except ValueError:
			return None
		if not 0.0 <= number <= 100.0:
			return None
		return number

	def _parse_prices(self, value) -> Optional[Dict[str, float]]:
		"""Per-property-type unit prices; a bare number applies to every property type."""
		if value is None or isinstance(value, bool):
			return None
		prices: Dict[str, float] = {}
		if isinstance(value, Mapping):
			for prop in PROPERTY_TYPES:
				try:
					price = float(value.get(prop)) if value.get(prop) is not None else 0.0
				except (TypeError, ValueError):
					continue
				if price > 0 and math.isfinite(price):
					prices[prop] = price
		else:
			try:
				price = float(value)
			except (TypeError, ValueError):
				return None
			if price > 0 and math.isfinite(price):
				prices = {prop: price for prop in PROPERTY_TYPES}
		return prices or None


def get_all_brands(films: Iterable[FilmRecord]) -> List[str]:
	"""Return a sorted list of all unique brands in the catalog."""
	return sorted({f.brand for f in films})


class Catalog:
	"""
	Immutable, explicitly constructed catalog snapshot.
	Built once at startup and passed to the scorer, expander and pricer.
	"""

	def __init__(self, films: Iterable[FilmRecord], source: Optional[str] = None):
		self._films: Tuple[FilmRecord, ...] = tuple(films)
		self._by_id: Dict[str, FilmRecord] = {f.id: f for f in self._films}
		self.source = source  # file the snapshot was read from, if any

	@classmethod
	def from_document(cls, doc, source: Optional[str] = None) -> 'Catalog':
		return cls(CatalogLoader().normalize(doc), source=source)

	@classmethod
	def from_file(cls, path: str) -> 'Catalog':
		return cls(CatalogLoader().load_films_from_json(path), source=str(path))

	def reload(self) -> 'Catalog':
		"""Return a fresh snapshot read from the same file."""
		if not self.source:
			raise ValueError("Catalog was not loaded from a file and cannot be reloaded")
		logger.info(f"[Catalog] Reloading from {self.source}")
		return Catalog.from_file(self.source)

	@property
	def films(self) -> Tuple[FilmRecord, ...]:
		return self._films

	def get(self, film_id: str) -> Optional[FilmRecord]:
		return self._by_id.get(film_id)

	def brands(self) -> List[str]:
		return get_all_brands(self._films)

	def __len__(self) -> int:
		return len(self._films)

	def __iter__(self) -> Iterator[FilmRecord]:
		return iter(self._films)
