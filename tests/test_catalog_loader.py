"""
Unit tests for catalog loading: location strategies, brand-group flattening,
field aliases, id synthesis, and normalization idempotence.
Run: pytest tests/test_catalog_loader.py  (or python tests/test_catalog_loader.py)
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
	sys.path.insert(0, str(ROOT))

import tempfile

import pytest

from tint_advisor.catalog_loader import Catalog, CatalogLoader, locate_entries, make_film_id, tier_family

CATALOG_PATH = ROOT / 'data' / 'films.json'


def assert_equal(actual, expected, msg):
	if actual != expected:
		raise AssertionError(f"{msg} | expected={expected}, actual={actual}")


def assert_true(cond, msg):
	if not cond:
		raise AssertionError(msg)


def test_locate_strategies():
	assert_equal(locate_entries([{'brand': 'A'}]), ('list', [{'brand': 'A'}]), "list document")
	assert_equal(locate_entries({'items': [{'brand': 'A'}]}), ('wrapper_key', [{'brand': 'A'}]), "wrapper key")
	assert_equal(locate_entries({'brands': [{'brand': 'A', 'products': []}]})[0], 'wrapper_key', "brands wrapper")

	name, entries = locate_entries({'SKU-1': {'brand': 'A'}, 'SKU-2': {'brand': 'B'}})
	assert_equal(name, 'keyed_mapping', "keyed mapping")
	assert_equal(len(entries), 2, "keyed mapping values")

	# Nothing structural to find: explicit empty result
	assert_equal(locate_entries('not a catalog'), ('none', []), "string document")
	assert_equal(locate_entries({'films': 'oops', 'count': 3}), ('none', []), "wrapper key without a list")
	assert_equal(locate_entries({}), ('none', []), "empty mapping")
	assert_equal(locate_entries(None), ('none', []), "null document")


def test_brand_groups_and_aliases():
	doc = {'brands': [{
		'brand': 'Acme',
		'products': [{
			'product_name': 'Solar 50',
			'category': 'Solar Control',
			'use_cases': ['Heat Rejection', 'fade'],
			'best_for': 'residential|commercial',
			'tier': 'Better',
			'vlt': '50%',
			'ir_reduction_pct': 60,
			'typical_installed_price_per_sqft_usd': {'residential': 8},
		}],
	}]}
	films = CatalogLoader().normalize(doc)
	assert_equal(len(films), 1, "one product flattened")
	film = films[0]
	assert_equal(film.id, 'acme-solar-50', "synthesized id")
	assert_equal(film.brand, 'Acme', "brand inherited from group")
	assert_equal(film.category, 'solar_control', "category folded")
	assert_equal(film.category_label, 'Solar Control', "category label kept")
	assert_equal(film.use_cases, ('heat', 'uv'), "goal synonyms folded")
	assert_equal(film.applicable_property, ('residential', 'commercial'), "pipe-separated property types")
	assert_equal(film.price_tier, 'mid', "tier family folded")
	assert_equal(film.visible_light_transmission, 50.0, "vlt alias with percent sign")
	assert_equal(film.ir_rejection_pct, 60.0, "ir alias")
	assert_equal(film.price_per_area_unit, {'residential': 8.0}, "price alias")
	assert_true(film.exterior_capable is None, "no exterior signal")


def test_make_film_id():
	assert_equal(make_film_id('3M', 'Prestige 70'), '3m-prestige-70', "brand + name")
	assert_equal(make_film_id('Madico', 'Sun Guard 35', 'Sun Guard'), 'madico-sun-guard-35', "series already in name")
	assert_equal(make_film_id('Madico', '70', 'Charcoal'), 'madico-charcoal-70', "series added")
	assert_equal(make_film_id('Huper Optik', 'Drei!'), 'huper-optik-drei', "punctuation stripped")


def test_drops_unusable_entries():
	entries = [{'product_name': 'No Brand'}, {'brand': 'X'}, 'junk', 42, {'brand': 'Y', 'name': 'Ok'}]
	films = CatalogLoader().normalize(entries)
	assert_equal([f.id for f in films], ['y-ok'], "only the usable entry survives")


def test_duplicate_ids():
	loader = CatalogLoader()
	films = loader.normalize([
		{'brand': 'A', 'name': 'One'},
		{'brand': 'A', 'name': 'One'},
		{'brand': 'A', 'name': 'one!'},
	])
	assert_equal([f.id for f in films], ['a-one', 'a-one-2', 'a-one-3'], "synthesized ids are suffixed")

	films = loader.normalize([
		{'sku': 'S1', 'brand': 'A', 'name': 'One'},
		{'sku': 'S1', 'brand': 'B', 'name': 'Two'},
	])
	assert_equal([f.brand for f in films], ['A'], "duplicate natural key skipped")


def test_natural_key_beats_earlier_slug():
	films = CatalogLoader().normalize([
		{'brand': 'A', 'name': 'B'},
		{'id': 'a-b', 'brand': 'Z', 'name': 'Other'},
	])
	assert_equal([f.id for f in films], ['a-b-2', 'a-b'], "synthesized id steps aside for the natural key")
	assert_equal([f.brand for f in films], ['A', 'Z'], "both records kept")


def test_non_finite_prices_dropped():
	loader = CatalogLoader()
	flat, mapped = loader.normalize([
		{'brand': 'A', 'name': 'One', 'price_per_sqft': 'Infinity'},
		{'brand': 'A', 'name': 'Two', 'typical_installed_price_per_sqft_usd': {'residential': 'inf', 'commercial': 11}},
	])
	assert_true(flat.price_per_area_unit is None, "infinite flat price")
	assert_equal(mapped.price_per_area_unit, {'commercial': 11.0}, "infinite property price")
	assert_true(loader.normalize([{'brand': 'A', 'name': 'Nan', 'price_per_sqft': 'nan'}])[0].price_per_area_unit is None, "NaN price")


def test_percentages_and_exterior_hints():
	loader = CatalogLoader()
	osw, explicit, located = loader.normalize([
		{'brand': 'Madico', 'name': 'Safety Shield 800 OSW', 'vlt': '120', 'uv_pct': '99%'},
		{'brand': 'M', 'name': 'X', 'exterior_ok': 'no', 'install_locations': ['exterior']},
		{'brand': 'M', 'name': 'Y', 'install_location': 'interior, exterior'},
	])
	assert_true(osw.visible_light_transmission is None, "out-of-range VLT dropped")
	assert_equal(osw.uv_rejection_pct, 99.0, "percent string parsed")
	assert_true(osw.exterior_capable is True, "OSW name hint")
	assert_true(explicit.exterior_capable is False, "explicit flag wins over install locations")
	assert_true(located.exterior_capable is True, "derived from install locations")
	assert_equal(located.install_locations, ('interior', 'exterior'), "comma-separated install locations")


def test_graffiti_is_not_security():
	film = CatalogLoader().normalize([{'brand': '3M', 'name': 'Anti-Graffiti 4 mil', 'category': 'Anti-Graffiti'}])[0]
	assert_equal(film.category, 'other', "graffiti category")
	assert_equal(film.category_label, 'Anti-Graffiti', "label kept for detection")


def test_tier_family():
	assert_equal(tier_family('Good'), 'value', "good -> value")
	assert_equal(tier_family('standard'), 'mid', "standard -> mid")
	assert_equal(tier_family('BEST'), 'premium', "best -> premium")
	assert_equal(tier_family('gold'), None, "unknown label")
	assert_equal(tier_family(None), None, "missing label")


def test_normalization_is_idempotent():
	loader = CatalogLoader()
	films = loader.load_films_from_json(str(CATALOG_PATH))
	assert_equal(len(films), 24, "bundled catalog size")
	assert_equal(loader.normalize([f.to_dict() for f in films]), films, "to_dict output normalizes to equal records")
	assert_equal(loader.normalize(films), films, "FilmRecord instances pass through")


def test_file_loading_edge_cases():
	loader = CatalogLoader()
	with pytest.raises(FileNotFoundError):
		loader.load_films_from_json(str(ROOT / 'data' / 'missing.json'))

	with tempfile.TemporaryDirectory() as tmp:
		broken = Path(tmp) / 'broken.json'
		broken.write_text('{"films": [', encoding='utf-8')
		assert_equal(loader.load_films_from_json(str(broken)), [], "malformed JSON degrades to empty")

		lines = Path(tmp) / 'films.jsonl'
		lines.write_text(
			'{"brand": "A", "name": "One"}\n'
			'{not json}\n'
			'\n'
			'{"brand": "B", "products": [{"name": "Two"}, {"name": "Three"}]}\n',
			encoding='utf-8',
		)
		films = loader.load_films_from_json(str(lines))
		assert_equal([f.id for f in films], ['a-one', 'b-two', 'b-three'], "JSON lines with a bad line skipped")


def test_catalog_value():
	catalog = Catalog.from_file(str(CATALOG_PATH))
	assert_equal(len(catalog), 24, "catalog length")
	assert_equal(catalog.get('3M-PR70').product_name, 'Prestige 70', "lookup by id")
	assert_true(catalog.get('nope') is None, "unknown id")
	assert_equal(catalog.brands(), ['3M', 'Huper Optik', 'LLumar', 'Madico', 'SunTek', 'Vista'], "sorted brands")

	fresh = catalog.reload()
	assert_true(fresh is not catalog, "reload returns a new snapshot")
	assert_equal(fresh.films, catalog.films, "same content after reload")

	with pytest.raises(ValueError):
		Catalog.from_document([{'brand': 'A', 'name': 'One'}]).reload()


def main():
	print("Running catalog loader tests...")
	test_locate_strategies()
	test_brand_groups_and_aliases()
	test_make_film_id()
	test_drops_unusable_entries()
	test_duplicate_ids()
	test_natural_key_beats_earlier_slug()
	test_non_finite_prices_dropped()
	test_percentages_and_exterior_hints()
	test_graffiti_is_not_security()
	test_tier_family()
	test_normalization_is_idempotent()
	test_file_loading_edge_cases()
	test_catalog_value()
	print("All catalog loader tests passed!")


if __name__ == '__main__':
	main()
