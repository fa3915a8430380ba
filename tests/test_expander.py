"""
Unit tests for the product expander: eligibility, goal relevance, budget
backfill, tie-breaks, brand diversity, and display strings.
Run: pytest tests/test_expander.py  (or python tests/test_expander.py)
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
	sys.path.insert(0, str(ROOT))

from tint_advisor.expander import ProductExpander, is_eligible, make_subtitle, make_title, satisfied_goals
from tint_advisor.models import FilmRecord, RequestContext, ScoredFilm


def assert_equal(actual, expected, msg):
	if actual != expected:
		raise AssertionError(f"{msg} | expected={expected}, actual={actual}")


def assert_true(cond, msg):
	if not cond:
		raise AssertionError(msg)


def film(name, brand='Acme', category='solar_control', **kw):
	return FilmRecord(id=f"{brand}-{name}".lower().replace(' ', '-'), brand=brand, product_name=name, category=category, **kw)


def sf(name, brand, score, **kw):
	return ScoredFilm(film=film(name, brand, **kw), score=score)


def ctx(goals=('heat',), property_type='residential', **kw):
	return RequestContext(property_type=property_type, goals=tuple(goals), **kw)


def test_eligibility():
	c = ctx(install_location='exterior')
	assert_true(not is_eligible(film('C', applicable_property=('commercial',)), c), "property restriction")
	assert_true(not is_eligible(film('I', install_locations=('interior',)), c), "install restriction")
	assert_true(not is_eligible(film('N', exterior_capable=False), c), "explicitly not exterior-capable")
	assert_true(is_eligible(film('U'), c), "unknown capability stays")
	assert_true(is_eligible(film('E', install_locations=('exterior',), exterior_capable=True), c), "exterior film")
	assert_true(is_eligible(film('N', exterior_capable=False), ctx(install_location='interior')), "interior request")


def test_goal_relevance():
	heat = ctx(['heat'])
	assert_equal(satisfied_goals(film('Solar'), heat), ['heat'], "solar look serves heat")
	assert_equal(satisfied_goals(film('Frost', category='decorative'), heat), [], "decorative does not")
	assert_equal(satisfied_goals(film('Tagged', category='other', use_cases=('heat',)), heat), ['heat'], "use-case tag")

	privacy = ctx(['privacy'])
	assert_equal(satisfied_goals(film('Tint', category='other', visible_light_transmission=40.0), privacy), ['privacy'], "dark VLT")
	assert_equal(satisfied_goals(film('Light', category='other', visible_light_transmission=60.0), privacy), [], "light VLT")
	assert_equal(satisfied_goals(film('Blackout', category='privacy'), privacy), ['privacy'], "privacy category")

	mixed = ctx(['uv', 'security', 'decorative'])
	f = film('Safety Frost', category='decorative', uv_rejection_pct=90.0)
	assert_equal(satisfied_goals(f, mixed), ['uv', 'security', 'decorative'], "several predicates")

	items = ProductExpander().expand([sf('Solar', 'A', 1.0), sf('Frost', 'B', 9.0, category='decorative')], heat)
	assert_equal([i.id for i in items], ['a-solar'], "irrelevant film dropped even with a high score")


def test_one_per_brand_first():
	candidates = [
		sf('A1', 'A', 3.0), sf('A2', 'A', 2.9), sf('A3', 'A', 2.8),
		sf('B', 'B', 1.0), sf('C', 'C', 0.9), sf('D', 'D', 0.8), sf('E', 'E', 0.7), sf('F', 'F', 0.6),
	]
	items = ProductExpander().expand(candidates, ctx())
	assert_equal([i.id for i in items], ['a-a1', 'b-b', 'c-c', 'd-d', 'e-e'], "distinct brands preferred")


def test_repeats_fill_when_brands_run_out():
	candidates = [sf('A1', 'A', 3.0), sf('A2', 'A', 2.9), sf('A3', 'A', 2.8), sf('A4', 'A', 2.7), sf('B', 'B', 2.0), sf('C', 'C', 1.0)]
	items = ProductExpander().expand(candidates, ctx())
	assert_equal([i.id for i in items], ['a-a1', 'a-a2', 'a-a3', 'b-b', 'c-c'], "repeats fill up to 5, re-sorted")


def test_tie_breaks():
	c = ctx(['heat', 'glare'], vlt_preference='brighter')
	candidates = [
		sf('One', 'Zeta', 1.0, category='privacy', use_cases=('heat',), visible_light_transmission=70.0),
		sf('Two', 'Yotta', 1.0, category='privacy', use_cases=('heat', 'glare'), visible_light_transmission=30.0),
		sf('Three', 'Xeno', 1.0, category='privacy', use_cases=('heat', 'glare'), visible_light_transmission=68.0),
		sf('Four', 'alpha', 1.0, category='privacy', use_cases=('heat', 'glare'), visible_light_transmission=68.0),
		sf('Five', 'Mu', 2.0, category='privacy', use_cases=('heat',)),
	]
	items = ProductExpander().expand(candidates, c)
	assert_equal(
		[i.scored.brand for i in items],
		['Mu', 'alpha', 'Xeno', 'Yotta', 'Zeta'],
		"score, then satisfied goals, then VLT distance, then brand",
	)
	assert_equal([i.id for i in ProductExpander().expand(list(reversed(candidates)), c)], [i.id for i in items], "input order irrelevant")


def test_budget_backfill():
	c = ctx(budget_level='mid')
	# Five brands at the exact tier: nothing else is considered
	exact = [sf(f"M{i}", f"B{i}", 1.0, price_tier='mid') for i in range(5)] + [sf('P', 'Prem', 5.0, price_tier='premium')]
	assert_true(all(i.scored.film.price_tier == 'mid' for i in ProductExpander().expand(exact, c)), "exact tier only")

	# Two brands at the tier: neighbours join, untiered films stay out
	mixed = [
		sf('M1', 'A', 1.0, price_tier='mid'), sf('M2', 'B', 1.0, price_tier='mid'),
		sf('V1', 'C', 1.0, price_tier='value'), sf('P1', 'D', 1.0, price_tier='premium'), sf('V2', 'F', 1.0, price_tier='value'),
		sf('U1', 'E', 9.0),
	]
	ids = {i.id for i in ProductExpander().expand(mixed, c)}
	assert_equal(ids, {'a-m1', 'b-m2', 'c-v1', 'd-p1', 'f-v2'}, "adjacent tiers backfill")

	# Too few tiered brands: untiered films are the last resort
	sparse = [sf('M1', 'A', 1.0, price_tier='mid'), sf('U1', 'E', 0.5), sf('U2', 'G', 0.4)]
	assert_equal(len(ProductExpander().expand(sparse, c)), 3, "untiered films backfill last")


def test_never_more_than_five():
	candidates = [sf(f"F{i}", f"Brand {i}", float(i)) for i in range(12)]
	items = ProductExpander().expand(candidates, ctx())
	assert_equal(len(items), 5, "at most 5")
	assert_equal(len({i.scored.brand for i in items}), 5, "all distinct brands")
	assert_equal(len(ProductExpander().expand([], ctx())), 0, "empty input")


def test_titles_and_subtitles():
	assert_equal(make_title(film('Prestige 70', '3M', series='Prestige')), '3M Prestige 70', "series repeated in name")
	assert_equal(make_title(film('Sun Guard 35', 'Madico', series='Sun Guard')), 'Madico Sun Guard 35', "multi-word repeat")
	assert_equal(make_title(film('Vista Neutral', 'Vista', series='vista')), 'Vista Neutral', "case-insensitive repeat")
	assert_equal(make_title(film('IRX 50', 'LLumar')), 'LLumar IRX 50', "no series")

	assert_equal(make_subtitle(film('E', exterior_capable=True)), 'Solar Control • Exterior-capable', "exterior")
	assert_equal(make_subtitle(film('I', category='security', exterior_capable=False)), 'Security • Interior-only', "interior only")
	graffiti = film('AG', category='other', category_label='Anti-Graffiti')
	assert_equal(make_subtitle(graffiti), 'Anti-Graffiti • Interior', "catalog label for other")


def main():
	print("Running expander tests...")
	test_eligibility()
	test_goal_relevance()
	test_one_per_brand_first()
	test_repeats_fill_when_brands_run_out()
	test_tie_breaks()
	test_budget_backfill()
	test_never_more_than_five()
	test_titles_and_subtitles()
	print("All expander tests passed!")


if __name__ == '__main__':
	main()
