"""
Unit tests for the intake/results panel builders and intake normalization.
Run: pytest tests/test_panels.py  (or python tests/test_panels.py)
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
	sys.path.insert(0, str(ROOT))

from tint_advisor import panels
from tint_advisor.models import (
	EstimateResult,
	FilmRecord,
	Quote,
	QuoteError,
	RankedItem,
	RecommendationResult,
	RequestContext,
	ScoredFilm,
)


def assert_equal(actual, expected, msg):
	if actual != expected:
		raise AssertionError(f"{msg} | expected={expected}, actual={actual}")


def assert_true(cond, msg):
	if not cond:
		raise AssertionError(msg)


def field_by_id(panel, field_id):
	for section in panel['sections']:
		for f in section['fields']:
			if f['id'] == field_id:
				return f
	raise KeyError(field_id)


def sample_item():
	film = FilmRecord(
		id='3M-PR70', brand='3M', product_name='Prestige 70', category='solar_control', series='Prestige',
		price_tier='premium', visible_light_transmission=69.0,
	)
	scored = ScoredFilm(film=film, score=1.2, rationale=['Good for heat', 'Geared for residential'])
	return RankedItem(scored=scored, title='3M Prestige 70', subtitle='Solar Control • Interior-only')


def test_normalize_intake():
	intake = panels.normalize_intake({
		'goals': 'Heat, glare, heat',
		'orientation': ['West', 'west', ''],
		'square_feet': '1,200',
		'city': '  ',
		'application': ' Office ',
	})
	assert_equal(intake['property_type'], 'residential', "property type default")
	assert_equal(intake['goals'], ['heat', 'glare'], "goals de-duplicated and lowercased")
	assert_equal(intake['orientation'], ['west'], "orientation cleaned")
	assert_equal(intake['square_feet'], 1200.0, "thousands separator")
	assert_true(intake['city'] is None, "blank text dropped")
	assert_equal(intake['application'], 'Office', "text stripped")

	assert_true(panels.normalize_intake({'square_feet': 'about 200'})['square_feet'] is None, "junk number")
	assert_true(panels.normalize_intake({'square_feet': True})['square_feet'] is None, "boolean is not a number")


def test_intake_panel():
	panel = panels.build_intake_panel({'property_type': 'Commercial', 'goals': ['security']})
	assert_equal(panel['id'], 'film_advisor_intake_panel_v1', "panel id")
	assert_equal(len(panel['sections']), 3, "three groups")
	assert_equal(field_by_id(panel, 'property_type')['value'], 'commercial', "preset property")
	assert_equal(field_by_id(panel, 'goals')['value'], ['security'], "preset goals")
	assert_equal(field_by_id(panel, 'application_note')['kind'], 'text', "free-text application")
	assert_equal([a['id'] for a in panel['actions']], ['submit_intake'], "submit action")

	blank = panels.build_intake_panel()
	assert_equal(field_by_id(blank, 'property_type')['value'], 'residential', "default property")
	assert_equal(field_by_id(blank, 'city')['value'], '', "empty city")


def test_results_panel_with_items():
	ctx = RequestContext(property_type='residential', goals=('heat',))
	rec = RecommendationResult(items=[sample_item()], criteria=ctx, summary='Top picks for residential based on heat.')
	estimate = EstimateResult(area=200.0, property_type='residential', quotes=[
		Quote('baseline_mid', 16.0, 21.0, 3200.0, 4200.0, 'note'),
		QuoteError('X', 'not found'),
	])
	intake = panels.normalize_intake({'goals': ['heat'], 'square_feet': 200, 'budget_level': 'mid'})
	panel = panels.build_results_panel(rec, estimate, intake)

	assert_equal(panel['id'], 'film_advisor_results_panel_v1', "panel id")
	row = field_by_id(panel, 'recommendations_list')['items'][0]
	assert_equal(row['title'], '3M Prestige 70', "item title")
	assert_equal(row['subtitle'], 'VLT: 69% • Solar Control • Interior-only • premium tier', "item subtitle")
	assert_equal(row['body'], 'Good for heat; Geared for residential', "reasons joined")
	assert_equal(field_by_id(panel, 'price_range')['value'], '$3,200 – $4,200', "price range from priced lines")
	assert_true('mid budget' in panel['description'], "chips in description")

	text = panels.build_text_summary(rec, estimate, intake)
	assert_true(text.startswith('Film picks for residential'), "heading")
	assert_true('• 3M Prestige 70 - Good for heat' in text, "item line")
	assert_true(text.endswith('Estimated installed cost: $3,200 – $4,200'), "price line")


def test_results_panel_empty():
	ctx = RequestContext(property_type='residential', goals=('heat',))
	rec = RecommendationResult(items=[], criteria=ctx, summary='To dial this in, tell me: budget.', prompts=['budget'])
	panel = panels.build_results_panel(rec, None, {'property_type': 'residential'})
	assert_equal(field_by_id(panel, 'empty_state')['value'], rec.summary, "empty state carries the summary")
	assert_equal(len(panel['sections']), 1, "no cost group without an estimate")

	fallback = panels.build_results_panel(None, None)
	assert_equal(field_by_id(fallback, 'empty_state')['value'], panels.EMPTY_STATE_TEXT, "generic empty state")
	assert_true(fallback['description'] is None, "no chips")

	text = panels.build_text_summary(rec, None, {'property_type': 'residential'})
	assert_true(text.endswith(rec.summary), "summary line")


def test_currency():
	assert_equal(panels.format_currency(3210.5), '$3,210', "rounded to whole dollars")
	assert_equal(panels.format_currency(None), '—', "missing amount")
	unpriced = EstimateResult(area=10.0, property_type='residential', quotes=[QuoteError('X', 'not found')])
	assert_equal(panels.quote_range(unpriced), (None, None), "no priced lines")


def main():
	print("Running panel tests...")
	test_normalize_intake()
	test_intake_panel()
	test_results_panel_with_items()
	test_results_panel_empty()
	test_currency()
	print("All panel tests passed!")


if __name__ == '__main__':
	main()
