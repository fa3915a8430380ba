"""
Intake and results panels.
Declarative, UI-agnostic plans: the MCP client, the API, and the Streamlit app
all render the same dictionaries.
"""

from collections.abc import Mapping
from typing import Dict, List, Optional

from .models import (
	APPLICATIONS,
	EstimateResult,
	Quote,
	RecommendationResult,
)

INTAKE_PANEL_ID = 'film_advisor_intake_panel_v1'
RESULTS_PANEL_ID = 'film_advisor_results_panel_v1'

PROPERTY_TYPE_OPTIONS = [
	{'label': 'Residential', 'value': 'residential'},
	{'label': 'Commercial', 'value': 'commercial'},
]
GOAL_OPTIONS = [
	{'label': 'Heat', 'value': 'heat'},
	{'label': 'Glare', 'value': 'glare'},
	{'label': 'Privacy', 'value': 'privacy'},
	{'label': 'UV / Fade', 'value': 'uv'},
	{'label': 'Security', 'value': 'security'},
	{'label': 'Decorative', 'value': 'decorative'},
]
APPLICATION_OPTIONS = [{'label': a.replace('_', ' ').title(), 'value': a} for a in APPLICATIONS]
VLT_OPTIONS = [
	{'label': 'Brighter (clear look)', 'value': 'brighter'},
	{'label': 'Neutral (slight tint okay)', 'value': 'neutral'},
	{'label': 'Darker (tinted / more privacy)', 'value': 'darker'},
]
BUDGET_OPTIONS = [
	{'label': 'Value', 'value': 'value'},
	{'label': 'Mid', 'value': 'mid'},
	{'label': 'Premium', 'value': 'premium'},
]
INSTALL_OPTIONS = [
	{'label': 'Interior', 'value': 'interior'},
	{'label': 'Exterior', 'value': 'exterior'},
]
SUN_EXPOSURE_OPTIONS = [
	{'label': 'Low', 'value': 'low'},
	{'label': 'Medium', 'value': 'medium'},
	{'label': 'High', 'value': 'high'},
]
ORIENTATION_OPTIONS = [
	{'label': 'North', 'value': 'north'},
	{'label': 'East', 'value': 'east'},
	{'label': 'South', 'value': 'south'},
	{'label': 'West', 'value': 'west'},
]

EMPTY_STATE_TEXT = (
	"We couldn't generate recommendations. Try adding goals, application, "
	"VLT preference, budget, install location, and sun exposure."
)


def _text(value) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


def _number(value) -> Optional[float]:
	if isinstance(value, bool):
		return None
	if isinstance(value, (int, float)):
		return float(value) if value == value else None
	text = _text(value)
	if text is None:
		return None
	try:
		return float(text.replace(',', ''))
	except ValueError:
		return None


def _list(value) -> List[str]:
	if value is None:
		return []
	items = value.split(',') if isinstance(value, str) else list(value)
	out: List[str] = []
	for item in items:
		text = _text(item)
		if text and text.lower() not in out:
			out.append(text.lower())
	return out


def normalize_intake(values: Mapping) -> Dict:
	"""Loose form values to a clean dict; property type defaults to residential."""
	return {
		'property_type': (_text(values.get('property_type')) or 'residential').lower(),
		'goals': _list(values.get('goals')),
		'application': _text(values.get('application')),
		'application_note': _text(values.get('application_note')),
		'vlt_preference': _text(values.get('vlt_preference')),
		'budget_level': _text(values.get('budget_level')),
		'install_location': _text(values.get('install_location')),
		'sun_exposure': _text(values.get('sun_exposure')),
		'orientation': _list(values.get('orientation')),
		'square_feet': _number(values.get('square_feet')),
		'city': _text(values.get('city')),
	}


def intake_to_context(intake: Mapping) -> Dict:
	"""The subset of intake values the context parser understands."""
	keys = (
		'property_type', 'goals', 'application', 'application_note', 'vlt_preference',
		'budget_level', 'install_location', 'sun_exposure', 'orientation', 'city',
	)
	return {k: intake.get(k) for k in keys}


def build_intake_panel(preset: Optional[Mapping] = None) -> Dict:
	i = normalize_intake(preset or {})
	return {
		'kind': 'panel',
		'id': INTAKE_PANEL_ID,
		'title': 'Window Film Advisor',
		'description': 'Answer a few quick questions to see tailored film recommendations and a ballpark installed cost.',
		'sections': [
			{
				'kind': 'group',
				'title': 'Property & Goals',
				'fields': [
					{'id': 'property_type', 'kind': 'radio', 'label': 'Property type', 'required': True,
						'value': i['property_type'], 'options': PROPERTY_TYPE_OPTIONS},
					{'id': 'goals', 'kind': 'checkbox-group', 'label': 'What are your goals?', 'help': 'Pick one or more',
						'required': True, 'value': i['goals'], 'options': GOAL_OPTIONS},
					{'id': 'application', 'kind': 'select', 'label': 'Where is this going?',
						'placeholder': 'Choose a room/area', 'value': i['application'], 'options': APPLICATION_OPTIONS},
					{'id': 'application_note', 'kind': 'text', 'label': 'Other room/area (describe)',
						'value': i['application_note'] or ''},
				],
			},
			{
				'kind': 'group',
				'title': 'Look, Budget & Install',
				'fields': [
					{'id': 'vlt_preference', 'kind': 'radio', 'label': 'Look preference',
						'value': i['vlt_preference'], 'options': VLT_OPTIONS},
					{'id': 'budget_level', 'kind': 'radio', 'label': 'Budget',
						'value': i['budget_level'], 'options': BUDGET_OPTIONS},
					{'id': 'install_location', 'kind': 'radio', 'label': 'Install location',
						'value': i['install_location'], 'options': INSTALL_OPTIONS},
				],
			},
			{
				'kind': 'group',
				'title': 'Sun & Size (optional)',
				'fields': [
					{'id': 'sun_exposure', 'kind': 'radio', 'label': 'Sun exposure',
						'value': i['sun_exposure'], 'options': SUN_EXPOSURE_OPTIONS},
					{'id': 'orientation', 'kind': 'checkbox-group', 'label': 'Window orientation',
						'value': i['orientation'], 'options': ORIENTATION_OPTIONS},
					{'id': 'square_feet', 'kind': 'number', 'label': 'Approx. total square feet',
						'min': 1, 'step': 1, 'value': i['square_feet']},
					{'id': 'city', 'kind': 'text', 'label': 'City (for scheduling later)', 'value': i['city'] or ''},
				],
			},
		],
		'actions': [
			{'id': 'submit_intake', 'kind': 'primary', 'label': 'See Recommendations'},
		],
	}


def format_currency(amount: Optional[float]) -> str:
	if amount is None:
		return '—'
	return f"${round(amount):,}"


def quote_range(estimate: Optional[EstimateResult]):
	"""(lowest subtotal, highest subtotal) across priced lines, or (None, None)."""
	if estimate is None:
		return None, None
	priced = [q for q in estimate.quotes if isinstance(q, Quote)]
	if not priced:
		return None, None
	return min(q.subtotal_low for q in priced), max(q.subtotal_high for q in priced)


def make_chips(intake: Mapping) -> List[str]:
	chips = list(intake.get('goals') or [])
	if intake.get('property_type'):
		chips.append(intake['property_type'])
	if intake.get('application'):
		chips.append(intake['application'])
	if intake.get('vlt_preference'):
		chips.append(f"{intake['vlt_preference']} look")
	if intake.get('budget_level'):
		chips.append(f"{intake['budget_level']} budget")
	if intake.get('install_location'):
		chips.append(f"{intake['install_location']} install")
	if intake.get('sun_exposure'):
		chips.append(f"{intake['sun_exposure']} sun")
	for direction in intake.get('orientation') or []:
		chips.append(f"{direction} facing")
	if intake.get('square_feet') is not None:
		chips.append(f"{intake['square_feet']:g} sq ft")
	if intake.get('city'):
		chips.append(intake['city'])
	return chips


def _item_row(item) -> Dict:
	film = item.scored.film
	bits = []
	if film.visible_light_transmission is not None:
		bits.append(f"VLT: {film.visible_light_transmission:g}%")
	bits.append(item.subtitle)
	if film.price_tier:
		bits.append(f"{film.price_tier} tier")
	return {
		'kind': 'item',
		'id': item.id,
		'title': item.title,
		'subtitle': ' • '.join(bits),
		'body': '; '.join(item.scored.rationale) or None,
	}


def build_results_panel(
	recommendation: Optional[RecommendationResult],
	estimate: Optional[EstimateResult],
	intake: Optional[Mapping] = None,
) -> Dict:
	intake = intake or {}
	items = recommendation.items if recommendation else []
	chips = make_chips(intake)

	if items:
		rec_group = {
			'kind': 'group',
			'title': 'Top Matches',
			'fields': [{'id': 'recommendations_list', 'kind': 'list', 'label': '', 'items': [_item_row(i) for i in items]}],
		}
	else:
		# Prompts or no-match guidance, whichever the recommendation carried
		message = recommendation.summary if recommendation else EMPTY_STATE_TEXT
		rec_group = {
			'kind': 'group',
			'title': 'No matches yet',
			'fields': [{'id': 'empty_state', 'kind': 'text', 'label': '', 'value': message}],
		}

	sections = [rec_group]
	low, high = quote_range(estimate)
	if estimate is not None and estimate.quotes:
		sections.append({
			'kind': 'group',
			'title': 'Estimated Installed Cost',
			'fields': [
				{'id': 'price_range', 'kind': 'text', 'label': 'Ballpark range',
					'value': f"{format_currency(low)} – {format_currency(high)}" if low is not None else '—'},
				{'id': 'quotes_json', 'kind': 'json', 'label': 'Quote details',
					'value': [q.to_dict() for q in estimate.quotes]},
			],
		})

	return {
		'kind': 'panel',
		'id': RESULTS_PANEL_ID,
		'title': 'Recommended Window Films',
		'description': '  •  '.join(chips) if chips else None,
		'sections': sections,
		'actions': [
			{'id': 'refine_answers', 'kind': 'secondary', 'label': 'Adjust answers'},
			{'id': 'start_over', 'kind': 'secondary', 'label': 'Start over'},
		],
	}


def build_text_summary(
	recommendation: Optional[RecommendationResult],
	estimate: Optional[EstimateResult],
	intake: Optional[Mapping] = None,
) -> str:
	intake = intake or {}
	lines = [f"Film picks for {intake.get('property_type') or 'property'}"]
	if intake.get('goals'):
		lines.append(f"Goals: {', '.join(intake['goals'])}")
	if intake.get('square_feet') is not None:
		lines.append(f"{intake['square_feet']:g} sq ft")

	items = recommendation.items if recommendation else []
	if items:
		lines.append('')
		for item in items:
			why = f" - {item.scored.rationale[0]}" if item.scored.rationale else ''
			lines.append(f"• {item.title}{why}")
	elif recommendation is not None:
		lines.append('')
		lines.append(recommendation.summary)

	low, high = quote_range(estimate)
	if low is not None:
		lines.append('')
		lines.append(f"Estimated installed cost: {format_currency(low)} – {format_currency(high)}")
	return '\n'.join(lines)
