"""
Product expansion and diversification.
Filters scored candidates down to what fits the request, prefers the requested
budget tier, ranks with deterministic tie-breaks, and spreads the shortlist
across brands.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .catalog_loader import tier_family
from .models import TIER_ORDINAL, FilmRecord, RankedItem, RequestContext, ScoredFilm
from .scoring import is_securityish, looks_solar

TARGET_COUNT = 5

# Transmission the buyer is aiming for, per brightness preference
VLT_TARGETS = {'brighter': 70.0, 'neutral': 45.0, 'darker': 20.0}
UNKNOWN_VLT_DISTANCE = 100.0

PRIVACY_VLT_CEILING = 45.0
UV_RELEVANCE_THRESHOLD = 85.0
UNTIERED_DISTANCE = len(TIER_ORDINAL)  # farther than any real tier gap


def is_eligible(film: FilmRecord, ctx: RequestContext) -> bool:
	"""Drop films whose declared restrictions exclude this request."""
	if film.applicable_property and ctx.property_type not in film.applicable_property:
		return False
	if ctx.install_location and film.install_locations and ctx.install_location not in film.install_locations:
		return False
	if ctx.install_location == 'exterior' and film.exterior_capable is False:
		return False
	return True


def satisfied_goals(film: FilmRecord, ctx: RequestContext) -> List[str]:
	"""Goals this film plausibly serves, by tag or by category heuristics."""
	satisfied = []
	for goal in ctx.goals:
		if goal in film.use_cases:
			satisfied.append(goal)
		elif goal in ('heat', 'glare') and looks_solar(film):
			satisfied.append(goal)
		elif goal == 'uv' and (film.uv_rejection_pct or 0) >= UV_RELEVANCE_THRESHOLD:
			satisfied.append(goal)
		elif goal == 'privacy' and (
			film.category == 'privacy'
			or (film.visible_light_transmission is not None and film.visible_light_transmission <= PRIVACY_VLT_CEILING)
		):
			satisfied.append(goal)
		elif goal == 'security' and is_securityish(film):
			satisfied.append(goal)
		elif goal == 'decorative' and film.category == 'decorative':
			satisfied.append(goal)
	return satisfied


def vlt_distance(film: FilmRecord, ctx: RequestContext) -> float:
	target = VLT_TARGETS.get(ctx.vlt_preference or '')
	if target is None:
		return 0.0
	if film.visible_light_transmission is None:
		return UNKNOWN_VLT_DISTANCE
	return abs(film.visible_light_transmission - target)


def rank_key(item: ScoredFilm, ctx: RequestContext) -> Tuple:
	film = item.film
	return (
		-round(item.score, 6),
		-len(satisfied_goals(film, ctx)),
		vlt_distance(film, ctx),
		film.brand.lower(),
		film.product_name.lower(),
		film.id,
	)


def tier_distance(film: FilmRecord, budget: str) -> int:
	tier = tier_family(film.price_tier)
	if tier is None:
		return UNTIERED_DISTANCE
	return abs(TIER_ORDINAL[tier] - TIER_ORDINAL[budget])


def prefer_budget(candidates: Sequence[ScoredFilm], ctx: RequestContext, target: int = TARGET_COUNT) -> List[ScoredFilm]:
	"""
	Exact tier first; add the nearest tiers (then untiered films) only while
	fewer than `target` distinct brands are on the table.
	"""
	if not ctx.budget_level:
		return list(candidates)

	bands: Dict[int, List[ScoredFilm]] = {}
	for c in candidates:
		bands.setdefault(tier_distance(c.film, ctx.budget_level), []).append(c)

	allowed = set()
	brands = set()
	for distance in sorted(bands):
		if len(brands) >= target:
			break
		allowed.add(distance)
		brands.update(c.brand for c in bands[distance])
	logger.debug(f"[Expander] Budget '{ctx.budget_level}' keeps tier distances {sorted(allowed)}")
	return [c for c in candidates if tier_distance(c.film, ctx.budget_level) in allowed]


def diversify(ranked: Sequence[ScoredFilm], target: int = TARGET_COUNT) -> List[ScoredFilm]:
	"""One film per brand first; repeat brands only to fill the shortlist."""
	selected: List[ScoredFilm] = []
	seen_keys = set()
	seen_brands = set()
	for item in ranked:
		if len(selected) >= target:
			break
		key = item.dedupe_key()
		brand = item.brand.lower()
		if key in seen_keys or brand in seen_brands:
			continue
		selected.append(item)
		seen_keys.add(key)
		seen_brands.add(brand)

	for item in ranked:
		if len(selected) >= target:
			break
		key = item.dedupe_key()
		if key in seen_keys:
			continue
		selected.append(item)
		seen_keys.add(key)
	return selected


def _collapse_repeats(tokens: List[str]) -> List[str]:
	"""Drop a run of tokens that immediately repeats the run before it ("Prestige Prestige")."""
	out: List[str] = []
	for token in tokens:
		out.append(token)
		for k in range(len(out) // 2, 0, -1):
			if [t.lower() for t in out[-k:]] == [t.lower() for t in out[-2 * k:-k]]:
				del out[-k:]
				break
	return out


def make_title(film: FilmRecord) -> str:
	text = ' '.join(part for part in (film.brand, film.series, film.product_name) if part)
	return ' '.join(_collapse_repeats(text.split()))


def pretty_category(film: FilmRecord) -> str:
	if film.category == 'other' and film.category_label:
		return film.category_label.replace('_', ' ').title()
	return film.category.replace('_', ' ').title()


def capability_label(exterior_capable: Optional[bool]) -> str:
	if exterior_capable is True:
		return 'Exterior-capable'
	if exterior_capable is False:
		return 'Interior-only'
	return 'Interior'


def make_subtitle(film: FilmRecord) -> str:
	return f"{pretty_category(film)} • {capability_label(film.exterior_capable)}"


class ProductExpander:
	"""Selects at most `target` concrete films for presentation."""

	def __init__(self, target: int = TARGET_COUNT):
		self.target = target

	def expand(self, candidates: Sequence[ScoredFilm], ctx: RequestContext) -> List[RankedItem]:
		eligible = [c for c in candidates if is_eligible(c.film, ctx)]
		relevant = [c for c in eligible if satisfied_goals(c.film, ctx)]
		preferred = prefer_budget(relevant, ctx, self.target)
		ranked = sorted(preferred, key=lambda c: rank_key(c, ctx))
		chosen = sorted(diversify(ranked, self.target), key=lambda c: rank_key(c, ctx))
		logger.debug(
			f"[Expander] candidates={len(candidates)} eligible={len(eligible)} relevant={len(relevant)} "
			f"budget={len(preferred)} chosen={len(chosen)}"
		)
		return [RankedItem(scored=c, title=make_title(c.film), subtitle=make_subtitle(c.film)) for c in chosen]
