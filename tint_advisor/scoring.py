"""
Relevance scoring module.
Scores every catalog film against a request context with an ordered list of
named, additive rules. Each rule returns (delta, reasons).
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .catalog_loader import tier_family
from .models import FilmRecord, RequestContext, ScoredFilm

Contribution = Tuple[float, List[str]]

# Rule weights
GOAL_MATCH_BONUS = 0.5
PROPERTY_AFFINITY_BONUS = 0.2
IR_DIVISOR = 500.0  # 100% IR rejection -> +0.2
UV_DIVISOR = 500.0
HIGH_UV_THRESHOLD = 95.0
HIGH_UV_BONUS = 0.05
PRIVACY_VLT_CEILING = 20.0
PRIVACY_VLT_BONUS = 0.2
SECURITY_LINE_BONUS = 3.0
MIN_SECURITY_MIL = 7.0
SECURITY_MIL_BONUS = 2.0  # awarded at MIN_SECURITY_MIL, scaled linearly with thickness
MAX_SECURITY_MIL = 14.0
GRAFFITI_NOT_SECURITY_PENALTY = -1.5
UNREQUESTED_SECURITY_PENALTY = -0.25
UNREQUESTED_GRAFFITI_PENALTY = -0.75
EXTERIOR_BONUS = 0.2
INTERIOR_BONUS = 0.05
BUDGET_BONUS = 0.05

RE_MIL = re.compile(r'(\d+(?:\.\d+)?)\s*-?\s*mils?\b', re.I)
RE_ANTI_VANDAL = re.compile(r'anti[-\s]?vandal', re.I)
RE_SOLAR_LABEL = re.compile(r'solar|sun\s*control|reflect', re.I)
RE_SOLAR_LINE = re.compile(r'solar|sun\s*control|prestige|silver|quantum|dual\s*reflect', re.I)
RE_SECURITYISH = re.compile(r'security|safety', re.I)


def parse_mil(name: Optional[str]) -> Optional[float]:
	"""Material thickness from a product name, e.g. "Safety 7 mil Clear" -> 7.0."""
	if not name:
		return None
	m = RE_MIL.search(name)
	return float(m.group(1)) if m else None


def is_security_line(film: FilmRecord) -> bool:
	if film.category == 'security' or 'security' in film.use_cases:
		return True
	return any('security' in (text or '').lower() for text in (film.category_label, film.series, film.product_name))


def is_graffiti_line(film: FilmRecord) -> bool:
	if 'graffiti' in film.use_cases:
		return True
	if any('graffiti' in (text or '').lower() for text in (film.category_label, film.series, film.product_name)):
		return True
	return bool(RE_ANTI_VANDAL.search(film.series or '') or RE_ANTI_VANDAL.search(film.product_name))


def is_securityish(film: FilmRecord) -> bool:
	"""Looser check used when broadening: any security or safety labelling."""
	text = ' '.join([film.category_label, film.series or '', film.product_name])
	return film.category == 'security' or bool(RE_SECURITYISH.search(text))


def looks_solar(film: FilmRecord) -> bool:
	"""Solar-control film, by category or by typical line names."""
	if film.category == 'solar_control' or RE_SOLAR_LABEL.search(film.category_label):
		return True
	return bool(RE_SOLAR_LINE.search(f"{film.series or ''} {film.product_name}"))


@dataclass(frozen=True)
class ScoringRule:
	"""A named, pure scoring step."""
	name: str
	apply: Callable[[FilmRecord, RequestContext], Contribution]


def _goal_use_case_match(film: FilmRecord, ctx: RequestContext) -> Contribution:
	matched = [g for g in ctx.goals if g in film.use_cases]
	return GOAL_MATCH_BONUS * len(matched), [f"Good for {g}" for g in matched]


def _property_affinity(film: FilmRecord, ctx: RequestContext) -> Contribution:
	if ctx.property_type in film.applicable_property:
		return PROPERTY_AFFINITY_BONUS, [f"Geared for {ctx.property_type}"]
	return 0.0, []


def _heat_ir(film: FilmRecord, ctx: RequestContext) -> Contribution:
	ir = film.ir_rejection_pct
	if ctx.wants('heat') and ir:
		return ir / IR_DIVISOR, [f"Heat: {ir:.0f}% IR rejection"]
	return 0.0, []


def _uv_rejection(film: FilmRecord, ctx: RequestContext) -> Contribution:
	uv = film.uv_rejection_pct
	if not (ctx.wants('uv') and uv):
		return 0.0, []
	delta = uv / UV_DIVISOR
	reasons = [f"UV: {uv:.0f}% UV rejection"]
	if uv >= HIGH_UV_THRESHOLD:
		delta += HIGH_UV_BONUS
		reasons.append("High UV (95%+)")
	return delta, reasons


def _privacy_vlt(film: FilmRecord, ctx: RequestContext) -> Contribution:
	vlt = film.visible_light_transmission
	if ctx.wants('privacy') and vlt is not None and vlt < PRIVACY_VLT_CEILING:
		return PRIVACY_VLT_BONUS, [f"Privacy: low VLT ({vlt:.0f}%)"]
	return 0.0, []


def _security(film: FilmRecord, ctx: RequestContext) -> Contribution:
	security_line = is_security_line(film)
	graffiti_line = is_graffiti_line(film)
	if not ctx.wants('security'):
		# Keep niche products out of general requests
		delta, reasons = 0.0, []
		if security_line:
			delta += UNREQUESTED_SECURITY_PENALTY
			reasons.append("Security film not requested")
		if graffiti_line:
			delta += UNREQUESTED_GRAFFITI_PENALTY
			reasons.append("Graffiti film not requested")
		return delta, reasons

	delta, reasons = 0.0, []
	if security_line:
		delta += SECURITY_LINE_BONUS
		reasons.append("Security series")
	mil = parse_mil(film.product_name)
	if mil and mil >= MIN_SECURITY_MIL:
		delta += SECURITY_MIL_BONUS * min(mil, MAX_SECURITY_MIL) / MIN_SECURITY_MIL
		reasons.append(f"{mil:g} mil thickness")
	if graffiti_line:
		delta += GRAFFITI_NOT_SECURITY_PENALTY
		reasons.append("Graffiti is not security")
	return delta, reasons


def _brightness(film: FilmRecord, ctx: RequestContext) -> Contribution:
	vlt = film.visible_light_transmission
	pref = ctx.vlt_preference
	if not pref or vlt is None:
		return 0.0, []
	if pref == 'brighter':
		if vlt >= 65:
			return 0.22, ["Brighter: favors high VLT (65%+)"]
		if vlt >= 55:
			return 0.18, ["Brighter: favors VLT 55-64%"]
		if vlt <= 25:
			return -0.12, ["Brighter: avoids very dark (<=25% VLT)"]
	elif pref == 'neutral':
		if 35 <= vlt <= 55:
			return 0.1, ["Neutral: favors mid VLT (35-55%)"]
	elif pref == 'darker':
		if vlt <= 30:
			return 0.1, ["Darker: favors <=30% VLT"]
	return 0.0, []


def _install_location(film: FilmRecord, ctx: RequestContext) -> Contribution:
	if ctx.install_location == 'exterior' and film.exterior_capable:
		return EXTERIOR_BONUS, ["Exterior-capable"]
	if ctx.install_location == 'interior' and not is_security_line(film):
		return INTERIOR_BONUS, ["Interior install"]
	return 0.0, []


def _budget(film: FilmRecord, ctx: RequestContext) -> Contribution:
	if ctx.budget_level and tier_family(film.price_tier) == ctx.budget_level:
		return BUDGET_BONUS, [f"Fits {ctx.budget_level} budget"]
	return 0.0, []


# Strict pass, evaluated in this order
STRICT_RULES: Tuple[ScoringRule, ...] = (
	ScoringRule('goal_use_case_match', _goal_use_case_match),
	ScoringRule('property_affinity', _property_affinity),
	ScoringRule('heat_ir_rejection', _heat_ir),
	ScoringRule('uv_rejection', _uv_rejection),
	ScoringRule('privacy_low_vlt', _privacy_vlt),
	ScoringRule('security', _security),
	ScoringRule('brightness_preference', _brightness),
	ScoringRule('install_location', _install_location),
	ScoringRule('budget_tier', _budget),
)


def sort_by_score(scored: Iterable[ScoredFilm]) -> List[ScoredFilm]:
	"""Descending by score; the sort is stable, so equal scores keep catalog order."""
	return sorted(scored, key=lambda s: s.score, reverse=True)


class RelevanceScorer:
	"""
	Applies a rule list to films. The default list is the strict pass;
	the broadening pass is the same machinery with another list.
	"""

	def __init__(self, rules: Sequence[ScoringRule] = STRICT_RULES):
		self.rules = tuple(rules)

	def _apply_rules(self, film: FilmRecord, ctx: RequestContext, base: float, reasons: List[str]) -> ScoredFilm:
		score = base
		rationale = list(reasons)
		for rule in self.rules:
			delta, why = rule.apply(film, ctx)
			if delta or why:
				logger.trace(f"[Scorer] {film.id} | {rule.name} {delta:+.3f}")
			score += delta
			rationale.extend(why)
		return ScoredFilm(film=film, score=score, rationale=rationale)

	def score(self, films: Iterable[FilmRecord], ctx: RequestContext) -> List[ScoredFilm]:
		"""Fresh ScoredFilm for every film, in input order (unsorted)."""
		scored = [self._apply_rules(film, ctx, 0.0, []) for film in films]
		logger.debug(f"[Scorer] Scored {len(scored)} films with {len(self.rules)} rules")
		return scored

	def rescore(self, scored: Iterable[ScoredFilm], ctx: RequestContext) -> List[ScoredFilm]:
		"""Apply this rule list on top of existing scores, returning new copies."""
		return [self._apply_rules(s.film, ctx, s.score, s.rationale) for s in scored]
