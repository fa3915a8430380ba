"""
Starvation detection and broadening.

The strict pass often finds too few confident matches for catalogs whose
use-case tagging is thin. When that happens the strict scores are re-scored
with a looser rule list instead of returning an empty or tiny shortlist.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from loguru import logger

from .models import FilmRecord, RequestContext, ScoredFilm
from .scoring import Contribution, RelevanceScorer, ScoringRule, is_securityish, looks_solar, sort_by_score

SUFFICIENT_TOP3_SCORE = 0.8  # best score needed when at least three results exist
SUFFICIENT_TOP2_SCORE = 1.0  # best score needed when only two results exist

SOLAR_BROADEN_BONUS = 0.35
PRIVACY_BROADEN_VLT = 45.0
PRIVACY_BROADEN_BONUS = 0.2
UV_BROADEN_THRESHOLD = 85.0
UV_BROADEN_BONUS = 0.1
SECURITY_BROADEN_BONUS = 1.0


def is_sufficient(ranked: Sequence[ScoredFilm]) -> bool:
	"""`ranked` must be sorted by score, descending."""
	if not ranked:
		return False
	best = ranked[0].score
	top = ranked[:3]
	return (len(top) >= 3 and best >= SUFFICIENT_TOP3_SCORE) or (len(top) >= 2 and best >= SUFFICIENT_TOP2_SCORE)


def _solar_for_heat_glare(film: FilmRecord, ctx: RequestContext) -> Contribution:
	if (ctx.wants('heat') or ctx.wants('glare')) and looks_solar(film):
		return SOLAR_BROADEN_BONUS, ["Broadened: solar-control likely to help heat/glare"]
	return 0.0, []


def _dark_for_privacy(film: FilmRecord, ctx: RequestContext) -> Contribution:
	vlt = film.visible_light_transmission
	if ctx.wants('privacy') and vlt is not None and vlt <= PRIVACY_BROADEN_VLT:
		return PRIVACY_BROADEN_BONUS, ["Broadened: darker VLT for privacy"]
	return 0.0, []


def _high_uv(film: FilmRecord, ctx: RequestContext) -> Contribution:
	uv = film.uv_rejection_pct
	if ctx.wants('uv') and uv is not None and uv >= UV_BROADEN_THRESHOLD:
		return UV_BROADEN_BONUS, ["Broadened: high UV rejection"]
	return 0.0, []


def _security_line(film: FilmRecord, ctx: RequestContext) -> Contribution:
	if ctx.wants('security') and is_securityish(film):
		return SECURITY_BROADEN_BONUS, ["Broadened: security-oriented line"]
	return 0.0, []


BROADENING_RULES: Tuple[ScoringRule, ...] = (
	ScoringRule('broaden_solar_heat_glare', _solar_for_heat_glare),
	ScoringRule('broaden_privacy_vlt', _dark_for_privacy),
	ScoringRule('broaden_high_uv', _high_uv),
	ScoringRule('broaden_security_line', _security_line),
)


def dedupe(scored: Sequence[ScoredFilm]) -> List[ScoredFilm]:
	"""First occurrence wins, keyed by id (or brand/series/name)."""
	seen = set()
	unique = []
	for s in scored:
		key = s.dedupe_key()
		if key in seen:
			continue
		seen.add(key)
		unique.append(s)
	return unique


@dataclass
class CandidatePool:
	candidates: List[ScoredFilm]  # sorted by score, descending
	broadened: bool


class StarvationDetector:
	"""Decides between the strict ranking and a broadened one."""

	def __init__(self):
		self.broadener = RelevanceScorer(BROADENING_RULES)

	def resolve(self, strict_scored: Sequence[ScoredFilm], ctx: RequestContext) -> CandidatePool:
		ranked = sort_by_score(strict_scored)
		if is_sufficient(ranked):
			logger.debug(f"[Broadening] Strict pass sufficient (best={ranked[0].score:.2f}, n={len(ranked)})")
			return CandidatePool(candidates=ranked, broadened=False)

		best = ranked[0].score if ranked else 0.0
		logger.info(f"[Broadening] Strict pass starved (best={best:.2f}, n={len(ranked)}); broadening")
		rescored = sort_by_score(self.broadener.rescore(strict_scored, ctx))
		# Uncapped; the expander trims to at most 5 items
		return CandidatePool(candidates=dedupe(rescored), broadened=True)
