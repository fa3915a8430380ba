"""
Advisor module.
Runs the recommendation pipeline (parse, score, broaden, expand) and the
pricing calculator over one immutable catalog snapshot.
"""

from collections.abc import Mapping  # raw contexts from HTTP/MCP/intake
from typing import Dict, Optional, Sequence, Union  # type annotations for clarity

# Import project modules for data structures and components
from .catalog_loader import Catalog  # immutable film collection
from .models import EstimateResult, RecommendationResult, RequestContext  # result containers
from .context_parser import ContextParser  # boundary validation
from .scoring import RelevanceScorer  # strict rule list
from .broadening import StarvationDetector  # sufficiency check + broadened pass
from .expander import ProductExpander  # eligibility, budget, diversity
from .pricing import MIN_AREA, PricingCalculator  # quotes
from . import panels  # intake/results panel builders

# Import loguru for console logging
from loguru import logger  # simple structured logger

MISSING_CONTEXT_POLICIES = ('prompt', 'defaults')

NO_MATCH_GUIDANCE = (
	"No films matched {goals} for a {property_type} property. "
	"Try adding goals, an application, a brightness preference, budget, install location, or sun exposure."
)


class FilmAdvisor:
	"""
	High-level API combining context parsing, scoring, broadening, expansion, and pricing.
	Every call is independent; the only shared state is the read-only catalog.
	"""
	def __init__(
		self,
		catalog: Catalog,  # normalized film catalog
		missing_context_policy: str = 'prompt',  # 'prompt' asks for refinements, 'defaults' proceeds
		parser: Optional[ContextParser] = None,  # custom parser (e.g. another fuzzy threshold)
	):
		if missing_context_policy not in MISSING_CONTEXT_POLICIES:
			raise ValueError(
				f"missing_context_policy must be one of {', '.join(MISSING_CONTEXT_POLICIES)}, got '{missing_context_policy}'"
			)
		self.catalog = catalog
		self.missing_context_policy = missing_context_policy
		self.parser = parser or ContextParser()
		self.scorer = RelevanceScorer()
		self.detector = StarvationDetector()
		self.expander = ProductExpander()
		self.pricing = PricingCalculator(catalog)
		logger.info(
			f"[Advisor] Ready with {len(catalog)} films from {len(catalog.brands())} brands "
			f"(missing context policy: {missing_context_policy})"
		)

	@classmethod
	def from_file(cls, path: str, missing_context_policy: str = 'prompt') -> 'FilmAdvisor':
		return cls(Catalog.from_file(path), missing_context_policy=missing_context_policy)

	def reload(self) -> None:
		"""Swap in a freshly loaded catalog from the same source."""
		catalog = self.catalog.reload()
		self.catalog = catalog
		self.pricing = PricingCalculator(catalog)
		logger.info(f"[Advisor] Reloaded catalog: {len(catalog)} films")

	def parse_context(self, context: Union[RequestContext, Mapping]) -> RequestContext:
		if isinstance(context, RequestContext):
			return context
		return self.parser.parse(context)

	def recommend(self, context: Union[RequestContext, Mapping]) -> RecommendationResult:
		"""
		Main entry point for recommendations.
		Raises ContextValidationError when property_type or goals are missing or invalid.
		"""
		ctx = self.parse_context(context)
		logger.info(f"[Advisor] Recommend for {ctx.property_type} | goals={list(ctx.goals)}")

		prompts = self.parser.missing_refinements(ctx)
		if prompts and self.missing_context_policy == 'prompt':
			logger.info(f"[Advisor] Asking for {len(prompts)} missing refinements")
			return RecommendationResult(
				items=[],
				criteria=ctx,
				summary=f"To dial this in, tell me: {', '.join(prompts)}.",
				prompts=prompts,
			)

		strict = self.scorer.score(self.catalog.films, ctx)
		pool = self.detector.resolve(strict, ctx)
		items = self.expander.expand(pool.candidates, ctx)

		if items:
			summary = f"Top picks for {ctx.property_type} based on {', '.join(ctx.goals)}."
		else:
			summary = NO_MATCH_GUIDANCE.format(goals=', '.join(ctx.goals), property_type=ctx.property_type)
		logger.info(f"[Advisor] Returning {len(items)} items (broadened={pool.broadened})")
		return RecommendationResult(items=items, criteria=ctx, summary=summary, broadened=pool.broadened)

	def estimate(
		self,
		area: float,
		property_type: str,
		identifiers: Optional[Sequence[str]] = None,
		budget_tier: Optional[str] = None,
	) -> EstimateResult:
		"""Price specific films, or the baseline tiers when no identifiers are given."""
		return self.pricing.estimate(area, property_type, identifiers=identifiers, budget_tier=budget_tier)

	def intake_panel(self, preset: Optional[Mapping] = None) -> Dict:
		return panels.build_intake_panel(preset)

	def submit_intake(self, values: Optional[Mapping]) -> Dict:
		"""
		Intake form submission: normalize values, recommend, and add a baseline
		estimate when a usable square footage was entered.
		"""
		intake = panels.normalize_intake(values or {})
		recommendation = self.recommend(panels.intake_to_context(intake))

		estimate = None
		square_feet = intake.get('square_feet')
		if square_feet is not None and square_feet >= MIN_AREA:
			estimate = self.estimate(square_feet, intake['property_type'], budget_tier=intake.get('budget_level'))
		elif square_feet is not None:
			logger.debug(f"[Advisor] Skipping estimate: {square_feet:g} sq ft is below {MIN_AREA:g}")

		return {
			'results_panel': panels.build_results_panel(recommendation, estimate, intake),
			'summary': panels.build_text_summary(recommendation, estimate, intake),
			'recommendation': recommendation.to_dict(),
			'estimate': estimate.to_dict() if estimate else None,
		}
