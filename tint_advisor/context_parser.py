"""
Request context parsing module.
Validates the caller's scenario, folds goal synonyms, and buckets free-text
application values into the closed room/space vocabulary.
"""

import re  # whitespace/underscore normalization
from collections.abc import Mapping  # accepted raw input shape
from typing import Dict, List, Optional, Tuple  # type annotations

from rapidfuzz import fuzz, process  # fuzzy matching utilities

from loguru import logger  # console logging

from .catalog_loader import CatalogLoader  # for goal synonyms
from .models import (
	APPLICATIONS,
	GOALS,
	INSTALL_LOCATIONS,
	ORIENTATIONS,
	PRICE_TIERS,
	PROPERTY_TYPES,
	SUN_EXPOSURES,
	VLT_PREFERENCES,
	RequestContext,
)


class ContextValidationError(ValueError):
	"""Raised at the boundary when required context is missing or a value is outside its vocabulary."""

	def __init__(self, errors: List[str]):
		self.errors = list(errors)
		super().__init__('; '.join(self.errors))


class ContextParser:
	"""
	Turns a raw mapping (HTTP body, MCP tool arguments, intake form values) into a RequestContext.
	Unknown application text never fails: it falls back to the "other" bucket and is kept as a note.
	"""

	# Everyday room/space phrasings → application bucket
	APPLICATION_SYNONYMS: Dict[str, str] = {
		'living room': 'living_room',
		'family room': 'living_room',
		'great room': 'living_room',
		'sunroom': 'living_room',
		'den': 'living_room',
		'lounge': 'living_room',
		'bedroom': 'bedroom',
		'master bedroom': 'bedroom',
		'nursery': 'bedroom',
		'guest room': 'bedroom',
		'kitchen': 'kitchen',
		'breakfast nook': 'kitchen',
		'bathroom': 'bathroom',
		'bath': 'bathroom',
		'shower': 'bathroom',
		'office': 'office',
		'home office': 'office',
		'study': 'office',
		'conference room': 'conference_room',
		'meeting room': 'conference_room',
		'boardroom': 'conference_room',
		'storefront': 'storefront',
		'store front': 'storefront',
		'shop window': 'storefront',
		'retail': 'storefront',
		'lobby': 'lobby',
		'reception': 'lobby',
		'foyer': 'lobby',
		'server room': 'server_room',
		'data center': 'server_room',
		'warehouse': 'warehouse',
		'loading dock': 'warehouse',
	}

	GOAL_SYNONYMS = {k.lower(): v for k, v in CatalogLoader.GOAL_SYNONYMS.items()}  # mapping variants->goal

	# Prompts used when refinement fields are missing
	MISSING_PROMPTS = {
		'application': 'application (e.g. living_room, office)',
		'vlt_preference': 'brightness preference (brighter/neutral/darker)',
		'budget_level': 'budget (value/mid/premium)',
		'install_location': 'install location (interior/exterior)',
		'sun_exposure': 'sun exposure (low/medium/high) or orientation (north/east/south/west)',
	}

	def __init__(self, fuzzy_threshold: int = 85):
		self.fuzzy_threshold = fuzzy_threshold
		# Pre-build lists for fuzzy search to avoid recreating on each parse
		self._application_terms = sorted(set(self.APPLICATION_SYNONYMS) | {a.replace('_', ' ') for a in APPLICATIONS})
		self._goal_terms = sorted(set(self.GOAL_SYNONYMS) | set(GOALS))

	def parse(self, raw: Mapping) -> RequestContext:
		"""Main entry: validate and normalize a raw mapping into a RequestContext."""
		if not isinstance(raw, Mapping):
			raise ContextValidationError(["request context must be an object"])

		errors: List[str] = []  # every problem is reported at once

		property_type = self._enum(raw.get('property_type'), PROPERTY_TYPES, 'property_type', errors)
		if property_type is None and not any('property_type' in e for e in errors):
			errors.append(f"property_type is required (one of {', '.join(PROPERTY_TYPES)})")

		goals = self._goals(raw.get('goals'), errors)
		application, application_note = self.bucket_application(raw.get('application'))
		# An explicit note from the caller (e.g. the UI's free-text field) wins
		application_note = self._text(raw.get('application_note')) or application_note

		context_kwargs = {
			'vlt_preference': self._enum(raw.get('vlt_preference'), VLT_PREFERENCES, 'vlt_preference', errors),
			'budget_level': self._enum(raw.get('budget_level'), PRICE_TIERS, 'budget_level', errors),
			'install_location': self._enum(raw.get('install_location'), INSTALL_LOCATIONS, 'install_location', errors),
			'sun_exposure': self._enum(raw.get('sun_exposure'), SUN_EXPOSURES, 'sun_exposure', errors),
			'orientation': self._orientations(raw.get('orientation'), errors),
		}

		if errors:
			logger.debug(f"[Parser] Rejected context: {errors}")
			raise ContextValidationError(errors)

		context = RequestContext(
			property_type=property_type,
			goals=goals,
			application=application,
			application_note=application_note,
			city=self._text(raw.get('city')),
			**context_kwargs,
		)
		logger.debug(
			f"[Parser] Parsed context | property={context.property_type} goals={list(context.goals)} "
			f"application={context.application} vlt={context.vlt_preference} budget={context.budget_level} "
			f"install={context.install_location} sun={context.sun_exposure} orientation={list(context.orientation)}"
		)
		return context

	def bucket_application(self, value) -> Tuple[Optional[str], Optional[str]]:
		"""
		Map free text onto APPLICATIONS.
		Returns (bucket, note) where note keeps the raw text only when it fell back to "other".
		"""
		text = self._text(value)
		if not text:
			return None, None

		lowered = re.sub(r'\s+', ' ', text.lower())
		canonical = re.sub(r'[\s\-]+', '_', lowered)
		if canonical in APPLICATIONS:
			return canonical, None

		# Longest synonym first so "master bedroom" beats "bedroom"-less phrases
		for phrase in sorted(self.APPLICATION_SYNONYMS, key=len, reverse=True):
			if re.search(rf'\b{re.escape(phrase)}\b', lowered):
				logger.debug(f"[Parser] Application synonym match: '{text}' -> '{self.APPLICATION_SYNONYMS[phrase]}'")
				return self.APPLICATION_SYNONYMS[phrase], None

		# Fuzzy match to handle small typos ("livng room", "bedrom")
		match = process.extractOne(lowered, self._application_terms, scorer=fuzz.ratio)
		if match and match[1] >= self.fuzzy_threshold:
			term = match[0]
			bucket = self.APPLICATION_SYNONYMS.get(term, term.replace(' ', '_'))
			logger.debug(f"[Parser] Application fuzzy match: '{text}' -> '{bucket}' (score={match[1]:.0f})")
			return bucket, None

		logger.debug(f"[Parser] Application '{text}' bucketed as 'other'")
		return 'other', text

	def missing_refinements(self, context: RequestContext) -> List[str]:
		"""Prompts naming the refinement fields that would sharpen the recommendation."""
		missing = []
		if not context.application:
			missing.append(self.MISSING_PROMPTS['application'])
		if not context.vlt_preference:
			missing.append(self.MISSING_PROMPTS['vlt_preference'])
		if not context.budget_level:
			missing.append(self.MISSING_PROMPTS['budget_level'])
		if not context.install_location:
			missing.append(self.MISSING_PROMPTS['install_location'])
		if not context.sun_exposure and not context.orientation:
			missing.append(self.MISSING_PROMPTS['sun_exposure'])
		return missing

	def _goals(self, value, errors: List[str]) -> Tuple[str, ...]:
		goals: List[str] = []
		for item in self._as_list(value):
			term = item.strip().lower()
			goal = term if term in GOALS else self.GOAL_SYNONYMS.get(term)
			if goal is None:
				match = process.extractOne(term, self._goal_terms, scorer=fuzz.ratio)
				if match and match[1] >= self.fuzzy_threshold:
					goal = self.GOAL_SYNONYMS.get(match[0], match[0])
					logger.debug(f"[Parser] Goal fuzzy match: '{term}' -> '{goal}' (score={match[1]:.0f})")
			if goal is None:
				errors.append(f"unknown goal '{item}' (expected one of {', '.join(GOALS)})")
				continue
			if goal not in goals:
				goals.append(goal)
		if not goals and not any(e.startswith('unknown goal') for e in errors):
			errors.append(f"goals must include at least one of {', '.join(GOALS)}")
		return tuple(goals)

	def _orientations(self, value, errors: List[str]) -> Tuple[str, ...]:
		out: List[str] = []
		for item in self._as_list(value):
			term = item.strip().lower()
			if term not in ORIENTATIONS:
				errors.append(f"orientation '{item}' must be one of {', '.join(ORIENTATIONS)}")
				continue
			if term not in out:
				out.append(term)
		return tuple(out)

	def _enum(self, value, allowed: Tuple[str, ...], name: str, errors: List[str]) -> Optional[str]:
		text = self._text(value)
		if not text:
			return None
		term = text.lower()
		if term not in allowed:
			errors.append(f"{name} '{text}' must be one of {', '.join(allowed)}")
			return None
		return term

	def _as_list(self, value) -> List[str]:
		if value is None:
			return []
		if isinstance(value, str):
			return [part for part in value.split(',') if part.strip()]
		if isinstance(value, (list, tuple, set)):
			return [str(v) for v in value if v is not None and str(v).strip()]
		return [str(value)]

	def _text(self, value) -> Optional[str]:
		if value is None:
			return None
		text = str(value).strip()
		return text or None
