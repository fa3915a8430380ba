"""
MCP server exposing the window film advisor as tools.
Tools:     recommend_films, estimate_price, get_intake_panel, submit_intake_panel
Resources: films://catalog

Transport comes from settings: stdio (default) or streamable HTTP at
http://{TINT_HOST}:{TINT_PORT}{TINT_MCP_PATH}.

Run with:  python mcp_server.py
"""

import json
from functools import lru_cache
from typing import Any, Dict, List, Optional

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from tint_advisor.advisor import FilmAdvisor
from tint_advisor.config import configure_logging, get_settings
from tint_advisor.context_parser import ContextValidationError
from tint_advisor.pricing import PricingInputError

settings = get_settings()

mcp = FastMCP(
	"window-film-advisor",
	host=settings.host,
	port=settings.port,
	streamable_http_path=settings.mcp_path,
)


@lru_cache
def get_advisor() -> FilmAdvisor:
	"""Catalog is loaded once, on first use."""
	return FilmAdvisor.from_file(settings.catalog_path, missing_context_policy=settings.missing_context_policy)


# Tool bodies take the advisor explicitly so they can run against any catalog

def recommend_films_impl(advisor: FilmAdvisor, arguments: Dict[str, Any]) -> Dict[str, Any]:
	try:
		result = advisor.recommend({k: v for k, v in arguments.items() if v is not None})
	except ContextValidationError as e:
		raise ToolError(f"Invalid request context: {e}") from e
	logger.info(f"[MCP] recommend_films -> {len(result.items)} items (broadened={result.broadened})")
	return result.to_dict()


def estimate_price_impl(
	advisor: FilmAdvisor,
	square_feet: float,
	property_type: str,
	identifiers: Optional[List[str]] = None,
	budget_level: Optional[str] = None,
) -> Dict[str, Any]:
	try:
		result = advisor.estimate(square_feet, property_type, identifiers=identifiers, budget_tier=budget_level)
	except PricingInputError as e:
		raise ToolError(f"Invalid pricing input: {e}") from e
	logger.info(f"[MCP] estimate_price -> {len(result.quotes)} quote lines")
	return result.to_dict()


def submit_intake_panel_impl(advisor: FilmAdvisor, values: Optional[Dict[str, Any]]) -> Dict[str, Any]:
	try:
		return advisor.submit_intake(values or {})
	except (ContextValidationError, PricingInputError) as e:
		raise ToolError(f"Could not process intake: {e}") from e


def catalog_impl(advisor: FilmAdvisor) -> str:
	return json.dumps([film.to_dict() for film in advisor.catalog], indent=2)


@mcp.tool()
def recommend_films(
	property_type: str,
	goals: List[str],
	application: Optional[str] = None,
	vlt_preference: Optional[str] = None,
	budget_level: Optional[str] = None,
	install_location: Optional[str] = None,
	sun_exposure: Optional[str] = None,
	orientation: Optional[List[str]] = None,
	city: Optional[str] = None,
) -> Dict[str, Any]:
	"""Recommend up to 5 window films for a property, diversified across brands.

	Args:
		property_type: "residential" or "commercial"
		goals: One or more of heat, glare, uv, privacy, security, decorative
		application: Room or space (e.g. "living_room", "office"; free text is accepted)
		vlt_preference: brighter, neutral or darker
		budget_level: value, mid or premium
		install_location: interior or exterior
		sun_exposure: low, medium or high
		orientation: Window directions (north, east, south, west)
		city: City, used only in messaging
	"""
	return recommend_films_impl(get_advisor(), {
		'property_type': property_type,
		'goals': goals,
		'application': application,
		'vlt_preference': vlt_preference,
		'budget_level': budget_level,
		'install_location': install_location,
		'sun_exposure': sun_exposure,
		'orientation': orientation,
		'city': city,
	})


@mcp.tool()
def estimate_price(
	square_feet: float,
	property_type: str,
	identifiers: Optional[List[str]] = None,
	budget_level: Optional[str] = None,
) -> Dict[str, Any]:
	"""Estimate installed price (±15%) for up to 3 films, or baseline value/mid/premium tiers.

	Args:
		square_feet: Total glass area, at least 10 sq ft
		property_type: "residential" or "commercial"
		identifiers: Film ids from a recommendation; omit for baseline tiers
		budget_level: Only return this baseline tier, with a formatted price range
	"""
	return estimate_price_impl(get_advisor(), square_feet, property_type, identifiers, budget_level)


@mcp.tool()
def get_intake_panel(preset: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
	"""Return the intake form plan (property, goals, look, budget, install, sun, size).

	Args:
		preset: Values to pre-fill, e.g. {"property_type": "commercial", "goals": ["glare"]}
	"""
	return get_advisor().intake_panel(preset)


@mcp.tool()
def submit_intake_panel(values: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
	"""Take intake panel values, recommend films, and estimate price when square_feet is given.

	Args:
		values: The submitted intake values
	"""
	return submit_intake_panel_impl(get_advisor(), values)


@mcp.resource("films://catalog")
def film_catalog() -> str:
	"""The normalized film catalog as JSON."""
	return catalog_impl(get_advisor())


def main():
	configure_logging(settings.log_level)
	logger.info(f"[MCP] Starting window-film-advisor over {settings.mcp_transport}")
	get_advisor()  # fail fast on a missing catalog
	mcp.run(transport=settings.mcp_transport)


if __name__ == '__main__':
	main()
