"""
FastAPI server exposing the window film advisor.
Endpoints:
- GET /health: basic health check
- POST /recommend: ranked film shortlist (or prompts for missing context)
- POST /estimate: installed price quotes for films or baseline tiers
- GET /intake-panel: declarative intake form plan
- POST /submit-intake: recommendations + optional estimate as a results panel

Startup loads the catalog named by TINT_CATALOG_PATH (default data/films.json).
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import Any, Dict, List, Optional, Union  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import FastAPI, HTTPException, Query, Request  # FastAPI primitives
from fastapi.responses import JSONResponse  # custom error payloads
from pydantic import BaseModel  # request/response schema definitions

# Import our internal modules
from tint_advisor.advisor import FilmAdvisor  # recommendation + pricing facade
from tint_advisor.config import configure_logging, get_settings  # env-driven settings
from tint_advisor.context_parser import ContextValidationError  # bad/missing context
from tint_advisor.pricing import PricingInputError  # bad pricing input

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Window Film Advisor API", version="1.0.0")  # web app

# Globals that hold the advisor instance and measured startup time
ADVISOR: Optional[FilmAdvisor] = None  # will point to the initialized advisor
STARTUP_TIME_S: float = 0.0  # measures how long startup took


class RecommendRequest(BaseModel):
	property_type: Optional[str] = None  # residential / commercial (required; validated by the parser)
	goals: Union[List[str], str, None] = None  # one or more of heat, glare, uv, privacy, security, decorative
	application: Optional[str] = None  # room/space, free text is bucketed
	application_note: Optional[str] = None
	vlt_preference: Optional[str] = None
	budget_level: Optional[str] = None
	install_location: Optional[str] = None
	sun_exposure: Optional[str] = None
	orientation: Union[List[str], str, None] = None
	city: Optional[str] = None


class FilmItemOut(BaseModel):
	id: str
	title: str
	subtitle: str
	brand: str
	series: Optional[str] = None
	product_name: str
	category: str
	price_tier: Optional[str] = None
	visible_light_transmission: Optional[float] = None
	ir_rejection_pct: Optional[float] = None
	uv_rejection_pct: Optional[float] = None
	exterior_capable: Optional[bool] = None
	score: float
	rationale: List[str]


class RecommendResponse(BaseModel):
	items: List[FilmItemOut]
	criteria: Dict[str, Any]  # the validated context, echoed back
	summary: str
	prompts: List[str]
	broadened: bool
	elapsed_ms: float


class EstimateRequest(BaseModel):
	area: float  # total glass area in sq ft (minimum 10)
	property_type: str
	identifiers: Optional[List[str]] = None  # up to 3 film ids
	budget_tier: Optional[str] = None  # value / mid / premium (baseline path only)


class EstimateResponse(BaseModel):
	area: float
	property_type: str
	quotes: List[Dict[str, Any]]  # priced lines or {identifier, error} markers
	price_range_text: Optional[str] = None


class SubmitIntakeRequest(BaseModel):
	values: Dict[str, Any] = {}


# FastAPI startup hook to initialize the advisor once
@app.on_event("startup")
async def startup_event():
	"""Load the catalog and build the advisor."""
	global ADVISOR, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency
	settings = get_settings()
	configure_logging(settings.log_level)

	logger.info(f"[API] Startup: loading catalog from {settings.catalog_path}...")  # log intent
	ADVISOR = FilmAdvisor.from_file(settings.catalog_path, missing_context_policy=settings.missing_context_policy)

	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s with {len(ADVISOR.catalog)} films.")  # summary log


@app.exception_handler(ContextValidationError)
async def context_error_handler(request: Request, exc: ContextValidationError):
	logger.info(f"[API] {request.url.path} rejected context: {exc}")
	return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(PricingInputError)
async def pricing_error_handler(request: Request, exc: PricingInputError):
	logger.info(f"[API] {request.url.path} rejected pricing input: {exc}")
	return JSONResponse(status_code=422, content={"detail": str(exc), "errors": [str(exc)]})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
	logger.opt(exception=exc).error(f"[API] Unhandled error on {request.url.path}")
	return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _advisor() -> FilmAdvisor:
	if ADVISOR is None:  # advisor must be ready to serve
		logger.warning("[API] Request received but advisor not initialized")  # guard log
		raise HTTPException(status_code=503, detail="Advisor not initialized")
	return ADVISOR


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"advisor_ready": ADVISOR is not None,  # True if advisor initialized
		"films": len(ADVISOR.catalog) if ADVISOR else 0,  # catalog size
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


@app.post("/recommend", response_model=RecommendResponse)
async def recommend(body: RecommendRequest):
	"""Rank catalog films for the buyer's scenario."""
	advisor = _advisor()
	start = time.time()  # start timer
	logger.debug(f"[API] /recommend {body.model_dump(exclude_none=True)}")  # debug log of input

	result = advisor.recommend(body.model_dump(exclude_none=True))
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /recommend served {len(result.items)} items in {elapsed_ms:.2f} ms")  # summary

	payload = result.to_dict()
	return RecommendResponse(
		items=[FilmItemOut(**item) for item in payload['items']],
		criteria=payload['criteria'],
		summary=payload['summary'],
		prompts=payload['prompts'],
		broadened=payload['broadened'],
		elapsed_ms=round(elapsed_ms, 2),
	)


@app.post("/estimate", response_model=EstimateResponse, response_model_exclude_none=True)
async def estimate(body: EstimateRequest):
	"""Price up to three films, or the baseline tiers when no identifiers are given."""
	result = _advisor().estimate(
		body.area, body.property_type, identifiers=body.identifiers, budget_tier=body.budget_tier
	)
	logger.info(f"[API] /estimate served {len(result.quotes)} quote lines")
	return EstimateResponse(**result.to_dict())


@app.get("/intake-panel")
async def intake_panel(
	property_type: Optional[str] = Query(None, description="Preset property type"),
	goals: Optional[List[str]] = Query(None, description="Preset goals"),
):
	"""Return the intake form plan, optionally pre-filled."""
	preset: Dict[str, Any] = {}
	if property_type:
		preset['property_type'] = property_type
	if goals:
		preset['goals'] = goals
	return _advisor().intake_panel(preset)


@app.post("/submit-intake")
async def submit_intake(body: SubmitIntakeRequest):
	"""Run recommendation (and pricing when square feet is given) for submitted intake values."""
	outcome = _advisor().submit_intake(body.values)
	logger.info(f"[API] /submit-intake served {len(outcome['recommendation']['items'])} items")
	return outcome
