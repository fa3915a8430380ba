"""
Streamlit UI for the Window Film Advisor.
Calls the FastAPI server (TINT_API_URL, default http://localhost:8000) for
recommendations and pricing, or runs the advisor in-process when the API is
unreachable.

Run API (optional):   uvicorn api:app --reload
Run UI:                streamlit run streamlit_app.py
"""

# HTTP client to call the API when running in API mode
import requests  # make web requests to the FastAPI server
# Streamlit framework to build a simple interactive UI
import streamlit as st  # UI primitives
# Typing to make function signatures clearer
from typing import Optional  # indicates values can be None

# Local advisor imports for fallback/local mode (when API isn't used)
from tint_advisor.advisor import FilmAdvisor  # recommendation + pricing
from tint_advisor.config import get_settings  # catalog path and API URL
from tint_advisor.panels import (  # shared option lists
	APPLICATION_OPTIONS,
	BUDGET_OPTIONS,
	GOAL_OPTIONS,
	INSTALL_OPTIONS,
	ORIENTATION_OPTIONS,
	PROPERTY_TYPE_OPTIONS,
	SUN_EXPOSURE_OPTIONS,
	VLT_OPTIONS,
)

settings = get_settings()
DEFAULT_API_URL = settings.api_url or "http://localhost:8000"  # default API base URL

# Configure Streamlit page (title and layout width)
st.set_page_config(page_title="Window Film Advisor", layout="wide")  # wide layout

# Main page title
st.title("🪟 Window Film Advisor")  # friendly header
st.caption("Answer a few quick questions to see tailored film recommendations and a ballpark installed cost.")


# Cache the local advisor so the catalog is only loaded once per session
@st.cache_resource(show_spinner=True)
def init_local_advisor() -> Optional[FilmAdvisor]:
	"""Create a local FilmAdvisor from the configured catalog."""
	try:
		return FilmAdvisor.from_file(settings.catalog_path, missing_context_policy=settings.missing_context_policy)
	except Exception as e:
		# Show an error in the UI so users know local mode failed
		st.error(f"Failed to initialize local advisor: {e}")
		return None  # signal failure


def _pick(label: str, options, key: str, horizontal: bool = True) -> Optional[str]:
	"""Radio with a leading "No preference" entry that maps to None."""
	labels = ["No preference"] + [o['label'] for o in options]
	choice = st.radio(label, labels, key=key, horizontal=horizontal)
	return next((o['value'] for o in options if o['label'] == choice), None)


# Sidebar contains configuration controls
with st.sidebar:
	st.header("Settings")  # section label
	api_url = st.text_input("API URL", DEFAULT_API_URL)  # where the API lives
	# Toggle to force local mode; if API health probe fails we also fall back to local
	use_local = st.toggle("Use local advisor", value=False, help="If enabled or API is unreachable, the app runs fully locally.")

# If not forcing local, check quickly whether the API is reachable
api_available = False  # default assumption
if not use_local:
	try:
		h = requests.get(f"{api_url}/health", timeout=3)  # ping API health endpoint
		api_available = h.ok  # True if server responded 200 OK
	except requests.RequestException:
		api_available = False  # probe failed
		st.sidebar.info("API not reachable; will use local advisor.")  # inform user

# Initialize local advisor only when needed (user toggle or API not available)
local_advisor: Optional[FilmAdvisor] = None  # placeholder
if use_local or not api_available:
	with st.spinner("Loading film catalog..."):
		local_advisor = init_local_advisor()
		if local_advisor is not None:
			st.sidebar.success(f"Local advisor ready ({len(local_advisor.catalog)} films).")  # success note
		else:
			st.sidebar.error("Local advisor failed to initialize.")  # error note

# Intake form, grouped like the intake panel
with st.form("intake"):
	c1, c2, c3 = st.columns(3)
	with c1:
		st.subheader("Property & Goals")
		property_label = st.radio("Property type", [o['label'] for o in PROPERTY_TYPE_OPTIONS], horizontal=True)
		goal_labels = st.multiselect("What are your goals?", [o['label'] for o in GOAL_OPTIONS], default=["Heat"])
		application_label = st.selectbox("Where is this going?", ["Choose a room/area"] + [o['label'] for o in APPLICATION_OPTIONS])
		application_note = st.text_input("Other room/area (describe)", placeholder="e.g. sunroom over the garage")
	with c2:
		st.subheader("Look, Budget & Install")
		vlt_preference = _pick("Look preference", VLT_OPTIONS, "vlt", horizontal=False)
		budget_level = _pick("Budget", BUDGET_OPTIONS, "budget")
		install_location = _pick("Install location", INSTALL_OPTIONS, "install")
	with c3:
		st.subheader("Sun & Size (optional)")
		sun_exposure = _pick("Sun exposure", SUN_EXPOSURE_OPTIONS, "sun")
		orientation_labels = st.multiselect("Window orientation", [o['label'] for o in ORIENTATION_OPTIONS])
		square_feet = st.number_input("Approx. total square feet", min_value=0, step=1, value=0)
		city = st.text_input("City (for scheduling later)")
	submitted = st.form_submit_button("See Recommendations", type="primary")

if submitted:
	application = next((o['value'] for o in APPLICATION_OPTIONS if o['label'] == application_label), None)
	if application_note.strip() and application in (None, 'other'):
		application = 'other'  # free text goes with the "other" bucket
	values = {
		"property_type": next(o['value'] for o in PROPERTY_TYPE_OPTIONS if o['label'] == property_label),
		"goals": [o['value'] for o in GOAL_OPTIONS if o['label'] in goal_labels],
		"application": application,
		"application_note": application_note.strip() or None,
		"vlt_preference": vlt_preference,
		"budget_level": budget_level,
		"install_location": install_location,
		"sun_exposure": sun_exposure,
		"orientation": [o['value'] for o in ORIENTATION_OPTIONS if o['label'] in orientation_labels],
		"square_feet": square_feet or None,
		"city": city.strip() or None,
	}

	with st.spinner("Finding films..."):
		try:
			if local_advisor is not None:
				# Local mode: run the full pipeline inside this process
				outcome = local_advisor.submit_intake(values)
			else:
				# API mode: call the server and let it do the work
				resp = requests.post(f"{api_url}/submit-intake", json={"values": values}, timeout=30)
				if resp.status_code == 422:
					st.warning(resp.json().get('detail', 'Please check your answers.'))
					st.stop()
				resp.raise_for_status()  # raise error if server responded with an error code
				outcome = resp.json()  # parse JSON returned by API

			recommendation = outcome['recommendation']
			panel = outcome['results_panel']
			if panel.get('description'):
				st.caption(panel['description'])
			st.divider()  # visual separator

			items = recommendation.get('items', [])
			if items:
				st.success(recommendation['summary'])
				if recommendation.get('broadened'):
					st.info("Few exact matches, so the search was broadened to closely related films.")
				# Render each film as a card
				for i, item in enumerate(items, start=1):
					st.subheader(f"{i}. {item['title']}")
					st.caption(f"{item['subtitle']} | Score: {item['score']:.2f}")
					specs = []
					if item.get('visible_light_transmission') is not None:
						specs.append(f"VLT {item['visible_light_transmission']:g}%")
					if item.get('ir_rejection_pct') is not None:
						specs.append(f"IR {item['ir_rejection_pct']:g}%")
					if item.get('uv_rejection_pct') is not None:
						specs.append(f"UV {item['uv_rejection_pct']:g}%")
					if item.get('price_tier'):
						specs.append(f"{item['price_tier']} tier")
					if specs:
						st.write(" • ".join(specs))
					for reason in item.get('rationale', []):
						st.write(f"- {reason}")
					st.divider()  # separator
			else:
				st.warning(recommendation['summary'])

			estimate = outcome.get('estimate')
			if estimate:
				st.subheader("Estimated Installed Cost")
				if estimate.get('price_range_text'):
					st.metric("Ballpark range", estimate['price_range_text'])
				for q in estimate['quotes']:
					if 'error' in q:
						st.write(f"{q['identifier']}: {q['error']}")
						continue
					st.write(
						f"**{q['identifier']}**: ${q['unit_price_low']:.2f}–${q['unit_price_high']:.2f}/sq ft, "
						f"${q['subtotal_low']:,.0f}–${q['subtotal_high']:,.0f}"
					)
				st.caption(estimate['quotes'][0]['notes'] if estimate['quotes'] else "")

		except requests.RequestException as e:  # network/API errors
			st.error(f"API request failed: {e}")  # show human-friendly message
		except ValueError as e:  # validation errors in local mode
			st.warning(str(e))

# Show a footer indicator of current mode
st.sidebar.markdown("---")  # separator
if local_advisor is not None:
	st.sidebar.caption("Mode: Local advisor")  # mode label
else:
	st.sidebar.caption("Mode: API client (ensure uvicorn api:app --reload is running)")  # mode label
