"""
End-to-end smoke run against the bundled catalog.

This script:
1) Loads and normalizes data/films.json
2) Recommends films for a few typical scenarios
3) Prices the top picks and the baseline tiers
4) Submits an intake form and prints the text summary

Usage:
    python -m scripts.smoke
"""

import time  # measure step timings
from pathlib import Path  # filesystem-safe paths

from loguru import logger  # console logging

from tint_advisor.advisor import FilmAdvisor  # recommendation + pricing facade

SCENARIOS = [
	{'property_type': 'residential', 'goals': ['heat', 'glare'], 'vlt_preference': 'brighter', 'budget_level': 'premium',
		'install_location': 'interior', 'application': 'living room', 'sun_exposure': 'high'},
	{'property_type': 'commercial', 'goals': ['security'], 'install_location': 'interior', 'application': 'storefront',
		'vlt_preference': 'neutral', 'budget_level': 'mid', 'orientation': ['south']},
	{'property_type': 'residential', 'goals': ['privacy'], 'vlt_preference': 'darker', 'budget_level': 'value',
		'install_location': 'interior', 'application': 'bathroom', 'sun_exposure': 'low'},
]


def main():
	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("Window Film Advisor smoke run")
	logger.info("=" * 60)

	root = Path(__file__).resolve().parents[1]  # project root
	catalog_path = root / 'data' / 'films.json'  # bundled catalog

	# 1) Load catalog
	logger.info("[1/4] Loading catalog...")
	t0 = time.time()  # start timer
	advisor = FilmAdvisor.from_file(str(catalog_path), missing_context_policy='defaults')
	logger.info(f"[OK] {len(advisor.catalog)} films from {len(advisor.catalog.brands())} brands in {time.time() - t0:.2f}s")

	# 2) Recommend
	logger.info("\n[2/4] Recommending...")
	first_ids = []
	for scenario in SCENARIOS:
		result = advisor.recommend(scenario)
		logger.info(f"\n{result.summary} (broadened={result.broadened})")
		for i, item in enumerate(result.items, 1):
			logger.info(f"  {i}. [score {item.scored.score:.2f}] {item.title} | {item.subtitle}")
		if not first_ids:
			first_ids = [item.id for item in result.items[:3]]

	# 3) Price
	logger.info("\n[3/4] Pricing...")
	# An unknown id is priced as a "not found" line, not an error
	estimate = advisor.estimate(250, 'residential', identifiers=first_ids[:2] + ['NOT-A-FILM'])
	for q in estimate.quotes:
		logger.info(f"  {q.to_dict()}")
	baseline = advisor.estimate(200, 'commercial')
	for q in baseline.quotes:
		logger.info(f"  {q.identifier}: ${q.subtotal_low:,.2f} - ${q.subtotal_high:,.2f}")

	# 4) Intake round trip
	logger.info("\n[4/4] Submitting intake...")
	outcome = advisor.submit_intake({'property_type': 'residential', 'goals': ['uv'], 'application': 'sunroom',
		'vlt_preference': 'brighter', 'budget_level': 'mid', 'install_location': 'interior',
		'sun_exposure': 'high', 'square_feet': 180})
	logger.info("\n" + outcome['summary'])

	# Footer
	logger.info("\nAll done!")
	logger.info("=" * 60)


if __name__ == '__main__':
	main()  # invoke smoke run
