"""Window film recommendation and pricing."""

from .advisor import FilmAdvisor
from .catalog_loader import Catalog
from .context_parser import ContextValidationError
from .pricing import PricingInputError

__all__ = ['FilmAdvisor', 'Catalog', 'ContextValidationError', 'PricingInputError']
