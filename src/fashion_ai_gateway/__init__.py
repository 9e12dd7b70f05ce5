"""Fashion AI gateway: provider abstraction, response normalization, and fallback core."""

from .cache import CacheRegistry, ResultCache
from .capabilities import CapabilityProbe
from .host import HostRuntime
from .orchestrator import FallbackOrchestrator
from .selector import ProviderFactory, ProviderSelector

__all__ = [
	"CapabilityProbe",
	"CacheRegistry",
	"ResultCache",
	"FallbackOrchestrator",
	"HostRuntime",
	"ProviderFactory",
	"ProviderSelector",
]
