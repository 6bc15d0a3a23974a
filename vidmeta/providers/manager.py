"""Source manager for adapter registration and isolated execution."""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog

from vidmeta.core.logging import source_context
from vidmeta.core.metrics import MetricsCollector
from vidmeta.models.video import Source
from vidmeta.providers.base import SourceAdapter
from vidmeta.providers.exceptions import ProviderError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceOutcome:
    """Result of one adapter call; ``error`` is set when the call failed."""

    source: Source
    value: Any
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceManager:
    """Manages source adapter registration and selection."""

    def __init__(self) -> None:
        """Initialize the source manager."""
        self._adapters: Dict[Source, SourceAdapter] = {}
        self._enabled: Dict[Source, bool] = {}

    def register_adapter(self, adapter: SourceAdapter, enabled: bool = True) -> None:
        """
        Register a source adapter under its ``source``.

        Args:
            adapter: Adapter instance
            enabled: Whether the source may be queried
        """
        self._adapters[adapter.source] = adapter
        self._enabled[adapter.source] = enabled

        logger.info("Source adapter registered", source=adapter.name, enabled=enabled)

    def enable_source(self, source: Source) -> None:
        """
        Enable a registered source.

        Raises:
            ValueError: If no adapter is registered for the source
        """
        if source not in self._adapters:
            raise ValueError(f"Source '{source.value}' is not registered")

        self._enabled[source] = True
        logger.info("Source enabled", source=source.value)

    def disable_source(self, source: Source) -> None:
        """
        Disable a registered source.

        Raises:
            ValueError: If no adapter is registered for the source
        """
        if source not in self._adapters:
            raise ValueError(f"Source '{source.value}' is not registered")

        self._enabled[source] = False
        logger.info("Source disabled", source=source.value)

    def is_enabled(self, source: Source) -> bool:
        return self._enabled.get(source, False)

    def get_adapter(self, source: Source) -> Optional[SourceAdapter]:
        """Get the adapter for a source, or None if it is not registered."""
        return self._adapters.get(source)

    def available_sources(self) -> List[Source]:
        """Registered and enabled sources, local first."""
        return [s for s in (Source.LOCAL, Source.EXTERNAL) if self.is_enabled(s)]

    def list_sources(self) -> Dict[str, bool]:
        """
        List all registered sources and their status.

        Returns:
            Dictionary mapping source names to enabled status
        """
        return {source.value: self._enabled.get(source, False) for source in self._adapters}

    async def execute_with_error_isolation(
        self,
        source: Source,
        operation: Callable[..., Awaitable[Any]],
        *args: Any,
        default: Any = None,
        **kwargs: Any,
    ) -> SourceOutcome:
        """
        Execute an adapter operation with error isolation.

        A failure in one source never propagates to the caller; it is logged,
        counted, and reported as an outcome carrying ``default``.

        Args:
            source: Source the operation belongs to
            operation: Async callable to execute
            *args: Positional arguments for operation
            default: Value reported when the operation fails
            **kwargs: Keyword arguments for operation

        Returns:
            Outcome with the operation result or the default and an error message
        """
        operation_name = getattr(operation, "__name__", "operation")
        start = time.perf_counter()

        with source_context(source.value, operation_name):
            try:
                logger.debug("Executing source operation")

                result = await operation(*args, **kwargs)
                duration = time.perf_counter() - start

                MetricsCollector.record_source_fetch(
                    source.value, operation_name, "success", duration
                )
                logger.debug("Source operation completed", duration=round(duration, 4))
                return SourceOutcome(source=source, value=result, duration=duration)

            except ProviderError as e:
                duration = time.perf_counter() - start
                MetricsCollector.record_source_fetch(source.value, operation_name, "failed", duration)
                logger.warning(
                    "Source operation failed",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return SourceOutcome(source=source, value=default, error=str(e), duration=duration)

            except Exception as e:
                # Unexpected adapter bugs are isolated too, but logged with a traceback
                duration = time.perf_counter() - start
                MetricsCollector.record_source_fetch(source.value, operation_name, "failed", duration)
                logger.error(
                    "Source operation failed with unexpected error",
                    error=str(e),
                    exc_info=True,
                )
                return SourceOutcome(source=source, value=default, error=str(e), duration=duration)

    def clear_caches(self) -> None:
        """Clear every adapter's request cache."""
        for adapter in self._adapters.values():
            adapter.clear_cache()

    async def close(self) -> None:
        """Release adapter resources."""
        for adapter in self._adapters.values():
            await adapter.close()
