"""
Type generator orchestration.

A generation run:
1. asks the provider for the base snapshot (no extension active)
2. asks the provider, once per extension id in declaration order, for the
   snapshot with exactly that extension active
3. aggregates the deltas and emits the TypeScript declarations

Invariants:
    - Never more than one extension is active in a provider call
    - Provider calls happen strictly in declaration order, also when the
      provider is asynchronous (each call is awaited before the next)
    - A provider failure aborts the run; no partial output is returned
    - Every provider result is frozen into a read-only snapshot; a result
      that cannot be read as one fails the run like a provider error
    - A generator runs once: IDLE -> RUNNING -> SUCCEEDED | FAILED
    - Identical inputs give byte-identical output

How to change safely:
    - Do not parallelise provider calls; order drives the output
    - Keep retries out of this module; a failing provider is fatal

Example:
    >>> provider = StaticSnapshotProvider.from_yaml(document)
    >>> text = TypeGenerator(provider, provider.descriptors()).generate()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from .codegen.typescript import generate_typescript
from .config import GeneratorSettings
from .errors import GeneratorStateError, SnapshotError
from .provider import SnapshotProvider
from .schema.aggregate import AggregateModel, aggregate, apply_duplicate_policy
from .schema.types import EntitySnapshot, ExtensionDescriptor, freeze_snapshot

logger = logging.getLogger(__name__)


class GeneratorState(Enum):
    """Lifecycle of a generation run."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TypeGenerator:
    """Runs one generation over a provider and a list of extensions.

    Attributes:
        provider: Snapshot provider
        extensions: Extension descriptors in declaration order
        settings: Generator settings
        output: Generated text (after a successful run)
        model: Aggregated model the text was emitted from (after a
            successful run), including the dropped duplicate ids
        error: Exception that failed the run (after a failed run)
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        extensions: Sequence[ExtensionDescriptor],
        settings: GeneratorSettings | None = None,
    ) -> None:
        self.provider = provider
        self.extensions = list(extensions)
        self.settings = settings or GeneratorSettings()
        self.output: Optional[str] = None
        self.model: Optional[AggregateModel] = None
        self.error: Optional[BaseException] = None
        self._state = GeneratorState.IDLE
        self._skipped: List[str] = []

    @property
    def state(self) -> GeneratorState:
        """Current lifecycle state."""
        return self._state

    def generate(self) -> str:
        """Run the generation with a synchronous provider.

        Returns:
            Generated TypeScript text

        Raises:
            SnapshotError: If the provider fails or returns an awaitable
            DuplicateExtensionError: If an id repeats under the error policy
            GeneratorStateError: If this generator already ran
        """
        self._begin()
        try:
            descriptors = self._unique_extensions()
            base = self._resolve(None)
            snapshots = [(d.id, self._resolve(d)) for d in descriptors]
            return self._finish(base, snapshots)
        except Exception as e:
            self._fail(e)
            raise

    async def generate_async(self) -> str:
        """Run the generation, awaiting each provider call in order.

        The provider may return snapshots directly or awaitables.
        """
        self._begin()
        try:
            descriptors = self._unique_extensions()
            base = await self._resolve_async(None)
            snapshots: List[Tuple[str, EntitySnapshot]] = []
            for descriptor in descriptors:
                snapshots.append((descriptor.id, await self._resolve_async(descriptor)))
            return self._finish(base, snapshots)
        except Exception as e:
            self._fail(e)
            raise

    def _begin(self) -> None:
        if self._state is not GeneratorState.IDLE:
            raise GeneratorStateError(
                f"Generator already {self._state.value}; create a new one to regenerate",
                state=self._state.value,
            )
        self._state = GeneratorState.RUNNING
        logger.info(f"Generating types for {len(self.extensions)} extension(s)")

    def _finish(self, base: EntitySnapshot, snapshots: List[Tuple[str, EntitySnapshot]]) -> str:
        model = aggregate(base, snapshots, self.settings.duplicate_policy)
        # Duplicates never reach aggregate; they were dropped before resolving
        model.skipped_ids.extend(self._skipped)
        self.model = model
        self.output = generate_typescript(model, self.settings)
        self._state = GeneratorState.SUCCEEDED
        logger.info(
            f"Generated types for {len(model.entity_names)} model(s) "
            f"and {len(model.extension_ids)} extension(s)"
        )
        return self.output

    def _fail(self, error: BaseException) -> None:
        self.error = error
        self._state = GeneratorState.FAILED
        logger.error(f"Type generation failed: {error}", exc_info=True)

    def _unique_extensions(self) -> List[ExtensionDescriptor]:
        unique: List[ExtensionDescriptor] = []
        seen: set[str] = set()
        for descriptor in self.extensions:
            if descriptor.id in seen:
                apply_duplicate_policy(descriptor.id, self.settings.duplicate_policy)
                self._skipped.append(descriptor.id)
                continue
            seen.add(descriptor.id)
            unique.append(descriptor)
        return unique

    def _call(self, descriptor: Optional[ExtensionDescriptor]) -> Any:
        active = [descriptor] if descriptor is not None else []
        ext_id = descriptor.id if descriptor is not None else None
        logger.debug(f"Requesting snapshot for {ext_id or 'base'}")
        try:
            return self.provider(active)
        except SnapshotError:
            raise
        except Exception as e:
            raise _snapshot_error(ext_id, e) from e

    def _resolve(self, descriptor: Optional[ExtensionDescriptor]) -> EntitySnapshot:
        result = self._call(descriptor)
        if inspect.isawaitable(result):
            if asyncio.iscoroutine(result):
                result.close()
            raise SnapshotError(
                "Provider returned an awaitable; use generate_async()",
                extension_id=descriptor.id if descriptor is not None else None,
            )
        return _normalize(result, descriptor)

    async def _resolve_async(self, descriptor: Optional[ExtensionDescriptor]) -> EntitySnapshot:
        result = self._call(descriptor)
        if inspect.isawaitable(result):
            try:
                result = await result
            except SnapshotError:
                raise
            except Exception as e:
                raise _snapshot_error(descriptor.id if descriptor else None, e) from e
        return _normalize(result, descriptor)


def _normalize(result: Any, descriptor: Optional[ExtensionDescriptor]) -> EntitySnapshot:
    """Freeze a provider result, accepting wrapped entities and plain-dict fields."""
    ext_id = descriptor.id if descriptor is not None else None
    try:
        return freeze_snapshot(result)
    except (TypeError, AttributeError) as e:
        target = f"extension '{ext_id}'" if ext_id else "base schema"
        raise SnapshotError(f"Invalid snapshot for {target}: {e}", extension_id=ext_id) from e


def _snapshot_error(ext_id: Optional[str], cause: Exception) -> SnapshotError:
    target = f"extension '{ext_id}'" if ext_id else "base schema"
    return SnapshotError(f"Failed to resolve snapshot for {target}: {cause}", extension_id=ext_id)


def generate_types(
    provider: SnapshotProvider,
    extensions: Sequence[ExtensionDescriptor],
    settings: GeneratorSettings | None = None,
) -> str:
    """Run a fresh TypeGenerator once and return its output."""
    return TypeGenerator(provider, extensions, settings).generate()
