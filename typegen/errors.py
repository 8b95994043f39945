"""
Error types for the schema-delta type generator.

This module defines all exception types raised by the generator:
- TypeGenError: Base exception
- SnapshotError: The snapshot provider failed (fatal for the run)
- DuplicateExtensionError: Two descriptors share an id (strict policy only)
- GeneratorStateError: A generator instance was reused
- ProviderConfigError: A static provider document is malformed

Invariants:
    - All errors inherit from TypeGenError
    - Errors include context for debugging
    - Provider failures carry the id of the extension being resolved
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class TypeGenError(Exception):
    """Base exception for all generator errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "TYPEGEN_ERROR"
        self.details = details or {}


class SnapshotError(TypeGenError):
    """The snapshot provider failed.

    Raised when:
    - The provider raises while resolving the base snapshot
    - The provider raises while resolving one extension's snapshot
    - A static provider is asked for an extension it does not know

    Attributes:
        extension_id: Extension being resolved, None for the base snapshot
    """

    def __init__(
        self,
        message: str,
        extension_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="SNAPSHOT_ERROR",
            details={"extension_id": extension_id},
        )
        self.extension_id = extension_id


class DuplicateExtensionError(TypeGenError):
    """Two extension descriptors share an id.

    Only raised when the duplicate policy is ``error``; the default
    policy drops later occurrences.
    """

    def __init__(self, extension_id: str) -> None:
        super().__init__(
            f"Extension id '{extension_id}' is declared more than once",
            code="DUPLICATE_EXTENSION",
            details={"extension_id": extension_id},
        )
        self.extension_id = extension_id


class GeneratorStateError(TypeGenError):
    """A generator was started while running or after it finished."""

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="GENERATOR_STATE",
            details={"state": state},
        )
        self.state = state


class ProviderConfigError(TypeGenError):
    """A static snapshot provider document is malformed.

    Attributes:
        errors: Every problem found in the document
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
    ) -> None:
        errors = errors or []
        if errors:
            message = f"{message}: " + "; ".join(errors)
        super().__init__(
            message,
            code="PROVIDER_CONFIG",
            details={"errors": errors},
        )
        self.errors = errors
