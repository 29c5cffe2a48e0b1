"""Boundary exceptions for Defew."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from defew.diagnostics import Diagnostic


class DefewError(Exception):
    """Base class for errors raised at the outer boundary."""


class DiagnosticError(DefewError):
    """A synthesis diagnostic surfaced as an exception.

    The resolvers and the synthesizer never raise; callers that need to stop
    (``require_plans``, ingest on unparsable input and the CLI)
    wrap the first diagnostic in this exception.
    """

    def __init__(self, diagnostic: Diagnostic):
        super().__init__(diagnostic.render())
        self.diagnostic = diagnostic


class DescriptionError(DefewError):
    """A description document could not be read or validated."""
