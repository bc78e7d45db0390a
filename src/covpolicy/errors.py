"""Centralised exception hierarchy for covpolicy."""

from __future__ import annotations


class CovpolicyError(Exception):
    """Base class for all custom covpolicy exceptions."""


class ValueObjectError(CovpolicyError, ValueError):
    """A value object was constructed from an invalid raw value."""


class InvalidThresholdError(ValueObjectError):
    """Threshold value lies outside the 0..100 percentage range."""


class EmptyDomainNameError(ValueObjectError):
    """Domain name is empty or whitespace only."""


class EmptyFilePathError(ValueObjectError):
    """File path is empty."""


class ConfigError(CovpolicyError):
    """Configuration file is missing, malformed, or describes an invalid policy."""


class CoverageInputError(CovpolicyError):
    """Base class for errors related to coverage report inputs."""


class CoverageFileNotFoundError(CoverageInputError):
    """Coverage report could not be located on disk."""


class InvalidCoverageFileError(CoverageInputError):
    """Coverage report was found but does not contain a valid report."""


class HistoryStoreError(CovpolicyError):
    """Coverage history file could not be read or written."""


__all__ = [
    "ConfigError",
    "CoverageFileNotFoundError",
    "CoverageInputError",
    "CovpolicyError",
    "EmptyDomainNameError",
    "EmptyFilePathError",
    "HistoryStoreError",
    "InvalidCoverageFileError",
    "InvalidThresholdError",
    "ValueObjectError",
]
