"""Exception types shared by the push queue and its HTTP surface."""

from __future__ import annotations


class PimSyncError(Exception):
    """Base class for errors raised by this service."""


class ValidationError(PimSyncError):
    """Rejected enqueue request; no job was created."""


class JobNotFoundError(PimSyncError):
    """Status lookup for an id the store does not know."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class AuthenticationError(PimSyncError):
    """Caller identity or ERP token is missing."""


class EnvironmentNotConfiguredError(PimSyncError):
    """A job's captured environment cannot be used to sign requests."""
