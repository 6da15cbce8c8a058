"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .study_agenda import FeedClientProtocol, StudyAgendaService

__all__ = ["FeedClientProtocol", "StudyAgendaService"]
