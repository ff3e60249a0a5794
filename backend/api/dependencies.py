"""Shared dependencies for API routes."""

from services.pipeline.model_registry import get_population, get_service


def get_scoring_service():
    return get_service()


def get_population_source():
    return get_population()
