"""Accessors for the per-process collaborators stored on app.state."""

from fastapi import Request

from sourcefinder.core.settings import Settings
from sourcefinder.discovery.orchestrator import SourceDiscovery


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_discovery(request: Request) -> SourceDiscovery:
    return request.app.state.discovery
