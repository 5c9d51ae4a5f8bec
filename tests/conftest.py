from datetime import date

import pytest
from PyQt6.QtCore import QCoreApplication

from sochart.project import Project
from sochart.registry import PartRegistry


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QCoreApplication for tests that create QObjects."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def registry() -> PartRegistry:
    """A private registry so ids start from 1 in every test."""
    return PartRegistry()


@pytest.fixture
def project(registry: PartRegistry) -> Project:
    project = Project(registry=registry, name="Plan")
    project.set_start(date(2024, 1, 1))
    return project
