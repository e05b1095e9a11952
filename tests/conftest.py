"""Shared pytest fixtures for drawio-layers tests."""

import pytest

from drawio_layers.config import Settings

from .helpers import OVERLAY_XML, PLAIN_XML, wrap


@pytest.fixture(autouse=True)
def clear_settings():
    Settings.clear()
    yield
    Settings.clear()


@pytest.fixture
def plain_file(tmp_path):
    path = tmp_path / 'plain.xml'
    path.write_text(PLAIN_XML, encoding='utf-8')
    return path


@pytest.fixture
def wrapped_file(tmp_path):
    path = tmp_path / 'wrapped.drawio'
    path.write_text(wrap(PLAIN_XML), encoding='utf-8')
    return path


@pytest.fixture
def overlay_file(tmp_path):
    path = tmp_path / 'overlay.drawio'
    path.write_text(wrap(OVERLAY_XML, name='Overlay'), encoding='utf-8')
    return path
