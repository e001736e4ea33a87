from __future__ import annotations

import pytest
from flask import Flask
from flask.testing import FlaskClient

from backend.app import create_app


@pytest.fixture()
def db_path(tmp_path) -> str:
    return str(tmp_path / "epf-test.db")


@pytest.fixture()
def app(db_path) -> Flask:
    return create_app({"TESTING": True, "EPF_DATABASE": db_path, "EPF_ANNUAL_RATE": 0.0825})


@pytest.fixture()
def client(app) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
