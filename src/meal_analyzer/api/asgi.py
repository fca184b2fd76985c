"""ASGI entrypoint for the meal analyzer API."""

from meal_analyzer.api.app import create_app
from meal_analyzer.containers import build_container

app = create_app(build_container())
