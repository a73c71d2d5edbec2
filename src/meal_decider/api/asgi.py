"""ASGI entrypoint for the meal decider API."""

from meal_decider.api.app import create_app
from meal_decider.containers import build_container

app = create_app(build_container())
