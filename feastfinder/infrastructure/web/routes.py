"""API route handlers.

Handlers validate their input, call one application service held on
`request.app.state.deps` and return `data` or `(data, metadata)`; the
api_endpoint decorator renders the envelope.
"""

import logging
from typing import Any, Dict

from starlette.requests import Request
from starlette.routing import Route

from feastfinder import __version__
from feastfinder.core.services.external_data_service import parse_params
from feastfinder.domain.errors import ValidationError
from feastfinder.infrastructure.web.responses import api_endpoint, now_ms

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body. Must be valid JSON"


async def read_json_object(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError(INVALID_BODY_MESSAGE) from e
    if not isinstance(body, dict):
        raise ValidationError(INVALID_BODY_MESSAGE)
    return body


@api_endpoint
async def health(request: Request):
    return {"status": "healthy", "timestamp": now_ms(), "version": __version__}


@api_endpoint
async def countries(request: Request):
    return await request.app.state.deps.countries_service.get_countries()


@api_endpoint
async def dishes(request: Request):
    body = await read_json_object(request)
    result = await request.app.state.deps.cultural_data_service.get_dishes(body.get("country"), body.get("mode"))
    return result.to_dict()


@api_endpoint
async def cultural_data(request: Request):
    body = await read_json_object(request)
    result = await request.app.state.deps.cultural_data_service.get_cultural_data(
        body.get("country"), body.get("mode")
    )
    return result.to_dict()


@api_endpoint
async def recipe(request: Request):
    body = await read_json_object(request)
    result = await request.app.state.deps.recipe_service.get_recipe(
        body.get("dishName"), body.get("country"), body.get("mode")
    )
    return result.to_dict()


@api_endpoint
async def external_data(request: Request):
    service = request.app.state.deps.external_data_service
    source_id = service.require_source(request.query_params.get("sourceId"))
    endpoint = request.query_params.get("endpoint")

    if request.method == "POST":
        try:
            body = await request.json()
        except ValueError as e:
            raise ValidationError(INVALID_BODY_MESSAGE) from e
        outcome = await service.fetch(source_id, endpoint, method="POST", body=body)
    else:
        params = parse_params(request.query_params.get("params"))
        outcome = await service.fetch(source_id, endpoint, params=params)
    return outcome.data, outcome.metadata()


@api_endpoint
async def ai_process(request: Request):
    body = await read_json_object(request)
    outcome = await request.app.state.deps.ai_processing_service.process(
        body.get("serviceId"),
        body.get("prompt"),
        context=body.get("context"),
        options=body.get("options"),
    )
    return {"result": outcome.result}, outcome.metadata()


routes = [
    Route("/api/health", health, methods=["GET"]),
    Route("/api/countries", countries, methods=["GET"]),
    Route("/api/dishes", dishes, methods=["POST"]),
    Route("/api/cultural-data", cultural_data, methods=["POST"]),
    Route("/api/recipe", recipe, methods=["POST"]),
    Route("/api/external-data", external_data, methods=["GET", "POST"]),
    Route("/api/ai/process", ai_process, methods=["POST"]),
]
