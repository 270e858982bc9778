"""Minimal deterministic OpenAPI document for the Hotelix API.

Paths are declared in ``OPERATIONS``; permissions, tags and operationIds are
filled in by ``build_openapi_spec`` so the output order is stable.
"""
from typing import Any, Dict, List, Optional, Tuple
from hotelix.models.intervention import Intervention
from hotelix.models.zone import Zone
from hotelix.models.hotel import User

__all__ = ["build_openapi_spec"]

# (path, method, summary, required permissions or None for public / token only, extra)
OPERATIONS: List[Tuple[str, str, str, Optional[List[str]], Dict[str, Any]]] = [
    ("/auth/register", "post", "Register a user", None, {"public": True, "status": "201"}),
    ("/auth/login", "post", "Login", None, {"public": True}),
    ("/auth/logout", "post", "Logout", None, {}),
    ("/auth/me", "get", "Current user session", None, {}),
    ("/hotels", "get", "List hotels", None, {"public": True}),
    ("/hotels/{hotel_id}/zones", "get", "List zones with sous-zones", ["ZONE.READ"], {}),
    ("/hotels/{hotel_id}/zones", "post", "Create zone", ["ZONE.MANAGE"], {"status": "201"}),
    ("/zones/{zone_id}/sous-zones", "post", "Create sous-zone", ["ZONE.MANAGE"], {"status": "201"}),
    ("/zones/{zone_id}", "delete", "Delete zone", ["ZONE.MANAGE"], {"conflict": True}),
    ("/interventions", "get", "List interventions", ["INT.READ"], {"listing": True}),
    ("/interventions", "head", "List interventions (headers only)", ["INT.READ"], {"listing": True}),
    ("/interventions", "post", "Create intervention", ["INT.CREATE"], {"status": "201"}),
    ("/interventions/available", "get", "Unassigned open interventions", ["INT.READ"], {}),
    ("/interventions/{intervention_id}", "get", "Get intervention", ["INT.READ"], {}),
    ("/interventions/{intervention_id}", "patch", "Update intervention", ["INT.UPDATE"], {}),
    ("/interventions/{intervention_id}/status", "post", "Change statut", ["INT.STATUS"], {}),
    ("/interventions/{intervention_id}/assign", "post", "Assign or unassign", ["INT.ASSIGN"], {}),
    ("/technicians", "get", "List technicians", ["TECH.READ"], {}),
    ("/technicians/{technicien_id}", "get", "Get technician", None, {"self_access": "TECH.READ"}),
    ("/technicians/{technicien_id}/stats", "get", "Technician stats", ["STATS.READ"], {"self_access": "TECH.READ"}),
    ("/technicians/{technicien_id}/assignments", "post", "Assign intervention to technician", ["INT.ASSIGN"], {"status": "201"}),
    ("/stats/global", "get", "Hotel global stats", ["STATS.READ"], {}),
    ("/stats/counts", "get", "Intervention counts", ["STATS.READ"], {"self_access": "TECH.READ"}),
    ("/stats/technicians/{technicien_id}/status", "get", "Technician availability", ["STATS.READ"], {}),
    ("/stats/periods", "get", "Available stats periods", ["STATS.READ"], {}),
    ("/stats/cache", "get", "Stats cache metrics", ["STATS.MANAGE"], {}),
    ("/stats/cache", "delete", "Clear stats cache", ["STATS.MANAGE"], {}),
    ("/stats/cache/warmup", "post", "Warm stats cache", ["STATS.MANAGE"], {}),
]


def _enum(values) -> Dict[str, Any]:
    return {"type": "string", "enum": list(values)}


def _schemas() -> Dict[str, Any]:
    return {
        "Hotel": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "nom": {"type": "string"},
                "adresse": {"type": "string"},
                "pays": {"type": "string"},
            },
            "required": ["id", "nom"],
        },
        "Zone": {
            "type": "object",
            "properties": {"id": {"type": "integer"}, "nom": {"type": "string"}, "type": _enum(Zone.ALL_TYPES)},
            "required": ["id", "nom", "type"],
        },
        "UserSession": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "email": {"type": "string"},
                "role": _enum(User.ALL_ROLES),
                "hotel_id": {"type": "integer"},
            },
            "required": ["id", "email", "role", "hotel_id"],
        },
        "Intervention": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "titre": {"type": "string"},
                "type": _enum(Intervention.ALL_TYPES),
                "priorite": _enum(Intervention.ALL_PRIORITES),
                "origine": _enum(Intervention.ALL_ORIGINES),
                "statut": _enum(Intervention.ALL_STATUTS),
            },
            "required": ["id", "titre", "statut"],
        },
        "Pagination": {
            "type": "object",
            "properties": {
                "total": {"type": "integer"},
                "limit": {"type": "integer"},
                "offset": {"type": "integer"},
                "returned": {"type": "integer"},
            },
            "required": ["total", "limit", "offset", "returned"],
        },
        "Error": {
            "type": "object",
            "properties": {
                "error": {
                    "type": "object",
                    "properties": {
                        "status": {"type": "integer"},
                        "title": {"type": "string"},
                        "detail": {"type": "string"},
                        "code": {"type": "string"},
                        "fields": {"type": "object", "additionalProperties": {"type": "string"}},
                    },
                    "required": ["status", "title", "detail"],
                }
            },
            "required": ["error"],
        },
    }


def _caching_headers() -> Dict[str, Any]:
    return {
        "ETag": {"schema": {"type": "string"}},
        "Last-Modified": {"schema": {"type": "string"}},
        "X-Last-Modified-ISO": {"schema": {"type": "string"}},
    }


def _path_params(path: str) -> List[Dict[str, Any]]:
    names = [seg[1:-1] for seg in path.split("/") if seg.startswith("{")]
    return [{"name": n, "in": "path", "required": True, "schema": {"type": "integer"}} for n in names]


def _operation(path: str, method: str, summary: str, perms, extra: Dict[str, Any]) -> Dict[str, Any]:
    status = extra.get("status", "200")
    op: Dict[str, Any] = {"summary": summary, "responses": {status: {"description": "OK"}}}
    params = _path_params(path)
    if extra.get("listing"):
        params += [
            {"$ref": "#/components/parameters/LimitParam"},
            {"$ref": "#/components/parameters/OffsetParam"},
            {"$ref": "#/components/parameters/InterventionSortParam"},
        ]
        op["responses"][status]["headers"] = _caching_headers()
        op["responses"]["304"] = {"description": "Not Modified"}
    if params:
        op["parameters"] = params
    if extra.get("conflict"):
        op["responses"]["409"] = {"$ref": "#/components/responses/Conflict"}
    if extra.get("public"):
        op["security"] = []
    if perms:
        op["x-required-permissions"] = list(perms)
        op["responses"]["403"] = {"$ref": "#/components/responses/Forbidden"}
    if extra.get("self_access"):
        op["x-self-access"] = {"otherwise": extra["self_access"]}
        op["description"] = f"Technicians may read their own data; other technicians require {extra['self_access']}."
        op["responses"]["403"] = {"$ref": "#/components/responses/Forbidden"}
    return op


def build_openapi_spec() -> Dict[str, Any]:
    error_ref = {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}
    components: Dict[str, Any] = {
        "schemas": _schemas(),
        "responses": {
            "BadRequest": {"description": "Bad Request", "content": error_ref},
            "Forbidden": {"description": "Forbidden", "content": error_ref},
            "NotFound": {"description": "Not Found", "content": error_ref},
            "Conflict": {"description": "Conflict", "content": error_ref},
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        "parameters": {
            "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 50}},
            "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
            "InterventionSortParam": {
                "name": "sort",
                "in": "query",
                "schema": {"type": "string", "default": "-date_creation"},
                "description": "Comma separated fields (date_creation, statut, titre, priorite, id); '-' prefix for desc",
            },
        },
    }

    paths: Dict[str, Any] = {}
    tag_desc: Dict[str, str] = {}
    for path, method, summary, perms, extra in OPERATIONS:
        op = _operation(path, method, summary, perms, extra)
        tag = path.split("/")[1].capitalize()
        rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "").replace("-", "_")
        op["operationId"] = f"{method}_{rid}"
        op["tags"] = [tag]
        tag_desc[tag] = f"{tag} endpoints"
        paths.setdefault(path, {})[method] = op

    return {
        "openapi": "3.0.3",
        "info": {"title": "Hotelix API", "version": "0.1.0"},
        "paths": paths,
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": d} for n, d in sorted(tag_desc.items())],
    }
