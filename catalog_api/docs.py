"""OpenAPI document and Swagger UI.

Each documented view carries its operation object as YAML after a ``---``
line in its docstring; the line before it becomes the summary. Request body
schemas come from the pydantic payload models.
"""
import inspect
import re

import yaml
from flask import Blueprint, current_app, jsonify, render_template_string, url_for

from .validators import LoginIn, ProductIn, UserIn

docs_bp = Blueprint('docs', __name__)

SCHEMA_MODELS = (UserIn, LoginIn, ProductIn)
HTTP_METHODS = ('get', 'post', 'put', 'patch', 'delete')

_PATH_ARG = re.compile(r'<(?:[^:<>]+:)?([^<>]+)>')

SWAGGER_UI = """<!DOCTYPE html>
<html>
<head>
  <title>{{ title }}</title>
  <link rel="stylesheet" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
  <script>
    window.ui = SwaggerUIBundle({url: "{{ spec_url }}", dom_id: "#swagger-ui"});
  </script>
</body>
</html>
"""


def operation_spec(view):
    """Parse the operation object out of a view docstring, or None if undocumented."""
    doc = inspect.getdoc(view)
    if not doc:
        return None
    summary, sep, body = doc.partition('\n---\n')
    if not sep:
        return None

    operation = yaml.safe_load(body) or {}
    operation.setdefault('summary', summary.strip())
    if 'responses' in operation:
        operation['responses'] = {str(code): resp for code, resp in operation['responses'].items()}
    return operation


def openapi_path(rule):
    return _PATH_ARG.sub(r'{\1}', rule)


def build_spec(app):
    paths = {}
    for rule in app.url_map.iter_rules():
        operation = operation_spec(app.view_functions[rule.endpoint])
        if operation is None:
            continue
        for method in sorted(rule.methods):
            method = method.lower()
            if method in HTTP_METHODS:
                paths.setdefault(openapi_path(rule.rule), {})[method] = operation

    schemas = {
        model.__name__: model.model_json_schema(ref_template='#/components/schemas/{model}')
        for model in SCHEMA_MODELS
    }
    return {
        "openapi": "3.0.3",
        "info": {
            "title": app.config['API_TITLE'],
            "description": app.config['API_DESCRIPTION'],
            "version": app.config['API_VERSION'],
        },
        "paths": paths,
        "components": {
            "schemas": schemas,
            "securitySchemes": {
                "Bearer": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            },
        },
    }


@docs_bp.route('/api-docs.json')
def spec():
    return jsonify(build_spec(current_app))


@docs_bp.route('/api-docs/')
def ui():
    return render_template_string(
        SWAGGER_UI,
        title=current_app.config['API_TITLE'],
        spec_url=url_for('docs.spec'),
    )
