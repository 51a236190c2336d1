"""
Flask web interface for the Visual Codegen Core.

This provides the REST API the browser editor talks to: the node catalog for
the add-node menu, graph editing, viewport changes and the Rust export.
"""

from flask import Flask, request, jsonify, Response
from flask_cors import CORS
from flask_socketio import SocketIO
from dotenv import load_dotenv
from typing import Any, Dict
import logging
import os

# Shell environment wins over the project .env file.
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from visual_codegen_core.canvas import Canvas
from visual_codegen_core.config import CodegenConfig
from visual_codegen_core.exceptions import PayloadError
from visual_codegen_core.node_registry import search_node_types

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY'] = os.environ.get('VCODEGEN_SECRET_KEY', 'visual-codegen-secret-key')
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')

# Global instances
config = CodegenConfig.from_env()
canvas = Canvas(config=config)


def _get_payload(*required: str) -> Dict[str, Any]:
    """Parse the JSON body and check that the required keys are present."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")
    for key in required:
        if key not in data:
            raise PayloadError(f"Missing required field: {key}", field=key)
    return data


def _parse_point(value: Any, field_name: str):
    """Accept ``{"x": .., "y": ..}`` or ``[x, y]``."""
    try:
        if isinstance(value, dict):
            return float(value['x']), float(value['y'])
        x, y = value
        return float(x), float(y)
    except (KeyError, TypeError, ValueError):
        raise PayloadError(f"Field '{field_name}' must be a point", field=field_name)


def _error(exc: Exception, status: int = 500):
    if status >= 500:
        logger.exception("Request failed: %s", exc)
    return jsonify({
        'success': False,
        'error': str(exc)
    }), status


# Catalog API
@app.route('/api/node-types', methods=['GET'])
def get_node_types():
    """Get the node catalog grouped by category, optionally filtered by ?q=."""
    try:
        results = search_node_types(request.args.get('q', ''))
        return jsonify({
            'success': True,
            'data': {
                category: [info.to_dict() for info in infos]
                for category, infos in results.items()
            }
        })
    except Exception as e:
        return _error(e)


# Canvas API endpoints
@app.route('/api/canvas/state', methods=['GET'])
def get_canvas_state():
    """Get the current canvas state."""
    try:
        return jsonify({
            'success': True,
            'data': canvas.get_canvas_state()
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/nodes', methods=['GET'])
def get_nodes():
    """Get all nodes on the canvas."""
    try:
        return jsonify({
            'success': True,
            'data': [node.to_dict() for node in canvas.model.nodes.values()]
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/nodes', methods=['POST'])
def add_node():
    """Add a new node of a catalog kind to the canvas."""
    try:
        data = _get_payload('type')
        properties = data.get('properties') or {}
        if not isinstance(properties, dict):
            raise PayloadError("Field 'properties' must be an object", field='properties')

        position = None
        if data.get('position') is not None:
            position = _parse_point(data['position'], 'position')

        node = canvas.add_node(
            str(data['type']),
            properties,
            category=data.get('category'),
            position=position,
        )
        socketio.emit('node_added', {'node': node.to_dict()})

        return jsonify({
            'success': True,
            'data': node.to_dict()
        }), 201
    except PayloadError as e:
        return _error(e, 400)
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/nodes/<node_id>', methods=['PATCH'])
def update_node(node_id):
    """Replace the name, position, config or properties of a node."""
    try:
        data = _get_payload()
        fields: Dict[str, Any] = {}
        if 'name' in data:
            fields['name'] = str(data['name'])
        if 'position' in data:
            fields['position'] = _parse_point(data['position'], 'position')
        if 'config' in data:
            if not isinstance(data['config'], dict):
                raise PayloadError("Field 'config' must be an object", field='config')
            fields['config'] = data['config']
        if 'properties' in data:
            if not isinstance(data['properties'], dict):
                raise PayloadError("Field 'properties' must be an object", field='properties')
            fields['properties'] = data['properties']

        updated = canvas.update_node(node_id, **fields)
        if updated:
            socketio.emit('node_updated', {'node': canvas.model.nodes[node_id].to_dict()})

        return jsonify({
            'success': True,
            'data': {'updated': updated}
        })
    except PayloadError as e:
        return _error(e, 400)
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/nodes/<node_id>', methods=['DELETE'])
def remove_node(node_id):
    """Remove a node and its connections from the canvas."""
    try:
        removed = canvas.remove_node(node_id)
        if removed:
            socketio.emit('node_removed', {'node_id': node_id})

        return jsonify({
            'success': True,
            'data': {'removed': removed}
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/connections', methods=['GET'])
def get_connections():
    """Get all connections on the canvas."""
    try:
        return jsonify({
            'success': True,
            'data': [conn.to_dict() for conn in canvas.model.connections]
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/connections', methods=['POST'])
def add_connection():
    """Add a new connection between nodes."""
    try:
        data = _get_payload('from_node', 'from_pin', 'to_node', 'to_pin')
        connection = canvas.connect(
            str(data['from_node']),
            str(data['from_pin']),
            str(data['to_node']),
            str(data['to_pin'])
        )

        if connection is None:
            return jsonify({
                'success': False,
                'error': 'Connection rejected: missing node or it would create a cycle'
            }), 409

        socketio.emit('connection_added', {'connection': connection.to_dict()})
        return jsonify({
            'success': True,
            'data': connection.to_dict()
        }), 201
    except PayloadError as e:
        return _error(e, 400)
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/connections/<connection_id>', methods=['DELETE'])
def remove_connection(connection_id):
    """Remove a connection from the canvas."""
    try:
        removed = canvas.remove_connection(connection_id)
        if removed:
            socketio.emit('connection_removed', {'connection_id': connection_id})

        return jsonify({
            'success': True,
            'data': {'removed': removed}
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/viewport/zoom', methods=['POST'])
def set_zoom():
    """Set the zoom level."""
    try:
        data = _get_payload('zoom')
        try:
            zoom = float(data['zoom'])
        except (TypeError, ValueError):
            raise PayloadError("Field 'zoom' must be a number", field='zoom')
        canvas.set_zoom(zoom)

        return jsonify({
            'success': True,
            'data': {'zoom': canvas.viewport.zoom}
        })
    except PayloadError as e:
        return _error(e, 400)
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/viewport/pan', methods=['POST'])
def pan_viewport():
    """Pan the viewport by a screen-space delta."""
    try:
        data = _get_payload('delta_x', 'delta_y')
        try:
            delta_x, delta_y = float(data['delta_x']), float(data['delta_y'])
        except (TypeError, ValueError):
            raise PayloadError("Pan deltas must be numbers")
        canvas.pan_viewport(delta_x, delta_y)

        return jsonify({
            'success': True,
            'data': {'pan_x': canvas.viewport.pan_x, 'pan_y': canvas.viewport.pan_y}
        })
    except PayloadError as e:
        return _error(e, 400)
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/validate', methods=['GET'])
def validate_canvas():
    """Report structural problems with the current graph."""
    try:
        errors = canvas.model.validate_model()
        return jsonify({
            'success': True,
            'data': {
                'is_valid': not errors,
                'errors': [str(error) for error in errors]
            }
        })
    except Exception as e:
        return _error(e)


@app.route('/api/canvas/clear', methods=['POST'])
def clear_canvas():
    """Clear all nodes and connections."""
    try:
        canvas.clear()
        socketio.emit('canvas_cleared', {})
        return jsonify({'success': True})
    except Exception as e:
        return _error(e)


# Export API
@app.route('/api/export/preview', methods=['GET'])
def preview_export():
    """Get the generated Rust code as JSON."""
    try:
        return jsonify({
            'success': True,
            'data': {
                'code': canvas.export_code(),
                'filename': canvas.export_filename
            }
        })
    except Exception as e:
        return _error(e)


@app.route('/api/export', methods=['GET'])
def export_code():
    """Download the generated Rust code."""
    try:
        code = canvas.export_code()
        return Response(
            code,
            mimetype='text/plain',
            headers={'Content-Disposition': f'attachment; filename={canvas.export_filename}'}
        )
    except Exception as e:
        return _error(e)


if __name__ == '__main__':
    logging.basicConfig(
        level=os.environ.get('VCODEGEN_LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    host = os.environ.get('VCODEGEN_HOST', '0.0.0.0')
    port = int(os.environ.get('VCODEGEN_PORT', '5002'))

    print("Starting Visual Codegen Web Interface...")
    print(f"Access the interface at: http://localhost:{port}")

    socketio.run(app, debug=False, host=host, port=port, allow_unsafe_werkzeug=True)
