"""
server.py — HTTP endpoint wrapping the converter.

    POST /api/convert-panorama
        JSON {"imageUrl": "https://..."}  or  multipart form with a "file" field
    → application/zip attachment with X-Total-Tiles / X-Zoom-Levels / X-Max-Zoom
"""

import io

from flask import Flask, jsonify, request, send_file

from .convert import convert_image
from .errors import SourceLoadError
from .sources import is_http_url, load_bytes, load_url
from .tiling import DEFAULT_LEVELS

ARCHIVE_NAME = 'cubemap-tiles.zip'


def create_app(config=None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        CUBETILES_LEVELS=DEFAULT_LEVELS,
        CUBETILES_WORKERS=None,
        MAX_CONTENT_LENGTH=256 * 1024 * 1024,
    )
    if config:
        app.config.update(config)

    @app.route('/api/convert-panorama', methods=['POST'])
    def convert_panorama():
        upload = request.files.get('file')
        if upload is not None:
            label = upload.filename or 'upload'
            load = lambda: load_bytes(upload.read())
        else:
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                payload = {}
            image_url = payload.get('imageUrl')
            if not image_url:
                return jsonify(error='Image URL is required'), 400
            if not isinstance(image_url, str) or not is_http_url(image_url):
                return jsonify(error='Invalid URL format'), 400
            label = image_url
            load = lambda: load_url(image_url)

        try:
            result = convert_image(load(), app.config['CUBETILES_LEVELS'],
                                   workers=app.config['CUBETILES_WORKERS'])
        except SourceLoadError as exc:
            app.logger.warning("cannot load %s: %s", label, exc)
            return jsonify(error=str(exc)), 400
        except Exception:
            app.logger.exception("conversion of %s failed", label)
            return jsonify(error='Failed to convert panorama image'), 500

        app.logger.info("converted %s: %d tiles", label, result.total_tiles)
        response = send_file(io.BytesIO(result.archive), mimetype='application/zip',
                             as_attachment=True, download_name=ARCHIVE_NAME)
        response.headers['X-Total-Tiles'] = str(result.total_tiles)
        response.headers['X-Zoom-Levels'] = str(result.zoom_levels)
        response.headers['X-Max-Zoom'] = str(result.max_zoom)
        return response

    return app
