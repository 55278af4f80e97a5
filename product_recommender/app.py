"""
Flask API for the Product Recommender
Serves recommendations and similar products as plain text, one item per line

Run with: python -m product_recommender.app
"""

import logging
import os
from typing import Iterable, List, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from .config import API_HOST, API_PORT, DATA_FILE, DEFAULT_HOW_MANY, LOG_FORMAT, LOG_LEVEL
from .data_loader import build_recommender
from .exceptions import InvalidArgumentError, NotComputableError, UnknownUserError
from .preferences import PreferenceStore
from .recommender import ItemBasedRecommender
from .scoring import RecommendedItem

logger = logging.getLogger(__name__)


def load_recommender(path: str = DATA_FILE) -> ItemBasedRecommender:
    """Build the recommender from the startup data file, empty if it is missing."""
    if not os.path.exists(path):
        logger.warning(f"Preference file not found at {path}, starting with an empty store")
        return ItemBasedRecommender(PreferenceStore())
    return build_recommender(path)


def _parse_id(raw: str, name: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise InvalidArgumentError(f"Invalid {name}: {raw!r}")


def _parse_how_many(raw: Optional[str]) -> int:
    if raw is None:
        return DEFAULT_HOW_MANY
    how_many = _parse_id(raw, 'count')
    if how_many < 1:
        raise InvalidArgumentError(f"count must be positive, got {how_many}")
    return how_many


def _plain_text(lines: Iterable[str], status: int = 200) -> Response:
    body = ''.join(f"{line}\n" for line in lines)
    response = Response(body, status=status, mimetype='text/plain')
    response.headers['Cache-Control'] = 'no-cache'
    return response


def _render_items(items: List[RecommendedItem]) -> Response:
    return _plain_text(str(item.item_id) for item in items)


def create_app(recommender: ItemBasedRecommender) -> Flask:
    """
    Create the Flask app around a shared recommender.

    Args:
        recommender: Recommender used by every request thread

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    CORS(app)
    app.config['RECOMMENDER'] = recommender

    @app.route('/recommend', methods=['GET', 'POST'])
    def recommend():
        """
        Get recommendations for a user or items similar to a list of products.

        Query params:
            user: User ID
            products: Comma-separated product IDs (used when user is absent)
            count: Number of items (default: 20)
        """
        user = request.values.get('user')
        products = request.values.get('products')
        if user is None and products is None:
            raise InvalidArgumentError("Either 'user' or 'products' parameters must be provided")

        how_many = _parse_how_many(request.values.get('count'))
        if user is not None:
            items = recommender.recommend(_parse_id(user, 'user'), how_many)
        else:
            product_ids = [_parse_id(raw, 'product') for raw in products.split(',')]
            items = recommender.most_similar_items(product_ids, how_many)

        return _render_items(items)

    @app.route('/estimate')
    def estimate():
        """Estimate a user's preference for an item."""
        user = request.args.get('user')
        item = request.args.get('item')
        if user is None or item is None:
            raise InvalidArgumentError("Both 'user' and 'item' parameters must be provided")

        value = recommender.estimate_preference(_parse_id(user, 'user'), _parse_id(item, 'item'))
        return _plain_text([str(value)])

    @app.route('/refresh', methods=['POST'])
    def refresh():
        """Recompute derived state after external data changes."""
        recommender.refresh()
        return jsonify({'status': 'success'})

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'statistics': recommender.store.get_statistics(),
            'cached_similarities': recommender.similarity.cache_size,
        })

    # Error handlers
    @app.errorhandler(InvalidArgumentError)
    def invalid_argument(error):
        return _plain_text([str(error)], status=400)

    @app.errorhandler(UnknownUserError)
    def unknown_user(error):
        return _plain_text([str(error)], status=404)

    @app.errorhandler(NotComputableError)
    def not_computable(error):
        return _plain_text([str(error)], status=422)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'error': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    app = create_app(load_recommender())
    logger.info(f"Starting API server on {API_HOST}:{API_PORT}")
    app.run(host=API_HOST, port=API_PORT, threaded=True)
