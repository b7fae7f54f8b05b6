"""Flask app exposing the table DAO over JSON."""

from flask import Flask, request, jsonify, Response, g
from werkzeug.exceptions import HTTPException
from dao_builder import CardinalityError, Query
from dao_conn import Dao, DaoConnection, DB_CONFIG
from typing import Dict, Any, List, Optional
import logging

app = Flask(__name__)
logger = logging.getLogger(__name__)

def get_db() -> DaoConnection:
    """Get or create DaoConnection instance in Flask context."""
    if 'db' not in g:
        g.db = DaoConnection(
            app.config.get('DAO_CONN_STR', DB_CONFIG['conn_str']),
            echo=DB_CONFIG['echo'], debug=DB_CONFIG['debug'],
            audit_db=app.config.get('DAO_AUDIT_DB', DB_CONFIG['audit_db'])
        )
    return g.db

def get_dao(table: str, payload: Optional[Dict[str, Any]] = None) -> Dao:
    """Dao for table, honouring an optional identifier override in the payload."""
    payload = payload or {}
    return Dao(get_db(), table, identifier=payload.get('identifier'))

def validate_payload(payload: Optional[Dict[str, Any]], required: List[str]) -> Dict[str, Any]:
    """Validate JSON payload."""
    if not isinstance(payload, dict):
        raise ValueError('JSON object body required')
    missing = [k for k in required if k not in payload]
    if missing:
        raise ValueError(f'Missing required fields: {missing}')
    return payload

def preview(query: Query) -> Response:
    return jsonify({'sql': query.sql, 'params': query.params})

@app.errorhandler(ValueError)
def handle_value_error(e: ValueError) -> Response:
    """Handle ValueError with 400 response."""
    return jsonify({'error': str(e)}), 400

@app.errorhandler(CardinalityError)
def handle_cardinality_error(e: CardinalityError) -> Response:
    """Handle non-unique identifier lookups with 409 response."""
    return jsonify({'error': str(e)}), 409

@app.errorhandler(Exception)
def handle_general_error(e: Exception) -> Response:
    """Handle unexpected errors with 500 response."""
    if isinstance(e, HTTPException):
        return e
    logger.error(f'Server error: {e}')
    return jsonify({'error': 'Internal server error'}), 500

@app.route('/dao/<table>/select', methods=['POST'])
def select_query(table: str):
    """Filtered select: columns, where, like, order, vector, limit."""
    payload = validate_payload(request.get_json(silent=True) or {}, [])
    dao = get_dao(table, payload)
    query = dao.builder.select_filter(
        columns=payload.get('columns'),
        where=payload.get('where'),
        like=payload.get('like'),
        order=payload.get('order'),
        vector=payload.get('vector'),
        limit=payload.get('limit')
    )
    if not payload.get('execute', False):
        return preview(query)
    return jsonify({'result': dao.con.execute(query, dao.fetch_mode)})

@app.route('/dao/<table>/search', methods=['POST'])
def search_query(table: str):
    """Relevance-ranked LIKE search."""
    payload = validate_payload(request.get_json(silent=True), ['like'])
    dao = get_dao(table, payload)
    query = dao.builder.select_like(
        payload['like'],
        columns=payload.get('columns'),
        type=payload.get('type', 'AND'),
        sort=payload.get('sort', 'ASC'),
        order=payload.get('order')
    )
    if not payload.get('execute', False):
        return preview(query)
    return jsonify({'result': dao.con.execute(query, dao.fetch_mode)})

@app.route('/dao/<table>', methods=['GET'])
def describe_table(table: str):
    """Table, identifier column, fetch mode and dialect the DAO would use."""
    return jsonify(get_dao(table, {'identifier': request.args.get('identifier')}).describe())

@app.route('/dao/<table>/<id_value>', methods=['GET'])
def select_id_query(table: str, id_value: str):
    """Single record by identifier."""
    dao = get_dao(table, {'identifier': request.args.get('identifier')})
    row = dao.select_id(id_value)
    if row is None:
        return jsonify({'error': f'{table} {id_value} not found'}), 404
    return jsonify({'result': row})

@app.route('/dao/<table>/insert', methods=['POST'])
def insert_query(table: str):
    """Insert one row."""
    payload = validate_payload(request.get_json(silent=True), ['values'])
    dao = get_dao(table, payload)
    query = dao.builder.insert(payload['values'])
    if not payload.get('execute', False):
        return preview(query)
    return jsonify({'status': 'success', 'id': dao.con.execute(query)})

@app.route('/dao/<table>/update', methods=['POST'])
def update_query(table: str):
    """Update rows matching where."""
    payload = validate_payload(request.get_json(silent=True), ['values', 'where'])
    dao = get_dao(table, payload)
    query = dao.builder.update(payload['values'], payload['where'])
    if not payload.get('execute', False):
        return preview(query)
    return jsonify({'status': 'success', 'rows_affected': dao.con.execute(query)})

@app.route('/dao/<table>/delete', methods=['POST'])
def delete_query(table: str):
    """Delete by criteria (where) or by identifier list (ids)."""
    payload = validate_payload(request.get_json(silent=True), [])
    dao = get_dao(table, payload)
    if 'ids' in payload:
        query = dao.builder.delete_range(payload['ids'])
    elif 'where' in payload:
        query = dao.builder.delete_where(payload['where'])
    else:
        raise ValueError('Missing required fields: one of [\'where\', \'ids\']')
    if not payload.get('execute', False):
        return preview(query)
    return jsonify({'status': 'success', 'rows_affected': dao.con.execute(query)})

@app.teardown_appcontext
def close_db(error):
    """Close DaoConnection instance on app context teardown."""
    if 'db' in g:
        g.pop('db').close()

if __name__ == '__main__':
    app.run(debug=True)
